from __future__ import annotations

import asyncio
import json
from typing import Any

import click
import rich_click

from ..context import CLIContext
from ..errors import CLIError
from ..runner import run_command


def _parse_arg(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise CLIError(f"Invalid argument {raw!r}; expected key=value.")
    try:
        return key, json.loads(value)
    except json.JSONDecodeError:
        return key, value


@click.command(name="call", cls=rich_click.RichCommand)
@click.argument("source")
@click.argument("name")
@click.option(
    "-a",
    "--arg",
    "raw_args",
    multiple=True,
    help="Request parameter as key=value (value parsed as JSON when possible).",
)
@click.option("--callback-name", type=str, default=None, help="JSONP callback name.")
@click.option("--json", "json_flag", is_flag=True, help="Emit the JSON result envelope.")
@click.pass_obj
def call_cmd(
    ctx: CLIContext,
    source: str,
    name: str,
    raw_args: tuple[str, ...],
    callback_name: str | None,
    json_flag: bool,
) -> None:
    """Call one endpoint of an API description and print its response data."""
    if json_flag:
        ctx.output = "json"

    def fn(ctx: CLIContext, _warnings: list[str]) -> Any:
        args = dict(_parse_arg(raw) for raw in raw_args)
        client = ctx.get_client()

        async def _call() -> Any:
            async with client:
                api = ctx.get_api(source).get(name)
                if api is None:
                    raise CLIError(
                        f"Unknown endpoint: {name!r}",
                        error_type="not_found",
                        hint="Run `apimap routes SOURCE` to list endpoint names.",
                    )
                return await api(args, callback_name=callback_name)

        return asyncio.run(_call())

    run_command(ctx, command="call", fn=fn)
