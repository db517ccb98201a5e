from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import click
import rich_click

from ..context import CLIContext
from ..runner import run_command


def _params_payload(params: Any) -> Any:
    if isinstance(params, Mapping):
        return dict(params)
    return list(params)


@click.command(name="routes", cls=rich_click.RichCommand)
@click.argument("source")
@click.option("--json", "json_flag", is_flag=True, help="Emit JSON.")
@click.pass_obj
def routes_cmd(ctx: CLIContext, source: str, json_flag: bool) -> None:
    """List the endpoints of an API description (JSON file or module:attribute)."""
    if json_flag:
        ctx.output = "json"

    def fn(ctx: CLIContext, _warnings: list[str]) -> list[dict[str, Any]]:
        apis = ctx.get_api(source)
        return [
            {
                "name": name,
                "method": api.endpoint.method.upper(),
                "key": api.key,
                "transport": api.endpoint.transport,
                "params": _params_payload(api.params),
            }
            for name, api in apis.items()
        ]

    run_command(ctx, command="routes", fn=fn)
