from __future__ import annotations

import platform

import click
import rich_click

import apimap

from ..context import CLIContext
from ..runner import run_command


@click.command(name="version", cls=rich_click.RichCommand)
@click.option("--json", "json_flag", is_flag=True, help="Emit JSON.")
@click.pass_obj
def version_cmd(ctx: CLIContext, json_flag: bool) -> None:
    """Show the apimap version."""
    if json_flag:
        ctx.output = "json"

    def fn(_: CLIContext, _warnings: list[str]) -> dict[str, str]:
        return {
            "version": apimap.__version__,
            "pythonVersion": platform.python_version(),
            "platform": platform.platform(),
        }

    run_command(ctx, command="version", fn=fn)
