from __future__ import annotations

import click
import rich_click

import apimap
from apimap.types import TransportKind

from .context import CLIContext
from .logging import configure_logging, restore_logging


@click.group(
    name="apimap",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=rich_click.RichGroup,
)
@click.option(
    "--output",
    type=click.Choice(["table", "json"]),
    default="table",
)
@click.option("--json", "json_flag", is_flag=True, help="Alias for --output json.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option("--host", type=str, default=None, help="Base URL (env: APIMAP_HOST).")
@click.option(
    "--transport",
    type=click.Choice(TransportKind.values()),
    default=None,
    help="Transport kind (env: APIMAP_TRANSPORT).",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-request timeout in seconds (env: APIMAP_TIMEOUT).",
)
@click.version_option(version=apimap.__version__, prog_name="apimap")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    output: str,
    json_flag: bool,
    verbose: int,
    host: str | None,
    transport: str | None,
    timeout: float | None,
) -> None:
    if click_ctx.invoked_subcommand is None:
        # No args: show help; nothing is loaded.
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    click_ctx.obj = CLIContext(
        output="json" if json_flag else output,  # type: ignore[arg-type]
        verbosity=verbose,
        host=host,
        transport=transport,
        timeout=timeout,
    )
    click_ctx.call_on_close(click_ctx.obj.close)

    previous_logging = configure_logging(verbosity=verbose)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.call_cmd import call_cmd as _call_cmd  # noqa: E402
from .commands.routes_cmd import routes_cmd as _routes_cmd  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_version_cmd)
cli.add_command(_routes_cmd)
cli.add_command(_call_cmd)
