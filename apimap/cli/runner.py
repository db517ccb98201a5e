from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import click

from .context import CLIContext
from .errors import CLIError
from .render import RenderSettings, render_result
from .results import CommandMeta, CommandResult, ErrorInfo

CommandFn = Callable[[CLIContext, list[str]], Any]


def _duration_ms(started: float) -> int:
    return int((time.time() - started) * 1000)


def run_command(ctx: CLIContext, *, command: str, fn: CommandFn) -> None:
    """
    Run `fn`, render its result (or failure) and exit.

    `CLIError`s exit with their own code; any other exception is a failed
    request and exits with 1.
    """
    started = time.time()
    warnings: list[str] = []
    settings = RenderSettings(output=ctx.output, verbosity=ctx.verbosity)
    try:
        data = fn(ctx, warnings)
    except CLIError as exc:
        error = ErrorInfo(type=exc.error_type, message=exc.message, hint=exc.hint)
        code = exc.exit_code
    except Exception as exc:
        error = ErrorInfo(type="request_failed", message=str(exc) or type(exc).__name__)
        code = 1
    else:
        result = CommandResult(
            ok=True,
            command=command,
            data=data,
            warnings=warnings,
            meta=CommandMeta(duration_ms=_duration_ms(started)),
        )
        render_result(result, settings=settings)
        raise click.exceptions.Exit(0)

    result = CommandResult(
        ok=False,
        command=command,
        warnings=warnings,
        meta=CommandMeta(duration_ms=_duration_ms(started)),
        error=error,
    )
    render_result(result, settings=settings)
    raise click.exceptions.Exit(code)
