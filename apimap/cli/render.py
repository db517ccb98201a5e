from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .results import CommandResult


@dataclass(frozen=True, slots=True)
class RenderSettings:
    output: str  # "table" | "json"
    verbosity: int


def _error_title(error_type: str) -> str:
    mapping = {
        "usage_error": "Usage error",
        "config_error": "Configuration error",
        "not_found": "Not found",
        "request_failed": "Request failed",
    }
    return mapping.get((error_type or "").strip(), "Error")


def _format_params(params: Any) -> str:
    if isinstance(params, Mapping):
        return ", ".join(f"{key}={value!r}" for key, value in params.items())
    return ", ".join(str(name) for name in params or ())


def _routes_table(rows: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, header_style="bold")
    for column in ("name", "method", "key", "transport", "params"):
        table.add_column(column)
    for row in rows:
        table.add_row(
            row["name"],
            row["method"],
            row["key"],
            row["transport"],
            _format_params(row["params"]),
        )
    return table


def render_result(result: CommandResult, *, settings: RenderSettings) -> None:
    stdout = Console(file=sys.stdout, force_terminal=False)
    stderr = Console(file=sys.stderr, force_terminal=False)

    if settings.output == "json":
        payload = result.model_dump(by_alias=True, mode="json")
        sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")
        return

    if not result.ok:
        if result.error is None:
            stderr.print("Error")
            return
        stderr.print(f"{_error_title(result.error.type)}: {result.error.message}", markup=False)
        if result.error.hint:
            stderr.print(f"Hint: {result.error.hint}", markup=False)
        return

    if result.command == "version" and isinstance(result.data, dict):
        stdout.print(Text(result.data.get("version", ""), style="bold"))
    elif result.command == "routes" and isinstance(result.data, list):
        stdout.print(_routes_table(result.data))
    else:
        stdout.print_json(data=result.data)

    for warning in result.warnings:
        stderr.print(f"Warning: {warning}", markup=False)
