from __future__ import annotations

import asyncio
import importlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from apimap import ApiClient, ConfigurationError, TransportKind

from .errors import CLIError

OutputFormat = Literal["table", "json"]

_DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class ClientSettings:
    host: str
    transport: str | None
    timeout: float


def _env_timeout() -> float | None:
    raw = os.getenv("APIMAP_TIMEOUT", "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise CLIError(f"APIMAP_TIMEOUT must be a number of seconds, got {raw!r}.") from None


def load_api_source(source: str) -> Any:
    """
    Load an API description from a JSON file or a `module:attribute` reference.

    Descriptions holding hooks or middleware have to come from Python.
    """
    path = Path(source)
    if path.is_file():
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise CLIError(f"{path} is not valid JSON: {e}") from e

    module_name, sep, attr = source.partition(":")
    if not sep or not module_name or not attr:
        raise CLIError(
            f"Cannot load API description from {source!r}.",
            hint="Pass a JSON file path or a `module:attribute` reference.",
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise CLIError(f"Cannot import module {module_name!r}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise CLIError(f"Module {module_name!r} has no attribute {attr!r}.") from None


@dataclass
class CLIContext:
    output: OutputFormat
    verbosity: int
    host: str | None
    transport: str | None
    timeout: float | None

    _client: ApiClient | None = None

    def resolve_client_settings(self) -> ClientSettings:
        """Flags win over `APIMAP_*` environment variables, which win over defaults."""
        host = self.host or os.getenv("APIMAP_HOST") or ""
        transport = self.transport or os.getenv("APIMAP_TRANSPORT") or None
        timeout = self.timeout if self.timeout is not None else _env_timeout()
        if timeout is None:
            timeout = _DEFAULT_TIMEOUT_SECONDS
        if timeout <= 0:
            raise CLIError("--timeout must be > 0.")
        return ClientSettings(host=host, transport=transport, timeout=timeout)

    def get_client(self) -> ApiClient:
        if self._client is None:
            settings = self.resolve_client_settings()
            if settings.transport == TransportKind.NATIVE.value:
                raise CLIError(
                    "The native transport needs a platform request function "
                    "and cannot be used from the CLI."
                )
            try:
                self._client = ApiClient(
                    settings.host,
                    transport=settings.transport,
                    timeout=settings.timeout,
                )
            except ConfigurationError as e:
                raise CLIError(
                    f"Invalid transport {settings.transport!r}: {e}",
                    error_type="config_error",
                    hint=f"Supported transports: {', '.join(TransportKind.values())}.",
                ) from e
        return self._client

    def get_api(self, source: str) -> dict[str, Any]:
        client = self.get_client()
        try:
            return client.get_api(load_api_source(source))
        except ConfigurationError as e:
            raise CLIError(str(e), error_type="config_error") from e

    def close(self) -> None:
        """Close the client's HTTP connections, if a client was created."""
        if self._client is not None:
            asyncio.run(self._client.aclose())
            self._client = None
