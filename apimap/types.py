"""
Shared type definitions.

Transport kinds, supported HTTP verbs and the callable shapes accepted in an
API description (hooks and collaborators).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from enum import Enum
from typing import Any, TypeAlias


class TransportKind(str, Enum):
    """Closed set of transports a request can be routed through."""

    NATIVE = "native"
    HTTP = "http"
    # Fallback branch: POST goes through HTTP, everything else through JSONP.
    JSONP = "jsonp"

    @classmethod
    def values(cls) -> list[str]:
        return [kind.value for kind in cls]


NATIVE_METHODS = frozenset({"OPTIONS", "GET", "HEAD", "POST", "PUT", "DELETE", "TRACE", "CONNECT"})
HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})

DEFAULT_ERROR_PAYLOAD: Mapping[str, Any] = {"code": 999, "msg": "Something went wrong!"}

# Declared endpoint params: a list of names or a mapping of default values.
Params: TypeAlias = Sequence[str] | Mapping[str, Any]

PreHook: TypeAlias = Callable[[], "Mapping[str, Any] | None | Awaitable[Mapping[str, Any] | None]"]
PostHook: TypeAlias = Callable[[tuple[Any, Any]], Any]

NativeRequest: TypeAlias = Callable[[dict[str, Any]], Any]
HttpRequest: TypeAlias = Callable[[dict[str, Any]], Awaitable[Any]]
JsonpRequest: TypeAlias = Callable[[str, dict[str, Any]], Awaitable[Any]]
