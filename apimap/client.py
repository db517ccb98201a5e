"""
API client.

`ApiClient` owns the client-wide defaults (host, transport kind, transport
options, default error payload), the global middleware list and the transport
collaborators, and turns API descriptions into maps of request functions.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from .api import ApiFunction
from .clients.dispatch import Transports
from .clients.pipeline import Middleware
from .clients.transports import HttpxRequester, JsonpRequester
from .descriptors import flatten
from .exceptions import ConfigurationError
from .types import (
    DEFAULT_ERROR_PAYLOAD,
    HttpRequest,
    JsonpRequest,
    NativeRequest,
    TransportKind,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClientState:
    """
    Client-wide state read by every call.

    Calls read `middleware` by reference when they compile their chain; it is
    only ever appended to, from the thread running the event loop. No locking
    is done.
    """

    host: str
    transport: TransportKind
    transports: Transports
    middleware: list[Middleware] = field(default_factory=list)
    http_options: dict[str, Any] = field(default_factory=dict)
    jsonp_options: dict[str, Any] = field(default_factory=dict)
    default_error_payload: dict[str, Any] = field(
        default_factory=lambda: dict(DEFAULT_ERROR_PAYLOAD)
    )


def resolve_transport_kind(
    transport: TransportKind | str | None,
    *,
    native_available: bool,
) -> TransportKind:
    """
    Validate the client-wide transport kind.

    When omitted, `native` is picked if a native request callable is available,
    `http` otherwise.

    Raises:
        ConfigurationError: If the kind is not one of `TransportKind`.
    """
    if transport is None:
        return TransportKind.NATIVE if native_available else TransportKind.HTTP
    try:
        return TransportKind(transport)
    except ValueError:
        logger.error(
            f"invalid transport kind: {transport!r}, "
            f"supported kinds: {', '.join(TransportKind.values())}"
        )
        raise ConfigurationError("invalid reqType") from None


class ApiClient:
    """
    Turns API descriptions into request functions.

    Example:
        ```python
        from apimap import ApiClient

        async def log_time(ctx, next):
            await next()
            print(ctx.req.api_name, ctx.req_time)

        client = ApiClient(host="https://example.com/").use(log_time)
        apis = client.get_api({
            "prefix": "users",
            "endpoints": [
                {"path": "info", "params": ["uid"]},
                {"path": "update", "method": "post", "params": {"uid": 0}},
            ],
        })

        async with client:
            info = await apis["info"]({"uid": 42})
        ```
    """

    def __init__(
        self,
        host: str = "",
        *,
        transport: TransportKind | str | None = None,
        middleware: Sequence[Middleware] | None = None,
        http_options: Mapping[str, Any] | None = None,
        jsonp_options: Mapping[str, Any] | None = None,
        default_error_payload: Mapping[str, Any] | None = None,
        native_request: NativeRequest | None = None,
        http_request: HttpRequest | None = None,
        jsonp_request: JsonpRequest | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the client.

        Args:
            host: Base URL every endpoint path is joined onto.
            transport: `native`, `http` or `jsonp`; auto-detected when omitted.
            middleware: Initial global middleware list.
            http_options: Options passed to the HTTP transport on every request.
            jsonp_options: Options passed to the JSONP transport on every request.
            default_error_payload: Response data used when a transport fails.
            native_request: Platform request callable used by the `native` transport.
            http_request: HTTP collaborator replacing the default httpx one.
            jsonp_request: JSONP collaborator replacing the default httpx one.
            http_transport: httpx transport for the default collaborators
                (e.g. `httpx.MockTransport` in tests).
            timeout: Default request timeout in seconds for the HTTP transport.

        Raises:
            ConfigurationError: If the transport kind is invalid, or `native`
                is requested without a native request callable.
        """
        kind = resolve_transport_kind(transport, native_available=native_request is not None)
        if kind is TransportKind.NATIVE and native_request is None:
            raise ConfigurationError("native transport requires a native_request callable")

        self._owned: list[HttpxRequester | JsonpRequester] = []
        if http_request is None:
            http_request = HttpxRequester(transport=http_transport, timeout=timeout)
            self._owned.append(http_request)
        if jsonp_request is None:
            jsonp_request = JsonpRequester(transport=http_transport)
            self._owned.append(jsonp_request)

        self._state = ClientState(
            host=host,
            transport=kind,
            transports=Transports(http=http_request, jsonp=jsonp_request, native=native_request),
            middleware=[],
            http_options=dict(http_options or {}),
            jsonp_options=dict(jsonp_options or {}),
            default_error_payload=dict(
                DEFAULT_ERROR_PAYLOAD if default_error_payload is None else default_error_payload
            ),
        )
        for fn in middleware or ():
            self.use(fn)

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def host(self) -> str:
        return self._state.host

    @property
    def transport(self) -> TransportKind:
        return self._state.transport

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """Snapshot of the global middleware list."""
        return tuple(self._state.middleware)

    def use(self, fn: Middleware) -> ApiClient:
        """
        Append a middleware to the global middleware list.

        Returns:
            The client itself, for chaining.

        Raises:
            TypeError: If `fn` is not callable.
        """
        if not callable(fn):
            raise TypeError("middleware must be a callable!")
        self._state.middleware.append(fn)
        return self

    def get_api(self, config: Any) -> dict[str, ApiFunction]:
        """
        Build the request functions for an API description.

        Args:
            config: A group/endpoint mapping, a sequence of them, or the
                equivalent `apimap.models` instances.

        Returns:
            Mapping of API name (`name`, or `path` when unnamed) to request function.
        """
        return flatten(config, self._state)

    async def aclose(self) -> None:
        """Close the HTTP clients created by this client."""
        for requester in self._owned:
            await requester.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
