"""
Transport dispatcher: the terminal step of every request pipeline.

A sender is selected once per endpoint from its transport kind. At call time
the dispatch step hands the resolved request parameters to that sender and
settles the outcome into `ctx.res`. Transport failures never escape the
dispatch step, so the unwind phase of the middleware chain always runs.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

from ..exceptions import ConfigurationError
from ..types import HttpRequest, JsonpRequest, NativeRequest, TransportKind
from .pipeline import ApiResponse, Context, Terminal
from .transports import call_http, call_jsonp, call_native

logger = logging.getLogger(__name__)

# Keys of the resolved-parameters bag consumed by the dispatcher itself;
# everything else is passed through to the transport.
_RESERVED_KEYS = frozenset(
    {"url", "full_url", "method", "data", "callback_name", "http_options", "jsonp_options"}
)


@dataclass(frozen=True, slots=True)
class Transports:
    """The collaborators a client routes requests to."""

    http: HttpRequest
    jsonp: JsonpRequest
    native: NativeRequest | None = None


Sender: TypeAlias = Callable[[Mapping[str, Any], Transports], Awaitable[Any]]


def _method(resolved: Mapping[str, Any]) -> str:
    return str(resolved.get("method") or "GET").upper()


def _passthrough(resolved: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in resolved.items() if key not in _RESERVED_KEYS}


async def _send_native(resolved: Mapping[str, Any], transports: Transports) -> Any:
    if transports.native is None:
        raise ConfigurationError("native transport requires a native_request callable")
    options = {
        "url": resolved.get("url"),
        "full_url": resolved.get("full_url"),
        "data": resolved.get("data"),
        "method": _method(resolved),
        **_passthrough(resolved),
    }
    return await call_native(transports.native, options)


async def _send_http(resolved: Mapping[str, Any], transports: Transports) -> Any:
    method = _method(resolved)
    config = {
        "url": resolved.get("full_url") if method == "GET" else resolved.get("url"),
        "data": resolved.get("data"),
        "method": method,
        **resolved.get("http_options", {}),
        **_passthrough(resolved),
    }
    return await call_http(transports.http, config)


async def _send_fallback(resolved: Mapping[str, Any], transports: Transports) -> Any:
    if _method(resolved) == "POST":
        config = {
            "url": resolved.get("url"),
            "data": resolved.get("data"),
            **resolved.get("http_options", {}),
        }
        return await call_http(transports.http, config)

    options = {**resolved.get("jsonp_options", {}), "callback_name": resolved.get("callback_name")}
    return await call_jsonp(transports.jsonp, resolved.get("full_url") or "", options)


_SENDERS: dict[TransportKind, Sender] = {
    TransportKind.NATIVE: _send_native,
    TransportKind.HTTP: _send_http,
    TransportKind.JSONP: _send_fallback,
}


def _invalid_transport(kind: Any) -> Sender:
    async def _send(resolved: Mapping[str, Any], transports: Transports) -> Any:
        logger.error(
            f"invalid transport kind {kind!r}, supported kinds: {', '.join(TransportKind.values())}"
        )
        raise ConfigurationError("invalid reqType")

    return _send


def select_transport(kind: TransportKind | str) -> Sender:
    """
    Pick the sender for `kind`.

    An unknown kind is not rejected here: the returned sender fails with
    `ConfigurationError("invalid reqType")` when a call reaches dispatch.
    """
    try:
        transport = TransportKind(kind)
    except ValueError:
        return _invalid_transport(kind)
    return _SENDERS[transport]


async def settle(
    send: Sender,
    resolved: Mapping[str, Any],
    transports: Transports,
    default_error_payload: Mapping[str, Any],
) -> ApiResponse:
    """Run `send` and convert its outcome, success or failure, into an `ApiResponse`."""
    try:
        data = await send(resolved, transports)
    except Exception as exc:
        logger.debug(f"Transport failed for {resolved.get('url')}: {exc!r}")
        return ApiResponse(data=dict(default_error_payload), error=exc)
    return ApiResponse(data=data)


def make_dispatch(
    send: Sender,
    transports: Transports,
    default_error_payload: Mapping[str, Any],
) -> Terminal:
    async def dispatch(ctx: Context) -> None:
        ctx.res = await settle(send, ctx.req.resolved, transports, default_error_payload)

    return dispatch
