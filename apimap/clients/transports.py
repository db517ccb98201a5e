"""
Transport collaborators.

The dispatcher talks to three kinds of collaborators:

- native: an injected `(options) -> payload` callable (sync or async) wrapping
  a platform request API;
- http: `(config) -> awaitable` of an object exposing `.data`;
- jsonp: `(url, options) -> awaitable` of an object exposing `.json()`.

`call_native`, `call_http` and `call_jsonp` adapt those contracts to plain
payloads. `HttpxRequester` and `JsonpRequester` are the default http/jsonp
collaborators, both backed by `httpx.AsyncClient`.
"""

from __future__ import annotations

import inspect
import json
import logging
import re
import secrets
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from ..exceptions import JsonpError, UnknownMethodError
from ..types import HTTP_METHODS, NATIVE_METHODS, HttpRequest, JsonpRequest, NativeRequest

logger = logging.getLogger(__name__)

Header = tuple[str, str]

_BODYLESS_METHODS = frozenset({"HEAD", "OPTIONS"})
_JSONP_BODY = re.compile(
    r"^\s*(?:/\*\*/)?\s*(?P<name>[\w$.]+)\s*\((?P<payload>.*)\)\s*;?\s*$",
    re.S,
)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


async def call_native(request: NativeRequest, options: Mapping[str, Any]) -> Any:
    """Validate the verb and hand `options` to the native request callable."""
    method = str(options.get("method") or "GET").upper()
    if method not in NATIVE_METHODS:
        raise UnknownMethodError(method)
    return await _resolve(request({**options, "method": method}))


async def call_http(request: HttpRequest, config: Mapping[str, Any]) -> Any:
    """
    Validate the verb, perform the request and return the response's `.data`.

    A config without a method is sent as POST.
    """
    method = str(config.get("method") or "POST").upper()
    if method not in HTTP_METHODS:
        raise UnknownMethodError(method)
    response = await _resolve(request({**config, "method": method}))
    return response.data


async def call_jsonp(request: JsonpRequest, url: str, options: Mapping[str, Any]) -> Any:
    response = await _resolve(request(url, dict(options)))
    return await _resolve(response.json())


@dataclass(frozen=True, slots=True)
class HttpResult:
    status_code: int
    headers: list[Header]
    data: Any


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpxRequester:
    """
    Generic HTTP collaborator backed by `httpx.AsyncClient`.

    Recognised config keys: `url`, `method`, `data`, `headers` (or `header`),
    `timeout` and `base_url`. Anything else is ignored.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(transport=transport, timeout=timeout)

    async def __call__(self, config: Mapping[str, Any]) -> HttpResult:
        options = dict(config)
        method = str(options.pop("method", "POST")).upper()
        url = str(options.pop("url"))
        data = options.pop("data", None)
        headers = options.pop("headers", None)
        header = options.pop("header", None)
        timeout = options.pop("timeout", httpx.USE_CLIENT_DEFAULT)
        base_url = options.pop("base_url", None)
        if options:
            logger.debug(f"Ignoring unsupported HTTP options: {sorted(options)}")

        if base_url and not httpx.URL(url).is_absolute_url:
            url = str(base_url).rstrip("/") + "/" + url.lstrip("/")

        kwargs: dict[str, Any] = {"headers": headers or header, "timeout": timeout}
        if method in _BODYLESS_METHODS:
            kwargs["params"] = data or None
        elif method != "GET" and data is not None:
            # GET params are already encoded in the URL.
            kwargs["json"] = data

        response = await self._client.request(method, url, **kwargs)
        response.raise_for_status()
        return HttpResult(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            data=_decode_body(response),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class JsonpResult:
    """A JSONP response body; `json()` unwraps the callback invocation."""

    def __init__(self, text: str, callback_name: str):
        self.text = text
        self.callback_name = callback_name

    def json(self) -> Any:
        match = _JSONP_BODY.match(self.text)
        if match is None:
            raise JsonpError("JSONP response is not a callback invocation")
        if match.group("name") != self.callback_name:
            raise JsonpError(
                f"JSONP callback mismatch: expected {self.callback_name}, "
                f"got {match.group('name')}"
            )
        try:
            return json.loads(match.group("payload"))
        except json.JSONDecodeError as e:
            raise JsonpError("JSONP payload is not valid JSON") from e


class JsonpRequester:
    """
    JSONP collaborator backed by `httpx.AsyncClient`.

    Options: `callback_name` (generated when missing), `callback_param`
    (query parameter carrying the callback name, default `callback`) and
    `timeout` in seconds (default 5).
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 5.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(transport=transport)
        self._timeout = timeout

    async def __call__(self, url: str, options: Mapping[str, Any]) -> JsonpResult:
        callback_name = options.get("callback_name") or f"jsonp_{secrets.token_hex(6)}"
        callback_param = options.get("callback_param") or "callback"
        timeout = options.get("timeout", self._timeout)

        response = await self._client.get(
            url,
            params={callback_param: callback_name},
            timeout=timeout,
        )
        response.raise_for_status()
        return JsonpResult(response.text, callback_name)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
