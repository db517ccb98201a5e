"""
Framing middlewares.

These are placed at fixed positions of every request pipeline around the
user middlewares:

    record_start_time -> format_request_params -> (user middlewares)
    -> update_full_url -> format_response_data -> record_request_time -> dispatch
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from .clients.pipeline import Context, Next
from .exceptions import NoDataError
from .types import Params


def param_defaults(params: Params) -> dict[str, Any]:
    """Default values for declared params: names map to `""`, mappings are copied."""
    if isinstance(params, Mapping):
        return dict(params)
    return {name: "" for name in params}


def join_url(host: str, full_path: str) -> str:
    if not host:
        return full_path
    return host.rstrip("/") + "/" + full_path.lstrip("/")


def _query_value(value: Any) -> str | int | float | bool | None:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def with_query(url: str, data: Mapping[str, Any]) -> str:
    if not data:
        return url
    params = {key: _query_value(value) for key, value in data.items()}
    return str(httpx.URL(url).copy_merge_params(params))


async def record_start_time(ctx: Context, next: Next) -> None:
    ctx.start_time = time.time()
    await next()


async def format_request_params(ctx: Context, next: Next) -> None:
    req = ctx.req
    if not isinstance(req.args, Mapping):
        raise TypeError("the first argument of an api function must be a mapping!")

    req.resolved["data"] = {
        **req.common_params,
        **param_defaults(req.params),
        **req.args,
    }
    await next()


async def update_full_url(ctx: Context, next: Next) -> None:
    req = ctx.req
    data = req.resolved.get("data") or {}
    url = join_url(req.host, req.full_path)

    req.resolved.update(
        url=url,
        full_url=with_query(url, data),
        method=req.method.upper(),
        callback_name=req.callback_name,
        http_options=dict(req.http_options),
        jsonp_options=dict(req.jsonp_options),
    )
    for key, value in req.extras.items():
        req.resolved.setdefault(key, value)
    await next()


def _to_code(value: Any) -> Any:
    # Only integer strings are cast; other codes are kept as sent.
    if isinstance(value, str):
        digits = value[1:] if value.startswith("-") else value
        if digits.isascii() and digits.isdigit():
            return int(value)
    return value


async def format_response_data(ctx: Context, next: Next) -> None:
    """Normalize `[code, data, msg?]` payloads into a mapping once the response is in."""
    await next()

    data = ctx.res.data
    if ctx.res.error is None and (data is None or data == ""):
        raise NoDataError("no data")

    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)) and data:
        normalized = {"code": _to_code(data[0]), "data": data[1] if len(data) > 1 else None}
        if len(data) > 2:
            normalized["msg"] = data[2]
        ctx.res.data = normalized


async def record_request_time(ctx: Context, next: Next) -> None:
    try:
        await next()
    finally:
        ctx.end_time = time.time()
        if ctx.start_time is not None:
            ctx.req_time = ctx.end_time - ctx.start_time
