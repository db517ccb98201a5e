from __future__ import annotations

import pytest

from apimap.clients.pipeline import ApiRequest, ApiResponse, Context
from apimap.exceptions import NoDataError
from apimap.middleware import (
    format_request_params,
    format_response_data,
    join_url,
    param_defaults,
    record_request_time,
    record_start_time,
    update_full_url,
    with_query,
)


def _ctx(**req_fields) -> Context:
    fields = {
        "args": {},
        "method": "get",
        "path": "info",
        "params": {},
        "prefix": "users",
        "api_name": "info",
        "full_path": "users/info",
        "callback_name": "infoCallback",
        "host": "https://api.example/",
    }
    fields.update(req_fields)
    return Context(req=ApiRequest(**fields))


async def _noop() -> None:
    return None


def test_param_defaults() -> None:
    assert param_defaults(["a", "b"]) == {"a": "", "b": ""}
    assert param_defaults({"a": 1}) == {"a": 1}
    assert param_defaults([]) == {}


def test_join_url_and_query() -> None:
    assert join_url("https://api.example/", "users/info") == "https://api.example/users/info"
    assert join_url("https://api.example", "/users/info") == "https://api.example/users/info"
    assert join_url("", "/info") == "/info"

    assert with_query("https://api.example/x", {}) == "https://api.example/x"
    query = with_query("https://api.example/x", {"q": "a", "n": 2})
    assert query == "https://api.example/x?q=a&n=2"


async def test_format_request_params_layers_common_declared_and_call_args() -> None:
    ctx = _ctx(
        args={"b": "call", "c": 3},
        params={"a": 1, "b": 2},
        common_params={"a": "common", "z": True},
    )
    await format_request_params(ctx, _noop)

    assert ctx.req.resolved["data"] == {"a": 1, "b": "call", "c": 3, "z": True}


async def test_format_request_params_rejects_non_mapping_args() -> None:
    ctx = _ctx(args=["not", "a", "mapping"])
    with pytest.raises(TypeError, match="must be a mapping"):
        await format_request_params(ctx, _noop)


async def test_update_full_url_fills_resolved_bag_without_clobbering() -> None:
    ctx = _ctx(
        extras={"timeout": 3, "header": {"X-Extra": "no"}},
        http_options={"base_url": "https://other.example"},
    )
    ctx.req.resolved["data"] = {"uid": 7}
    ctx.req.resolved["header"] = {"X-Token": "t"}

    await update_full_url(ctx, _noop)

    resolved = ctx.req.resolved
    assert resolved["url"] == "https://api.example/users/info"
    assert resolved["full_url"] == "https://api.example/users/info?uid=7"
    assert resolved["method"] == "GET"
    assert resolved["callback_name"] == "infoCallback"
    assert resolved["http_options"] == {"base_url": "https://other.example"}
    assert resolved["timeout"] == 3
    assert resolved["header"] == {"X-Token": "t"}


async def test_format_response_data_normalizes_array_payloads() -> None:
    ctx = _ctx()

    async def respond() -> None:
        ctx.res = ApiResponse(data=["0", "array data", "ok"])

    await format_response_data(ctx, respond)

    assert ctx.res.data == {"code": 0, "data": "array data", "msg": "ok"}


async def test_format_response_data_leaves_mappings_alone() -> None:
    ctx = _ctx()

    async def respond() -> None:
        ctx.res = ApiResponse(data={"code": 0, "data": "object data"})

    await format_response_data(ctx, respond)

    assert ctx.res.data == {"code": 0, "data": "object data"}


async def test_format_response_data_rejects_empty_payload() -> None:
    ctx = _ctx()

    async def respond() -> None:
        ctx.res = ApiResponse(data=None)

    with pytest.raises(NoDataError, match="no data"):
        await format_response_data(ctx, respond)


async def test_format_response_data_keeps_captured_error() -> None:
    ctx = _ctx()
    error = RuntimeError("down")

    async def respond() -> None:
        ctx.res = ApiResponse(data=None, error=error)

    await format_response_data(ctx, respond)

    assert ctx.res.error is error


async def test_timing_middlewares_stamp_even_when_downstream_fails() -> None:
    ctx = _ctx()

    async def fail() -> None:
        raise RuntimeError("boom")

    async def timed() -> None:
        await record_request_time(ctx, fail)

    with pytest.raises(RuntimeError):
        await record_start_time(ctx, timed)

    assert ctx.start_time is not None
    assert ctx.end_time is not None
    assert ctx.req_time is not None
    assert ctx.req_time >= 0


@pytest.mark.parametrize(
    ("code", "expected"),
    [("0", 0), ("-2", -2), ("E01", "E01"), (1.5, 1.5), (True, True), (None, None)],
)
async def test_format_response_data_only_casts_integer_strings(code, expected) -> None:
    ctx = _ctx()

    async def respond() -> None:
        ctx.res = ApiResponse(data=[code, "payload"])

    await format_response_data(ctx, respond)

    assert ctx.res.data["code"] == expected
    assert type(ctx.res.data["code"]) is type(expected)
