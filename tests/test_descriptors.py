from __future__ import annotations

import logging

import pytest

from apimap import ConfigurationError, merge_overrides
from apimap.descriptors import build_endpoints, join_prefix
from apimap.models import EndpointConfig, GroupConfig


async def _mw_a(ctx, next) -> None:
    await next()


async def _mw_b(ctx, next) -> None:
    await next()


def _api_config() -> dict:
    return {
        "prefix": "api",
        "middleware": [_mw_a],
        "common_params": {"app": "demo"},
        "endpoints": [
            {"path": "users", "params": ["uid"]},
            {
                "prefix": "v2",
                "http_options": {"timeout": 10},
                "endpoints": [
                    {"path": "orders", "name": "listOrders", "method": "post"},
                    {"path": "order", "middleware": [_mw_b], "show_loading": False},
                ],
            },
        ],
    }


def test_key_is_prefix_and_path(make_client) -> None:
    apis = make_client(transport="http").get_api(_api_config())

    assert set(apis) == {"users", "listOrders", "order"}
    for api in apis.values():
        endpoint = api.endpoint
        assert api.key == f"{endpoint.prefix}/{endpoint.path}"
    assert apis["users"].key == "api/users"
    assert apis["listOrders"].key == "api/v2/orders"


def test_flattening_is_deterministic(make_client) -> None:
    client = make_client(transport="http")
    first = client.get_api(_api_config())
    second = client.get_api(_api_config())

    assert list(first) == list(second)
    assert [(a.key, a.params) for a in first.values()] == [
        (a.key, a.params) for a in second.values()
    ]
    assert [a.endpoint for a in first.values()] == [a.endpoint for a in second.values()]


def test_defaults_and_inheritance(make_client) -> None:
    apis = make_client(
        transport="http",
        host="https://api.example/",
        http_options={"timeout": 5, "headers": {"X-App": "demo"}},
    ).get_api(_api_config())

    users = apis["users"].endpoint
    assert users.method == "get"
    assert users.params == ["uid"]
    assert users.use_global_middleware is True
    assert users.host == "https://api.example/"
    assert users.transport == "http"
    assert users.common_params == {"app": "demo"}
    assert users.http_options == {"timeout": 5, "headers": {"X-App": "demo"}}
    assert users.middleware == (_mw_a,)

    order = apis["order"].endpoint
    assert order.params == {}
    # Option mappings merge key by key, the nearest value winning.
    assert order.http_options == {"timeout": 10, "headers": {"X-App": "demo"}}
    assert order.middleware == (_mw_a, _mw_b)
    assert order.extras == {"show_loading": False}
    assert apis["listOrders"].endpoint.method == "post"


def test_leaf_overrides_client_values(make_client) -> None:
    apis = make_client(transport="http", host="https://a.example").get_api(
        {
            "path": "ping",
            "host": "https://b.example",
            "transport": "jsonp",
            "jsonp_options": {"timeout": 1},
            "use_global_middleware": False,
        }
    )

    ping = apis["ping"].endpoint
    assert ping.host == "https://b.example"
    assert ping.transport == "jsonp"
    assert ping.jsonp_options == {"timeout": 1}
    assert ping.use_global_middleware is False
    assert ping.prefix == ""
    assert apis["ping"].key == "/ping"


def test_name_collisions_overwrite_and_warn(make_client, caplog) -> None:
    config = [
        {"prefix": "a", "endpoints": [{"path": "same"}]},
        {"prefix": "b", "endpoints": [{"path": "same"}]},
    ]
    with caplog.at_level(logging.WARNING, logger="apimap"):
        apis = make_client(transport="http").get_api(config)

    assert list(apis) == ["same"]
    assert apis["same"].key == "b/same"
    assert "API name collision" in caplog.text


def test_invalid_transport_is_deferred_to_call_time(make_client) -> None:
    apis = make_client(transport="http").get_api({"path": "bad", "transport": "foo"})

    assert apis["bad"].endpoint.transport == "foo"


def test_malformed_description_raises_configuration_error(make_client) -> None:
    client = make_client(transport="http")
    with pytest.raises(ConfigurationError, match="invalid API description"):
        client.get_api({"prefix": "api", "endpoints": [{"name": "no-path"}]})

    with pytest.raises(ConfigurationError):
        client.get_api({"path": "x", "pre_hook": "not callable"})


def test_model_instances_are_accepted() -> None:
    config = GroupConfig(
        prefix="api",
        endpoints=[EndpointConfig(path="users", params={"page": 1})],
    )
    endpoints = build_endpoints(config, host="https://api.example")

    assert [e.full_path for e in endpoints] == ["api/users"]
    assert endpoints[0].params == {"page": 1}


def test_merge_overrides_is_one_level() -> None:
    base = {"timeout": 5, "headers": {"a": "1"}}
    merged = merge_overrides(base, {"headers": {"b": "2"}})

    assert merged == {"timeout": 5, "headers": {"b": "2"}}
    assert base == {"timeout": 5, "headers": {"a": "1"}}
    assert merge_overrides(None, None) == {}


def test_join_prefix() -> None:
    assert join_prefix("", None) == ""
    assert join_prefix("", "api") == "api"
    assert join_prefix("api", "v2") == "api/v2"
    assert join_prefix("api/", "/v2/") == "api/v2"
