"""
Descriptor flattening.

Walks a nested API description depth-first, threading prefixes and shared
defaults downward, and turns every leaf into an `Endpoint` descriptor and then
into an `ApiFunction`.

Precedence when merging: the nearest explicit value wins (endpoint over group
over client), except for option mappings (`http_options`, `jsonp_options`,
`common_params` and pass-through extras), which are merged key by key via
`merge_overrides`. Group middleware runs before endpoint middleware.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .api import ApiFunction
from .clients.dispatch import Sender, select_transport
from .clients.pipeline import Middleware
from .exceptions import ConfigurationError
from .models.config import EndpointConfig, GroupConfig, parse_api_config
from .types import Params, PostHook, PreHook, TransportKind

if TYPE_CHECKING:
    from .client import ClientState

logger = logging.getLogger(__name__)


def _no_pre_hook() -> None:
    return None


def _project_data(pair: tuple[Any, Any]) -> Any:
    return pair[0]


def merge_overrides(
    base: Mapping[str, Any] | None,
    override: Mapping[str, Any] | None,
) -> dict[str, Any]:
    """Merge two option mappings one level deep; keys of `override` win."""
    return {**(base or {}), **(override or {})}


def join_prefix(parent: str, child: str | None) -> str:
    if child is None:
        return parent
    if not parent:
        return child
    return parent.rstrip("/") + "/" + child.strip("/")


def _kind_name(kind: TransportKind | str) -> str:
    return kind.value if isinstance(kind, TransportKind) else str(kind)


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Static per-endpoint configuration, resolved once at flatten time."""

    path: str
    name: str | None
    method: str
    params: Params
    prefix: str
    host: str
    transport: str
    http_options: Mapping[str, Any]
    jsonp_options: Mapping[str, Any]
    common_params: Mapping[str, Any]
    extras: Mapping[str, Any]
    middleware: tuple[Middleware, ...]
    use_global_middleware: bool
    pre_hook: PreHook
    post_hook: PostHook
    send: Sender = field(compare=False, repr=False)

    @property
    def api_name(self) -> str:
        return self.name or self.path

    @property
    def full_path(self) -> str:
        return f"{self.prefix}/{self.path}"


@dataclass(frozen=True, slots=True)
class _Scope:
    """Values inherited by the nodes below a group."""

    prefix: str = ""
    method: str | None = None
    host: str = ""
    transport: str = TransportKind.HTTP.value
    http_options: Mapping[str, Any] = field(default_factory=dict)
    jsonp_options: Mapping[str, Any] = field(default_factory=dict)
    common_params: Mapping[str, Any] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)
    middleware: tuple[Middleware, ...] = ()
    pre_hook: PreHook | None = None
    post_hook: PostHook | None = None
    use_global_middleware: bool | None = None

    def descend(self, node: EndpointConfig | GroupConfig) -> _Scope:
        return replace(
            self,
            prefix=join_prefix(self.prefix, node.prefix),
            method=node.method or self.method,
            host=node.host if node.host is not None else self.host,
            transport=node.transport if node.transport is not None else self.transport,
            http_options=merge_overrides(self.http_options, node.http_options),
            jsonp_options=merge_overrides(self.jsonp_options, node.jsonp_options),
            common_params=merge_overrides(self.common_params, node.common_params),
            extras=merge_overrides(self.extras, node.extras),
            middleware=(*self.middleware, *node.middleware),
            pre_hook=node.pre_hook or self.pre_hook,
            post_hook=node.post_hook or self.post_hook,
            use_global_middleware=(
                node.use_global_middleware
                if node.use_global_middleware is not None
                else self.use_global_middleware
            ),
        )


def _finalize(node: EndpointConfig, scope: _Scope) -> Endpoint:
    return Endpoint(
        path=node.path,
        name=node.name,
        method=scope.method or "get",
        params=node.params if node.params is not None else {},
        prefix=scope.prefix,
        host=scope.host,
        transport=scope.transport,
        http_options=scope.http_options,
        jsonp_options=scope.jsonp_options,
        common_params=scope.common_params,
        extras=scope.extras,
        middleware=scope.middleware,
        use_global_middleware=(
            scope.use_global_middleware if scope.use_global_middleware is not None else True
        ),
        pre_hook=scope.pre_hook or _no_pre_hook,
        post_hook=scope.post_hook or _project_data,
        send=select_transport(scope.transport),
    )


def _walk(node: EndpointConfig | GroupConfig, scope: _Scope, out: list[Endpoint]) -> None:
    inner = scope.descend(node)
    if isinstance(node, GroupConfig):
        for child in node.endpoints:
            _walk(child, inner, out)
        return
    out.append(_finalize(node, inner))


def build_endpoints(
    config: Any,
    *,
    host: str = "",
    transport: TransportKind | str = TransportKind.HTTP,
    http_options: Mapping[str, Any] | None = None,
    jsonp_options: Mapping[str, Any] | None = None,
) -> list[Endpoint]:
    """
    Flatten an API description into endpoint descriptors, in document order.

    Raises:
        ConfigurationError: If the description is malformed. An unknown
            transport kind is not an error here; it fails at call time.
    """
    try:
        nodes = parse_api_config(config)
    except ValidationError as e:
        raise ConfigurationError(f"invalid API description: {e}") from e

    root = _Scope(
        host=host,
        transport=_kind_name(transport),
        http_options=dict(http_options or {}),
        jsonp_options=dict(jsonp_options or {}),
    )
    endpoints: list[Endpoint] = []
    for node in nodes:
        _walk(node, root, endpoints)
    return endpoints


def flatten(config: Any, state: ClientState) -> dict[str, ApiFunction]:
    """
    Build the `name -> ApiFunction` map for an API description.

    Endpoints sharing a name overwrite each other, the last one winning.
    """
    apis: dict[str, ApiFunction] = {}
    for endpoint in build_endpoints(
        config,
        host=state.host,
        transport=state.transport,
        http_options=state.http_options,
        jsonp_options=state.jsonp_options,
    ):
        previous = apis.get(endpoint.api_name)
        if previous is not None:
            logger.warning(
                f"API name collision: {endpoint.api_name!r} ({previous.key}) "
                f"is overwritten by {endpoint.full_path}"
            )
        apis[endpoint.api_name] = ApiFunction(endpoint, state)
    return apis
