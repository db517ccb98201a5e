"""
API functions.

An `ApiFunction` is the callable produced for every endpoint of an API
description. Each call builds a fresh `Context`, runs the endpoint's pre-hook,
compiles and drives the request pipeline, runs the post-hook and finally
returns the response data or raises the captured error.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .clients.dispatch import make_dispatch
from .clients.pipeline import ApiRequest, Context, Middleware, Terminal, compose_async
from .middleware import (
    format_request_params,
    format_response_data,
    record_request_time,
    record_start_time,
    update_full_url,
)
from .types import Params

if TYPE_CHECKING:
    from .client import ClientState
    from .descriptors import Endpoint


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def endpoint_middleware(endpoint: Endpoint, state: ClientState) -> list[Middleware]:
    """Global middleware followed by the endpoint's own, unless the endpoint opts out."""
    if endpoint.use_global_middleware:
        return [*state.middleware, *endpoint.middleware]
    return list(endpoint.middleware)


def compile_pipeline(endpoint: Endpoint, state: ClientState) -> Terminal:
    """
    Assemble the request chain for one call of `endpoint`.

    The client's global middleware list is read here, so middleware registered
    with `ApiClient.use()` while a call is in flight is picked up by calls that
    have not compiled their chain yet.
    """
    return compose_async(
        [
            record_start_time,
            format_request_params,
            *endpoint_middleware(endpoint, state),
            update_full_url,
            format_response_data,
            record_request_time,
        ],
        make_dispatch(endpoint.send, state.transports, state.default_error_payload),
    )


def apply_pre_hook_result(req: ApiRequest, result: Mapping[str, Any] | None) -> None:
    """
    Merge what a pre-hook returned into the request.

    `header` goes straight into the resolved parameters (prefer middleware for
    this). `params` replaces declared sequence params and is merged over
    declared mapping params.

    Raises:
        TypeError: If declared params are a mapping and `params` is not.
    """
    if not result:
        return

    header = result.get("header")
    if header:
        req.resolved["header"] = header

    params = result.get("params")
    if not params:
        return
    if isinstance(req.params, Mapping):
        if not isinstance(params, Mapping):
            raise TypeError(
                f"pre-hook of {req.api_name!r} returned {type(params).__name__} params, "
                "but the endpoint declares mapping params"
            )
        req.params = {**req.params, **params}
    else:
        req.params = params


class ApiFunction:
    """
    Request function for a single endpoint.

    Usage:
        apis = client.get_api(config)
        data = await apis["user-info"]({"uid": 42})

    `key` (the endpoint's full path) and `params` (its declared params) are
    exposed for prefetch and cache tooling.
    """

    __slots__ = ("_endpoint", "_state")

    def __init__(self, endpoint: Endpoint, state: ClientState):
        self._endpoint = endpoint
        self._state = state

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def name(self) -> str:
        return self._endpoint.api_name

    @property
    def key(self) -> str:
        return self._endpoint.full_path

    @property
    def params(self) -> Params:
        return self._endpoint.params

    def __repr__(self) -> str:
        return f"ApiFunction(name={self.name!r}, key={self.key!r})"

    def _new_context(self, args: Mapping[str, Any], callback_name: str | None) -> Context:
        endpoint = self._endpoint
        return Context(
            req=ApiRequest(
                args=args,
                method=endpoint.method,
                path=endpoint.path,
                params=endpoint.params,
                prefix=endpoint.prefix,
                api_name=endpoint.api_name,
                full_path=endpoint.full_path,
                callback_name=callback_name or f"{endpoint.path}Callback",
                host=endpoint.host,
                transport=endpoint.transport,
                http_options=endpoint.http_options,
                jsonp_options=endpoint.jsonp_options,
                common_params=endpoint.common_params,
                extras=endpoint.extras,
            )
        )

    async def __call__(
        self,
        args: Mapping[str, Any] | None = None,
        *,
        callback_name: str | None = None,
    ) -> Any:
        """
        Call the endpoint.

        Args:
            args: Request parameters, overriding declared defaults. `None` is
                treated as an empty mapping.
            callback_name: JSONP callback name (default `<path>Callback`).

        Returns:
            The (normalized) response data.

        Raises:
            Exception: The transport failure captured by the dispatch step, or
                whatever a hook or middleware raised.
        """
        endpoint = self._endpoint
        ctx = self._new_context({} if args is None else args, callback_name)

        apply_pre_hook_result(ctx.req, await _maybe_await(endpoint.pre_hook()))

        pipeline = compile_pipeline(endpoint, self._state)
        await pipeline(ctx)

        await _maybe_await(endpoint.post_hook((ctx.res.data, ctx)))

        if ctx.res.error is not None:
            raise ctx.res.error
        return ctx.res.data
