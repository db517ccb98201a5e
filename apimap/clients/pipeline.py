"""
Internal request pipeline primitives.

Every call of an API function threads one `Context` through an onion-model
chain of middlewares. A middleware receives the context and a continuation;
awaiting the continuation runs everything downstream (including the terminal
dispatch step), so code placed after it runs while the chain unwinds, in
reverse order.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias

from ..types import Params

Next: TypeAlias = Callable[[], Awaitable[None]]
Terminal: TypeAlias = Callable[["Context"], Awaitable[None]]


@dataclass(slots=True)
class ApiRequest:
    args: Mapping[str, Any]
    method: str
    path: str
    params: Params
    prefix: str
    api_name: str
    full_path: str
    callback_name: str
    host: str = ""
    transport: str = ""
    http_options: Mapping[str, Any] = field(default_factory=dict)
    jsonp_options: Mapping[str, Any] = field(default_factory=dict)
    common_params: Mapping[str, Any] = field(default_factory=dict)
    extras: Mapping[str, Any] = field(default_factory=dict)
    # Resolved request parameters, filled in by the framing middlewares and
    # handed to the transport as-is.
    resolved: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ApiResponse:
    data: Any = None
    error: BaseException | None = None


@dataclass(slots=True)
class Context:
    req: ApiRequest
    res: ApiResponse = field(default_factory=ApiResponse)
    start_time: float | None = None
    end_time: float | None = None
    req_time: float | None = None
    # Free-form scratch space for user middleware.
    state: dict[str, Any] = field(default_factory=dict)


class Middleware(Protocol):
    def __call__(self, ctx: Context, next: Next) -> Awaitable[None] | None: ...


def compose_async(middlewares: Sequence[Middleware], terminal: Terminal) -> Terminal:
    """
    Fold `middlewares` around `terminal`, first middleware outermost.

    Middlewares may be coroutine functions or plain functions. A plain
    function's return value is awaited when it is awaitable (e.g. when it
    returns `next()`); a continuation it called but never awaited is run once
    the function returns, so the downstream chain still executes.
    """
    pipeline = terminal
    for middleware in reversed(middlewares):
        next_pipeline = pipeline

        async def _wrapped(
            ctx: Context,
            *,
            _mw: Middleware = middleware,
            _n: Terminal = next_pipeline,
        ) -> None:
            pending: Awaitable[None] | None = None
            started = False

            async def _run() -> None:
                nonlocal started
                started = True
                await _n(ctx)

            def _next() -> Awaitable[None]:
                nonlocal pending
                if pending is not None:
                    raise RuntimeError("next() called multiple times")
                pending = _run()
                return pending

            result = _mw(ctx, _next)
            if inspect.isawaitable(result):
                await result
            if pending is not None and not started:
                await pending

        pipeline = _wrapped
    return pipeline
