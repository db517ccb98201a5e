from __future__ import annotations

from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from apimap import ApiClient


class FakeNative:
    """Stands in for a platform request API."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.payload: Any = None
        self.error: BaseException | None = None

    async def __call__(self, options: dict[str, Any]) -> Any:
        self.calls.append(options)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeHttp:
    """Generic HTTP collaborator returning a `.data`-bearing result."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.payload: Any = None
        self.error: BaseException | None = None

    async def __call__(self, config: dict[str, Any]) -> Any:
        self.calls.append(config)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(data=self.payload)


class FakeJsonp:
    """JSONP collaborator returning an object with a `.json()` accessor."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.payload: Any = None
        self.error: BaseException | None = None

    async def __call__(self, url: str, options: dict[str, Any]) -> Any:
        self.calls.append((url, options))
        if self.error is not None:
            raise self.error
        payload = self.payload
        return SimpleNamespace(json=lambda: payload)


@pytest.fixture
def native() -> FakeNative:
    return FakeNative()


@pytest.fixture
def http() -> FakeHttp:
    return FakeHttp()


@pytest.fixture
def jsonp() -> FakeJsonp:
    return FakeJsonp()


@pytest.fixture
def make_client(
    native: FakeNative,
    http: FakeHttp,
    jsonp: FakeJsonp,
) -> Callable[..., ApiClient]:
    def _make(**kwargs: Any) -> ApiClient:
        kwargs.setdefault("http_request", http)
        kwargs.setdefault("jsonp_request", jsonp)
        if kwargs.get("transport") in (None, "native"):
            kwargs.setdefault("native_request", native)
        return ApiClient(**kwargs)

    return _make
