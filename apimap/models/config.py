"""
API description models.

An API description is a tree. Groups carry `endpoints` plus fields shared by
everything below them; endpoints (leaves) carry a `path`. Unknown keys are
kept in `model_extra` and passed through to the transport.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Annotated, Any, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    method: str | None = None
    prefix: str | None = None
    host: str | None = None
    transport: str | None = None
    http_options: dict[str, Any] | None = None
    jsonp_options: dict[str, Any] | None = None
    common_params: dict[str, Any] | None = None
    pre_hook: Callable[..., Any] | None = None
    post_hook: Callable[..., Any] | None = None
    middleware: list[Callable[..., Any]] = Field(default_factory=list)
    use_global_middleware: bool | None = None

    @property
    def extras(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class EndpointConfig(_ConfigModel):
    """A single endpoint."""

    path: str
    name: str | None = None
    params: list[str] | dict[str, Any] | None = None


class GroupConfig(_ConfigModel):
    """A group of endpoints (or nested groups) sharing a prefix and defaults."""

    endpoints: list[ApiNode]


def _node_kind(value: Any) -> str:
    if isinstance(value, Mapping):
        return "group" if "endpoints" in value else "endpoint"
    return "group" if isinstance(value, GroupConfig) else "endpoint"


ApiNode = Annotated[
    Union[
        Annotated[EndpointConfig, Tag("endpoint")],
        Annotated[GroupConfig, Tag("group")],
    ],
    Discriminator(_node_kind),
]

GroupConfig.model_rebuild()

_NODES = TypeAdapter(list[ApiNode])


def parse_api_config(config: Any) -> list[EndpointConfig | GroupConfig]:
    """
    Validate an API description.

    Accepts a single node or a sequence of nodes, as raw mappings or models.

    Raises:
        pydantic.ValidationError: If the description is malformed.
    """
    if isinstance(config, (Mapping, BaseModel)):
        config = [config]
    return _NODES.validate_python(list(config))
