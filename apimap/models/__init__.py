"""
API description models.

Pydantic models used to validate the nested API description handed to
`ApiClient.get_api()`.
"""

from __future__ import annotations

from .config import ApiNode, EndpointConfig, GroupConfig, parse_api_config

__all__ = [
    "ApiNode",
    "EndpointConfig",
    "GroupConfig",
    "parse_api_config",
]
