"""
apimap: declarative API descriptions turned into async request functions.

Each endpoint of an API description becomes an `ApiFunction` that runs its
request through an onion-model middleware pipeline and one of the native,
HTTP or JSONP transports.
"""

from __future__ import annotations

from .api import ApiFunction
from .client import ApiClient, ClientState
from .clients.pipeline import ApiRequest, ApiResponse, Context, Middleware, Next
from .descriptors import Endpoint, merge_overrides
from .exceptions import (
    ApimapError,
    ConfigurationError,
    JsonpError,
    NoDataError,
    TransportError,
    UnknownMethodError,
)
from .types import TransportKind

__version__ = "0.3.0"

__all__ = [
    "__version__",
    # Client
    "ApiClient",
    "ClientState",
    "ApiFunction",
    "Endpoint",
    "merge_overrides",
    # Pipeline
    "ApiRequest",
    "ApiResponse",
    "Context",
    "Middleware",
    "Next",
    "TransportKind",
    # Errors
    "ApimapError",
    "ConfigurationError",
    "TransportError",
    "UnknownMethodError",
    "JsonpError",
    "NoDataError",
]
