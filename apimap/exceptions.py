"""
Exceptions raised by apimap.

Only failures produced by a transport inside the dispatch step are turned into
data (see `apimap.clients.dispatch`); everything else propagates unchanged.
"""

from __future__ import annotations


class ApimapError(Exception):
    """Base class for all apimap errors."""


class ConfigurationError(ApimapError, ValueError):
    """The client or an API description is configured incorrectly."""


class TransportError(ApimapError):
    """A transport collaborator could not perform the request."""


class UnknownMethodError(TransportError):
    """The HTTP verb is not supported by the selected transport."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Unknown Method: {method}!!!")
        self.method = method


class JsonpError(TransportError):
    """A JSONP response body could not be unwrapped."""


class NoDataError(ApimapError):
    """The transport succeeded but returned an empty payload."""
