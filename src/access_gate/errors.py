"""
access-gate error types.

Maintenance and permission outcomes are state, not exceptions. Only the
transport layer and the chat dispatcher raise across the package boundary.
"""

from typing import Any, Optional


class AccessGateError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class NotFoundError(AccessGateError):
    """A single-row read matched nothing."""

    def __init__(self, message: str = "No rows found", details: Optional[dict[str, Any]] = None):
        super().__init__("not_found", message, details)


class LookupFailure(AccessGateError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("lookup_failure", message, details)


class TransportError(AccessGateError):
    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        super().__init__("transport_error", message, details)
        self.status_code = status_code


class EmptyResponseError(AccessGateError):
    def __init__(self, message: str = "No response from AI service"):
        super().__init__("empty_response", message)


class ConnectionError(AccessGateError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)
