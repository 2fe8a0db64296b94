"""
DHL eCommerce Client Exception Hierarchy

All errors carry code, message, and details so callers can log or
serialize them uniformly.

Exception Hierarchy:
    DHLEcommerceError
    └── HttpStatusError
        └── AuthenticationError

Transport failures (malformed URL, DNS, connection refused) are NOT
wrapped. httpx raises them and they reach the caller unmodified, so
"never reached the server" stays distinguishable from "server returned an
error status". TransportError is re-exported here for convenience. A base
URL httpx cannot even parse (httpx.InvalidURL) is raised as
httpx.UnsupportedProtocol, so it is a TransportError as well.
"""
from typing import Any, Dict, Optional

import httpx

TransportError = httpx.TransportError


class DHLEcommerceError(Exception):
    """
    Base exception for all client errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code for programmatic handling
        details: Additional context for debugging
    """

    default_code: str = "DHL_ECS_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class HttpStatusError(DHLEcommerceError):
    """
    The carrier answered with a non-200 status.

    The parsed response body is kept on the exception so carrier-specific
    error codes and descriptions can be inspected.
    """

    default_code = "HTTP_STATUS_ERROR"

    def __init__(
        self,
        status: int,
        body: Any = None,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ):
        self.status = status
        self.body = body
        super().__init__(
            message=message or httpx.codes.get_reason_phrase(status) or f"HTTP {status}",
            code=code,
            details={"status": status, "body": body},
        )

    @property
    def status_code(self) -> int:
        return self.status


class AuthenticationError(HttpStatusError):
    """The credential exchange returned a non-200 status."""

    default_code = "AUTH_FAILED"
