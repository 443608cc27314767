"""
STAC Search Exceptions

Every failure of the search pipeline is raised as a subclass of
``STACSearchError``. Nothing in the pipeline swallows an error or falls
back to a default value.

Hierarchy:
    STACSearchError
    ├── InvalidParameter        (bad filter value, field-scoped)
    ├── InvalidQueryType        (wrong object handed to a builder)
    ├── UnsupportedVerb         (verb outside GET/POST)
    ├── UnsupportedCombination  (verb/parameter conflict)
    ├── UnexpectedResponse      (non-200 status or wrong content type)
    ├── MalformedBody           (response body is not a JSON object)
    └── TransportError          (timeout or connection failure)
"""

from typing import Optional, Dict, Any


class STACSearchError(Exception):
    """Base exception for STAC search errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidParameter(STACSearchError, ValueError):
    """Raised when a search filter fails validation."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            f"Invalid search parameter `{field}`: {reason}",
            details={"field": field, "reason": reason}
        )
        self.field = field
        self.reason = reason


class InvalidQueryType(STACSearchError, TypeError):
    """Raised when a builder receives a query it cannot extend."""
    pass


class UnsupportedVerb(STACSearchError):
    """Raised when a query carries an HTTP verb its endpoint does not accept."""

    def __init__(self, verb: str, allowed: Optional[tuple] = None):
        allowed = allowed or ("GET", "POST")
        super().__init__(
            f"HTTP verb `{verb}` is not supported; expected one of {', '.join(allowed)}",
            details={"verb": verb, "allowed": list(allowed)}
        )
        self.verb = verb


class UnsupportedCombination(STACSearchError):
    """Raised when a parameter cannot be sent with the query's verb."""

    def __init__(self, message: str, parameter: str, verb: str):
        super().__init__(message, details={"parameter": parameter, "verb": verb})
        self.parameter = parameter
        self.verb = verb


class UnexpectedResponse(STACSearchError):
    """Raised when the catalog answers with a non-200 status or wrong media type."""

    def __init__(self, status: int, content_type: Optional[str], body: bytes = b""):
        super().__init__(
            f"Unexpected response from STAC API: HTTP {status}, content type '{content_type}'",
            details={"status": status, "content_type": content_type}
        )
        self.status = status
        self.content_type = content_type
        self.body = body

    @property
    def body_text(self) -> str:
        """Response body decoded for diagnostics."""
        return self.body.decode("utf-8", errors="replace")


class MalformedBody(STACSearchError):
    """Raised when a successful response body cannot be decoded as a JSON object."""

    def __init__(self, reason: str, body: bytes = b""):
        super().__init__(f"Malformed response body: {reason}", details={"reason": reason})
        self.body = body


class TransportError(STACSearchError):
    """Raised when the HTTP request itself fails (timeout, connection error)."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, details={"url": url})
        self.url = url
