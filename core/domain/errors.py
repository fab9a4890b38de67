"""
Domain error taxonomy.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- fastapi

The API layer maps each class to an HTTP status code; the core only raises.
"""
from typing import Any, List, Optional


class DomainError(Exception):
    """Base class for all business-rule failures raised by the core."""

    code: str = "domain_error"

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DomainError):
    """Malformed or inconsistent input (amount mismatch, empty item list, ...)."""

    code = "validation_error"


class NotFoundError(DomainError):
    """Unknown order/payment id."""

    code = "not_found"


class AuthorizationError(DomainError):
    """Caller does not own the resource."""

    code = "forbidden"


class ConflictError(DomainError):
    """State-transition precondition violated."""

    code = "conflict"


class SecurityError(DomainError):
    """Inbound callback failed signature verification."""

    code = "invalid_signature"


class UpstreamError(DomainError):
    """Payment gateway call failed, timed out, or answered with garbage."""

    code = "upstream_error"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        details: Optional[List[Any]] = None,
    ):
        super().__init__(message, details)
        self.status = status


__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "ConflictError",
    "SecurityError",
    "UpstreamError",
]
