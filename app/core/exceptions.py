"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error payloads for REST responses and live `error` events
- Machine-readable error codes for client handling
- Detailed error information for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input (bad live event, bad code format)
    ├── NotFoundError - Identity, group or message absent
    ├── PermissionDeniedError - Caller may not act for that identity/resource
    └── ConflictError - State conflicts (invalid call transition, code space exhausted)

Usage:
    from core.exceptions import ValidationError

    raise ValidationError("Unknown event type", error_code="UNKNOWN_EVENT")

    # Convert to dict for a live error event
    try:
        event = parse_inbound(content)
    except BaseApplicationError as e:
        await self.send_json(error_event(e.to_dict()))

Note:
    These exceptions are for domain errors raised at boundaries (live event
    parsing, identity checks, client call state). Service operations report
    expected failures through core.services.ServiceResult instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response or live event.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Unknown event type: dance",
                "error_code": "UNKNOWN_EVENT",
                "details": {"type": "dance"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Live events with a missing or unknown type
    - Live event payloads that fail serializer validation
    - Malformed identity codes

    Example:
        raise ValidationError(
            "Invalid send-message payload",
            details={"content": ["This field may not be blank."]}
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        raise NotFoundError(
            f"User {code} not found",
            error_code="USER_NOT_FOUND",
            details={"identity": code}
        )
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when a caller acts outside its own identity or role.

    Example:
        if claimed != self.identity:
            raise PermissionDeniedError(
                "Event sender does not match the registered identity",
                error_code="IDENTITY_MISMATCH",
            )

    Note:
        Authentication failures (missing/invalid JWT) are handled by the
        WebSocket middleware and DRF. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current state.

    Use for:
    - Invalid state transitions (call session moves)
    - Exhausted identifier space while generating codes

    Note:
        HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
