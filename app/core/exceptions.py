"""
Base exception classes for application-wide error handling.

This module provides a small exception hierarchy shared by every app:
- Consistent, loggable error payloads
- Machine-readable error codes (copied into webhook results and logs)
- Detailed error context for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input/payload validation failures
    └── ConflictError - State conflicts (duplicates, disallowed transitions)

Usage:
    from core.exceptions import ValidationError

    raise ValidationError(
        "tenant_id is not a valid identifier",
        error_code="INVALID_TENANT_ID",
        details={"tenant_id": raw_value},
    )

Note:
    These exceptions are for domain/business logic errors. Webhook
    handlers convert them into ReconciliationResult values instead of
    letting them escape to the transport layer.
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
        error_code: Machine-readable code for callers and log filters
        details: Additional error context (identifiers, raw values, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to a dictionary for logging or API responses.

        Example:
            {
                "error": "No tenant for connected account acct_123",
                "error_code": "TENANT_NOT_FOUND",
                "details": {"connected_account_id": "acct_123"}
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
    - Missing required payload fields
    - Malformed identifiers
    - Business rule violations detected before any write
    """

    default_error_code: str = "VALIDATION_ERROR"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Records owned by a different tenant than the one requested
    - Disallowed state transitions
    """

    default_error_code: str = "CONFLICT"
