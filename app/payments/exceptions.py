"""
Payment-specific exceptions for webhook reconciliation.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentValidationError - Event payload validation failures
    │   └── MissingTenantError - No usable tenant_id in metadata
    ├── TenantResolutionError - Tenant lookup failed or disagrees with account
    └── PaymentProcessingError - Payment processing failures
        └── StripeError - Base for all Stripe errors
            ├── StripeInvalidAccountError - Invalid Connect account (permanent)
            ├── StripeInvalidRequestError - Invalid request params (permanent)
            ├── StripeRateLimitError - Rate limited (transient, retry)
            ├── StripeAPIUnavailableError - API unavailable (transient, retry)
            └── StripeTimeoutError - Request timeout (transient, retry)

Validation and tenant-resolution errors are "non-fatal": handlers turn them
into a skipped ReconciliationResult because a retry would reproduce them.
Stripe errors are unexpected failures and are retried.

Usage:
    from payments.exceptions import MissingTenantError

    if not raw.get("tenant_id"):
        raise MissingTenantError(
            "no tenant_id in metadata",
            details={"metadata_keys": sorted(raw)},
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError, ValidationError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class, which itself
    inherits from BaseApplicationError for consistent error payloads.
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentValidationError(PaymentError, ValidationError):
    """
    Raised when an event payload fails validation.

    Use for:
    - Missing payment_intent on a charge
    - Missing charge on a dispute
    - Malformed metadata values
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class MissingTenantError(PaymentValidationError):
    """
    Raised when event metadata carries no usable tenant_id.

    Every ledger write must be scoped to a tenant, so nothing can be
    reconciled without one.
    """

    default_error_code: str = "MISSING_TENANT"


class TenantResolutionError(PaymentError, ConflictError):
    """
    Raised when a tenant cannot be attributed to an event.

    Error codes:
    - TENANT_NOT_FOUND: No tenant row for the id or connected account
    - TENANT_MISMATCH: Metadata tenant differs from the connected account's
    - CONNECTED_ACCOUNT_REQUIRED: Event only applies to connected accounts

    Example:
        raise TenantResolutionError(
            f"no tenant for connected account {account_id}",
            error_code="TENANT_NOT_FOUND",
            details={"connected_account_id": account_id},
        )
    """

    default_error_code: str = "TENANT_NOT_FOUND"


class PaymentProcessingError(PaymentError):
    """
    Raised when talking to the payment processor fails.
    """

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(PaymentProcessingError):
    """
    Base exception for all Stripe-related errors.

    Provides common attributes for Stripe error handling:
    - stripe_code: Stripe's internal error code
    - decline_code: Card decline code (if applicable)
    - is_retryable: Whether the operation can be retried

    Example:
        try:
            StripeAdapter.retrieve_payment_intent(pi_id, stripe_account=acct)
        except StripeError as e:
            if e.is_retryable:
                raise  # let the Celery task back off and retry
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeInvalidAccountError(StripeError):
    """
    Invalid Stripe Connect account.

    Raised when the connected account on an event is unknown to the
    platform key, disconnected, or restricted.
    """

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request sent to Stripe.

    Possible causes:
    - PaymentIntent id not found on the (connected) account
    - Webhook signature verification failed
    - Invalid API key
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """
    Rate limited by Stripe API.

    Stripe allows 100 requests/second in live mode, 25/second in test mode.
    """

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    This covers network connectivity issues and Stripe server errors (5xx).
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    The request was sent but no response was received within
    STRIPE_API_TIMEOUT_SECONDS. Reads are safe to repeat.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentValidationError",
    "MissingTenantError",
    "TenantResolutionError",
    "PaymentProcessingError",
    # Stripe-specific
    "StripeError",
    "StripeInvalidAccountError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeTimeoutError",
]
