"""
Payment adapters for external services.

All Stripe API calls should go through these adapters to ensure
consistent error handling, timeouts and observability.

Usage:
    from payments.adapters import StripeAdapter

    intent = StripeAdapter.retrieve_payment_intent(
        "pi_123",
        stripe_account="acct_456",
    )
"""

from payments.adapters.protocols import PaymentGateway
from payments.adapters.stripe_adapter import (
    PaymentIntentResult,
    StripeAdapter,
    is_retryable_stripe_error,
)

__all__ = [
    "PaymentGateway",
    "PaymentIntentResult",
    "StripeAdapter",
    "is_retryable_stripe_error",
]
