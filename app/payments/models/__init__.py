"""
Payment domain models.

This module contains all payment-related models:
- Payment: Ledger row mirroring one Stripe PaymentIntent
- WebhookEvent: Stripe webhook delivery log for queued, retryable processing
"""

from payments.models.payment import Payment
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "Payment",
    "WebhookEvent",
]
