"""
Webhook handling for payment events from Stripe.

This module provides views and handlers for reconciling Stripe webhooks
against the payments ledger and booking state. Webhooks are verified,
recorded idempotently, and processed asynchronously via Celery tasks.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]

    # Reconcile an already verified event
    from payments.webhooks import process_stripe_event

    result = process_stripe_event(event, connected_account_id="acct_123")
"""

from payments.webhooks.handlers import (
    dispatch_webhook,
    get_supported_event_types,
    process_stripe_event,
    register_handler,
)
from payments.webhooks.types import BookingMetadata, ReconciliationResult

__all__ = [
    "BookingMetadata",
    "ReconciliationResult",
    "dispatch_webhook",
    "get_supported_event_types",
    "process_stripe_event",
    "register_handler",
]
