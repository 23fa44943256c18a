"""
Payments app configuration.

This app provides the Stripe webhook reconciliation engine:
- Payments ledger (one row per Stripe PaymentIntent)
- Webhook delivery log with retry and cleanup tasks
- Event handlers driving booking state
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        # Populate the webhook handler registry
        from payments.webhooks import handlers  # noqa: F401
