"""
Per-event handler context.

Every webhook handler receives a WebhookContext bundling the raw event
with the collaborators it may use: a payment gateway for read-only
Stripe lookups and a ledger store for writes.

Usage:
    from payments.webhooks.context import build_handler_context

    context = build_handler_context(event, "acct_123")
    result = dispatch_webhook(context)

    # Tests inject fakes
    context = build_handler_context(event, gateway=fake_gateway)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from payments.adapters import PaymentGateway, StripeAdapter
from payments.ledger import DjangoLedgerStore, LedgerStore


@dataclass
class WebhookContext:
    """
    Everything a handler needs to reconcile one event.

    Attributes:
        event: Stripe event dict (``id``, ``type``, ``data.object``, ...)
        gateway: Read-only Stripe lookups
        store: Ledger writes
        connected_account_id: Connected account the event was delivered
            for, None for platform-account events
    """

    event: dict[str, Any]
    gateway: PaymentGateway
    store: LedgerStore
    connected_account_id: str | None = None

    @property
    def event_id(self) -> str | None:
        return self.event.get("id")

    @property
    def event_type(self) -> str:
        return self.event.get("type", "")

    @property
    def data_object(self) -> dict[str, Any]:
        """The Stripe object the event is about (``data.object``)."""
        return (self.event.get("data") or {}).get("object") or {}

    def log_extra(self, **extra: Any) -> dict[str, Any]:
        """Structured logging context for this event."""
        return {
            "stripe_event_id": self.event_id,
            "event_type": self.event_type,
            "connected_account_id": self.connected_account_id,
            **extra,
        }


def build_handler_context(
    event: dict[str, Any],
    connected_account_id: str | None = None,
    *,
    gateway: PaymentGateway | None = None,
    store: LedgerStore | None = None,
) -> WebhookContext:
    """
    Assemble the context for one event.

    Args:
        event: Stripe event dict
        connected_account_id: Connected account override; defaults to the
            event's own ``account`` field
        gateway: Gateway to use (default: StripeAdapter)
        store: Ledger store to use (default: DjangoLedgerStore)

    Returns:
        WebhookContext
    """
    return WebhookContext(
        event=event,
        gateway=gateway if gateway is not None else StripeAdapter,
        store=store if store is not None else DjangoLedgerStore(),
        connected_account_id=connected_account_id or event.get("account") or None,
    )


__all__ = ["WebhookContext", "build_handler_context"]
