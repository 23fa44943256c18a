"""
Data types for ledger operations.

This module defines dataclasses used by the ledger store for type-safe
data transfer between webhook handlers and the database layer.

Types:
    NewPaymentParams: Parameters for inserting a Payment row

Helpers:
    minor_units_to_amount: Convert a Stripe minor-unit amount to a Decimal

Usage:
    from payments.ledger.types import NewPaymentParams, minor_units_to_amount

    params = NewPaymentParams(
        stripe_payment_intent_id="pi_123",
        tenant_id=tenant.id,
        amount=minor_units_to_amount(5000, "eur"),  # Decimal("50.00")
        currency="eur",
    )
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from payments.state_machines import BalanceStatus, PaymentStatus


# Currencies Stripe charges in whole units (no minor unit)
# https://docs.stripe.com/currencies#zero-decimal
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "bif",
        "clp",
        "djf",
        "gnf",
        "jpy",
        "kmf",
        "krw",
        "mga",
        "pyg",
        "rwf",
        "ugx",
        "vnd",
        "vuv",
        "xaf",
        "xof",
        "xpf",
    }
)


def minor_units_to_amount(amount_minor: int, currency: str) -> Decimal:
    """
    Convert a Stripe amount in minor units to major units.

    Args:
        amount_minor: Amount as reported by Stripe (e.g. 5000 cents)
        currency: ISO 4217 currency code

    Returns:
        Decimal amount in major units (e.g. Decimal("50.00"))

    Example:
        minor_units_to_amount(5000, "eur")  # Decimal("50.00")
        minor_units_to_amount(5000, "jpy")  # Decimal("5000")
    """
    if (currency or "").lower() in ZERO_DECIMAL_CURRENCIES:
        return Decimal(amount_minor)
    return (Decimal(amount_minor) / 100).quantize(Decimal("0.01"))


@dataclass
class NewPaymentParams:
    """
    Parameters for inserting a Payment ledger row.

    Required Attributes:
        stripe_payment_intent_id: Stripe PaymentIntent ID (unique key)
        tenant_id: Tenant the funds belong to
        amount: Amount in major currency units
        currency: ISO 4217 currency code

    Optional Attributes:
        status/balance_status: Initial statuses (default pending/pending)
        stripe_session_id: Checkout Session that produced the intent
        stripe_charge_id: Charge, when already known
        booking_id/service_id: Generic references from metadata
        customer_name/customer_email: Contact details from Stripe
        deposit/total_price: Price breakdown from metadata
        metadata: Stripe metadata plus reconciliation context

    Example:
        params = NewPaymentParams(
            stripe_payment_intent_id=intent.id,
            tenant_id=meta.tenant_id,
            amount=Decimal("50.00"),
            currency="eur",
            status=PaymentStatus.SUCCEEDED,
            booking_id=meta.booking_id,
        )
    """

    # Required fields
    stripe_payment_intent_id: str
    tenant_id: uuid.UUID
    amount: Decimal
    currency: str

    # Optional fields
    status: str = PaymentStatus.PENDING
    balance_status: str = BalanceStatus.PENDING
    stripe_session_id: str | None = None
    stripe_charge_id: str | None = None
    booking_id: uuid.UUID | None = None
    service_id: uuid.UUID | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    deposit: Decimal | None = None
    total_price: Decimal | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate params after initialization."""
        if not self.stripe_payment_intent_id:
            raise ValueError("stripe_payment_intent_id is required")
        if self.amount < 0:
            raise ValueError("amount must not be negative")
        self.currency = (self.currency or "").lower()
