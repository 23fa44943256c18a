"""
Payment model: the ledger row mirroring one Stripe PaymentIntent.

The unique stripe_payment_intent_id is what makes webhook reconciliation
idempotent: whichever event arrives first creates the row, every later
attempt to create it hits the constraint and is treated as already
processed.

Usage:
    from payments.models import Payment
    from payments.state_machines import PaymentStatus

    payment = Payment.objects.get(stripe_payment_intent_id="pi_123")
    if payment.status == PaymentStatus.SUCCEEDED:
        ...
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import BalanceStatus, PaymentStatus


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Ledger row for a Stripe PaymentIntent collected on behalf of a tenant.

    Status Flow:
        PENDING -> SUCCEEDED -> REFUNDED / DISPUTED
        PENDING -> FAILED
        DISPUTED -> SUCCEEDED (dispute won)

    Balance Flow:
        PENDING -> AVAILABLE -> ADJUSTED (refund)

    Fields:
        stripe_payment_intent_id: Stripe PaymentIntent ID (unique)
        stripe_charge_id: Charge that settled the intent, once known
        stripe_session_id: Checkout Session that created the intent
        tenant: Tenant the funds belong to
        booking_id: Booking paid for (generic reference, may be absent)
        amount: Amount in major currency units
        deposit/total_price: Booking price breakdown from metadata
        currency: ISO 4217 currency code (lowercase)
        status: Payment status (see PaymentStatus)
        balance_status: Settlement stage on the connected account
        metadata: Stripe metadata plus reconciliation context

    Note:
        Status columns are written with conditional UPDATE statements by
        payments.ledger.store so an out-of-order event cannot regress them.
    """

    # ==========================================================================
    # Stripe Identifiers
    # ==========================================================================

    stripe_payment_intent_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe PaymentIntent ID (pi_xxx) - unique for idempotency",
    )

    stripe_charge_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Stripe Charge ID (ch_xxx)",
    )

    stripe_session_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Stripe Checkout Session ID (cs_xxx)",
    )

    # ==========================================================================
    # Ownership & Generic References
    # ==========================================================================

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Tenant the funds belong to",
    )

    booking_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="UUID of the booking this payment is for",
    )

    service_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="UUID of the booked service",
    )

    # ==========================================================================
    # Customer
    # ==========================================================================

    customer_name = models.CharField(max_length=200, null=True, blank=True)
    customer_email = models.EmailField(null=True, blank=True)

    # ==========================================================================
    # Amounts
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Collected amount in major currency units",
    )

    deposit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )

    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )

    currency = models.CharField(
        max_length=3,
        default="eur",
        help_text="ISO 4217 currency code (lowercase)",
    )

    # ==========================================================================
    # Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )

    balance_status = models.CharField(
        max_length=20,
        choices=BalanceStatus.choices,
        default=BalanceStatus.PENDING,
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Stripe metadata plus intent status and connected account",
    )

    class Meta:
        db_table = "payments"
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(
                fields=["tenant", "status"], name="payments_tenant__4e1f0a_idx"
            ),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount} {self.currency.upper()}"
        return f"Payment({self.stripe_payment_intent_id}, {self.status}, {amount_display})"
