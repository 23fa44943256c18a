"""
Result and metadata types for webhook reconciliation.

Types:
    ReconciliationResult: Outcome of handling one Stripe event
    BookingMetadata: Typed view of the metadata stamped on Stripe objects
        by the booking flow

Usage:
    from payments.webhooks.types import BookingMetadata, ReconciliationResult

    try:
        meta = BookingMetadata.from_stripe(session.get("metadata"))
    except MissingTenantError as e:
        return ReconciliationResult.skipped(e.message, e.error_code)

    ...
    return ReconciliationResult.ok()
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from core.helpers import parse_decimal, parse_uuid

from payments.adapters.stripe_adapter import is_retryable_stripe_error
from payments.exceptions import MissingTenantError, StripeError


@dataclass
class ReconciliationResult:
    """
    Outcome of reconciling a single Stripe event.

    Three shapes are produced by handlers:

    - ``ok()``: the event was applied (or was a harmless duplicate)
    - ``skipped(message, code)``: the event cannot be applied and a
      retry would not help (no tenant, unsupported platform event, ...)
    - ``from_exception(exc, message)``: an unexpected error; the
      delivery is recorded as failed and retried later, unless the
      error is a permanent Stripe error

    Attributes:
        success: Whether the event was handled
        message: Human-readable detail for logs and the delivery log
        error: The unexpected exception, if any
        error_code: Machine-readable code for non-fatal failures
    """

    success: bool
    message: str | None = None
    error: BaseException | None = field(default=None, repr=False)
    error_code: str | None = None

    @classmethod
    def ok(cls, message: str | None = None) -> ReconciliationResult:
        return cls(success=True, message=message)

    @classmethod
    def skipped(
        cls, message: str, error_code: str | None = None
    ) -> ReconciliationResult:
        """Non-fatal failure: acknowledged, logged, never retried."""
        return cls(success=False, message=message, error_code=error_code)

    @classmethod
    def from_exception(
        cls, exc: BaseException, message: str | None = None
    ) -> ReconciliationResult:
        """
        Wrap an unexpected exception.

        The error code is taken from application exceptions when present.
        """
        return cls(
            success=False,
            message=message or str(exc),
            error=exc,
            error_code=getattr(exc, "error_code", None),
        )

    @property
    def is_retryable(self) -> bool:
        """True for unexpected errors other than permanent Stripe errors."""
        if self.success or self.error is None:
            return False
        if isinstance(self.error, StripeError):
            return is_retryable_stripe_error(self.error)
        return True


@dataclass(frozen=True)
class BookingMetadata:
    """
    Metadata the booking flow stamps on PaymentIntents and Checkout Sessions.

    ``tenant_id`` is required; everything else is optional and malformed
    optional values are treated as absent.

    Attributes:
        tenant_id: Owning tenant
        booking_id: Booking being paid for
        appointment_id: Legacy appointment being paid for
        payment_intent_id: The platform's own payment-intent record
            (not the Stripe pi_xxx id)
        service_id: Booked service
        deposit: Deposit portion of the price
        total_price: Full price of the booking
        raw: The original metadata dict
    """

    tenant_id: uuid.UUID
    booking_id: uuid.UUID | None = None
    appointment_id: uuid.UUID | None = None
    payment_intent_id: uuid.UUID | None = None
    service_id: uuid.UUID | None = None
    deposit: Decimal | None = None
    total_price: Decimal | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_stripe(cls, raw: dict[str, Any] | None) -> BookingMetadata:
        """
        Parse a Stripe metadata bag.

        Args:
            raw: Metadata dict from a Stripe object (may be None)

        Returns:
            BookingMetadata

        Raises:
            MissingTenantError: tenant_id is absent or not a valid UUID
        """
        raw = dict(raw or {})
        raw_tenant_id = raw.get("tenant_id")

        if not raw_tenant_id:
            raise MissingTenantError(
                "no tenant_id in metadata",
                details={"metadata_keys": sorted(raw)},
            )

        tenant_id = parse_uuid(raw_tenant_id)
        if tenant_id is None:
            raise MissingTenantError(
                "invalid tenant_id in metadata",
                details={"tenant_id": str(raw_tenant_id)},
            )

        return cls(
            tenant_id=tenant_id,
            booking_id=parse_uuid(raw.get("booking_id")),
            appointment_id=parse_uuid(raw.get("appointment_id")),
            payment_intent_id=parse_uuid(raw.get("payment_intent_id")),
            service_id=parse_uuid(raw.get("service_id")),
            deposit=parse_decimal(raw.get("deposit")),
            total_price=parse_decimal(raw.get("total_price")),
            raw=raw,
        )


__all__ = ["BookingMetadata", "ReconciliationResult"]
