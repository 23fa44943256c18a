"""
Protocol definition for the reconciliation ledger store.

Webhook handlers only ever touch the database through this narrow set of
single-row operations. Every mutation is scoped by a unique key or by
``(id, tenant_id)``.

Available Protocols:
    LedgerStore: Payment, booking, appointment and payment-intent writes

Usage:
    from payments.ledger.protocols import LedgerStore

    def settle(store: LedgerStore, intent_id: str, tenant_id: UUID) -> bool:
        return store.update_payment_by_intent(
            intent_id,
            tenant_id=tenant_id,
            status=PaymentStatus.SUCCEEDED,
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from bookings.models import Booking
    from payments.ledger.types import NewPaymentParams
    from tenants.models import Tenant


@runtime_checkable
class LedgerStore(Protocol):
    """
    Protocol for the ledger persistence used by webhook handlers.

    Write methods return True when a row changed (or was created) and
    False when nothing matched or the transition was not allowed.
    """

    # Tenants

    def get_tenant(self, tenant_id: UUID) -> Tenant | None: ...

    def find_tenant_by_stripe_account(self, stripe_account_id: str) -> Tenant | None: ...

    # Payments

    def insert_payment(self, params: NewPaymentParams) -> bool:
        """Insert a Payment row; False if one already exists for the intent."""
        ...

    def payment_exists(self, payment_intent_id: str) -> bool: ...

    def update_payment_by_intent(
        self,
        payment_intent_id: str,
        *,
        tenant_id: UUID,
        status: str | None = None,
        balance_status: str | None = None,
        allowed_from: list[str] | None = None,
    ) -> bool: ...

    def update_payment_by_charge(
        self,
        charge_id: str,
        *,
        tenant_id: UUID | None = None,
        status: str | None = None,
        balance_status: str | None = None,
        allowed_from: list[str] | None = None,
    ) -> bool: ...

    def attach_charge(
        self, payment_intent_id: str, charge_id: str, *, tenant_id: UUID
    ) -> bool: ...

    # Bookings

    def get_booking_for_payment_intent(
        self, payment_intent_id: UUID, tenant_id: UUID
    ) -> Booking | None: ...

    def mark_booking_paid(self, booking_id: UUID, tenant_id: UUID) -> bool: ...

    def confirm_booking(self, booking_id: UUID, tenant_id: UUID) -> bool: ...

    def release_booking(self, booking_id: UUID, tenant_id: UUID) -> bool: ...

    def cancel_booking(self, booking_id: UUID, tenant_id: UUID) -> bool: ...

    # Legacy appointments

    def confirm_appointment(self, appointment_id: UUID, tenant_id: UUID) -> bool: ...

    # Internal payment intents

    def mark_internal_payment_intent_paid(
        self, payment_intent_id: UUID, tenant_id: UUID
    ) -> bool: ...


__all__ = ["LedgerStore"]
