"""
Django implementation of the reconciliation ledger store.

All writes are narrow single-row statements:

- Payment rows are inserted inside a savepoint; the unique
  stripe_payment_intent_id turns a duplicate delivery into a
  False return instead of an error.
- Payment status columns are written with conditional UPDATEs whose
  WHERE clause only matches rows in an allowed source status, so a stale
  event can never move a payment backward.
- Booking, appointment and internal payment-intent transitions lock the
  row (``select_for_update``), check ``can_proceed`` and then run the
  django-fsm transition, each in its own short transaction.

Usage:
    from payments.ledger.store import DjangoLedgerStore

    store = DjangoLedgerStore()
    if not store.insert_payment(params):
        logger.info("payment_duplicate", extra={...})
    store.mark_booking_paid(booking_id, tenant_id)
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone
from django_fsm import can_proceed

from bookings.models import Appointment, Booking, BookingPaymentIntent
from payments.models import Payment
from payments.state_machines import BALANCE_STATUS_SOURCES, PAYMENT_STATUS_SOURCES
from tenants.models import Tenant

if TYPE_CHECKING:
    from django.db import models

    from payments.ledger.types import NewPaymentParams

logger = logging.getLogger(__name__)


class DjangoLedgerStore:
    """
    Ledger store backed by the Django ORM.

    All methods are static - no instance state is maintained.
    Instances satisfy the LedgerStore protocol.
    """

    # =========================================================================
    # Tenants
    # =========================================================================

    @staticmethod
    def get_tenant(tenant_id: uuid.UUID) -> Tenant | None:
        return Tenant.objects.filter(id=tenant_id).first()

    @staticmethod
    def find_tenant_by_stripe_account(stripe_account_id: str) -> Tenant | None:
        if not stripe_account_id:
            return None
        return Tenant.objects.filter(stripe_account_id=stripe_account_id).first()

    # =========================================================================
    # Payments
    # =========================================================================

    @staticmethod
    def insert_payment(params: NewPaymentParams) -> bool:
        """
        Insert a Payment row for a Stripe PaymentIntent.

        Runs in a savepoint so a unique violation leaves any outer
        transaction usable.

        Args:
            params: Row contents

        Returns:
            True if the row was created, False if a row for the same
            PaymentIntent already exists

        Raises:
            IntegrityError: Any constraint violation other than the
                duplicate PaymentIntent (e.g. unknown tenant)
        """
        try:
            with transaction.atomic():
                Payment.objects.create(
                    stripe_payment_intent_id=params.stripe_payment_intent_id,
                    stripe_charge_id=params.stripe_charge_id,
                    stripe_session_id=params.stripe_session_id,
                    tenant_id=params.tenant_id,
                    booking_id=params.booking_id,
                    service_id=params.service_id,
                    customer_name=params.customer_name,
                    customer_email=params.customer_email,
                    amount=params.amount,
                    deposit=params.deposit,
                    total_price=params.total_price,
                    currency=params.currency,
                    status=params.status,
                    balance_status=params.balance_status,
                    metadata=params.metadata,
                )
        except IntegrityError:
            # Only the unique PaymentIntent key counts as "already processed"
            if DjangoLedgerStore.payment_exists(params.stripe_payment_intent_id):
                return False
            raise
        return True

    @staticmethod
    def payment_exists(payment_intent_id: str) -> bool:
        return Payment.objects.filter(
            stripe_payment_intent_id=payment_intent_id
        ).exists()

    @staticmethod
    def update_payment_by_intent(
        payment_intent_id: str,
        *,
        tenant_id: uuid.UUID,
        status: str | None = None,
        balance_status: str | None = None,
        allowed_from: list[str] | None = None,
    ) -> bool:
        """
        Move a payment's status columns forward, looked up by PaymentIntent.

        Args:
            payment_intent_id: Stripe PaymentIntent ID
            tenant_id: Owning tenant (part of the WHERE clause)
            status: Target payment status, if changing
            balance_status: Target balance status, if changing
            allowed_from: Override for the allowed source statuses of
                ``status`` (defaults to PAYMENT_STATUS_SOURCES)

        Returns:
            True if any column was written
        """
        queryset = Payment.objects.filter(
            stripe_payment_intent_id=payment_intent_id,
            tenant_id=tenant_id,
        )
        return DjangoLedgerStore._conditional_update(
            queryset, status, balance_status, allowed_from
        )

    @staticmethod
    def update_payment_by_charge(
        charge_id: str,
        *,
        tenant_id: uuid.UUID | None = None,
        status: str | None = None,
        balance_status: str | None = None,
        allowed_from: list[str] | None = None,
    ) -> bool:
        """
        Move a payment's status columns forward, looked up by Charge.

        ``tenant_id`` is optional because platform-account dispute events
        carry no connected account to resolve a tenant from; the charge
        id is unique per payment either way.
        """
        queryset = Payment.objects.filter(stripe_charge_id=charge_id)
        if tenant_id is not None:
            queryset = queryset.filter(tenant_id=tenant_id)
        return DjangoLedgerStore._conditional_update(
            queryset, status, balance_status, allowed_from
        )

    @staticmethod
    def attach_charge(
        payment_intent_id: str, charge_id: str, *, tenant_id: uuid.UUID
    ) -> bool:
        updated = Payment.objects.filter(
            stripe_payment_intent_id=payment_intent_id,
            tenant_id=tenant_id,
        ).update(stripe_charge_id=charge_id, updated_at=timezone.now())
        return updated > 0

    @staticmethod
    def _conditional_update(
        queryset: models.QuerySet,
        status: str | None,
        balance_status: str | None,
        allowed_from: list[str] | None,
    ) -> bool:
        """
        Apply status and balance_status as separate guarded UPDATEs.

        The columns follow independent lifecycles, so a balance change
        that is not allowed never blocks a status change (or vice versa).
        """
        updated = 0
        now = timezone.now()

        if status is not None:
            sources = (
                allowed_from
                if allowed_from is not None
                else PAYMENT_STATUS_SOURCES.get(status)
            )
            status_qs = queryset
            if sources is not None:
                status_qs = status_qs.filter(status__in=sources)
            updated += status_qs.update(status=status, updated_at=now)

        if balance_status is not None:
            sources = BALANCE_STATUS_SOURCES.get(balance_status)
            balance_qs = queryset
            if sources is not None:
                balance_qs = balance_qs.filter(balance_status__in=sources)
            updated += balance_qs.update(balance_status=balance_status, updated_at=now)

        return updated > 0

    # =========================================================================
    # Bookings
    # =========================================================================

    @staticmethod
    def get_booking_for_payment_intent(
        payment_intent_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> Booking | None:
        return (
            Booking.objects.filter(
                payment_intent_id=payment_intent_id,
                tenant_id=tenant_id,
            )
            .order_by("created_at")
            .first()
        )

    @staticmethod
    def mark_booking_paid(booking_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        """Transition a booking to PAID while its hold is still valid."""
        return DjangoLedgerStore._apply_transition(
            Booking,
            booking_id,
            tenant_id,
            "mark_paid",
            update_fields=["status", "expires_at", "updated_at"],
        )

    @staticmethod
    def confirm_booking(booking_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        return DjangoLedgerStore._apply_transition(
            Booking,
            booking_id,
            tenant_id,
            "confirm",
            update_fields=["status", "expires_at", "updated_at"],
        )

    @staticmethod
    def release_booking(booking_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        return DjangoLedgerStore._apply_transition(
            Booking, booking_id, tenant_id, "release"
        )

    @staticmethod
    def cancel_booking(booking_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        return DjangoLedgerStore._apply_transition(
            Booking, booking_id, tenant_id, "cancel"
        )

    # =========================================================================
    # Legacy Appointments
    # =========================================================================

    @staticmethod
    def confirm_appointment(appointment_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        return DjangoLedgerStore._apply_transition(
            Appointment,
            appointment_id,
            tenant_id,
            "confirm",
            update_fields=["status", "expires_at", "updated_at"],
        )

    # =========================================================================
    # Internal Payment Intents
    # =========================================================================

    @staticmethod
    def mark_internal_payment_intent_paid(
        payment_intent_id: uuid.UUID, tenant_id: uuid.UUID
    ) -> bool:
        return DjangoLedgerStore._apply_transition(
            BookingPaymentIntent, payment_intent_id, tenant_id, "mark_paid"
        )

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    @staticmethod
    def _apply_transition(
        model: type[models.Model],
        obj_id: uuid.UUID,
        tenant_id: uuid.UUID,
        transition_name: str,
        update_fields: list[str] | None = None,
    ) -> bool:
        """
        Run a django-fsm transition on one tenant-scoped row.

        The row is locked for the duration of the transaction so two
        concurrent deliveries cannot both pass the ``can_proceed`` check.

        Returns:
            True if the transition ran, False if the row was not found or
            the transition is not allowed from its current state
        """
        with transaction.atomic():
            obj = (
                model.objects.select_for_update()
                .filter(id=obj_id, tenant_id=tenant_id)
                .first()
            )
            if obj is None:
                logger.debug(
                    f"{model.__name__} not found for transition",
                    extra={
                        "object_id": str(obj_id),
                        "tenant_id": str(tenant_id),
                        "transition": transition_name,
                    },
                )
                return False

            transition_method = getattr(obj, transition_name)
            if not can_proceed(transition_method):
                logger.debug(
                    f"{model.__name__} transition not allowed",
                    extra={
                        "object_id": str(obj_id),
                        "tenant_id": str(tenant_id),
                        "transition": transition_name,
                        "current_status": obj.status,
                    },
                )
                return False

            transition_method()
            obj.save(update_fields=update_fields or ["status", "updated_at"])

        return True
