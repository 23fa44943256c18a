"""
Tests for DjangoLedgerStore.

Covers idempotent inserts, the conditional status UPDATEs, and the
tenant-scoped booking transitions.
"""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from bookings.states import AppointmentStatus, BookingStatus, PaymentIntentStatus
from bookings.tests.factories import (
    AppointmentFactory,
    BookingFactory,
    BookingPaymentIntentFactory,
)
from payments.ledger import LedgerStore
from payments.models import Payment
from payments.state_machines import BalanceStatus, PaymentStatus
from payments.tests.factories import PaymentFactory


class TestProtocol:
    def test_store_satisfies_protocol(self, store):
        assert isinstance(store, LedgerStore)


# =============================================================================
# Tenant Lookups
# =============================================================================


class TestTenantLookups:
    def test_get_tenant(self, store, tenant):
        assert store.get_tenant(tenant.id) == tenant
        assert store.get_tenant(uuid.uuid4()) is None

    def test_find_by_stripe_account(self, store, tenant, other_tenant):
        assert store.find_tenant_by_stripe_account("acct_ledger_two") == other_tenant
        assert store.find_tenant_by_stripe_account("acct_unknown") is None

    def test_find_by_empty_account(self, store, tenant):
        assert store.find_tenant_by_stripe_account("") is None


# =============================================================================
# Payment Inserts
# =============================================================================


class TestInsertPayment:
    def test_insert(self, store, tenant, payment_params):
        booking_id = uuid.uuid4()

        created = store.insert_payment(
            payment_params(
                booking_id=booking_id,
                status=PaymentStatus.SUCCEEDED,
                metadata={"tenant_id": str(tenant.id)},
            )
        )

        assert created is True
        payment = Payment.objects.get(stripe_payment_intent_id="pi_ledger_1")
        assert payment.tenant == tenant
        assert payment.amount == Decimal("50.00")
        assert payment.currency == "eur"
        assert payment.status == PaymentStatus.SUCCEEDED
        assert payment.booking_id == booking_id
        assert payment.metadata == {"tenant_id": str(tenant.id)}

    def test_duplicate_returns_false(self, store, payment_params):
        assert store.insert_payment(payment_params()) is True
        assert store.insert_payment(payment_params(amount=Decimal("99.00"))) is False

        payment = Payment.objects.get(stripe_payment_intent_id="pi_ledger_1")
        assert payment.amount == Decimal("50.00")

    def test_payment_exists(self, store, payment_params):
        assert store.payment_exists("pi_ledger_1") is False

        store.insert_payment(payment_params())

        assert store.payment_exists("pi_ledger_1") is True


# =============================================================================
# Conditional Updates
# =============================================================================


class TestUpdatePaymentByIntent:
    @pytest.mark.parametrize(
        "current, target, expected",
        [
            (PaymentStatus.PENDING, PaymentStatus.SUCCEEDED, PaymentStatus.SUCCEEDED),
            (PaymentStatus.PENDING, PaymentStatus.FAILED, PaymentStatus.FAILED),
            (PaymentStatus.FAILED, PaymentStatus.SUCCEEDED, PaymentStatus.FAILED),
            (PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.SUCCEEDED),
            (PaymentStatus.SUCCEEDED, PaymentStatus.REFUNDED, PaymentStatus.REFUNDED),
            (PaymentStatus.PENDING, PaymentStatus.REFUNDED, PaymentStatus.PENDING),
            (PaymentStatus.REFUNDED, PaymentStatus.SUCCEEDED, PaymentStatus.REFUNDED),
            (PaymentStatus.DISPUTED, PaymentStatus.SUCCEEDED, PaymentStatus.DISPUTED),
            (PaymentStatus.REFUNDED, PaymentStatus.DISPUTED, PaymentStatus.DISPUTED),
        ],
    )
    def test_status_transitions(self, store, tenant, current, target, expected):
        PaymentFactory(tenant=tenant, stripe_payment_intent_id="pi_1", status=current)

        store.update_payment_by_intent("pi_1", tenant_id=tenant.id, status=target)

        assert Payment.objects.get(stripe_payment_intent_id="pi_1").status == expected

    def test_returns_whether_written(self, store, tenant):
        PaymentFactory(tenant=tenant, stripe_payment_intent_id="pi_1")

        assert store.update_payment_by_intent(
            "pi_1", tenant_id=tenant.id, status=PaymentStatus.SUCCEEDED
        )
        assert not store.update_payment_by_intent(
            "pi_1", tenant_id=tenant.id, status=PaymentStatus.FAILED
        )

    def test_scoped_to_tenant(self, store, tenant, other_tenant):
        PaymentFactory(tenant=other_tenant, stripe_payment_intent_id="pi_1")

        written = store.update_payment_by_intent(
            "pi_1", tenant_id=tenant.id, status=PaymentStatus.SUCCEEDED
        )

        assert written is False
        assert Payment.objects.get(stripe_payment_intent_id="pi_1").status == (
            PaymentStatus.PENDING
        )

    def test_balance_independent_of_status(self, store, tenant):
        """A blocked status change does not block the balance change."""
        PaymentFactory(
            tenant=tenant,
            stripe_payment_intent_id="pi_1",
            status=PaymentStatus.FAILED,
        )

        store.update_payment_by_intent(
            "pi_1",
            tenant_id=tenant.id,
            status=PaymentStatus.REFUNDED,
            balance_status=BalanceStatus.ADJUSTED,
        )

        payment = Payment.objects.get(stripe_payment_intent_id="pi_1")
        assert payment.status == PaymentStatus.FAILED
        assert payment.balance_status == BalanceStatus.ADJUSTED

    def test_allowed_from_override(self, store, tenant):
        PaymentFactory(
            tenant=tenant,
            stripe_payment_intent_id="pi_1",
            status=PaymentStatus.DISPUTED,
        )

        store.update_payment_by_intent(
            "pi_1",
            tenant_id=tenant.id,
            status=PaymentStatus.SUCCEEDED,
            allowed_from=[PaymentStatus.DISPUTED],
        )

        assert Payment.objects.get(stripe_payment_intent_id="pi_1").status == (
            PaymentStatus.SUCCEEDED
        )


class TestUpdatePaymentByCharge:
    def test_available_only_from_pending(self, store, tenant):
        PaymentFactory(
            tenant=tenant,
            stripe_charge_id="ch_1",
            balance_status=BalanceStatus.ADJUSTED,
        )

        store.update_payment_by_charge(
            "ch_1", tenant_id=tenant.id, balance_status=BalanceStatus.AVAILABLE
        )

        assert Payment.objects.get(stripe_charge_id="ch_1").balance_status == (
            BalanceStatus.ADJUSTED
        )

    def test_without_tenant(self, store, tenant):
        PaymentFactory(
            tenant=tenant,
            stripe_charge_id="ch_1",
            status=PaymentStatus.SUCCEEDED,
        )

        store.update_payment_by_charge("ch_1", status=PaymentStatus.DISPUTED)

        assert Payment.objects.get(stripe_charge_id="ch_1").status == (
            PaymentStatus.DISPUTED
        )

    def test_updates_timestamp(self, store, tenant):
        payment = PaymentFactory(tenant=tenant, stripe_charge_id="ch_1")
        Payment.objects.filter(id=payment.id).update(
            updated_at=timezone.now() - timedelta(days=1)
        )

        store.update_payment_by_charge(
            "ch_1", tenant_id=tenant.id, balance_status=BalanceStatus.AVAILABLE
        )

        payment.refresh_from_db()
        assert payment.updated_at > timezone.now() - timedelta(minutes=1)


class TestAttachCharge:
    def test_attach(self, store, tenant):
        PaymentFactory(tenant=tenant, stripe_payment_intent_id="pi_1")

        assert store.attach_charge("pi_1", "ch_1", tenant_id=tenant.id) is True
        assert Payment.objects.get(stripe_payment_intent_id="pi_1").stripe_charge_id == (
            "ch_1"
        )

    def test_missing_row(self, store, tenant):
        assert store.attach_charge("pi_missing", "ch_1", tenant_id=tenant.id) is False


# =============================================================================
# Booking Transitions
# =============================================================================


class TestBookingTransitions:
    def test_mark_paid(self, store, tenant):
        booking = BookingFactory(tenant=tenant, status=BookingStatus.HOLD)

        assert store.mark_booking_paid(booking.id, tenant.id) is True

        booking.refresh_from_db()
        assert booking.status == BookingStatus.PAID
        assert booking.expires_at is None

    def test_mark_paid_after_expiry(self, store, tenant):
        booking = BookingFactory(
            tenant=tenant,
            status=BookingStatus.HOLD,
            expires_at=timezone.now() - timedelta(seconds=1),
        )

        assert store.mark_booking_paid(booking.id, tenant.id) is False

        booking.refresh_from_db()
        assert booking.status == BookingStatus.HOLD

    @pytest.mark.parametrize(
        "status",
        [BookingStatus.PAID, BookingStatus.CANCELLED, BookingStatus.COMPLETED],
    )
    def test_mark_paid_is_forward_only(self, store, tenant, status):
        booking = BookingFactory(tenant=tenant, status=status, expires_at=None)

        assert store.mark_booking_paid(booking.id, tenant.id) is False

        booking.refresh_from_db()
        assert booking.status == status

    def test_wrong_tenant(self, store, tenant, other_tenant):
        booking = BookingFactory(tenant=other_tenant)

        assert store.mark_booking_paid(booking.id, tenant.id) is False

        booking.refresh_from_db()
        assert booking.status == BookingStatus.PENDING

    def test_unknown_booking(self, store, tenant):
        assert store.cancel_booking(uuid.uuid4(), tenant.id) is False

    def test_confirm(self, store, tenant):
        booking = BookingFactory(tenant=tenant, status=BookingStatus.PENDING)

        assert store.confirm_booking(booking.id, tenant.id) is True

        booking.refresh_from_db()
        assert booking.status == BookingStatus.CONFIRMED

    def test_release_only_open_bookings(self, store, tenant):
        pending = BookingFactory(tenant=tenant, status=BookingStatus.PENDING)
        paid = BookingFactory(tenant=tenant, status=BookingStatus.PAID, expires_at=None)

        assert store.release_booking(pending.id, tenant.id) is True
        assert store.release_booking(paid.id, tenant.id) is False

    def test_cancel_paid(self, store, tenant):
        booking = BookingFactory(tenant=tenant, status=BookingStatus.PAID, expires_at=None)

        assert store.cancel_booking(booking.id, tenant.id) is True

        booking.refresh_from_db()
        assert booking.status == BookingStatus.CANCELLED

    def test_booking_for_payment_intent(self, store, tenant):
        internal = BookingPaymentIntentFactory(tenant=tenant)
        booking = BookingFactory(tenant=tenant, payment_intent=internal)

        assert store.get_booking_for_payment_intent(internal.id, tenant.id) == booking
        assert store.get_booking_for_payment_intent(uuid.uuid4(), tenant.id) is None


class TestAppointmentAndIntentTransitions:
    def test_confirm_appointment(self, store, tenant):
        appointment = AppointmentFactory(tenant=tenant)

        assert store.confirm_appointment(appointment.id, tenant.id) is True
        assert store.confirm_appointment(appointment.id, tenant.id) is False

        appointment.refresh_from_db()
        assert appointment.status == AppointmentStatus.CONFIRMED

    def test_mark_internal_payment_intent_paid(self, store, tenant):
        internal = BookingPaymentIntentFactory(tenant=tenant)

        assert store.mark_internal_payment_intent_paid(internal.id, tenant.id) is True
        assert store.mark_internal_payment_intent_paid(internal.id, tenant.id) is False

        internal.refresh_from_db()
        assert internal.status == PaymentIntentStatus.PAID
