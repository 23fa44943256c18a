"""
Booking, Appointment and BookingPaymentIntent models.

Every status column is a django-fsm FSMField; the reconciliation store
checks ``can_proceed`` before calling a transition so that a stale event
never moves a reservation backward.

Usage:
    from django_fsm import can_proceed

    from bookings.models import Booking

    booking = Booking.objects.get(id=booking_id, tenant_id=tenant_id)
    if can_proceed(booking.mark_paid):
        booking.mark_paid()
        booking.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from bookings.states import (
    OPEN_BOOKING_STATES,
    AppointmentStatus,
    BookingStatus,
    PaymentIntentStatus,
)


def hold_not_expired(instance) -> bool:
    """
    Transition condition: the reservation hold is still valid.

    A missing expires_at means the hold was already cleared (or never set),
    which never blocks a transition.
    """
    if instance.expires_at is None:
        return True
    return instance.expires_at > timezone.now()


class BookingPaymentIntent(UUIDPrimaryKeyMixin, BaseModel):
    """
    The platform's own payment-intent record.

    Created by the booking flow before the customer is sent to Stripe
    Checkout; the checkout session carries its id as the
    ``payment_intent_id`` metadata value.

    Fields:
        tenant: Owning tenant
        service_id: Booked service, if any
        amount: Amount in major currency units
        currency: ISO 4217 currency code (lowercase)
        status: requires_payment, paid or cancelled
        metadata: Arbitrary data from the booking flow
    """

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="payment_intents",
    )

    service_id = models.UUIDField(null=True, blank=True)

    amount = models.DecimalField(max_digits=12, decimal_places=2)

    currency = models.CharField(max_length=3, default="eur")

    status = FSMField(
        default=PaymentIntentStatus.REQUIRES_PAYMENT,
        choices=PaymentIntentStatus.choices,
        db_index=True,
    )

    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "payment_intents"
        ordering = ["-created_at"]
        verbose_name = "Booking Payment Intent"
        verbose_name_plural = "Booking Payment Intents"

    def __str__(self) -> str:
        return f"BookingPaymentIntent({self.id}, {self.status})"

    @transition(
        field=status,
        source=PaymentIntentStatus.REQUIRES_PAYMENT,
        target=PaymentIntentStatus.PAID,
    )
    def mark_paid(self):
        """Transition: REQUIRES_PAYMENT -> PAID"""


class Booking(UUIDPrimaryKeyMixin, BaseModel):
    """
    A reserved time slot for a tenant's service.

    State Flow:
        HOLD/PENDING/CONFIRMED -> PAID (checkout completed before expires_at)
        PENDING -> CONFIRMED (internal payment intent settled)
        HOLD/PENDING -> CANCELLED (payment failed or hold expired)
        HOLD/PENDING/CONFIRMED/PAID -> CANCELLED (charge refunded)

    Fields:
        tenant: Owning tenant
        status: Current FSM state
        expires_at: When an unpaid hold lapses; cleared once paid
        payment_intent: Internal payment intent created for this booking
        service_id: Booked service
        customer_name/customer_email: Contact captured by the booking flow
        starts_at/ends_at: Reserved slot
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="bookings",
    )

    payment_intent = models.ForeignKey(
        BookingPaymentIntent,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
        help_text="Internal payment intent created for this booking",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=BookingStatus.PENDING,
        choices=BookingStatus.choices,
        db_index=True,
        help_text="Current state of the booking (managed by FSM)",
    )

    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the unpaid hold lapses",
    )

    # ==========================================================================
    # Booking Details
    # ==========================================================================

    service_id = models.UUIDField(null=True, blank=True)
    customer_name = models.CharField(max_length=200, null=True, blank=True)
    customer_email = models.EmailField(null=True, blank=True)
    starts_at = models.DateTimeField(null=True, blank=True)
    ends_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "bookings"
        ordering = ["-created_at"]
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        indexes = [
            models.Index(
                fields=["tenant", "status"], name="bookings_tenant__0b7a4e_idx"
            ),
            models.Index(
                fields=["status", "expires_at"], name="bookings_status_9c1d2f_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"Booking({self.id}, {self.status})"

    @property
    def is_expired(self) -> bool:
        """Check if the unpaid hold has lapsed."""
        return not hold_not_expired(self)

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[*OPEN_BOOKING_STATES, BookingStatus.CONFIRMED],
        target=BookingStatus.PAID,
        conditions=[hold_not_expired],
    )
    def mark_paid(self):
        """
        Mark the booking as paid.

        Transition: HOLD/PENDING/CONFIRMED -> PAID

        Only allowed while the hold is still valid. The hold expiry is
        cleared so the release task never picks the booking up.
        """
        self.expires_at = None

    @transition(
        field=status,
        source=BookingStatus.PENDING,
        target=BookingStatus.CONFIRMED,
    )
    def confirm(self):
        """
        Confirm a booking whose internal payment intent was paid.

        Transition: PENDING -> CONFIRMED
        """
        self.expires_at = None

    @transition(
        field=status,
        source=OPEN_BOOKING_STATES,
        target=BookingStatus.CANCELLED,
    )
    def release(self):
        """
        Release an unpaid reservation.

        Transition: HOLD/PENDING -> CANCELLED

        Used when the payment failed or the hold expired.
        """

    @transition(
        field=status,
        source=[
            *OPEN_BOOKING_STATES,
            BookingStatus.CONFIRMED,
            BookingStatus.PAID,
        ],
        target=BookingStatus.CANCELLED,
    )
    def cancel(self):
        """
        Cancel a booking after its payment was refunded.

        Transition: HOLD/PENDING/CONFIRMED/PAID -> CANCELLED
        """


class Appointment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Legacy reservation model.

    Older checkout sessions reference an appointment_id instead of a
    booking_id. Only the confirmation path is still reconciled.
    """

    tenant = models.ForeignKey(
        "tenants.Tenant",
        on_delete=models.PROTECT,
        related_name="appointments",
    )

    status = FSMField(
        default=AppointmentStatus.PENDING,
        choices=AppointmentStatus.choices,
        db_index=True,
    )

    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "appointments"
        ordering = ["-created_at"]
        verbose_name = "Appointment"
        verbose_name_plural = "Appointments"

    def __str__(self) -> str:
        return f"Appointment({self.id}, {self.status})"

    @transition(
        field=status,
        source=AppointmentStatus.PENDING,
        target=AppointmentStatus.CONFIRMED,
        conditions=[hold_not_expired],
    )
    def confirm(self):
        """Transition: PENDING -> CONFIRMED, while the hold is valid."""
        self.expires_at = None
