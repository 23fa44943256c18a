"""
State enums for booking models.

These are Django TextChoices used as FSMField choices.

State Machines Overview:

Booking States:
    hold/pending/confirmed → paid
    pending → confirmed (internal payment intent settled)
    hold/pending → cancelled (payment failed, hold expired)
    hold/pending/confirmed/paid → cancelled (refund)
    paid → completed / no_show (set by the booking UI)

Appointment States (legacy):
    pending → confirmed

BookingPaymentIntent States:
    requires_payment → paid
"""

from django.db import models


class BookingStatus(models.TextChoices):
    """
    States for the Booking model lifecycle.

    Terminal states: COMPLETED, CANCELLED, NO_SHOW
    A hold is a short-lived reservation that lapses at expires_at.
    """

    HOLD = "hold", "Hold"
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PAID = "paid", "Paid"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"
    NO_SHOW = "no_show", "No Show"


class AppointmentStatus(models.TextChoices):
    """States for the legacy Appointment model."""

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"


class PaymentIntentStatus(models.TextChoices):
    """
    States for the platform's internal payment intent record.

    Not to be confused with Stripe's PaymentIntent statuses.
    """

    REQUIRES_PAYMENT = "requires_payment", "Requires Payment"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"


# States from which an unpaid reservation can still be settled or released
OPEN_BOOKING_STATES = [BookingStatus.HOLD, BookingStatus.PENDING]
