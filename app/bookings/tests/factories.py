"""
Factory Boy factories for booking test data.

Usage:
    from bookings.tests.factories import BookingFactory

    # Create an unpaid hold that lapses in 10 minutes
    booking = BookingFactory(
        status=BookingStatus.HOLD,
        expires_at=timezone.now() + timedelta(minutes=10),
    )

    # Create a booking for a specific tenant
    booking = BookingFactory(tenant=tenant)
"""

from datetime import timedelta
from decimal import Decimal

import factory
from django.utils import timezone

from bookings.models import Appointment, Booking, BookingPaymentIntent
from bookings.states import AppointmentStatus, BookingStatus, PaymentIntentStatus
from tenants.tests.factories import TenantFactory


class BookingPaymentIntentFactory(factory.django.DjangoModelFactory):
    """Factory for the platform's internal payment intent."""

    class Meta:
        model = BookingPaymentIntent

    tenant = factory.SubFactory(TenantFactory)
    amount = Decimal("50.00")
    currency = "eur"
    status = PaymentIntentStatus.REQUIRES_PAYMENT
    metadata = factory.LazyFunction(dict)


class BookingFactory(factory.django.DjangoModelFactory):
    """
    Factory for Booking.

    Defaults to a pending booking whose hold expires in 15 minutes.
    """

    class Meta:
        model = Booking

    tenant = factory.SubFactory(TenantFactory)
    status = BookingStatus.PENDING
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(minutes=15))
    customer_name = factory.Faker("name")
    customer_email = factory.Faker("email")


class AppointmentFactory(factory.django.DjangoModelFactory):
    """Factory for the legacy Appointment model."""

    class Meta:
        model = Appointment

    tenant = factory.SubFactory(TenantFactory)
    status = AppointmentStatus.PENDING
    expires_at = factory.LazyFunction(lambda: timezone.now() + timedelta(minutes=15))
