"""
Pytest fixtures for booking tests.

Usage:
    def test_mark_paid(pending_booking):
        pending_booking.mark_paid()
        pending_booking.save()
        assert pending_booking.status == BookingStatus.PAID
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from bookings.states import BookingStatus
from bookings.tests.factories import BookingFactory
from tenants.tests.factories import TenantFactory


@pytest.fixture
def tenant(db):
    """Create a tenant with a connected account."""
    return TenantFactory()


@pytest.fixture
def pending_booking(db, tenant):
    """Create a pending booking whose hold is still valid."""
    return BookingFactory(tenant=tenant, status=BookingStatus.PENDING)


@pytest.fixture
def expired_booking(db, tenant):
    """Create a hold booking whose hold lapsed a minute ago."""
    return BookingFactory(
        tenant=tenant,
        status=BookingStatus.HOLD,
        expires_at=timezone.now() - timedelta(minutes=1),
    )
