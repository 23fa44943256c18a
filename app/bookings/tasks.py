"""
Celery tasks for booking maintenance.

Tasks:
- release_expired_holds: Periodic task that cancels unpaid bookings whose
  hold has lapsed, freeing the slot for other customers

Usage:
    # Typically called via celery-beat schedule
    from bookings.tasks import release_expired_holds

    release_expired_holds.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone
from django_fsm import can_proceed

from bookings.models import Booking
from bookings.states import OPEN_BOOKING_STATES

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Maximum bookings to release per run
BATCH_SIZE = 500


# =============================================================================
# Periodic Task: Release Expired Holds
# =============================================================================


@shared_task
def release_expired_holds() -> dict:
    """
    Cancel unpaid bookings whose hold expired.

    Each booking is re-read under a row lock before the transition, so a
    checkout that completes concurrently wins over the release.

    Returns:
        Dict with:
        - released: Number of bookings moved to cancelled
    """
    now = timezone.now()

    expired_ids = list(
        Booking.objects.filter(
            status__in=OPEN_BOOKING_STATES,
            expires_at__lte=now,
        )
        .order_by("expires_at")
        .values_list("id", flat=True)[:BATCH_SIZE]
    )

    released = 0
    for booking_id in expired_ids:
        with transaction.atomic():
            booking = (
                Booking.objects.select_for_update().filter(id=booking_id).first()
            )
            if booking is None or not booking.is_expired:
                continue
            if not can_proceed(booking.release):
                continue

            booking.release()
            booking.save(update_fields=["status", "updated_at"])
            released += 1

        logger.info(
            "Released expired booking hold",
            extra={
                "booking_id": str(booking_id),
                "tenant_id": str(booking.tenant_id),
            },
        )

    logger.info(
        f"Expired hold release complete: released {released} bookings",
        extra={"released": released, "scanned": len(expired_ids)},
    )

    return {"released": released}
