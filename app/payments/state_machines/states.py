"""
State enums for payment models.

These are Django TextChoices for database storage.

State Machines Overview:

Payment Status (ledger row):
    pending → succeeded → refunded / disputed
    pending → failed
    disputed → succeeded (dispute won, explicit source override)
    refunded ↔ disputed

Balance Status (Stripe Connect settlement):
    pending → available
    any → adjusted (refund)

WebhookEvent Status:
    pending → processing → processed
    pending → processing → skipped (non-fatal, never retried)
    pending → processing → failed (retried by celery-beat)
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    Status of a Payment ledger row.

    Terminal states: FAILED
    Once SUCCEEDED, only REFUNDED or DISPUTED are valid forward moves.
    """

    PENDING = "pending", "Pending"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"
    DISPUTED = "disputed", "Disputed"


class BalanceStatus(models.TextChoices):
    """
    Settlement stage of the collected funds on the connected account.

    State Flow:
        PENDING → AVAILABLE (balance.available)
        * → ADJUSTED (charge refunded)
    """

    PENDING = "pending", "Pending"
    AVAILABLE = "available", "Available"
    ADJUSTED = "adjusted", "Adjusted"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → SKIPPED (event cannot be attributed)
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    SKIPPED = "skipped", "Skipped"
    FAILED = "failed", "Failed"


# =============================================================================
# Allowed Status Writes
# =============================================================================
# Maps a target status to the statuses a row may currently hold for the
# write to apply. Writes from any other status are dropped.

PAYMENT_STATUS_SOURCES: dict[str, list[str]] = {
    PaymentStatus.SUCCEEDED: [
        PaymentStatus.PENDING,
        PaymentStatus.SUCCEEDED,
    ],
    PaymentStatus.FAILED: [
        PaymentStatus.PENDING,
        PaymentStatus.FAILED,
    ],
    PaymentStatus.REFUNDED: [
        PaymentStatus.SUCCEEDED,
        PaymentStatus.DISPUTED,
        PaymentStatus.REFUNDED,
    ],
    PaymentStatus.DISPUTED: [
        PaymentStatus.SUCCEEDED,
        PaymentStatus.REFUNDED,
        PaymentStatus.DISPUTED,
    ],
}

BALANCE_STATUS_SOURCES: dict[str, list[str] | None] = {
    BalanceStatus.PENDING: [BalanceStatus.PENDING],
    BalanceStatus.AVAILABLE: [BalanceStatus.PENDING],
    # None: applies regardless of the current balance status
    BalanceStatus.ADJUSTED: None,
}


__all__ = [
    "BALANCE_STATUS_SOURCES",
    "BalanceStatus",
    "PAYMENT_STATUS_SOURCES",
    "PaymentStatus",
    "WebhookEventStatus",
]
