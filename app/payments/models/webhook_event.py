"""
WebhookEvent model for Stripe webhook delivery tracking.

Stores every webhook event received from Stripe so that processing can be
queued, retried and audited. The unique stripe_event_id constraint detects
redelivered events at the transport level.

Note:
    This is a delivery log. Ledger idempotency still comes from the unique
    stripe_payment_intent_id on Payment; a replayed event that reaches the
    handlers is always safe to process again.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id="evt_1234567890",
        defaults={
            "event_type": "payment_intent.succeeded",
            "connected_account_id": "acct_123",
            "payload": webhook_payload,
        },
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import WebhookEventStatus


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks Stripe webhook events through processing.

    Processing Flow:
        1. Webhook arrives, verify Stripe signature
        2. Insert/get WebhookEvent with stripe_event_id
        3. If exists and PROCESSED/SKIPPED -> return 200 (duplicate)
        4. Queue processing (or process inline in sync mode)
        5. Set status to PROCESSING
        6. Route to the handler for event_type
        7. Set status to PROCESSED, SKIPPED or FAILED
        8. If FAILED, retry_failed_webhooks picks it up later

    Fields:
        stripe_event_id: Unique Stripe Event ID (evt_xxx)
        event_type: Type of webhook event
        connected_account_id: Connect account the event was sent for
        payload: Full JSON payload from Stripe
        status: Processing status
        processed_at: When processing finished (processed or skipped)
        error_message: Error details if processing failed
        result_message: Handler diagnostic message
        retry_count: Number of processing attempts
    """

    # ==========================================================================
    # Event Identification
    # ==========================================================================

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'payment_intent.succeeded')",
    )

    connected_account_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Stripe Connect account the event was delivered for (acct_xxx)",
    )

    # ==========================================================================
    # Payload
    # ==========================================================================

    payload = models.JSONField(
        help_text="Full webhook payload from Stripe (JSON)",
    )

    # ==========================================================================
    # Processing Status
    # ==========================================================================

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When processing finished",
    )

    # ==========================================================================
    # Results & Error Handling
    # ==========================================================================

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    result_message = models.TextField(
        null=True,
        blank=True,
        help_text="Diagnostic message returned by the handler",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(
                fields=["status", "created_at"], name="payments_we_status_1a2b3c_idx"
            ),
            models.Index(
                fields=["event_type", "created_at"],
                name="payments_we_type_4d5e6f_idx",
            ),
            models.Index(
                fields=["status", "retry_count"], name="payments_we_retry_7a8b9c_idx"
            ),
        ]

    def __str__(self) -> str:
        """Return string representation with event ID and type."""
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_finished(self) -> bool:
        """Check if the event reached a state that is never reprocessed."""
        return self.status in (
            WebhookEventStatus.PROCESSED,
            WebhookEventStatus.SKIPPED,
        )

    @property
    def can_retry(self) -> bool:
        """Check if event can be retried (failed with retry count < max)."""
        return (
            self.status == WebhookEventStatus.FAILED
            and self.retry_count < settings.WEBHOOK_MAX_RETRIES
        )

    # ==========================================================================
    # Helper Methods
    # ==========================================================================

    def as_stripe_event(self) -> dict:
        """
        Return the payload as the event dict the handlers expect.

        The connected account recorded at receipt wins over the payload's
        own ``account`` key.
        """
        event = dict(self.payload)
        if self.connected_account_id:
            event["account"] = self.connected_account_id
        return event

    def mark_processing(self) -> None:
        """
        Mark event as being processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self, result_message: str | None = None) -> None:
        """
        Mark event as successfully processed.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None
        self.result_message = result_message

    def mark_skipped(self, result_message: str | None) -> None:
        """
        Mark event as handled without reconciliation.

        Used for events that can never succeed (no tenant, wrong account),
        so they are not retried.

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.SKIPPED
        self.processed_at = timezone.now()
        self.error_message = None
        self.result_message = result_message

    def mark_failed(self, error_message: str) -> None:
        """
        Mark event as failed with error message.

        Args:
            error_message: Description of what went wrong

        Note: Does not save - caller must save after calling.
        """
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message
