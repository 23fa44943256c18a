"""
Celery tasks for webhook reconciliation.

This module provides async tasks for:
- Processing Stripe webhook events
- Retrying failed webhook events
- Periodic cleanup of old/stuck events

Every delivery is recorded as a WebhookEvent before processing; the task
runs the reconciliation handlers and records the outcome:

    handler result                 WebhookEvent status    retried
    success                        PROCESSED              no
    non-fatal failure (no tenant)  SKIPPED                no
    unexpected error               FAILED                 yes

Usage:
    from payments.tasks import process_webhook_event

    # Queue a webhook for async processing
    process_webhook_event.delay(str(webhook_event.id))
"""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import process_stripe_event
from payments.webhooks.types import ReconciliationResult

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

STUCK_PROCESSING_THRESHOLD_MINUTES = 30
RETRY_BATCH_SIZE = 100


# =============================================================================
# Shared Processing
# =============================================================================


def run_webhook_event(webhook_event: WebhookEvent) -> ReconciliationResult:
    """
    Reconcile a recorded webhook event and store the outcome on it.

    Used by the Celery task and by the webhook view when synchronous
    processing is enabled. Handler steps are not wrapped in a shared
    transaction; each ledger write commits on its own.

    Args:
        webhook_event: The WebhookEvent to process

    Returns:
        ReconciliationResult from the handler
    """
    webhook_event.mark_processing()
    webhook_event.save()

    log_extra = {
        "webhook_event_id": str(webhook_event.id),
        "stripe_event_id": webhook_event.stripe_event_id,
        "event_type": webhook_event.event_type,
        "retry_count": webhook_event.retry_count,
    }
    logger.info(f"Dispatching webhook: {webhook_event.event_type}", extra=log_extra)

    result = process_stripe_event(
        webhook_event.as_stripe_event(),
        webhook_event.connected_account_id,
    )

    if result.success:
        webhook_event.mark_processed(result.message)
        logger.info("Webhook processed successfully", extra=log_extra)
    elif result.is_retryable:
        webhook_event.mark_failed(result.message or "Handler raised an error")
        logger.error(
            f"Webhook processing failed: {result.message}",
            extra={**log_extra, "error_code": result.error_code},
        )
    else:
        webhook_event.mark_skipped(result.message)
        logger.warning(
            f"Webhook skipped: {result.message}",
            extra={**log_extra, "error_code": result.error_code},
        )

    webhook_event.save()
    return result


# =============================================================================
# Webhook Processing Tasks
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": settings.WEBHOOK_MAX_RETRIES},
    acks_late=True,
)
def process_webhook_event(self, webhook_event_id: str) -> dict:
    """
    Process a Stripe webhook event asynchronously.

    This task:
    1. Loads the WebhookEvent by ID
    2. Checks if already processed or skipped (idempotency)
    3. Runs the reconciliation handlers
    4. Marks the event processed, skipped or failed

    Args:
        webhook_event_id: UUID of the WebhookEvent to process

    Returns:
        Dict with processing result status

    Raises:
        Exception: The handler's unexpected error, re-raised to trigger
            Celery's retry mechanism while retries remain
    """
    if isinstance(webhook_event_id, str):
        webhook_event_id = UUID(webhook_event_id)

    logger.info(
        "Processing webhook event",
        extra={"webhook_event_id": str(webhook_event_id)},
    )

    try:
        webhook_event = WebhookEvent.objects.get(id=webhook_event_id)
    except WebhookEvent.DoesNotExist:
        logger.error(
            "WebhookEvent not found",
            extra={"webhook_event_id": str(webhook_event_id)},
        )
        return {"status": "not_found", "webhook_event_id": str(webhook_event_id)}

    if webhook_event.is_finished:
        logger.info(
            "WebhookEvent already processed, skipping",
            extra={
                "webhook_event_id": str(webhook_event_id),
                "stripe_event_id": webhook_event.stripe_event_id,
            },
        )
        return {
            "status": "already_processed",
            "webhook_event_id": str(webhook_event_id),
        }

    result = run_webhook_event(webhook_event)

    if result.is_retryable and webhook_event.can_retry:
        # Re-raise to trigger Celery retry
        raise result.error

    return {
        "status": webhook_event.status,
        "webhook_event_id": str(webhook_event_id),
        "stripe_event_id": webhook_event.stripe_event_id,
        "message": result.message,
    }


@shared_task
def retry_failed_webhooks() -> dict:
    """
    Periodic task to retry failed webhook events.

    Finds failed webhooks that haven't exceeded WEBHOOK_MAX_RETRIES and
    re-queues them for processing. Skipped events are never retried.

    Scheduled via celery-beat every 5 minutes.

    Returns:
        Dict with count of webhooks queued for retry
    """
    failed_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.FAILED,
        retry_count__lt=settings.WEBHOOK_MAX_RETRIES,
    ).order_by("created_at")[:RETRY_BATCH_SIZE]

    queued_count = 0
    for webhook in failed_webhooks:
        process_webhook_event.delay(str(webhook.id))
        queued_count += 1
        logger.info(
            "Queued failed webhook for retry",
            extra={
                "webhook_event_id": str(webhook.id),
                "stripe_event_id": webhook.stripe_event_id,
                "retry_count": webhook.retry_count,
            },
        )

    logger.info(
        f"Queued {queued_count} failed webhooks for retry",
        extra={"queued_count": queued_count},
    )

    return {"queued_count": queued_count}


@shared_task
def cleanup_stuck_webhooks() -> dict:
    """
    Periodic task to reset stuck webhooks.

    Finds webhooks that have been in PROCESSING status for too long
    and resets them to FAILED so they can be retried.

    This handles cases where the worker crashed during processing.

    Returns:
        Dict with count of webhooks reset
    """
    threshold = timezone.now() - timedelta(minutes=STUCK_PROCESSING_THRESHOLD_MINUTES)

    stuck_webhooks = WebhookEvent.objects.filter(
        status=WebhookEventStatus.PROCESSING,
        updated_at__lt=threshold,
    )

    reset_count = 0
    for webhook in stuck_webhooks:
        stuck_since = webhook.updated_at
        webhook.mark_failed("Processing timed out - reset for retry")
        webhook.save()
        reset_count += 1
        logger.warning(
            "Reset stuck webhook",
            extra={
                "webhook_event_id": str(webhook.id),
                "stripe_event_id": webhook.stripe_event_id,
                "stuck_since": stuck_since.isoformat(),
            },
        )

    if reset_count > 0:
        logger.info(
            f"Reset {reset_count} stuck webhooks",
            extra={"reset_count": reset_count},
        )

    return {"reset_count": reset_count}


@shared_task
def cleanup_old_webhooks(days: int = 90) -> dict:
    """
    Periodic task to clean up old webhook events.

    Removes processed and skipped webhooks older than the specified
    number of days. Failed webhooks are kept for debugging.

    Args:
        days: Delete finished webhooks older than this many days

    Returns:
        Dict with count of webhooks deleted
    """
    cutoff = timezone.now() - timedelta(days=days)

    deleted_count, _ = WebhookEvent.objects.filter(
        status__in=[WebhookEventStatus.PROCESSED, WebhookEventStatus.SKIPPED],
        processed_at__lt=cutoff,
    ).delete()

    if deleted_count > 0:
        logger.info(
            f"Deleted {deleted_count} old webhook events",
            extra={
                "deleted_count": deleted_count,
                "cutoff_date": cutoff.isoformat(),
            },
        )

    return {"deleted_count": deleted_count}
