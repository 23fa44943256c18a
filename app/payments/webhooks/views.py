"""
Webhook endpoint views for Stripe.

This module provides the HTTP endpoint for receiving Stripe webhooks.
The view:
1. Verifies the webhook signature
2. Creates/retrieves the WebhookEvent record (idempotent)
3. Queues the event for async processing, or processes it inline when
   STRIPE_WEBHOOK_SYNC_PROCESSING is enabled
4. Returns a status code Stripe uses to decide on redelivery

It also exposes a health endpoint reporting webhook throughput.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook, webhook_health

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
        path("webhooks/health/", webhook_health, name="webhook_health"),
    ]
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Count
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from payments.adapters import StripeAdapter
from payments.exceptions import StripeInvalidRequestError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus


logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and queue Stripe webhook events.

    This view:
    1. Verifies the webhook signature using Stripe's library
    2. Creates a WebhookEvent record (idempotent via stripe_event_id)
    3. Queues the event for async processing via Celery
    4. Returns 200 immediately to satisfy Stripe's timeout requirements

    Connect events carry the connected account id in the event's
    ``account`` field; it is stored on the WebhookEvent so handlers can
    scope their lookups to that account.

    Security:
    - Signature verification prevents spoofed webhooks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - WebhookEvent.stripe_event_id is unique
    - Processed or skipped events return 200 without reprocessing
    - The Payment row's unique PaymentIntent id guards the ledger itself

    Returns:
        HttpResponse with status:
        - 200: Event accepted (new or duplicate)
        - 400: Missing/invalid signature or payload
        - 500: Synchronous processing failed unexpectedly (Stripe retries)

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    if not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return HttpResponse("Missing signature", status=400)

    # Step 1: Verify signature
    try:
        event_data = StripeAdapter.verify_webhook_signature(payload, signature)
    except StripeInvalidRequestError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": str(e)},
        )
        return HttpResponse("Invalid signature", status=400)

    stripe_event_id = event_data.get("id")
    event_type = event_data.get("type")
    connected_account_id = event_data.get("account") or None

    if not stripe_event_id or not event_type:
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    logger.info(
        f"Received Stripe webhook: {event_type}",
        extra={
            "stripe_event_id": stripe_event_id,
            "event_type": event_type,
            "connected_account_id": connected_account_id,
        },
    )

    # Step 2: Create/get WebhookEvent (idempotent)
    webhook_event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id=stripe_event_id,
        defaults={
            "event_type": event_type,
            "payload": event_data,
            "connected_account_id": connected_account_id,
            "status": WebhookEventStatus.PENDING,
        },
    )

    # Step 3: If already handled, return success
    if not created:
        if webhook_event.is_finished:
            logger.info(
                "Webhook already processed, returning success",
                extra={"stripe_event_id": stripe_event_id},
            )
            return HttpResponse("Already processed", status=200)

        logger.info(
            f"Webhook already exists with status: {webhook_event.status}",
            extra={"stripe_event_id": stripe_event_id},
        )

    from payments.tasks import process_webhook_event, run_webhook_event

    # Step 4a: Inline processing
    if settings.STRIPE_WEBHOOK_SYNC_PROCESSING:
        result = run_webhook_event(webhook_event)
        if result.is_retryable:
            return HttpResponse("Processing failed", status=500)
        return HttpResponse(result.message or "Processed", status=200)

    # Step 4b: Queue for async processing
    try:
        process_webhook_event.delay(str(webhook_event.id))
        logger.info(
            "Webhook queued for processing",
            extra={
                "stripe_event_id": stripe_event_id,
                "webhook_event_id": str(webhook_event.id),
            },
        )
    except Exception as e:
        # Event stays PENDING; Stripe redelivers on 5xx
        logger.error(
            f"Failed to queue webhook: {type(e).__name__}",
            extra={"stripe_event_id": stripe_event_id},
            exc_info=True,
        )
        return HttpResponse("Queueing failed", status=500)

    return HttpResponse("Accepted", status=200)


@require_GET
def webhook_health(request: HttpRequest) -> JsonResponse:
    """
    Report webhook processing metrics for the last 24 hours.

    Response body:
        {
            "status": "ok",
            "window_hours": 24,
            "total": 42,
            "by_type": {"checkout.session.completed": 10, ...},
            "by_status": {"processed": 40, "failed": 2},
            "last_event": {"stripe_event_id": ..., "event_type": ...,
                           "status": ..., "created_at": ...}
        }

    Returns 503 if the database cannot be queried.
    """
    since = timezone.now() - timedelta(hours=24)

    try:
        recent = WebhookEvent.objects.filter(created_at__gte=since)
        total = recent.count()
        by_type = {
            row["event_type"]: row["count"]
            for row in recent.order_by()
            .values("event_type")
            .annotate(count=Count("id"))
        }
        by_status = {
            row["status"]: row["count"]
            for row in recent.order_by().values("status").annotate(count=Count("id"))
        }
        last = WebhookEvent.objects.order_by("-created_at").first()
    except DatabaseError:
        logger.exception("Webhook health check failed")
        return JsonResponse({"status": "error", "database": "unavailable"}, status=503)

    last_event = None
    if last is not None:
        last_event = {
            "stripe_event_id": last.stripe_event_id,
            "event_type": last.event_type,
            "status": last.status,
            "created_at": last.created_at.isoformat(),
        }

    return JsonResponse(
        {
            "status": "ok",
            "window_hours": 24,
            "total": total,
            "by_type": by_type,
            "by_status": by_status,
            "last_event": last_event,
        }
    )
