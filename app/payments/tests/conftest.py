"""
Pytest fixtures for payment tests.

This module provides fixtures for creating payment-related test data.
Fixtures are designed to provide objects in various states for testing
status transitions and webhook processing.

Usage:
    def test_refund(succeeded_payment):
        ...
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import PaymentStatus, WebhookEventStatus
from payments.tests.factories import PaymentFactory, WebhookEventFactory
from tenants.tests.factories import TenantFactory


# =============================================================================
# Tenant Fixtures
# =============================================================================


@pytest.fixture
def tenant(db):
    """Create a tenant with a connected Stripe account."""
    return TenantFactory(stripe_account_id="acct_tenant_one")


@pytest.fixture
def other_tenant(db):
    """Create a second tenant for isolation tests."""
    return TenantFactory(stripe_account_id="acct_tenant_two")


# =============================================================================
# Payment Fixtures
# =============================================================================


@pytest.fixture
def pending_payment(db, tenant):
    """Create a pending payment."""
    return PaymentFactory(tenant=tenant, stripe_payment_intent_id="pi_pending")


@pytest.fixture
def succeeded_payment(db, tenant):
    """Create a succeeded payment with a charge attached."""
    return PaymentFactory(
        tenant=tenant,
        stripe_payment_intent_id="pi_succeeded",
        stripe_charge_id="ch_succeeded",
        status=PaymentStatus.SUCCEEDED,
    )


# =============================================================================
# WebhookEvent Fixtures
# =============================================================================


@pytest.fixture
def pending_webhook_event(db):
    """Create a pending webhook event."""
    return WebhookEventFactory()


@pytest.fixture
def processed_webhook_event(db):
    """Create a processed webhook event."""
    return WebhookEventFactory(
        status=WebhookEventStatus.PROCESSED,
        processed_at=timezone.now(),
        retry_count=1,
    )


@pytest.fixture
def skipped_webhook_event(db):
    """Create a webhook event skipped because it could not be reconciled."""
    return WebhookEventFactory(
        status=WebhookEventStatus.SKIPPED,
        processed_at=timezone.now(),
        result_message="no tenant for connected account acct_test_webhook",
        retry_count=1,
    )


@pytest.fixture
def failed_webhook_event(db):
    """Create a failed webhook event with retries remaining."""
    return WebhookEventFactory(
        status=WebhookEventStatus.FAILED,
        error_message="error processing payout.paid: boom",
        retry_count=1,
    )


@pytest.fixture
def stuck_webhook_event(db):
    """Create a webhook event stuck in PROCESSING for an hour."""
    event = WebhookEventFactory(
        status=WebhookEventStatus.PROCESSING,
        retry_count=1,
    )
    # Bypass auto_now
    WebhookEvent.objects.filter(id=event.id).update(
        updated_at=timezone.now() - timedelta(hours=1)
    )
    event.refresh_from_db()
    return event
