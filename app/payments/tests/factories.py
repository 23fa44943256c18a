"""
Factory Boy factories for payment test data.

This module provides factories for creating test instances of payment models.
Factories generate realistic test data while allowing easy customization.

Usage:
    from payments.tests.factories import PaymentFactory, WebhookEventFactory

    # Create a pending payment for a tenant
    payment = PaymentFactory(tenant=tenant)

    # Create a settled payment with a known charge
    payment = PaymentFactory(
        status=PaymentStatus.SUCCEEDED,
        stripe_charge_id="ch_123",
    )

    # Failed webhook
    event = WebhookEventFactory(
        status=WebhookEventStatus.FAILED,
        error_message="Processing error",
        retry_count=3,
    )
"""

import uuid
from decimal import Decimal

import factory

from payments.models import Payment, WebhookEvent
from payments.state_machines import BalanceStatus, PaymentStatus, WebhookEventStatus
from tenants.tests.factories import TenantFactory


class PaymentFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Payment ledger rows.

    Default creates a PENDING 50.00 EUR payment with no charge attached.
    """

    class Meta:
        model = Payment

    tenant = factory.SubFactory(TenantFactory)
    stripe_payment_intent_id = factory.Sequence(lambda n: f"pi_test_{n:06d}")
    stripe_session_id = factory.Sequence(lambda n: f"cs_test_{n:06d}")
    amount = Decimal("50.00")
    total_price = Decimal("50.00")
    currency = "eur"
    status = PaymentStatus.PENDING
    balance_status = BalanceStatus.PENDING
    metadata = factory.LazyFunction(dict)


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating WebhookEvent instances.

    Default creates a PENDING payout.paid webhook for a connected account.

    Example:
        # Specific event type
        event = WebhookEventFactory(
            event_type="charge.refunded",
            payload={"type": "charge.refunded", "data": {"object": {...}}},
        )
    """

    class Meta:
        model = WebhookEvent

    stripe_event_id = factory.Sequence(lambda n: f"evt_test_{n}_{uuid.uuid4().hex[:8]}")
    event_type = "payout.paid"
    connected_account_id = "acct_test_webhook"
    payload = factory.LazyAttribute(
        lambda o: {
            "id": o.stripe_event_id,
            "type": o.event_type,
            "account": o.connected_account_id,
            "data": {
                "object": {
                    "id": f"po_{uuid.uuid4().hex[:12]}",
                    "object": "payout",
                    "amount": 10000,
                    "currency": "eur",
                }
            },
        }
    )
    status = WebhookEventStatus.PENDING
