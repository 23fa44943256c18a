"""
Pytest fixtures for webhook tests.

Provides tenants, a fake payment gateway, and builders for the Stripe
event payloads the handlers consume.

Usage:
    def test_checkout(tenant, fake_gateway, checkout_event):
        event = checkout_event(tenant_id=tenant.id, payment_intent="pi_1")
        result = process_stripe_event(event, gateway=fake_gateway)
"""

import uuid
from unittest.mock import MagicMock

import pytest

from payments.adapters import PaymentGateway, PaymentIntentResult
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
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def fake_gateway():
    """
    Gateway double whose PaymentIntents are configured per test.

    Register intents with ``fake_gateway.intents[pi_id] = PaymentIntentResult(...)``;
    unknown ids raise KeyError, which handlers treat as unexpected.
    """
    gateway = MagicMock(spec=PaymentGateway)
    gateway.intents = {}

    def retrieve(payment_intent_id, stripe_account=None):
        return gateway.intents[payment_intent_id]

    gateway.retrieve_payment_intent.side_effect = retrieve
    return gateway


@pytest.fixture
def stripe_intent():
    """Factory for gateway PaymentIntent results."""

    def _create(
        payment_intent_id="pi_test_1",
        status="succeeded",
        amount_cents=5000,
        currency="eur",
        metadata=None,
        receipt_email=None,
    ):
        return PaymentIntentResult(
            id=payment_intent_id,
            status=status,
            amount_cents=amount_cents,
            currency=currency,
            captured=status == "succeeded",
            metadata=metadata or {},
            receipt_email=receipt_email,
            raw_response={},
        )

    return _create


# =============================================================================
# Event Builders
# =============================================================================


def build_event(event_type, data_object, account=None, event_id=None):
    """Wrap a Stripe object in an event envelope."""
    event = {
        "id": event_id or f"evt_{uuid.uuid4().hex[:16]}",
        "object": "event",
        "type": event_type,
        "data": {"object": data_object},
    }
    if account:
        event["account"] = account
    return event


def booking_metadata(tenant_id=None, **extra):
    """Metadata as stamped by the booking flow (all values are strings)."""
    metadata = {}
    if tenant_id is not None:
        metadata["tenant_id"] = str(tenant_id)
    for key, value in extra.items():
        if value is not None:
            metadata[key] = str(value)
    return metadata


@pytest.fixture
def checkout_event():
    """Factory for checkout.session.completed events."""

    def _create(
        tenant_id=None,
        payment_intent="pi_test_1",
        account=None,
        customer_details=None,
        session_id="cs_test_1",
        **metadata,
    ):
        session = {
            "id": session_id,
            "object": "checkout.session",
            "payment_intent": payment_intent,
            "payment_status": "paid",
            "customer_details": customer_details
            or {"name": "Ada Lovelace", "email": "ada@example.com"},
            "metadata": booking_metadata(tenant_id, **metadata),
        }
        return build_event("checkout.session.completed", session, account)

    return _create


@pytest.fixture
def payment_intent_event():
    """Factory for payment_intent.* events."""

    def _create(
        event_type="payment_intent.succeeded",
        tenant_id=None,
        payment_intent_id="pi_test_1",
        amount=5000,
        currency="eur",
        account=None,
        receipt_email="ada@example.com",
        last_payment_error=None,
        **metadata,
    ):
        intent = {
            "id": payment_intent_id,
            "object": "payment_intent",
            "amount": amount,
            "currency": currency,
            "status": (
                "succeeded"
                if event_type == "payment_intent.succeeded"
                else "requires_payment_method"
            ),
            "receipt_email": receipt_email,
            "last_payment_error": last_payment_error,
            "metadata": booking_metadata(tenant_id, **metadata),
        }
        return build_event(event_type, intent, account)

    return _create


@pytest.fixture
def charge_event():
    """Factory for charge.succeeded / charge.refunded events."""

    def _create(
        event_type="charge.succeeded",
        charge_id="ch_test_1",
        payment_intent="pi_test_1",
        account=None,
    ):
        charge = {
            "id": charge_id,
            "object": "charge",
            "payment_intent": payment_intent,
            "amount": 5000,
            "amount_refunded": 5000 if event_type == "charge.refunded" else 0,
            "refunded": event_type == "charge.refunded",
        }
        return build_event(event_type, charge, account)

    return _create


@pytest.fixture
def balance_event():
    """Factory for balance.available events."""

    def _create(source="ch_test_1", txn_type="charge", account=None):
        balance_transaction = {
            "id": f"txn_{uuid.uuid4().hex[:12]}",
            "object": "balance_transaction",
            "type": txn_type,
            "source": source,
        }
        return build_event("balance.available", balance_transaction, account)

    return _create


@pytest.fixture
def payout_event():
    """Factory for payout.paid / payout.failed events."""

    def _create(event_type="payout.paid", account=None, **fields):
        payout = {
            "id": "po_test_1",
            "object": "payout",
            "amount": 10000,
            "currency": "eur",
            **fields,
        }
        return build_event(event_type, payout, account)

    return _create


@pytest.fixture
def dispute_event():
    """Factory for charge.dispute.* events."""

    def _create(
        event_type="charge.dispute.created",
        charge="ch_test_1",
        status="needs_response",
        account=None,
    ):
        dispute = {
            "id": "dp_test_1",
            "object": "dispute",
            "charge": charge,
            "status": status,
            "amount": 5000,
        }
        return build_event(event_type, dispute, account)

    return _create
