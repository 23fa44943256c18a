"""
Pytest fixtures for ledger store tests.
"""

from decimal import Decimal

import pytest

from payments.ledger import DjangoLedgerStore, NewPaymentParams
from tenants.tests.factories import TenantFactory


@pytest.fixture
def store():
    return DjangoLedgerStore()


@pytest.fixture
def tenant(db):
    """Create a tenant with a connected Stripe account."""
    return TenantFactory(stripe_account_id="acct_ledger_one")


@pytest.fixture
def other_tenant(db):
    return TenantFactory(stripe_account_id="acct_ledger_two")


@pytest.fixture
def payment_params(tenant):
    """Factory for NewPaymentParams owned by ``tenant``."""

    def _create(payment_intent_id="pi_ledger_1", **overrides):
        values = {
            "stripe_payment_intent_id": payment_intent_id,
            "tenant_id": tenant.id,
            "amount": Decimal("50.00"),
            "currency": "EUR",
        }
        values.update(overrides)
        return NewPaymentParams(**values)

    return _create
