"""
Tests for payments app.

This package contains test modules for:
- test_models.py: Payment and WebhookEvent model tests
- test_tasks.py: Webhook processing and maintenance task tests
- test_integration.py: Signed webhook deliveries through to the ledger

Handler, ledger store and Stripe adapter tests live beside their
packages (payments/webhooks/tests, payments/ledger/tests,
payments/adapters/tests).

Usage:
    pytest payments/tests/
    pytest payments/tests/test_tasks.py
"""
