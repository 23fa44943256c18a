"""
Reconciliation ledger.

The ledger is the ``payments`` table: the platform's mirror of Stripe
transactions, together with the booking state that payments drive.
Webhook handlers write to it exclusively through a LedgerStore.

Usage:
    from payments.ledger import DjangoLedgerStore, NewPaymentParams

    store = DjangoLedgerStore()
    created = store.insert_payment(NewPaymentParams(...))
"""

from payments.ledger.protocols import LedgerStore
from payments.ledger.store import DjangoLedgerStore
from payments.ledger.types import (
    ZERO_DECIMAL_CURRENCIES,
    NewPaymentParams,
    minor_units_to_amount,
)

__all__ = [
    "DjangoLedgerStore",
    "LedgerStore",
    "NewPaymentParams",
    "ZERO_DECIMAL_CURRENCIES",
    "minor_units_to_amount",
]
