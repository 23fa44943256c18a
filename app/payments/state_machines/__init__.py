"""
Status enums and allowed-write tables for payment models.
"""

from payments.state_machines.states import (
    BALANCE_STATUS_SOURCES,
    PAYMENT_STATUS_SOURCES,
    BalanceStatus,
    PaymentStatus,
    WebhookEventStatus,
)

__all__ = [
    "BALANCE_STATUS_SOURCES",
    "BalanceStatus",
    "PAYMENT_STATUS_SOURCES",
    "PaymentStatus",
    "WebhookEventStatus",
]
