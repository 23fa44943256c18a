"""
Protocol definitions for payment gateway access.

Webhook handlers depend on this narrow read-only contract rather than on
the Stripe SDK, so tests can pass any object with the same shape.

Available Protocols:
    PaymentGateway: Read-only PaymentIntent lookups

Usage:
    from payments.adapters.protocols import PaymentGateway

    def tenant_for_charge(gateway: PaymentGateway, charge: dict, account: str):
        intent = gateway.retrieve_payment_intent(
            charge["payment_intent"],
            stripe_account=account,
        )
        return intent.metadata.get("tenant_id")

    # StripeAdapter is a valid PaymentGateway
    # even without explicit inheritance (duck typing)
    gateway: PaymentGateway = StripeAdapter

Note:
    - @runtime_checkable allows isinstance() checks
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from payments.adapters.stripe_adapter import PaymentIntentResult


@runtime_checkable
class PaymentGateway(Protocol):
    """
    Protocol for payment processor lookups.

    Example:
        class FakeGateway:
            def retrieve_payment_intent(self, payment_intent_id, stripe_account=None):
                return PaymentIntentResult(id=payment_intent_id, ...)
    """

    def retrieve_payment_intent(
        self,
        payment_intent_id: str,
        stripe_account: str | None = None,
    ) -> PaymentIntentResult:
        """
        Retrieve a PaymentIntent by ID.

        Args:
            payment_intent_id: Processor PaymentIntent ID (pi_xxx)
            stripe_account: Connected account to scope the lookup to

        Returns:
            PaymentIntentResult

        Raises:
            StripeError: Lookup failed
        """
        ...


__all__ = ["PaymentGateway"]
