"""
Webhook event handlers for Stripe events.

This module provides a handler registry and the reconciliation logic for
every Stripe event the platform consumes. Each handler reads the event
payload, resolves the owning tenant and performs idempotent single-row
writes through the ledger store.

The handler registry allows:
- Clean separation between event routing and handling
- Easy extension for new event types
- Centralized error handling

Error handling:
- Validation and tenant-resolution errors are non-fatal: the handler
  returns ``ReconciliationResult.skipped`` and the delivery is never
  retried.
- Any other exception is caught at the handler boundary and returned as
  ``ReconciliationResult.from_exception``; the delivery is retried unless
  the error is a permanent Stripe error.
- Unknown event types are acknowledged as successfully ignored.

Usage:
    from payments.webhooks.handlers import process_stripe_event, register_handler

    # Register a custom handler
    @register_handler("custom.event")
    def handle_custom_event(context: WebhookContext) -> ReconciliationResult:
        ...

    # Reconcile an event
    result = process_stripe_event(event, connected_account_id="acct_123")
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable

from payments.exceptions import PaymentValidationError, TenantResolutionError
from payments.ledger import NewPaymentParams, minor_units_to_amount
from payments.state_machines import BalanceStatus, PaymentStatus
from payments.webhooks.context import WebhookContext, build_handler_context
from payments.webhooks.types import BookingMetadata, ReconciliationResult

if TYPE_CHECKING:
    from payments.adapters import PaymentGateway, PaymentIntentResult
    from payments.ledger import LedgerStore
    from tenants.models import Tenant


logger = logging.getLogger(__name__)


Handler = Callable[[WebhookContext], ReconciliationResult]


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, Handler] = {}


def register_handler(event_type: str) -> Callable[[Handler], Handler]:
    """
    Decorator to register a webhook event handler.

    The registered function is wrapped so it never raises: non-fatal
    domain errors become skipped results and anything else is wrapped
    with the exception attached.

    Usage:
        @register_handler("payout.paid")
        def handle_payout_paid(context: WebhookContext) -> ReconciliationResult:
            ...

    Args:
        event_type: The Stripe event type (e.g., "payment_intent.succeeded")

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Handler) -> Handler:
        @functools.wraps(func)
        def wrapper(context: WebhookContext) -> ReconciliationResult:
            try:
                return func(context)
            except (PaymentValidationError, TenantResolutionError) as e:
                logger.warning(
                    f"{event_type}: {e.message}",
                    extra=context.log_extra(error_code=e.error_code, **e.details),
                )
                return ReconciliationResult.skipped(e.message, e.error_code)
            except Exception as e:
                logger.exception(
                    f"Error processing {event_type}",
                    extra=context.log_extra(),
                )
                return ReconciliationResult.from_exception(
                    e, f"error processing {event_type}: {e}"
                )

        WEBHOOK_HANDLERS[event_type] = wrapper
        logger.debug(f"Registered webhook handler for {event_type}")
        return wrapper

    return decorator


def get_supported_event_types() -> list[str]:
    """Return the Stripe event types that have a registered handler."""
    return sorted(WEBHOOK_HANDLERS)


def dispatch_webhook(context: WebhookContext) -> ReconciliationResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Looks up the handler by event type and calls it. If no handler
    is registered, logs and returns success (unknown events are expected
    and must never be escalated).

    Args:
        context: The WebhookContext for the event

    Returns:
        ReconciliationResult from the handler
    """
    event_type = context.event_type
    handler = WEBHOOK_HANDLERS.get(event_type)

    if not handler:
        logger.info(
            f"No handler registered for event type: {event_type}",
            extra=context.log_extra(),
        )
        return ReconciliationResult.ok(f"unsupported event: {event_type}")

    logger.info(
        f"Dispatching {event_type} to handler",
        extra=context.log_extra(),
    )

    try:
        return handler(context)
    except Exception as e:
        # Handlers registered without register_handler
        logger.exception(
            f"Unhandled error in {event_type} handler",
            extra=context.log_extra(),
        )
        return ReconciliationResult.from_exception(
            e, f"error processing {event_type}: {e}"
        )


def process_stripe_event(
    event: dict[str, Any],
    connected_account_id: str | None = None,
    *,
    gateway: PaymentGateway | None = None,
    store: LedgerStore | None = None,
) -> ReconciliationResult:
    """
    Build the handler context for an event and dispatch it.

    Args:
        event: Verified Stripe event dict
        connected_account_id: Connected account the event was delivered for
        gateway: Gateway override (tests)
        store: Ledger store override (tests)

    Returns:
        ReconciliationResult
    """
    context = build_handler_context(
        event,
        connected_account_id,
        gateway=gateway,
        store=store,
    )
    return dispatch_webhook(context)


# =============================================================================
# Shared Helpers
# =============================================================================


def _object_id(value: Any) -> str | None:
    """Stripe references are either an id string or an expanded object."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def _resolve_metadata_tenant(
    context: WebhookContext, meta: BookingMetadata
) -> Tenant:
    """
    Resolve the tenant named in event metadata.

    Raises:
        TenantResolutionError: The tenant does not exist, or the event was
            delivered for a connected account owned by another tenant
    """
    tenant = context.store.get_tenant(meta.tenant_id)
    if tenant is None:
        raise TenantResolutionError(
            f"no tenant {meta.tenant_id}",
            details={"tenant_id": str(meta.tenant_id)},
        )

    if context.connected_account_id:
        account_tenant = context.store.find_tenant_by_stripe_account(
            context.connected_account_id
        )
        if account_tenant is not None and account_tenant.id != tenant.id:
            raise TenantResolutionError(
                "tenant_id in metadata does not own the connected account",
                error_code="TENANT_MISMATCH",
                details={
                    "tenant_id": str(meta.tenant_id),
                    "account_tenant_id": str(account_tenant.id),
                },
            )

    return tenant


def _resolve_account_tenant(context: WebhookContext) -> Tenant:
    """
    Resolve the tenant that owns the event's connected account.

    Raises:
        TenantResolutionError: No connected account on the event, or no
            tenant has that stripe_account_id
    """
    account_id = context.connected_account_id
    if not account_id:
        raise TenantResolutionError(
            f"{context.event_type} only applies to connected accounts",
            error_code="CONNECTED_ACCOUNT_REQUIRED",
        )

    tenant = context.store.find_tenant_by_stripe_account(account_id)
    if tenant is None:
        raise TenantResolutionError(
            f"no tenant for connected account {account_id}",
            details={"account_id": account_id},
        )
    return tenant


def _retrieve_intent(context: WebhookContext, payment_intent_id: str):
    return context.gateway.retrieve_payment_intent(
        payment_intent_id,
        stripe_account=context.connected_account_id,
    )


def _payment_metadata(
    context: WebhookContext, raw: dict[str, Any], intent_status: str, currency: str
) -> dict[str, Any]:
    return {
        **raw,
        "payment_intent_status": intent_status,
        "connected_account_id": context.connected_account_id,
        "currency": currency,
    }


def _insert_payment(context: WebhookContext, params: NewPaymentParams) -> bool:
    """Insert a Payment row, logging the outcome."""
    created = context.store.insert_payment(params)
    log_extra = context.log_extra(
        payment_intent_id=params.stripe_payment_intent_id,
        tenant_id=str(params.tenant_id),
    )
    if created:
        logger.info(
            "payment_created",
            extra={**log_extra, "amount": str(params.amount)},
        )
    else:
        logger.info("payment_duplicate", extra=log_extra)
    return created


# =============================================================================
# Checkout Handlers
# =============================================================================


@register_handler("checkout.session.completed")
def handle_checkout_session_completed(context: WebhookContext) -> ReconciliationResult:
    """
    Handle a completed Checkout Session.

    1. Retrieve the session's PaymentIntent (scoped to the connected account)
    2. Insert the Payment row; a conflict means the intent was already
       recorded and is not an error
    3. Promote the internal payment intent and confirm its booking
    4. Mark a directly referenced booking as paid
    5. Confirm a legacy appointment

    Steps 3-5 are guarded by the booking state machines, so replays of
    the same session converge instead of regressing anything.
    """
    session = context.data_object
    meta = BookingMetadata.from_stripe(session.get("metadata"))
    _resolve_metadata_tenant(context, meta)

    payment_intent_id = _object_id(session.get("payment_intent"))
    if payment_intent_id:
        intent = _retrieve_intent(context, payment_intent_id)
        _record_checkout_payment(context, session, meta, intent)

    if meta.payment_intent_id:
        _settle_internal_payment_intent(context, meta)

    if meta.booking_id:
        if context.store.mark_booking_paid(meta.booking_id, meta.tenant_id):
            logger.info(
                "booking_paid",
                extra=context.log_extra(
                    booking_id=str(meta.booking_id),
                    tenant_id=str(meta.tenant_id),
                ),
            )

    if meta.appointment_id:
        if context.store.confirm_appointment(meta.appointment_id, meta.tenant_id):
            logger.info(
                "appointment_confirmed",
                extra=context.log_extra(
                    appointment_id=str(meta.appointment_id),
                    tenant_id=str(meta.tenant_id),
                ),
            )

    return ReconciliationResult.ok()


def _record_checkout_payment(
    context: WebhookContext,
    session: dict[str, Any],
    meta: BookingMetadata,
    intent: PaymentIntentResult,
) -> bool:
    currency = intent.currency or "eur"
    amount = minor_units_to_amount(intent.amount_cents, currency)
    customer = session.get("customer_details") or {}

    params = NewPaymentParams(
        stripe_payment_intent_id=intent.id,
        stripe_session_id=session.get("id"),
        tenant_id=meta.tenant_id,
        booking_id=meta.booking_id,
        service_id=meta.service_id,
        customer_name=customer.get("name"),
        customer_email=customer.get("email"),
        amount=amount,
        deposit=meta.deposit,
        total_price=meta.total_price if meta.total_price is not None else amount,
        currency=currency,
        status=(
            PaymentStatus.SUCCEEDED
            if intent.status == "succeeded"
            else PaymentStatus.PENDING
        ),
        balance_status=BalanceStatus.PENDING,
        metadata=_payment_metadata(context, meta.raw, intent.status, currency),
    )
    return _insert_payment(context, params)


def _settle_internal_payment_intent(
    context: WebhookContext, meta: BookingMetadata
) -> None:
    """Mark the platform's payment intent paid and confirm its booking."""
    store = context.store
    if not store.mark_internal_payment_intent_paid(
        meta.payment_intent_id, meta.tenant_id
    ):
        return

    logger.info(
        "internal_payment_intent_paid",
        extra=context.log_extra(
            internal_payment_intent_id=str(meta.payment_intent_id),
            tenant_id=str(meta.tenant_id),
        ),
    )

    booking = store.get_booking_for_payment_intent(
        meta.payment_intent_id, meta.tenant_id
    )
    if booking is not None and store.confirm_booking(booking.id, meta.tenant_id):
        logger.info(
            "booking_confirmed",
            extra=context.log_extra(
                booking_id=str(booking.id),
                tenant_id=str(meta.tenant_id),
            ),
        )


# =============================================================================
# Payment Intent Handlers
# =============================================================================


@register_handler("payment_intent.succeeded")
def handle_payment_intent_succeeded(context: WebhookContext) -> ReconciliationResult:
    """
    Handle successful payment confirmation.

    Updates the existing Payment row, or creates it when this event
    arrives before checkout.session.completed. Either way the intent ends
    up with exactly one ``succeeded`` row.
    """
    intent = context.data_object
    payment_intent_id = intent.get("id")
    meta = BookingMetadata.from_stripe(intent.get("metadata"))
    _resolve_metadata_tenant(context, meta)

    store = context.store
    if not store.payment_exists(payment_intent_id):
        currency = intent.get("currency") or "eur"
        amount = minor_units_to_amount(intent.get("amount") or 0, currency)
        params = NewPaymentParams(
            stripe_payment_intent_id=payment_intent_id,
            tenant_id=meta.tenant_id,
            booking_id=meta.booking_id,
            service_id=meta.service_id,
            customer_email=intent.get("receipt_email"),
            amount=amount,
            deposit=meta.deposit,
            total_price=meta.total_price if meta.total_price is not None else amount,
            currency=currency,
            status=PaymentStatus.SUCCEEDED,
            balance_status=BalanceStatus.PENDING,
            metadata=_payment_metadata(
                context, meta.raw, intent.get("status") or "succeeded", currency
            ),
        )
        if _insert_payment(context, params):
            return ReconciliationResult.ok()

    # Row exists, possibly inserted concurrently by the checkout handler
    store.update_payment_by_intent(
        payment_intent_id,
        tenant_id=meta.tenant_id,
        status=PaymentStatus.SUCCEEDED,
        balance_status=BalanceStatus.PENDING,
    )
    return ReconciliationResult.ok()


@register_handler("payment_intent.payment_failed")
def handle_payment_intent_failed(context: WebhookContext) -> ReconciliationResult:
    """
    Handle payment failure notification.

    Marks an existing pending Payment row failed and releases the
    booking's hold so the slot can be booked again.
    """
    intent = context.data_object
    payment_intent_id = intent.get("id")
    meta = BookingMetadata.from_stripe(intent.get("metadata"))
    _resolve_metadata_tenant(context, meta)

    last_error = intent.get("last_payment_error") or {}
    logger.info(
        "Processing payment_intent.payment_failed",
        extra=context.log_extra(
            payment_intent_id=payment_intent_id,
            tenant_id=str(meta.tenant_id),
            reason=last_error.get("code"),
        ),
    )

    context.store.update_payment_by_intent(
        payment_intent_id,
        tenant_id=meta.tenant_id,
        status=PaymentStatus.FAILED,
    )

    if meta.booking_id:
        if context.store.release_booking(meta.booking_id, meta.tenant_id):
            logger.info(
                "booking_released",
                extra=context.log_extra(
                    booking_id=str(meta.booking_id),
                    tenant_id=str(meta.tenant_id),
                ),
            )

    return ReconciliationResult.ok()


# =============================================================================
# Charge Handlers
# =============================================================================


def _charge_intent_metadata(
    context: WebhookContext, charge: dict[str, Any]
) -> tuple[str, BookingMetadata]:
    """
    Look up the PaymentIntent behind a charge and parse its metadata.

    Charges carry no booking metadata of their own, so the tenant is read
    from the intent.
    """
    payment_intent_id = _object_id(charge.get("payment_intent"))
    if not payment_intent_id:
        raise PaymentValidationError(
            "no payment_intent on charge",
            error_code="MISSING_PAYMENT_INTENT",
            details={"charge_id": charge.get("id")},
        )

    intent = _retrieve_intent(context, payment_intent_id)
    meta = BookingMetadata.from_stripe(intent.metadata)
    _resolve_metadata_tenant(context, meta)
    return payment_intent_id, meta


@register_handler("charge.succeeded")
def handle_charge_succeeded(context: WebhookContext) -> ReconciliationResult:
    """Attach the charge to its Payment row and mark it succeeded."""
    charge = context.data_object
    payment_intent_id, meta = _charge_intent_metadata(context, charge)

    context.store.attach_charge(
        payment_intent_id, charge.get("id"), tenant_id=meta.tenant_id
    )
    context.store.update_payment_by_intent(
        payment_intent_id,
        tenant_id=meta.tenant_id,
        status=PaymentStatus.SUCCEEDED,
    )
    return ReconciliationResult.ok()


@register_handler("charge.refunded")
def handle_charge_refunded(context: WebhookContext) -> ReconciliationResult:
    """
    Handle a refunded charge.

    The Payment becomes refunded with its balance adjusted, and the
    booking it paid for is cancelled.
    """
    charge = context.data_object
    payment_intent_id, meta = _charge_intent_metadata(context, charge)

    context.store.update_payment_by_intent(
        payment_intent_id,
        tenant_id=meta.tenant_id,
        status=PaymentStatus.REFUNDED,
        balance_status=BalanceStatus.ADJUSTED,
    )

    if meta.booking_id:
        if context.store.cancel_booking(meta.booking_id, meta.tenant_id):
            logger.info(
                "booking_cancelled",
                extra=context.log_extra(
                    booking_id=str(meta.booking_id),
                    tenant_id=str(meta.tenant_id),
                    reason="refund",
                ),
            )

    return ReconciliationResult.ok()


# =============================================================================
# Balance & Payout Handlers (connected accounts only)
# =============================================================================


@register_handler("balance.available")
def handle_balance_available(context: WebhookContext) -> ReconciliationResult:
    """Mark the funds of a settled charge as available to the tenant."""
    tenant = _resolve_account_tenant(context)
    balance_transaction = context.data_object
    charge_id = _object_id(balance_transaction.get("source"))

    if charge_id and balance_transaction.get("type") == "charge":
        context.store.update_payment_by_charge(
            charge_id,
            tenant_id=tenant.id,
            balance_status=BalanceStatus.AVAILABLE,
        )

    return ReconciliationResult.ok()


@register_handler("payout.paid")
def handle_payout_paid(context: WebhookContext) -> ReconciliationResult:
    """
    Record a completed payout to the tenant's bank account.

    Stripe does not say which charges a payout contains, so nothing in
    the ledger changes.
    """
    tenant = _resolve_account_tenant(context)
    payout = context.data_object

    logger.info(
        "payout_paid",
        extra=context.log_extra(
            payout_id=payout.get("id"),
            amount=payout.get("amount"),
            currency=payout.get("currency"),
            tenant_id=str(tenant.id),
        ),
    )
    return ReconciliationResult.ok()


@register_handler("payout.failed")
def handle_payout_failed(context: WebhookContext) -> ReconciliationResult:
    tenant = _resolve_account_tenant(context)
    payout = context.data_object

    logger.error(
        "payout_failed",
        extra=context.log_extra(
            payout_id=payout.get("id"),
            amount=payout.get("amount"),
            currency=payout.get("currency"),
            tenant_id=str(tenant.id),
            failure_code=payout.get("failure_code"),
            failure_message=payout.get("failure_message"),
        ),
    )
    return ReconciliationResult.ok()


# =============================================================================
# Dispute Handlers
# =============================================================================


def _dispute_scope(context: WebhookContext, dispute: dict[str, Any]):
    """Return the disputed charge id and, for Connect events, the tenant id."""
    charge_id = _object_id(dispute.get("charge"))
    if not charge_id:
        raise PaymentValidationError(
            "no charge on dispute",
            error_code="MISSING_CHARGE",
            details={"dispute_id": dispute.get("id")},
        )

    tenant_id = None
    if context.connected_account_id:
        tenant_id = _resolve_account_tenant(context).id
    return charge_id, tenant_id


@register_handler("charge.dispute.created")
def handle_dispute_created(context: WebhookContext) -> ReconciliationResult:
    charge_id, tenant_id = _dispute_scope(context, context.data_object)

    context.store.update_payment_by_charge(
        charge_id,
        tenant_id=tenant_id,
        status=PaymentStatus.DISPUTED,
    )
    return ReconciliationResult.ok()


@register_handler("charge.dispute.closed")
def handle_dispute_closed(context: WebhookContext) -> ReconciliationResult:
    """
    Resolve a dispute.

    A dispute won by the merchant returns the payment to succeeded; any
    other outcome leaves it disputed.
    """
    dispute = context.data_object
    charge_id, tenant_id = _dispute_scope(context, dispute)

    if dispute.get("status") == "won":
        context.store.update_payment_by_charge(
            charge_id,
            tenant_id=tenant_id,
            status=PaymentStatus.SUCCEEDED,
            allowed_from=[PaymentStatus.DISPUTED],
        )
    else:
        context.store.update_payment_by_charge(
            charge_id,
            tenant_id=tenant_id,
            status=PaymentStatus.DISPUTED,
        )

    logger.info(
        "dispute_closed",
        extra=context.log_extra(
            dispute_id=dispute.get("id"),
            charge_id=charge_id,
            outcome=dispute.get("status"),
        ),
    )
    return ReconciliationResult.ok()
