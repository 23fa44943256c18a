"""
Payments app: Stripe webhook reconciliation.

This app handles:
- Receiving and verifying Stripe webhooks (platform and Connect accounts)
- Reconciling events against the payments ledger
- Driving booking, appointment and internal payment-intent state
- Retrying and cleaning up recorded webhook deliveries

Related apps:
    - tenants: Tenant and connected-account mapping
    - bookings: Reservations whose state payments drive

Usage:
    from payments.webhooks import process_stripe_event

    result = process_stripe_event(event, connected_account_id="acct_123")
    if not result.success:
        ...
"""
