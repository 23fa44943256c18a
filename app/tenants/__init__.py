"""
Tenants app.

A tenant is one business on the booking platform. Each tenant may have a
single Stripe Connect account; events delivered on behalf of that account
are attributed to the tenant through ``stripe_account_id``.

The reconciliation engine only reads tenants. They are created and edited
by the (separate) onboarding flow.
"""
