"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the tenants, bookings and payments apps.
Nothing in here knows about Stripe, bookings or tenants.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - ConflictError: State conflicts

Helpers (import from core.helpers):
    - parse_uuid / parse_decimal: Tolerant parsing of metadata values

Views (import from core.views):
    - health_check: Database liveness endpoint
"""
