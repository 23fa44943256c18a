"""
Helper functions for parsing loosely-typed external payloads.

Stripe metadata is a flat ``str -> str`` bag filled in by whichever flow
created the PaymentIntent or Checkout Session. These helpers turn such
values into typed Python objects, returning None for anything absent or
malformed instead of raising.

Usage:
    from core.helpers import parse_decimal, parse_uuid

    booking_id = parse_uuid(metadata.get("booking_id"))
    deposit = parse_decimal(metadata.get("deposit"))
"""

from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any


def parse_uuid(value: Any) -> uuid.UUID | None:
    """
    Parse a UUID from a string or UUID value.

    Args:
        value: Raw value (str, UUID or None)

    Returns:
        The UUID, or None if the value is empty or not a valid UUID

    Example:
        parse_uuid("550e8400-e29b-41d4-a716-446655440000")  # UUID(...)
        parse_uuid("not-a-uuid")  # None
    """
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, TypeError, AttributeError):
        return None


def parse_decimal(value: Any) -> Decimal | None:
    """
    Parse a finite Decimal from a string or number.

    Args:
        value: Raw value ("12.50", 12.5, None, ...)

    Returns:
        The Decimal, or None if empty, malformed, NaN or infinite
    """
    if value is None or value == "":
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed

