"""
Tenant model.

Usage:
    from tenants.models import Tenant

    tenant = Tenant.objects.filter(stripe_account_id="acct_123").first()
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin


class Tenant(UUIDPrimaryKeyMixin, BaseModel):
    """
    A business account on the platform.

    Fields:
        name: Display name of the business
        stripe_account_id: Stripe Connect account ID (acct_xxx), if onboarded
    """

    name = models.CharField(
        max_length=200,
        help_text="Display name of the business",
    )

    stripe_account_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Connect account ID (acct_xxx)",
    )

    class Meta:
        db_table = "tenants"
        ordering = ["name"]
        verbose_name = "Tenant"
        verbose_name_plural = "Tenants"

    def __str__(self) -> str:
        return f"Tenant({self.id}, {self.name})"
