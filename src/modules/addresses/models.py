"""Shipping address model.

Business rules implemented:
- At most one default address per user (enforced at service layer).
- Deleting an address is a soft delete (``is_active=False``) so that
  exchanges referencing it keep a readable shipping destination.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


def default_country() -> str:
    return settings.EXCHANGE_DEFAULT_COUNTRY


class Address(BaseModel):
    """A user's shipping address."""

    user_id = models.CharField(max_length=255)
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100, default=default_country)
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "addresses"
        ordering = ["-is_default", "-created_at"]
        indexes = [
            models.Index(
                fields=["user_id", "is_active"],
                name="addresses_user_active_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.full_name}, {self.city} ({self.postal_code})"
