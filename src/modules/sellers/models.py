"""Seller registration model.

Business rules implemented:
- A user may trade only while holding an ``approved`` registration.
- Registration review happens outside this service; rows are read-only
  from the exchange workflow's point of view.
- One registration per user (``user_id`` unique).
"""

from __future__ import annotations

from django.db import models

from modules.core.models import BaseModel


class RegistrationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class SellerRegistration(BaseModel):
    """A user's application to sell (and barter) on the marketplace.

    ``user_id`` is the opaque identity-provider id, not a foreign key, so
    Auth0 subjects and local Django users are handled the same way.
    """

    user_id = models.CharField(max_length=255, unique=True)
    shop_name = models.CharField(max_length=255)
    display_name = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(
        max_length=20,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING,
    )

    class Meta:
        db_table = "seller_registrations"
        ordering = ["shop_name"]
        indexes = [
            models.Index(fields=["status"], name="seller_reg_status_idx"),
        ]

    @property
    def is_approved(self) -> bool:
        return self.status == RegistrationStatus.APPROVED

    def __str__(self) -> str:
        return f"{self.shop_name} [{self.status}]"
