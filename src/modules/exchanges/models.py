"""Exchange, ExchangeItem, InventoryHold and TimelineEntry models.

Business rules implemented:
- Initiator and receiver are always different users (check constraint).
- ExchangeItem snapshots product name, image and SKU at creation time;
  the snapshot is never re-synced with the live catalog.
- ExchangeItem ``total_price`` is always ``quantity * unit_price``.
- At most one *active* InventoryHold per ExchangeItem (partial unique
  constraint).
- TimelineEntry rows are append-only.
- Exchange code auto-generated as human-readable identifier.
"""

from __future__ import annotations

import secrets
from decimal import Decimal
from typing import Any, Optional

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.exchanges.constants import (
    EXCHANGE_CODE_MAX_RETRIES,
    HOLD_REASON_EXCHANGE,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DeliveryStatus,
    ExchangeSide,
    ExchangeStatus,
    PaymentStatus,
)
from shared.domain.events import DomainEventMixin


def default_payment_method() -> str:
    return settings.EXCHANGE_DEFAULT_PAYMENT_METHOD


class Exchange(DomainEventMixin, BaseModel):
    """Exchange aggregate root.

    ``exchange_code`` is a human-readable identifier generated on first
    save (format: ``EXC-YYYYMMDD-XXXX``).  Party ids are opaque user ids
    from the identity provider.

    ``price_difference`` is what the initiator owes the receiver
    (negative when the receiver owes the initiator).
    """

    exchange_code = models.CharField(max_length=20, unique=True, editable=False)
    initiator_id = models.CharField(max_length=255)
    receiver_id = models.CharField(max_length=255)
    status = models.CharField(
        max_length=20,
        choices=ExchangeStatus.choices,
        default=ExchangeStatus.PENDING,
    )
    payment_method = models.CharField(max_length=20, default=default_payment_method)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    price_difference = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    initiator_address = models.ForeignKey(
        "addresses.Address",
        on_delete=models.PROTECT,
        related_name="+",
    )
    receiver_address = models.ForeignKey(
        "addresses.Address",
        on_delete=models.PROTECT,
        related_name="+",
        null=True,
        blank=True,
    )
    initiator_notes = models.TextField(blank=True, default="")
    receiver_notes = models.TextField(blank=True, default="")
    cancellation_reason = models.TextField(blank=True, default="")

    initiator_delivery_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
    )
    receiver_delivery_status = models.CharField(
        max_length=20,
        choices=DeliveryStatus.choices,
        default=DeliveryStatus.PENDING,
    )
    initiator_tracking_number = models.CharField(
        max_length=100, blank=True, default=""
    )
    receiver_tracking_number = models.CharField(
        max_length=100, blank=True, default=""
    )

    approved_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "exchanges"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["initiator_id", "-created_at"], name="exchanges_initiator_idx"
            ),
            models.Index(
                fields=["receiver_id", "-created_at"], name="exchanges_receiver_idx"
            ),
            models.Index(fields=["status"], name="exchanges_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(initiator_id=models.F("receiver_id")),
                name="exchanges_distinct_parties",
            ),
        ]

    # ------------------------------------------------------------------
    # State Machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        allowed = VALID_TRANSITIONS.get(self.status, set())
        return new_status in allowed

    # ------------------------------------------------------------------
    # Sides
    # ------------------------------------------------------------------

    def side_of(self, user_id: str) -> Optional[ExchangeSide]:
        """Which side *user_id* is on, or ``None`` for a non-party."""
        if user_id == self.initiator_id:
            return ExchangeSide.INITIATOR
        if user_id == self.receiver_id:
            return ExchangeSide.RECEIVER
        return None

    def party_id(self, side: str) -> str:
        if side == ExchangeSide.INITIATOR:
            return self.initiator_id
        return self.receiver_id

    @property
    def both_delivered(self) -> bool:
        return (
            self.initiator_delivery_status == DeliveryStatus.DELIVERED
            and self.receiver_delivery_status == DeliveryStatus.DELIVERED
        )

    # ------------------------------------------------------------------
    # Exchange code generation
    # ------------------------------------------------------------------

    @staticmethod
    def generate_exchange_code() -> str:
        """Generate a human-readable code: ``EXC-YYYYMMDD-XXXX``."""
        now = timezone.now()
        suffix = secrets.token_hex(2).upper()
        return f"EXC-{now:%Y%m%d}-{suffix}"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.exchange_code:
            for _ in range(EXCHANGE_CODE_MAX_RETRIES):
                candidate = self.generate_exchange_code()
                if not Exchange.objects.filter(exchange_code=candidate).exists():
                    self.exchange_code = candidate
                    break
            else:
                raise RuntimeError(
                    f"Failed to generate unique exchange_code after "
                    f"{EXCHANGE_CODE_MAX_RETRIES} attempts"
                )
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.exchange_code} ({self.status})"


class ExchangeItem(BaseModel):
    """One traded product on one side of an exchange.

    Product fields are a **snapshot** taken when the proposal is made.
    ``is_locked`` mirrors whether an inventory hold is in force.
    """

    exchange = models.ForeignKey(
        "exchanges.Exchange",
        on_delete=models.CASCADE,
        related_name="items",
    )
    side = models.CharField(max_length=10, choices=ExchangeSide.choices)
    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255)
    product_image_url = models.URLField(max_length=500, blank=True, default="")
    sku = models.CharField(max_length=100, blank=True, default="")
    variation_details = models.JSONField(default=dict, blank=True)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(
        max_digits=12, decimal_places=2, editable=False
    )
    is_locked = models.BooleanField(default=False)
    locked_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "exchange_items"
        ordering = ["side", "created_at", "id"]
        indexes = [
            models.Index(fields=["exchange", "side"], name="exchange_items_side_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="exchange_items_quantity_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(unit_price__gte=0),
                name="exchange_items_price_non_negative",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.total_price = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product_name} x{self.quantity} [{self.side}]"


class InventoryHold(BaseModel):
    """Stock committed to an approved exchange until it completes."""

    exchange_item = models.ForeignKey(
        "exchanges.ExchangeItem",
        on_delete=models.CASCADE,
        related_name="holds",
    )
    user_id = models.CharField(max_length=255)
    product_id = models.CharField(max_length=64)
    quantity_held = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    hold_reason = models.CharField(max_length=50, default=HOLD_REASON_EXCHANGE)
    is_active = models.BooleanField(default=True)
    released_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "inventory_holds"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["user_id", "is_active"], name="holds_user_active_idx"
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["exchange_item"],
                condition=models.Q(is_active=True),
                name="holds_one_active_per_item",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity_held__gte=1),
                name="holds_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        state = "active" if self.is_active else "released"
        return f"hold {self.quantity_held} of {self.product_id} ({state})"


class TimelineEntry(BaseModel):
    """Append-only audit record of an action on an exchange.

    ``actor_id`` is ``None`` for automated transitions (shown as
    ``System``).  ``actor_name`` is resolved when the entry is written.
    """

    exchange = models.ForeignKey(
        "exchanges.Exchange",
        on_delete=models.CASCADE,
        related_name="timeline",
    )
    action = models.CharField(max_length=50)
    description = models.TextField()
    actor_id = models.CharField(max_length=255, null=True, blank=True)  # noqa: DJ01
    actor_name = models.CharField(max_length=255)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "exchange_timeline"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(
                fields=["exchange", "-created_at"],
                name="timeline_exchange_created_idx",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValueError("Timeline entries are immutable.")
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.action} by {self.actor_name}"
