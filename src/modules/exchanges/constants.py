"""Exchange domain constants.

Defines status vocabularies and the valid transitions of the exchange
state machine.
"""

from django.db import models


class ExchangeStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"
    IN_TRANSIT = "in_transit", "In transit"
    COMPLETED = "completed", "Completed"


class DeliveryStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SHIPPED = "shipped", "Shipped"
    IN_TRANSIT = "in_transit", "In transit"
    DELIVERED = "delivered", "Delivered"
    FAILED = "failed", "Failed"


class ExchangeSide(models.TextChoices):
    INITIATOR = "initiator", "Initiator"
    RECEIVER = "receiver", "Receiver"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"


class TimelineAction:
    CREATED = "exchange_created"
    APPROVED = "exchange_approved"
    REJECTED = "exchange_rejected"
    CANCELLED = "exchange_cancelled"
    DELIVERY_UPDATED = "delivery_status_updated"
    COMPLETED = "exchange_completed"


VALID_TRANSITIONS: dict[str, set[str]] = {
    ExchangeStatus.PENDING: {
        ExchangeStatus.APPROVED,
        ExchangeStatus.REJECTED,
        ExchangeStatus.CANCELLED,
    },
    ExchangeStatus.APPROVED: {ExchangeStatus.IN_TRANSIT, ExchangeStatus.COMPLETED},
    ExchangeStatus.IN_TRANSIT: {ExchangeStatus.COMPLETED},
    ExchangeStatus.REJECTED: set(),
    ExchangeStatus.CANCELLED: set(),
    ExchangeStatus.COMPLETED: set(),
}

TERMINAL_STATES: set[str] = {
    ExchangeStatus.REJECTED,
    ExchangeStatus.CANCELLED,
    ExchangeStatus.COMPLETED,
}

# Statuses in which the parties may report delivery progress.
DELIVERY_OPEN_STATES: set[str] = {ExchangeStatus.APPROVED, ExchangeStatus.IN_TRANSIT}

# Delivery statuses that put the goods on the road.
SHIPPING_STATUSES: set[str] = {DeliveryStatus.SHIPPED, DeliveryStatus.IN_TRANSIT}

HOLD_REASON_EXCHANGE = "exchange"

EXCHANGE_CODE_MAX_RETRIES = 5
