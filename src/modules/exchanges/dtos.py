"""Exchange DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``ExchangeItemDTO``: one product offered on one side.
- ``CreateExchangeDTO``: input for a new proposal (both sides' items).
- ``UpdateDeliveryStatusDTO``: input for a delivery progress report.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.exchanges.constants import DeliveryStatus


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class ExchangeItemDTO(BaseModel):
    """Immutable DTO for a single item in a proposal.

    ``total_price`` is accepted for compatibility with clients that send
    it, but is never trusted: see ``line_total``.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(min_length=1, max_length=64)
    product_name: str = Field(min_length=1, max_length=255)
    product_image_url: str = ""
    sku: str = ""
    quantity: int
    unit_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    total_price: Optional[Decimal] = None
    variation_details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CreateExchangeDTO(BaseModel):
    """Immutable DTO for exchange creation requests.

    Validates:
    - both sides offer at least one item.
    ``price_difference`` from the client is ignored; the service
    recomputes it from the item lines.
    """

    model_config = ConfigDict(frozen=True)

    receiver_id: str = Field(min_length=1)
    initiator_address_id: UUID
    initiator_items: List[ExchangeItemDTO]
    receiver_items: List[ExchangeItemDTO]
    initiator_notes: str = ""
    price_difference: Optional[Decimal] = None

    @field_validator("initiator_items", "receiver_items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[ExchangeItemDTO]) -> List[ExchangeItemDTO]:
        if not v:
            raise ValueError("Each side must offer at least one item.")
        return v

    @property
    def initiator_total(self) -> Decimal:
        return sum((item.line_total for item in self.initiator_items), Decimal("0"))

    @property
    def receiver_total(self) -> Decimal:
        return sum((item.line_total for item in self.receiver_items), Decimal("0"))


class UpdateDeliveryStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    delivery_status: DeliveryStatus
    tracking_number: Optional[str] = Field(default=None, max_length=100)
