"""Unit tests for Exchange DTOs."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.exchanges.constants import DeliveryStatus
from modules.exchanges.dtos import CreateExchangeDTO, UpdateDeliveryStatusDTO
from tests.builders import make_create_dto, make_item


class TestExchangeItemDTO:
    @pytest.mark.unit
    def test_line_total_is_quantity_times_unit_price(self):
        item = make_item("p", 3, "12.50", total_price=Decimal("1.00"))
        assert item.line_total == Decimal("37.50")

    @pytest.mark.unit
    @pytest.mark.parametrize("quantity", [0, -2])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValidationError, match="Quantity must be at least 1"):
            make_item("p", quantity)

    @pytest.mark.unit
    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError):
            make_item("p", 1, "-1.00")

    @pytest.mark.unit
    def test_is_frozen(self):
        item = make_item()
        with pytest.raises(ValidationError):
            item.quantity = 5


class TestCreateExchangeDTO:
    @pytest.mark.unit
    @pytest.mark.parametrize("side", ["initiator_items", "receiver_items"])
    def test_each_side_needs_an_item(self, side):
        with pytest.raises(ValidationError, match="at least one item"):
            make_create_dto("u-recv", uuid4(), **{side: []})

    @pytest.mark.unit
    def test_side_totals(self):
        dto = make_create_dto(
            "u-recv",
            uuid4(),
            initiator_items=[make_item("a", 2, "10.00"), make_item("b", 1, "5.00")],
        )
        assert dto.initiator_total == Decimal("25.00")
        assert dto.receiver_total == Decimal("150.00")

    @pytest.mark.unit
    def test_address_must_be_a_uuid(self):
        with pytest.raises(ValidationError):
            CreateExchangeDTO(
                receiver_id="u-recv",
                initiator_address_id="not-a-uuid",
                initiator_items=[make_item()],
                receiver_items=[make_item()],
            )

    @pytest.mark.unit
    def test_receiver_is_required(self):
        with pytest.raises(ValidationError):
            make_create_dto("", uuid4())


class TestUpdateDeliveryStatusDTO:
    @pytest.mark.unit
    def test_accepts_known_status(self):
        dto = UpdateDeliveryStatusDTO(delivery_status="delivered")
        assert dto.delivery_status == DeliveryStatus.DELIVERED
        assert dto.tracking_number is None

    @pytest.mark.unit
    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError):
            UpdateDeliveryStatusDTO(delivery_status="lost")
