"""Unit tests for DeliveryTracker against in-memory repositories."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from django.db import DatabaseError

from modules.exchanges.constants import DeliveryStatus, ExchangeStatus, TimelineAction
from modules.exchanges.dtos import UpdateDeliveryStatusDTO
from modules.exchanges.exceptions import (
    ExchangeForbidden,
    ExchangeNotFound,
    InvalidExchangeStatus,
)

pytestmark = pytest.mark.unit


def _update(world, exchange, caller, status, tracking=None):
    return world.delivery.update_delivery_status(
        str(exchange.id),
        caller,
        UpdateDeliveryStatusDTO(delivery_status=status, tracking_number=tracking),
    )


class TestUpdateDeliveryStatus:
    def test_caller_only_updates_own_side(self, fake_world, fake_approved):
        exchange = _update(
            fake_world, fake_approved, "u-recv", DeliveryStatus.SHIPPED, "TRK-R1"
        )

        assert exchange.receiver_delivery_status == DeliveryStatus.SHIPPED
        assert exchange.receiver_tracking_number == "TRK-R1"
        assert exchange.initiator_delivery_status == DeliveryStatus.PENDING
        assert exchange.initiator_tracking_number == ""

    def test_shipping_moves_exchange_in_transit(self, fake_world, fake_approved):
        exchange = _update(fake_world, fake_approved, "u-init", DeliveryStatus.SHIPPED)

        assert exchange.status == ExchangeStatus.IN_TRANSIT
        assert exchange.shipped_at is not None

    def test_unwritable_timeline_keeps_the_shipment(self, fake_world, fake_approved):
        with patch.object(
            fake_world.timeline_repo, "add", side_effect=DatabaseError("down")
        ):
            exchange = _update(
                fake_world, fake_approved, "u-init", DeliveryStatus.SHIPPED
            )

        assert exchange.status == ExchangeStatus.IN_TRANSIT
        row = fake_world.exchanges.row(fake_approved.id)
        assert row["status"] == ExchangeStatus.IN_TRANSIT
        assert row["initiator_delivery_status"] == DeliveryStatus.SHIPPED

    def test_in_transit_report_also_moves_exchange_in_transit(
        self, fake_world, fake_approved
    ):
        exchange = _update(
            fake_world, fake_approved, "u-recv", DeliveryStatus.IN_TRANSIT
        )
        assert exchange.status == ExchangeStatus.IN_TRANSIT

    def test_first_shipment_sets_shipped_at_once(self, fake_world, fake_approved):
        first = _update(fake_world, fake_approved, "u-init", DeliveryStatus.SHIPPED)
        second = _update(fake_world, fake_approved, "u-recv", DeliveryStatus.SHIPPED)

        assert second.shipped_at == first.shipped_at
        events = [e.event_name for e in fake_world.exchanges.events]
        assert events.count("ExchangeShipped") == 1

    def test_failed_delivery_keeps_status(self, fake_world, fake_approved):
        exchange = _update(fake_world, fake_approved, "u-init", DeliveryStatus.FAILED)

        assert exchange.status == ExchangeStatus.APPROVED
        assert exchange.initiator_delivery_status == DeliveryStatus.FAILED
        assert exchange.shipped_at is None

    def test_timeline_entry_carries_side_and_status(self, fake_world, fake_approved):
        _update(fake_world, fake_approved, "u-recv", DeliveryStatus.SHIPPED, "TRK-9")

        latest = fake_world.timeline.list_entries(fake_approved.id)[0]
        assert latest.action == TimelineAction.DELIVERY_UPDATED
        assert latest.actor_id == "u-recv"
        assert latest.description == "Delivery status updated to shipped by receiver"
        assert latest.metadata == {
            "side": "receiver",
            "delivery_status": "shipped",
            "tracking_number": "TRK-9",
        }

    def test_one_side_delivered_does_not_complete(self, fake_world, fake_approved):
        exchange = _update(
            fake_world, fake_approved, "u-init", DeliveryStatus.DELIVERED
        )

        assert exchange.status == ExchangeStatus.APPROVED
        assert fake_world.hook.transfers == []

    def test_both_delivered_completes_exchange(self, fake_world, fake_approved):
        _update(fake_world, fake_approved, "u-init", DeliveryStatus.SHIPPED)
        _update(fake_world, fake_approved, "u-recv", DeliveryStatus.SHIPPED)
        _update(fake_world, fake_approved, "u-init", DeliveryStatus.DELIVERED)
        exchange = _update(
            fake_world, fake_approved, "u-recv", DeliveryStatus.DELIVERED
        )

        assert exchange.status == ExchangeStatus.COMPLETED
        assert exchange.completed_at is not None
        assert exchange.delivered_at is not None
        assert len(fake_world.hook.transfers) == 2
        assert fake_world.timeline_repo.actions(fake_approved.id)[-2:] == [
            TimelineAction.DELIVERY_UPDATED,
            TimelineAction.COMPLETED,
        ]

    def test_outsider_is_forbidden(self, fake_world, fake_approved):
        with pytest.raises(ExchangeForbidden):
            _update(fake_world, fake_approved, "u-other", DeliveryStatus.SHIPPED)

    def test_pending_exchange_rejects_updates(self, fake_world, fake_pending):
        with pytest.raises(InvalidExchangeStatus):
            _update(fake_world, fake_pending, "u-init", DeliveryStatus.SHIPPED)

    def test_completed_exchange_rejects_updates(self, fake_world, fake_approved):
        fake_world.state_machine.complete_exchange(str(fake_approved.id))

        with pytest.raises(InvalidExchangeStatus):
            _update(fake_world, fake_approved, "u-init", DeliveryStatus.DELIVERED)

    def test_unknown_exchange(self, fake_world):
        with pytest.raises(ExchangeNotFound):
            fake_world.delivery.update_delivery_status(
                "018f0000-0000-7000-8000-000000000000",
                "u-init",
                UpdateDeliveryStatusDTO(delivery_status=DeliveryStatus.SHIPPED),
            )
