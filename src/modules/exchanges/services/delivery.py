"""DeliveryTracker: per-side shipment status and mutual-delivery detection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import DatabaseError
from django.utils import timezone

from modules.exchanges.constants import (
    DELIVERY_OPEN_STATES,
    SHIPPING_STATUSES,
    ExchangeStatus,
    TimelineAction,
)
from modules.exchanges.events import ExchangeShipped
from modules.exchanges.exceptions import (
    ExchangeConflict,
    ExchangeForbidden,
    ExchangeNotFound,
    ExchangeStorageError,
    InvalidExchangeStatus,
)

if TYPE_CHECKING:
    from modules.exchanges.dtos import UpdateDeliveryStatusDTO
    from modules.exchanges.models import Exchange
    from modules.exchanges.repositories.interfaces import IExchangeRepository
    from modules.exchanges.services.state_machine import ExchangeStateMachine
    from modules.exchanges.services.timeline import TimelineRecorder

logger = structlog.get_logger(__name__)


class DeliveryTracker:
    """Records each party's delivery progress.

    A party only ever writes its own side's fields.  Once both sides
    report ``delivered`` the exchange is handed to
    ``ExchangeStateMachine.complete_exchange``, which tolerates being
    called by both parties' updates.
    """

    def __init__(
        self,
        exchange_repository: IExchangeRepository,
        state_machine: ExchangeStateMachine,
        timeline: TimelineRecorder,
    ) -> None:
        self._repo = exchange_repository
        self._state_machine = state_machine
        self._timeline = timeline

    def update_delivery_status(
        self, exchange_id: str, caller_id: str, dto: UpdateDeliveryStatusDTO
    ) -> Exchange:
        """Raises:
        ExchangeNotFound, ExchangeForbidden, InvalidExchangeStatus,
        ExchangeConflict (the exchange left approved/in_transit mid-update).
        """
        exchange = self._load(exchange_id)
        side = exchange.side_of(caller_id)
        if side is None:
            raise ExchangeForbidden("You are not a party to this exchange.")
        if exchange.status not in DELIVERY_OPEN_STATES:
            raise InvalidExchangeStatus(
                f"Cannot update delivery in status {exchange.status}."
            )

        log = logger.bind(
            exchange_id=str(exchange.id),
            caller_id=caller_id,
            side=side.value,
            delivery_status=dto.delivery_status,
        )

        changes = {f"{side.value}_delivery_status": dto.delivery_status}
        if dto.tracking_number:
            changes[f"{side.value}_tracking_number"] = dto.tracking_number
        ships = dto.delivery_status in SHIPPING_STATUSES
        if ships:
            changes["status"] = ExchangeStatus.IN_TRANSIT

        try:
            written = self._repo.compare_and_set(
                exchange, DELIVERY_OPEN_STATES, changes
            )
            if written and ships:
                exchange.add_domain_event(
                    ExchangeShipped(aggregate_id=exchange.id, actor_id=caller_id)
                )
                if self._repo.set_if_null(exchange, "shipped_at", timezone.now()):
                    log.info("exchange.shipped")
        except DatabaseError as exc:
            log.error("exchange.delivery_write_failed", error=str(exc))
            raise ExchangeStorageError("Failed to update delivery status.") from exc

        if not written:
            current = self._load(exchange_id)
            log.warning("exchange.delivery_conflict", current_status=current.status)
            raise ExchangeConflict(
                f"Exchange status changed to {current.status} by another request."
            )

        self._timeline.add_entry(
            exchange.id,
            TimelineAction.DELIVERY_UPDATED,
            f"Delivery status updated to {dto.delivery_status} by {side.value}",
            actor_id=caller_id,
            metadata={
                "side": side.value,
                "delivery_status": dto.delivery_status,
                "tracking_number": dto.tracking_number or "",
            },
        )
        log.info("exchange.delivery_updated")

        refreshed = self._load(exchange_id)
        if refreshed.both_delivered:
            log.info("exchange.mutual_delivery_detected")
            self._state_machine.complete_exchange(str(exchange.id))
            refreshed = self._load(exchange_id)
        return refreshed

    def _load(self, exchange_id: str) -> Exchange:
        try:
            exchange = self._repo.get_by_id(str(exchange_id))
        except DatabaseError as exc:
            raise ExchangeStorageError("Failed to read exchange.") from exc
        if exchange is None:
            raise ExchangeNotFound(f"Exchange {exchange_id} not found.")
        return exchange
