"""InventoryReservationService: holds on traded items.

Lock and release are best-effort: a failure on one item is logged and
the remaining items are still processed, so a storage hiccup never
fails the approval or completion that triggered it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from django.db import DatabaseError
from django.utils import timezone

from modules.exchanges.exceptions import ExchangeNotFound

if TYPE_CHECKING:
    from modules.exchanges.repositories.interfaces import (
        IExchangeRepository,
        IInventoryHoldRepository,
    )

logger = structlog.get_logger(__name__)


class InventoryReservationService:
    def __init__(
        self,
        exchange_repository: IExchangeRepository,
        hold_repository: IInventoryHoldRepository,
    ) -> None:
        self._exchange_repo = exchange_repository
        self._hold_repo = hold_repository

    def lock_all(self, exchange_id: Any) -> int:
        """Create one active hold per item, owned by the item's side.

        Returns the number of items locked.
        """
        log = logger.bind(exchange_id=str(exchange_id))
        try:
            exchange = self._exchange_repo.get_by_id(str(exchange_id))
            items = self._exchange_repo.get_items(exchange_id) if exchange else []
        except DatabaseError as exc:
            log.error("exchange.hold_items_unreadable", error=str(exc))
            return 0
        if exchange is None:
            raise ExchangeNotFound(f"Exchange {exchange_id} not found.")

        locked = 0
        for item in items:
            owner_id = exchange.party_id(item.side)
            try:
                self._hold_repo.create_hold(item, owner_id)
                self._exchange_repo.mark_item_locked(item.id, timezone.now())
            except DatabaseError as exc:
                log.error(
                    "exchange.hold_failed",
                    item_id=str(item.id),
                    owner_id=owner_id,
                    error=str(exc),
                )
                continue
            locked += 1

        log.info("exchange.inventory_locked", items_locked=locked)
        return locked

    def release_all(self, exchange_id: Any) -> int:
        """Deactivate every active hold of the exchange.

        Safe to call repeatedly: inactive holds and unlocked items are left
        untouched.  Returns the number of holds released (0 on failure).
        """
        log = logger.bind(exchange_id=str(exchange_id))
        now = timezone.now()
        try:
            released = self._hold_repo.release_active(exchange_id, now)
            unlocked = self._exchange_repo.mark_items_released(exchange_id, now)
        except DatabaseError as exc:
            log.error("exchange.hold_release_failed", error=str(exc))
            return 0

        log.info(
            "exchange.inventory_released",
            holds_released=released,
            items_unlocked=unlocked,
        )
        return released
