"""Exchange repository interfaces.

The exchange services depend only on these contracts.  Each method is a
single unit of work against the store; the services never assume that
two calls commit together, which is why creation compensates by hand
and every status change is a conditional (compare-and-set) write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.exchanges.models import (
        Exchange,
        ExchangeItem,
        InventoryHold,
        TimelineEntry,
    )


class IExchangeRepository(IRepository["Exchange"]):
    """Repository contract for the Exchange aggregate root."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Exchange]:
        """Retrieve an exchange with items, timeline and addresses loaded."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Exchange:
        """Insert the exchange row (no items) and its pending events."""

    @abstractmethod
    def add_items(
        self, exchange_id: Any, side: str, items: List[Dict[str, Any]]
    ) -> List[ExchangeItem]:
        """Insert one side's item batch; all rows or none."""

    @abstractmethod
    def get_items(self, exchange_id: Any) -> List[ExchangeItem]:
        """Items of both sides of an exchange."""

    @abstractmethod
    def list_for_user(
        self,
        user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Iterable[Exchange]:
        """Exchanges where *user_id* plays *role* (either when ``None``).

        Ordered newest first.
        """

    @abstractmethod
    def compare_and_set(
        self,
        exchange: Exchange,
        expected_statuses: Iterable[str],
        changes: Dict[str, Any],
    ) -> bool:
        """Apply *changes* only if the stored status is one of *expected_statuses*.

        On success the in-memory *exchange* is updated and its pending
        domain events are persisted with the write.  Returns ``False``
        when the precondition no longer holds (nothing is written).
        """

    @abstractmethod
    def set_if_null(self, exchange: Exchange, field: str, value: Any) -> bool:
        """Set *field* only if it is still ``NULL`` (first write wins)."""

    @abstractmethod
    def mark_item_locked(self, item_id: Any, locked_at: datetime) -> None:
        """Flag an item as covered by an active hold."""

    @abstractmethod
    def mark_items_released(self, exchange_id: Any, released_at: datetime) -> int:
        """Clear ``is_locked`` on every locked item of the exchange."""


class IInventoryHoldRepository(ABC):
    """Repository contract for inventory holds."""

    @abstractmethod
    def create_hold(self, item: ExchangeItem, owner_id: str) -> InventoryHold:
        """Insert an active hold covering the whole item quantity."""

    @abstractmethod
    def release_active(self, exchange_id: Any, released_at: datetime) -> int:
        """Deactivate every active hold of the exchange. Returns the count."""

    @abstractmethod
    def list_for_exchange(self, exchange_id: Any) -> List[InventoryHold]:
        """All holds (active or released) of an exchange's items."""


class ITimelineRepository(ABC):
    """Repository contract for the append-only exchange timeline."""

    @abstractmethod
    def add(self, data: Dict[str, Any]) -> TimelineEntry:
        """Append an entry."""

    @abstractmethod
    def list_for_exchange(self, exchange_id: Any) -> List[TimelineEntry]:
        """Entries of an exchange, newest first."""
