"""Extension point for goods changing hands on completion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from modules.exchanges.models import ExchangeItem

logger = structlog.get_logger(__name__)


class ExchangeCompletionHook(ABC):
    """Called once per item after an exchange completes.

    Implementations route the traded good into *new_owner_id*'s stock.
    """

    @abstractmethod
    def on_exchange_completed(self, item: ExchangeItem, new_owner_id: str) -> None:
        ...


class LoggingCompletionHook(ExchangeCompletionHook):
    """Default hook: records the hand-over, moves no stock."""

    def on_exchange_completed(self, item: ExchangeItem, new_owner_id: str) -> None:
        logger.info(
            "exchange.item_transferred",
            exchange_id=str(item.exchange_id),
            item_id=str(item.id),
            product_id=item.product_id,
            quantity=item.quantity,
            new_owner_id=new_owner_id,
        )
