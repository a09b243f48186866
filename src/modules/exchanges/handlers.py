"""Event handlers for Exchanges domain events."""

from __future__ import annotations

import structlog

from modules.exchanges.events import (
    ExchangeApproved,
    ExchangeCancelled,
    ExchangeCompleted,
    ExchangeCreated,
    ExchangeRejected,
    ExchangeShipped,
)
from shared.domain.bus import IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class ExchangeProposalHandler(IEventHandler[DomainEvent]):
    """Notifies the counterparty of proposal decisions."""

    def handle(self, event: DomainEvent) -> None:
        logger.info(
            "exchange.event.proposal",
            event_name=event.event_name,
            exchange_id=str(event.aggregate_id),
            actor_id=getattr(event, "actor_id", None),
        )


class ExchangeFulfilmentHandler(IEventHandler[DomainEvent]):
    """Follows goods on the road and the final hand-over."""

    def handle(self, event: DomainEvent) -> None:
        logger.info(
            "exchange.event.fulfilment",
            event_name=event.event_name,
            exchange_id=str(event.aggregate_id),
        )


exchange_proposal_handler = ExchangeProposalHandler()
exchange_fulfilment_handler = ExchangeFulfilmentHandler()

SUBSCRIPTIONS = (
    (ExchangeCreated, exchange_proposal_handler),
    (ExchangeApproved, exchange_proposal_handler),
    (ExchangeRejected, exchange_proposal_handler),
    (ExchangeCancelled, exchange_proposal_handler),
    (ExchangeShipped, exchange_fulfilment_handler),
    (ExchangeCompleted, exchange_fulfilment_handler),
)
