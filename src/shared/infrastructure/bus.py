"""In-process event bus fed by the outbox relay."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple, Type

import structlog

from shared.domain.bus import IEventBus, IEventHandler
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class InMemoryEventBus(IEventBus):
    """Dispatches each event to the handlers subscribed to its exact class.

    Handler errors propagate to the publisher, which is how the outbox
    relay learns that a row must be retried.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}
        self._by_name: Dict[str, Type[DomainEvent]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)
        self._by_name[event_class.__name__] = event_class

    def subscribe_all(
        self, subscriptions: Iterable[Tuple[Type[DomainEvent], IEventHandler]]
    ) -> None:
        for event_class, handler in subscriptions:
            self.subscribe(event_class, handler)

    def publish(self, event: DomainEvent) -> None:
        handlers = self._handlers.get(type(event), [])
        if not handlers:
            logger.debug("event_bus.unhandled", event_name=event.event_name)
        for handler in handlers:
            handler.handle(event)

    def resolve(self, event_name: str) -> Optional[Type[DomainEvent]]:
        """The subscribed class stored in the outbox as *event_name*."""
        return self._by_name.get(event_name)


# Process-wide bus; module apps subscribe their handlers in ``ready()``.
event_bus = InMemoryEventBus()
