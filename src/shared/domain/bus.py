"""Ports for in-process delivery of domain events."""

from __future__ import annotations

from typing import Generic, Iterable, Optional, Protocol, Tuple, Type, TypeVar

from shared.domain.events import DomainEvent

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    def handle(self, event: E) -> None: ...


class IEventBus(Protocol):
    """Publish/subscribe by event class, plus lookup by stored event name."""

    def publish(self, event: DomainEvent) -> None: ...

    def subscribe(self, event_class: Type[E], handler: IEventHandler[E]) -> None: ...

    def subscribe_all(
        self, subscriptions: Iterable[Tuple[Type[DomainEvent], IEventHandler]]
    ) -> None: ...

    def resolve(self, event_name: str) -> Optional[Type[DomainEvent]]: ...
