"""Domain events on the Exchange aggregate and their in-process bus."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.exchanges.constants import ExchangeStatus
from modules.exchanges.events import ExchangeCreated, ExchangeShipped
from modules.exchanges.models import Exchange
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


def _exchange() -> Exchange:
    return Exchange(
        initiator_id="u-init",
        receiver_id="u-recv",
        initiator_address_id=uuid4(),
        status=ExchangeStatus.PENDING,
        price_difference=Decimal("0.00"),
    )


def test_exchange_registers_and_clears_domain_events():
    exchange = _exchange()

    assert exchange.domain_events == []

    event = ExchangeCreated(aggregate_id=exchange.id, actor_id="u-init")
    exchange.add_domain_event(event)

    assert exchange.domain_events == [event]
    assert event.event_name == "ExchangeCreated"

    exchange.clear_domain_events()
    assert exchange.domain_events == []


def test_domain_events_property_returns_a_copy():
    exchange = _exchange()
    exchange.add_domain_event(ExchangeShipped(aggregate_id=exchange.id))

    exchange.domain_events.clear()

    assert len(exchange.domain_events) == 1


def test_bus_resolves_only_subscribed_event_names():
    bus = InMemoryEventBus()
    bus.subscribe(ExchangeShipped, object())

    assert bus.resolve("ExchangeShipped") is ExchangeShipped
    assert bus.resolve("ExchangeCreated") is None


class _Recorder:
    def __init__(self, fail=False):
        self.seen = []
        self.fail = fail

    def handle(self, event):
        self.seen.append(event)
        if self.fail:
            raise RuntimeError("handler down")


def test_subscribe_all_registers_each_pair_once():
    bus = InMemoryEventBus()
    recorder = _Recorder()

    bus.subscribe_all([(ExchangeCreated, recorder), (ExchangeCreated, recorder)])
    bus.publish(ExchangeCreated(aggregate_id=uuid4()))

    assert len(recorder.seen) == 1


def test_handler_error_reaches_the_publisher():
    bus = InMemoryEventBus()
    bus.subscribe(ExchangeShipped, _Recorder(fail=True))

    with pytest.raises(RuntimeError, match="handler down"):
        bus.publish(ExchangeShipped(aggregate_id=uuid4()))
