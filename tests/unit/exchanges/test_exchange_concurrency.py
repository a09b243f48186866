"""Racing transitions against the in-memory repositories.

Both callers are held at the conditional write until the other has read
the exchange, so each test exercises a genuine lost race.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from modules.exchanges.constants import (
    DeliveryStatus,
    ExchangeStatus,
    TimelineAction,
)
from modules.exchanges.dtos import UpdateDeliveryStatusDTO
from modules.exchanges.exceptions import ExchangeConflict

pytestmark = pytest.mark.unit


def _gate_writes(repo, parties=2):
    """Make the first *parties* compare-and-set calls start together."""
    barrier = threading.Barrier(parties, timeout=5)
    original = repo.compare_and_set

    def gated(exchange, expected, changes):
        try:
            barrier.wait()
        except threading.BrokenBarrierError:
            pass
        return original(exchange, expected, changes)

    repo.compare_and_set = gated


def _outcome(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except ExchangeConflict as exc:
        return exc


def test_concurrent_completions_complete_once(fake_world, fake_approved):
    _gate_writes(fake_world.exchanges)
    exchange_id = str(fake_approved.id)

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [
            pool.submit(fake_world.state_machine.complete_exchange, exchange_id)
            for _ in range(2)
        ]
        results = sorted(f.result() for f in futures)

    assert results == [False, True]
    assert fake_world.exchanges.row(exchange_id)["status"] == ExchangeStatus.COMPLETED
    assert len(fake_world.hook.transfers) == 2
    actions = fake_world.timeline_repo.actions(exchange_id)
    assert actions.count(TimelineAction.COMPLETED) == 1
    events = [e.event_name for e in fake_world.exchanges.events]
    assert events.count("ExchangeCompleted") == 1


def test_reject_and_cancel_race_has_one_winner(fake_world, fake_pending):
    _gate_writes(fake_world.exchanges)
    exchange_id = str(fake_pending.id)

    with ThreadPoolExecutor(max_workers=2) as pool:
        reject = pool.submit(
            _outcome, fake_world.state_machine.reject_exchange, exchange_id, "u-recv"
        )
        cancel = pool.submit(
            _outcome, fake_world.state_machine.cancel_exchange, exchange_id, "u-init"
        )
        outcomes = [reject.result(), cancel.result()]

    conflicts = [o for o in outcomes if isinstance(o, ExchangeConflict)]
    assert len(conflicts) == 1

    final = fake_world.exchanges.row(exchange_id)["status"]
    assert final in (ExchangeStatus.REJECTED, ExchangeStatus.CANCELLED)
    decisions = [
        action
        for action in fake_world.timeline_repo.actions(exchange_id)
        if action in (TimelineAction.REJECTED, TimelineAction.CANCELLED)
    ]
    assert len(decisions) == 1


def test_final_deliveries_reported_together_complete_once(
    fake_world, fake_approved
):
    exchange_id = str(fake_approved.id)
    for caller in ("u-init", "u-recv"):
        fake_world.delivery.update_delivery_status(
            exchange_id,
            caller,
            UpdateDeliveryStatusDTO(delivery_status=DeliveryStatus.SHIPPED),
        )

    def deliver(caller):
        return fake_world.delivery.update_delivery_status(
            exchange_id,
            caller,
            UpdateDeliveryStatusDTO(delivery_status=DeliveryStatus.DELIVERED),
        )

    with ThreadPoolExecutor(max_workers=2) as pool:
        list(pool.map(deliver, ["u-init", "u-recv"]))

    row = fake_world.exchanges.row(exchange_id)
    assert row["status"] == ExchangeStatus.COMPLETED
    assert row["initiator_delivery_status"] == DeliveryStatus.DELIVERED
    assert row["receiver_delivery_status"] == DeliveryStatus.DELIVERED
    actions = fake_world.timeline_repo.actions(exchange_id)
    assert actions.count(TimelineAction.COMPLETED) == 1
    assert len(fake_world.hook.transfers) == 2
