"""Transactional outbox: event serialisation and relay.

Repositories call ``record_events`` inside their write transaction so the
outbox row commits (or rolls back) together with the business data.
``relay_pending_events`` is the consumer side, driven by the
``core.publish_outbox_events`` Celery task.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable
from uuid import UUID

import structlog

from modules.core.models import OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


def record_events(events: Iterable[DomainEvent], topic: str) -> int:
    """Persist *events* as ``PENDING`` outbox rows. Returns the row count."""
    count = 0
    for event in events:
        OutboxEvent.objects.create(
            event_type=event.event_name,
            aggregate_id=str(event.aggregate_id),
            payload=serialize_event_payload(event),
            topic=topic,
        )
        count += 1
    return count


def relay_pending_events(
    bus: IEventBus, batch_size: int = 100, max_retries: int = 5
) -> Dict[str, int]:
    """Publish pending (and retryable failed) outbox rows in creation order.

    Rows whose event type has no subscriber are marked as published: there
    is nothing in-process to deliver them to.
    """
    queryset = OutboxEvent.objects.deliverable(max_retries)[:batch_size]

    published = failed = 0
    for row in queryset:
        log = logger.bind(outbox_id=str(row.id), event_type=row.event_type)
        event_class = bus.resolve(row.event_type)
        try:
            if event_class is not None:
                bus.publish(event_class.from_payload(row.payload))
        except Exception as exc:  # noqa: BLE001 - recorded on the row for retry
            row.mark_as_failed(str(exc))
            log.error("outbox.publish_failed", error=str(exc))
            failed += 1
            continue
        row.mark_as_published()
        published += 1

    logger.info("outbox.relay_finished", published=published, failed=failed)
    return {"published": published, "failed": failed}


def serialize_event_payload(event: Any) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, list):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value
