"""Django ORM implementation of the Exchange repositories.

Each public write is wrapped in ``transaction.atomic()`` (a savepoint
when called inside an outer transaction), so a failing batch leaves no
partial rows behind.

Status changes use conditional ``UPDATE ... WHERE status IN (...)``
statements instead of ``select_for_update()``: the row count tells the
caller whether it won the race.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent
from modules.core.outbox import record_events
from modules.exchanges.models import (
    Exchange,
    ExchangeItem,
    InventoryHold,
    TimelineEntry,
)
from modules.exchanges.repositories.interfaces import (
    IExchangeRepository,
    IInventoryHoldRepository,
    ITimelineRepository,
)

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "exchanges"


class ExchangeDjangoRepository(IExchangeRepository):
    """Concrete Exchange repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root, then children batch by batch)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Exchange:
        exchange = Exchange(**data)
        exchange.save()
        self._flush_events(exchange)
        logger.info(
            "exchange.row_created",
            exchange_id=str(exchange.id),
            exchange_code=exchange.exchange_code,
        )
        return exchange

    @transaction.atomic
    def add_items(
        self, exchange_id: Any, side: str, items: List[Dict[str, Any]]
    ) -> List[ExchangeItem]:
        created = []
        for item_data in items:
            item = ExchangeItem(exchange_id=exchange_id, side=side, **item_data)
            item.save()
            created.append(item)
        logger.info(
            "exchange.items_added",
            exchange_id=str(exchange_id),
            side=side,
            item_count=len(created),
        )
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _aggregate_queryset(self) -> QuerySet:
        return Exchange.objects.select_related(
            "initiator_address", "receiver_address"
        ).prefetch_related("items", "timeline")

    def get_by_id(self, id: str) -> Optional[Exchange]:
        """Returns ``None`` for non-existent or invalid IDs."""
        try:
            return self._aggregate_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        queryset = self._aggregate_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_user(
        self,
        user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> QuerySet:
        if role == "initiator":
            party = Q(initiator_id=user_id)
        elif role == "receiver":
            party = Q(receiver_id=user_id)
        else:
            party = Q(initiator_id=user_id) | Q(receiver_id=user_id)

        queryset = Exchange.objects.filter(party).prefetch_related("items")
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at", "-id")

    def get_items(self, exchange_id: Any) -> List[ExchangeItem]:
        return list(ExchangeItem.objects.filter(exchange_id=exchange_id))

    # ------------------------------------------------------------------
    # Conditional writes
    # ------------------------------------------------------------------

    @transaction.atomic
    def compare_and_set(
        self,
        exchange: Exchange,
        expected_statuses: Iterable[str],
        changes: Dict[str, Any],
    ) -> bool:
        expected = list(expected_statuses)
        changes = {**changes, "updated_at": timezone.now()}
        updated = Exchange.objects.filter(id=exchange.id, status__in=expected).update(
            **changes
        )
        if not updated:
            exchange.clear_domain_events()
            logger.info(
                "exchange.cas_missed",
                exchange_id=str(exchange.id),
                expected=expected,
            )
            return False

        for field, value in changes.items():
            setattr(exchange, field, value)
        self._flush_events(exchange)
        return True

    @transaction.atomic
    def set_if_null(self, exchange: Exchange, field: str, value: Any) -> bool:
        lookup = {"id": exchange.id, f"{field}__isnull": True}
        updated = Exchange.objects.filter(**lookup).update(
            **{field: value, "updated_at": timezone.now()}
        )
        if not updated:
            exchange.clear_domain_events()
            return False
        setattr(exchange, field, value)
        self._flush_events(exchange)
        return True

    @transaction.atomic
    def mark_item_locked(self, item_id: Any, locked_at: datetime) -> None:
        ExchangeItem.objects.filter(id=item_id).update(
            is_locked=True, locked_at=locked_at, released_at=None
        )

    @transaction.atomic
    def mark_items_released(self, exchange_id: Any, released_at: datetime) -> int:
        return ExchangeItem.objects.filter(
            exchange_id=exchange_id, is_locked=True
        ).update(is_locked=False, released_at=released_at)

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Exchange) -> Exchange:
        entity.save()
        self._flush_events(entity)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Hard-delete an exchange, its children and its unsent events."""
        deleted, _ = Exchange.objects.filter(id=id).delete()
        OutboxEvent.objects.filter(
            aggregate_id=str(id), status=EventStatus.PENDING
        ).delete()
        logger.info("exchange.deleted", exchange_id=str(id), rows=deleted)
        return bool(deleted)

    # ------------------------------------------------------------------
    # Outbox
    # ------------------------------------------------------------------

    @staticmethod
    def _flush_events(exchange: Exchange) -> None:
        events = exchange.domain_events
        if events:
            record_events(events, topic=OUTBOX_TOPIC)
            exchange.clear_domain_events()


class InventoryHoldDjangoRepository(IInventoryHoldRepository):
    """Concrete InventoryHold repository backed by Django ORM."""

    @transaction.atomic
    def create_hold(self, item: ExchangeItem, owner_id: str) -> InventoryHold:
        hold = InventoryHold(
            exchange_item_id=item.id,
            user_id=owner_id,
            product_id=item.product_id,
            quantity_held=item.quantity,
        )
        hold.save()
        return hold

    @transaction.atomic
    def release_active(self, exchange_id: Any, released_at: datetime) -> int:
        return InventoryHold.objects.filter(
            exchange_item__exchange_id=exchange_id, is_active=True
        ).update(is_active=False, released_at=released_at)

    def list_for_exchange(self, exchange_id: Any) -> List[InventoryHold]:
        return list(
            InventoryHold.objects.filter(exchange_item__exchange_id=exchange_id)
        )


class TimelineDjangoRepository(ITimelineRepository):
    """Concrete TimelineEntry repository backed by Django ORM."""

    @transaction.atomic
    def add(self, data: Dict[str, Any]) -> TimelineEntry:
        entry = TimelineEntry(**data)
        entry.save()
        return entry

    def list_for_exchange(self, exchange_id: Any) -> List[TimelineEntry]:
        return list(
            TimelineEntry.objects.filter(exchange_id=exchange_id).order_by(
                "-created_at", "-id"
            )
        )
