"""TimelineRecorder: append-only audit log per exchange."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import DatabaseError

if TYPE_CHECKING:
    from modules.core.users import IUserDirectory
    from modules.exchanges.models import TimelineEntry
    from modules.exchanges.repositories.interfaces import ITimelineRepository

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "System"


class TimelineRecorder:
    """Writes timeline entries, enriching them with the actor's name.

    Entries are written after the transition they describe has been
    stored, so both steps are best-effort: a failing name look-up falls
    back to the raw id, and a failing write is logged and yields ``None``
    rather than failing a transition that already happened.
    """

    def __init__(
        self,
        repository: ITimelineRepository,
        user_directory: IUserDirectory,
    ) -> None:
        self._repo = repository
        self._users = user_directory

    def add_entry(
        self,
        exchange_id: Any,
        action: str,
        description: str,
        actor_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[TimelineEntry]:
        try:
            entry = self._repo.add(
                {
                    "exchange_id": exchange_id,
                    "action": action,
                    "description": description,
                    "actor_id": actor_id,
                    "actor_name": self._actor_name(actor_id),
                    "metadata": metadata or {},
                }
            )
        except DatabaseError as exc:
            logger.error(
                "exchange.timeline_write_failed",
                exchange_id=str(exchange_id),
                action=action,
                error=str(exc),
            )
            return None
        logger.info(
            "exchange.timeline_entry_added",
            exchange_id=str(exchange_id),
            action=action,
            actor_id=actor_id,
        )
        return entry

    def list_entries(self, exchange_id: Any) -> List[TimelineEntry]:
        """Entries of *exchange_id*, newest first."""
        return self._repo.list_for_exchange(exchange_id)

    def _actor_name(self, actor_id: Optional[str]) -> str:
        if actor_id is None:
            return SYSTEM_ACTOR
        try:
            name = self._users.display_name(actor_id)
        except Exception as exc:  # noqa: BLE001 - enrichment only
            logger.warning(
                "exchange.actor_lookup_failed", actor_id=actor_id, error=str(exc)
            )
            return actor_id
        return name or actor_id
