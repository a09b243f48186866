"""ExchangeStateMachine: approve / reject / cancel / complete.

Every transition re-reads the exchange, checks party, role and status,
then writes with a compare-and-set on the status it just read.  Losing
that race raises ``ExchangeConflict`` instead of applying the transition
twice (e.g. a reject and a cancel landing together).

Completion is the exception: it is triggered by whichever delivery
update observes both sides delivered, possibly twice, so a lost race
against another completion is a silent no-op.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

import structlog
from django.db import DatabaseError
from django.utils import timezone

from modules.addresses.exceptions import AddressNotFound
from modules.exchanges.constants import (
    ExchangeSide,
    ExchangeStatus,
    TimelineAction,
)
from modules.exchanges.events import (
    ExchangeApproved,
    ExchangeCancelled,
    ExchangeCompleted,
    ExchangeRejected,
)
from modules.exchanges.exceptions import (
    ExchangeConflict,
    ExchangeForbidden,
    ExchangeNotFound,
    ExchangeStorageError,
    ExchangeValidationError,
    InvalidExchangeStatus,
)

if TYPE_CHECKING:
    from modules.addresses.services import AddressService
    from modules.exchanges.models import Exchange, ExchangeItem
    from modules.exchanges.repositories.interfaces import IExchangeRepository
    from modules.exchanges.services.hooks import ExchangeCompletionHook
    from modules.exchanges.services.inventory import InventoryReservationService
    from modules.exchanges.services.timeline import TimelineRecorder

logger = structlog.get_logger(__name__)

COMPLETABLE_STATES = (ExchangeStatus.APPROVED, ExchangeStatus.IN_TRANSIT)


class ExchangeStateMachine:
    """Application service for exchange status transitions.

    Receives its repository and collaborators via constructor injection.
    """

    def __init__(
        self,
        exchange_repository: IExchangeRepository,
        inventory: InventoryReservationService,
        timeline: TimelineRecorder,
        address_service: AddressService,
        completion_hook: ExchangeCompletionHook,
    ) -> None:
        self._repo = exchange_repository
        self._inventory = inventory
        self._timeline = timeline
        self._addresses = address_service
        self._completion_hook = completion_hook

    # ------------------------------------------------------------------
    # Receiver / initiator decisions
    # ------------------------------------------------------------------

    def approve_exchange(
        self,
        exchange_id: str,
        caller_id: str,
        receiver_address_id: str,
        receiver_notes: str = "",
    ) -> Exchange:
        """Accept a pending proposal and reserve both sides' inventory.

        Raises:
            ExchangeNotFound: exchange does not exist.
            ExchangeForbidden: caller is not the receiver.
            InvalidExchangeStatus: exchange is not pending.
            ExchangeValidationError: address is not the receiver's.
            ExchangeConflict: another caller moved the exchange first.
        """
        exchange = self._load(exchange_id)
        self._require_role(exchange, caller_id, ExchangeSide.RECEIVER, "approve")
        self._require_pending(exchange, "approve")

        try:
            address = self._addresses.get_owned_address(caller_id, receiver_address_id)
        except AddressNotFound as exc:
            raise ExchangeValidationError(
                "Receiver address must be one of your active addresses."
            ) from exc

        changes = {
            "status": ExchangeStatus.APPROVED,
            "approved_at": timezone.now(),
            "receiver_address_id": address.id,
        }
        if receiver_notes:
            changes["receiver_notes"] = receiver_notes

        exchange.add_domain_event(
            ExchangeApproved(aggregate_id=exchange.id, actor_id=caller_id)
        )
        self._transition(exchange, ExchangeStatus.PENDING, changes)

        self._inventory.lock_all(exchange.id)
        self._timeline.add_entry(
            exchange.id,
            TimelineAction.APPROVED,
            "Exchange approved by receiver",
            actor_id=caller_id,
        )
        logger.info(
            "exchange.approved", exchange_id=str(exchange.id), caller_id=caller_id
        )
        return self._load(exchange_id)

    def reject_exchange(
        self, exchange_id: str, caller_id: str, reason: Optional[str] = None
    ) -> Exchange:
        """Decline a pending proposal (receiver only)."""
        exchange = self._load(exchange_id)
        self._require_role(exchange, caller_id, ExchangeSide.RECEIVER, "reject")
        self._require_pending(exchange, "reject")

        exchange.add_domain_event(
            ExchangeRejected(aggregate_id=exchange.id, actor_id=caller_id)
        )
        self._transition(
            exchange,
            ExchangeStatus.PENDING,
            {
                "status": ExchangeStatus.REJECTED,
                "cancelled_at": timezone.now(),
                "cancellation_reason": reason or "",
            },
        )
        self._timeline.add_entry(
            exchange.id,
            TimelineAction.REJECTED,
            _with_reason("Exchange rejected", reason),
            actor_id=caller_id,
        )
        logger.info(
            "exchange.rejected", exchange_id=str(exchange.id), caller_id=caller_id
        )
        return self._load(exchange_id)

    def cancel_exchange(
        self, exchange_id: str, caller_id: str, reason: Optional[str] = None
    ) -> Exchange:
        """Withdraw a pending proposal (initiator only)."""
        exchange = self._load(exchange_id)
        self._require_role(exchange, caller_id, ExchangeSide.INITIATOR, "cancel")
        self._require_pending(exchange, "cancel")

        exchange.add_domain_event(
            ExchangeCancelled(aggregate_id=exchange.id, actor_id=caller_id)
        )
        self._transition(
            exchange,
            ExchangeStatus.PENDING,
            {
                "status": ExchangeStatus.CANCELLED,
                "cancelled_at": timezone.now(),
                "cancellation_reason": reason or "",
            },
        )
        self._timeline.add_entry(
            exchange.id,
            TimelineAction.CANCELLED,
            _with_reason("Exchange cancelled", reason),
            actor_id=caller_id,
        )
        logger.info(
            "exchange.cancelled", exchange_id=str(exchange.id), caller_id=caller_id
        )
        return self._load(exchange_id)

    # ------------------------------------------------------------------
    # Completion (driven by the delivery tracker)
    # ------------------------------------------------------------------

    def complete_exchange(self, exchange_id: str) -> bool:
        """Close an exchange whose goods both arrived.

        Returns ``True`` if this call performed the completion, ``False``
        if the exchange was already completed.

        Raises:
            ExchangeNotFound: exchange does not exist.
            InvalidExchangeStatus: exchange is neither approved nor in transit.
        """
        exchange = self._load(exchange_id)
        log = logger.bind(exchange_id=str(exchange.id))

        if exchange.status == ExchangeStatus.COMPLETED:
            log.info("exchange.completion_skipped", reason="already_completed")
            return False
        if not exchange.can_transition_to(ExchangeStatus.COMPLETED):
            raise InvalidExchangeStatus(
                f"Cannot complete exchange in status {exchange.status}."
            )

        now = timezone.now()
        exchange.add_domain_event(ExchangeCompleted(aggregate_id=exchange.id))
        won = self._write(
            exchange,
            COMPLETABLE_STATES,
            {
                "status": ExchangeStatus.COMPLETED,
                "delivered_at": now,
                "completed_at": now,
            },
        )
        if not won:
            current = self._load(exchange_id)
            if current.status == ExchangeStatus.COMPLETED:
                log.info("exchange.completion_skipped", reason="lost_race")
                return False
            raise ExchangeConflict(
                f"Exchange {exchange_id} changed to {current.status} during completion."
            )

        self._inventory.release_all(exchange.id)
        for item in self._handover_items(exchange, log):
            # Goods cross over: each side's items go to the other party.
            new_owner_side = (
                ExchangeSide.RECEIVER
                if item.side == ExchangeSide.INITIATOR
                else ExchangeSide.INITIATOR
            )
            self._completion_hook.on_exchange_completed(
                item, exchange.party_id(new_owner_side)
            )

        self._timeline.add_entry(
            exchange.id,
            TimelineAction.COMPLETED,
            "Exchange completed successfully - products released",
        )
        log.info("exchange.completed")
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _handover_items(self, exchange: Exchange, log: Any) -> List[ExchangeItem]:
        """Items to route to their new owner; read apart from the hold release."""
        try:
            return self._repo.get_items(exchange.id)
        except DatabaseError as exc:
            log.error("exchange.handover_items_unreadable", error=str(exc))
            return []

    def _load(self, exchange_id: str) -> Exchange:
        try:
            exchange = self._repo.get_by_id(str(exchange_id))
        except DatabaseError as exc:
            raise ExchangeStorageError("Failed to read exchange.") from exc
        if exchange is None:
            raise ExchangeNotFound(f"Exchange {exchange_id} not found.")
        return exchange

    @staticmethod
    def _require_role(
        exchange: Exchange, caller_id: str, side: ExchangeSide, verb: str
    ) -> None:
        caller_side = exchange.side_of(caller_id)
        if caller_side is None:
            raise ExchangeForbidden("You are not a party to this exchange.")
        if caller_side != side:
            raise ExchangeForbidden(
                f"Only the {side.label.lower()} can {verb} the exchange."
            )

    @staticmethod
    def _require_pending(exchange: Exchange, verb: str) -> None:
        if exchange.status != ExchangeStatus.PENDING:
            logger.warning(
                "exchange.invalid_transition",
                exchange_id=str(exchange.id),
                current_status=exchange.status,
                action=verb,
            )
            raise InvalidExchangeStatus(
                f"Cannot {verb} exchange in status {exchange.status}."
            )

    def _transition(self, exchange: Exchange, expected: str, changes: dict) -> None:
        """Compare-and-set from *expected*, raising on a lost race."""
        if not self._write(exchange, (expected,), changes):
            current = self._load(str(exchange.id))
            logger.warning(
                "exchange.transition_conflict",
                exchange_id=str(exchange.id),
                expected_status=expected,
                current_status=current.status,
            )
            raise ExchangeConflict(
                f"Exchange status changed to {current.status} by another request."
            )

    def _write(self, exchange: Exchange, expected, changes: dict) -> bool:
        try:
            return self._repo.compare_and_set(exchange, expected, changes)
        except DatabaseError as exc:
            logger.error(
                "exchange.write_failed", exchange_id=str(exchange.id), error=str(exc)
            )
            raise ExchangeStorageError("Failed to update exchange.") from exc


def _with_reason(message: str, reason: Optional[str]) -> str:
    return f"{message}: {reason}" if reason else message
