"""ExchangeRegistrar: proposal creation and the exchange read path.

Creation writes the exchange row and then each side's item batch as
separate units of work.  If an item batch fails, the exchange (and any
items already written) is deleted before the error is reported, so no
half-built proposal survives.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

import structlog
from django.db import DatabaseError

from modules.addresses.exceptions import AddressNotFound
from modules.exchanges.constants import (
    ExchangeSide,
    ExchangeStatus,
    PaymentStatus,
    TimelineAction,
)
from modules.exchanges.events import ExchangeCreated
from modules.exchanges.exceptions import (
    ExchangeForbidden,
    ExchangeNotFound,
    ExchangeStorageError,
    ExchangeValidationError,
    SellerNotEligible,
)

if TYPE_CHECKING:
    from modules.addresses.services import AddressService
    from modules.exchanges.dtos import CreateExchangeDTO, ExchangeItemDTO
    from modules.exchanges.models import Exchange
    from modules.exchanges.repositories.interfaces import IExchangeRepository
    from modules.exchanges.services.timeline import TimelineRecorder
    from modules.sellers.services import SellerService

logger = structlog.get_logger(__name__)


class ExchangeRegistrar:
    """Application service for creating and reading exchanges."""

    def __init__(
        self,
        exchange_repository: IExchangeRepository,
        seller_service: SellerService,
        address_service: AddressService,
        timeline: TimelineRecorder,
    ) -> None:
        self._repo = exchange_repository
        self._sellers = seller_service
        self._addresses = address_service
        self._timeline = timeline

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_exchange(self, initiator_id: str, dto: CreateExchangeDTO) -> Exchange:
        """Create a pending proposal with both sides' item snapshots.

        Steps:
        1. Reject self-exchange.
        2. Both parties must hold approved seller registrations.
        3. The initiator address must be one of the initiator's.
        4. Write the exchange, then each item batch (compensating on failure).
        5. Record the ``exchange_created`` timeline entry.

        Raises:
            ExchangeValidationError: self-exchange or foreign address.
            SellerNotEligible: a party is not an approved seller.
            ExchangeStorageError: a write failed (nothing is left behind).
        """
        log = logger.bind(initiator_id=initiator_id, receiver_id=dto.receiver_id)

        if initiator_id == dto.receiver_id:
            raise ExchangeValidationError("Cannot create an exchange with yourself.")

        approved = self._sellers.approved_registrations([initiator_id, dto.receiver_id])
        parties = (initiator_id, dto.receiver_id)
        missing = [uid for uid in parties if uid not in approved]
        if missing:
            log.warning("exchange.parties_not_eligible", missing=missing)
            raise SellerNotEligible(
                "Both users must be approved retailers to trade "
                f"({len(approved)} of 2 approved)."
            )

        try:
            address = self._addresses.get_owned_address(
                initiator_id, str(dto.initiator_address_id)
            )
        except AddressNotFound as exc:
            raise ExchangeValidationError(
                "Initiator address must be one of your active addresses."
            ) from exc

        price_difference = dto.receiver_total - dto.initiator_total
        client_value = dto.price_difference
        if client_value is not None and client_value != price_difference:
            log.info(
                "exchange.client_price_difference_ignored",
                client_value=str(client_value),
                computed=str(price_difference),
            )

        try:
            exchange = self._repo.create(
                {
                    "initiator_id": initiator_id,
                    "receiver_id": dto.receiver_id,
                    "initiator_address_id": address.id,
                    "initiator_notes": dto.initiator_notes,
                    "price_difference": price_difference,
                    "status": ExchangeStatus.PENDING,
                    "payment_status": (
                        PaymentStatus.PAID
                        if price_difference == 0
                        else PaymentStatus.PENDING
                    ),
                }
            )
        except DatabaseError as exc:
            log.error("exchange.create_failed", error=str(exc))
            raise ExchangeStorageError("Failed to create exchange.") from exc

        log = log.bind(exchange_id=str(exchange.id))
        sides = (
            (ExchangeSide.INITIATOR, dto.initiator_items),
            (ExchangeSide.RECEIVER, dto.receiver_items),
        )
        try:
            for side, items in sides:
                self._repo.add_items(
                    exchange.id, side, [_snapshot(item) for item in items]
                )
            exchange.add_domain_event(
                ExchangeCreated(aggregate_id=exchange.id, actor_id=initiator_id)
            )
            self._repo.save(exchange)
        except DatabaseError as exc:
            log.error("exchange.items_write_failed", side=side.value, error=str(exc))
            self._compensate(exchange, log)
            raise ExchangeStorageError("Failed to store exchange items.") from exc

        self._timeline.add_entry(
            exchange.id,
            TimelineAction.CREATED,
            "Exchange request created",
            actor_id=initiator_id,
        )
        log.info(
            "exchange.created",
            exchange_code=exchange.exchange_code,
            price_difference=str(price_difference),
        )
        return self.get_exchange_by_id(str(exchange.id), initiator_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_exchange_by_id(self, exchange_id: str, caller_id: str) -> Exchange:
        """Raises:
        ExchangeNotFound: the exchange does not exist.
        ExchangeForbidden: the caller is neither initiator nor receiver.
        ExchangeStorageError: the exchange could not be read.
        """
        try:
            exchange = self._repo.get_by_id(str(exchange_id))
        except DatabaseError as exc:
            raise ExchangeStorageError("Failed to read exchange.") from exc
        if exchange is None:
            raise ExchangeNotFound(f"Exchange {exchange_id} not found.")
        if exchange.side_of(caller_id) is None:
            logger.warning(
                "exchange.access_denied",
                exchange_id=str(exchange_id),
                caller_id=caller_id,
            )
            raise ExchangeForbidden("You are not authorized to view this exchange.")
        return exchange

    def get_exchanges(
        self,
        user_id: str,
        role: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Iterable[Exchange]:
        """Exchanges of *user_id*, newest first.

        Raises:
            ExchangeValidationError: unknown role or status.
        """
        if role and role not in ExchangeSide.values:
            raise ExchangeValidationError(f"Invalid role '{role}'.")
        if status and status not in ExchangeStatus.values:
            raise ExchangeValidationError(f"Invalid status '{status}'.")
        return self._repo.list_for_user(
            user_id, role=role or None, status=status or None
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _compensate(self, exchange: Exchange, log: Any) -> None:
        try:
            self._repo.delete(str(exchange.id))
        except DatabaseError as exc:
            log.critical("exchange.compensation_failed", error=str(exc))
            return
        log.warning("exchange.compensated")


def _snapshot(item: ExchangeItemDTO) -> Dict[str, Any]:
    return {
        "product_id": item.product_id,
        "product_name": item.product_name,
        "product_image_url": item.product_image_url,
        "sku": item.sku,
        "variation_details": item.variation_details,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "total_price": item.line_total,
    }
