"""Exchange application services and their default wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modules.exchanges.services.delivery import DeliveryTracker
from modules.exchanges.services.hooks import (
    ExchangeCompletionHook,
    LoggingCompletionHook,
)
from modules.exchanges.services.inventory import InventoryReservationService
from modules.exchanges.services.registrar import ExchangeRegistrar
from modules.exchanges.services.state_machine import ExchangeStateMachine
from modules.exchanges.services.timeline import TimelineRecorder

__all__ = [
    "DeliveryTracker",
    "ExchangeCompletionHook",
    "ExchangeRegistrar",
    "ExchangeServices",
    "ExchangeStateMachine",
    "InventoryReservationService",
    "LoggingCompletionHook",
    "TimelineRecorder",
    "build_exchange_services",
]


@dataclass(frozen=True)
class ExchangeServices:
    registrar: ExchangeRegistrar
    state_machine: ExchangeStateMachine
    delivery: DeliveryTracker
    inventory: InventoryReservationService
    timeline: TimelineRecorder


def build_exchange_services(
    completion_hook: Optional[ExchangeCompletionHook] = None,
) -> ExchangeServices:
    """Wire the exchange services against the Django repositories."""
    from modules.addresses.repositories.django_repository import (
        AddressDjangoRepository,
    )
    from modules.addresses.services import AddressService
    from modules.core.users import DjangoUserDirectory
    from modules.exchanges.repositories.django_repository import (
        ExchangeDjangoRepository,
        InventoryHoldDjangoRepository,
        TimelineDjangoRepository,
    )
    from modules.sellers.repositories.django_repository import (
        SellerRegistrationDjangoRepository,
    )
    from modules.sellers.services import SellerService

    exchange_repo = ExchangeDjangoRepository()
    addresses = AddressService(repository=AddressDjangoRepository())
    timeline = TimelineRecorder(TimelineDjangoRepository(), DjangoUserDirectory())
    inventory = InventoryReservationService(
        exchange_repo, InventoryHoldDjangoRepository()
    )
    state_machine = ExchangeStateMachine(
        exchange_repository=exchange_repo,
        inventory=inventory,
        timeline=timeline,
        address_service=addresses,
        completion_hook=completion_hook or LoggingCompletionHook(),
    )
    return ExchangeServices(
        registrar=ExchangeRegistrar(
            exchange_repository=exchange_repo,
            seller_service=SellerService(SellerRegistrationDjangoRepository()),
            address_service=addresses,
            timeline=timeline,
        ),
        state_machine=state_machine,
        delivery=DeliveryTracker(exchange_repo, state_machine, timeline),
        inventory=inventory,
        timeline=timeline,
    )
