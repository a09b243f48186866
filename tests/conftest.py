from __future__ import annotations

from dataclasses import dataclass
from types import SimpleNamespace

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.addresses.models import Address
from modules.addresses.services import AddressService
from modules.exchanges.services import (
    DeliveryTracker,
    ExchangeRegistrar,
    ExchangeStateMachine,
    InventoryReservationService,
    TimelineRecorder,
    build_exchange_services,
)
from modules.sellers.models import RegistrationStatus, SellerRegistration
from modules.sellers.services import SellerService
from tests.builders import make_create_dto
from tests.fakes import (
    InMemoryAddressRepository,
    InMemoryExchangeRepository,
    InMemoryHoldRepository,
    InMemorySellerRepository,
    InMemoryTimelineRepository,
    RecordingCompletionHook,
    StaticUserDirectory,
)


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Database-backed retailers
# ---------------------------------------------------------------------------


@dataclass
class Retailer:
    user: object
    address: Address

    @property
    def id(self) -> str:
        return str(self.user.pk)


def _create_retailer(
    username: str,
    first_name: str,
    last_name: str,
    status: str = RegistrationStatus.APPROVED,
) -> Retailer:
    user = get_user_model().objects.create_user(
        username,
        password="testpass123",
        first_name=first_name,
        last_name=last_name,
        email=f"{username}@example.com",
    )
    SellerRegistration.objects.create(
        user_id=str(user.pk),
        shop_name=f"{first_name}'s Shop",
        display_name=f"{first_name} {last_name}",
        status=status,
    )
    address = Address.objects.create(
        user_id=str(user.pk),
        full_name=f"{first_name} {last_name}",
        phone="9812345678",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
        is_default=True,
    )
    return Retailer(user=user, address=address)


@pytest.fixture()
def initiator() -> Retailer:
    return _create_retailer("asha", "Asha", "Verma")


@pytest.fixture()
def receiver() -> Retailer:
    return _create_retailer("bilal", "Bilal", "Khan")


@pytest.fixture()
def outsider() -> Retailer:
    return _create_retailer("chitra", "Chitra", "Iyer")


@pytest.fixture()
def unapproved() -> Retailer:
    return _create_retailer("esha", "Esha", "Nair", status=RegistrationStatus.PENDING)


@pytest.fixture()
def completion_hook() -> RecordingCompletionHook:
    return RecordingCompletionHook()


@pytest.fixture()
def services(completion_hook):
    return build_exchange_services(completion_hook=completion_hook)


@pytest.fixture()
def pending_exchange(services, initiator, receiver):
    dto = make_create_dto(receiver.id, initiator.address.id)
    return services.registrar.create_exchange(initiator.id, dto)


@pytest.fixture()
def approved_exchange(services, pending_exchange, receiver):
    return services.state_machine.approve_exchange(
        str(pending_exchange.id),
        receiver.id,
        receiver_address_id=str(receiver.address.id),
    )


@pytest.fixture()
def authed_client(api_client):
    """Returns a function that authenticates the shared client as a retailer."""

    def _as(retailer: Retailer) -> APIClient:
        api_client.force_authenticate(user=retailer.user)
        return api_client

    return _as


# ---------------------------------------------------------------------------
# In-memory object graph (no ORM access inside the services)
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_world():
    """Exchange services wired to in-memory repositories.

    Seeds two approved retailers ("u-init", "u-recv") with one address
    each, and an outsider "u-other".
    """
    exchanges = InMemoryExchangeRepository()
    holds = InMemoryHoldRepository()
    timeline_repo = InMemoryTimelineRepository()
    addresses = InMemoryAddressRepository()
    sellers = InMemorySellerRepository()
    users = StaticUserDirectory({"u-init": "Asha Verma", "u-recv": "Bilal Khan"})
    hook = RecordingCompletionHook()

    sellers.add("u-init", "Asha Handlooms")
    sellers.add("u-recv", "Khan Electronics")
    sellers.add("u-other", "Other Shop")
    init_address = addresses.add("u-init", is_default=True)
    recv_address = addresses.add("u-recv", is_default=True)

    address_service = AddressService(repository=addresses)
    timeline = TimelineRecorder(timeline_repo, users)
    inventory = InventoryReservationService(exchanges, holds)
    state_machine = ExchangeStateMachine(
        exchange_repository=exchanges,
        inventory=inventory,
        timeline=timeline,
        address_service=address_service,
        completion_hook=hook,
    )
    return SimpleNamespace(
        exchanges=exchanges,
        holds=holds,
        timeline_repo=timeline_repo,
        addresses=addresses,
        sellers=sellers,
        users=users,
        hook=hook,
        init_address=init_address,
        recv_address=recv_address,
        timeline=timeline,
        inventory=inventory,
        state_machine=state_machine,
        delivery=DeliveryTracker(exchanges, state_machine, timeline),
        registrar=ExchangeRegistrar(
            exchange_repository=exchanges,
            seller_service=SellerService(sellers),
            address_service=address_service,
            timeline=timeline,
        ),
    )


@pytest.fixture()
def fake_pending(fake_world):
    dto = make_create_dto("u-recv", fake_world.init_address.id)
    return fake_world.registrar.create_exchange("u-init", dto)


@pytest.fixture()
def fake_approved(fake_world, fake_pending):
    return fake_world.state_machine.approve_exchange(
        str(fake_pending.id),
        "u-recv",
        receiver_address_id=str(fake_world.recv_address.id),
    )
