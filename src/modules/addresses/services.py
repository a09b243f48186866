"""Address service layer (AddressRegistry).

Business rules enforced here:
- A user has at most one default address.
- Only the owner may delete an address; deletion is soft.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog
from django.conf import settings
from django.db import transaction

from modules.addresses.exceptions import AddressNotFound
from modules.addresses.models import Address

if TYPE_CHECKING:
    from modules.addresses.dtos import CreateAddressDTO
    from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressService:
    """Application service for per-user addresses."""

    def __init__(self, repository: IAddressRepository) -> None:
        self._repo = repository

    @transaction.atomic
    def create_address(self, user_id: str, dto: CreateAddressDTO) -> Address:
        log = logger.bind(user_id=user_id)
        if dto.is_default:
            cleared = self._repo.clear_default(user_id)
            log.info("address.default_cleared", count=cleared)

        address = Address(
            user_id=user_id,
            full_name=dto.full_name,
            phone=dto.phone,
            address_line1=dto.address_line1,
            address_line2=dto.address_line2,
            city=dto.city,
            state=dto.state,
            postal_code=dto.postal_code,
            country=dto.country or settings.EXCHANGE_DEFAULT_COUNTRY,
            is_default=dto.is_default,
        )
        address = self._repo.save(address)
        log.info("address.created", address_id=str(address.id))
        return address

    def list_addresses(self, user_id: str) -> List[Address]:
        """Active addresses of *user_id*, default first, then newest."""
        return self._repo.list({"user_id": user_id, "is_active": True})

    def get_owned_address(self, user_id: str, address_id: str) -> Address:
        """Raises:
        AddressNotFound: missing, inactive, or owned by someone else.
        """
        address = self._repo.get_active_for_user(user_id, str(address_id))
        if not address:
            raise AddressNotFound(f"Address {address_id} not found.")
        return address

    @transaction.atomic
    def delete_address(self, user_id: str, address_id: str) -> None:
        address = self.get_owned_address(user_id, address_id)
        self._repo.delete(str(address.id))
        logger.info("address.deleted", user_id=user_id, address_id=str(address.id))
