"""Django ORM implementation of the Address repository.

Methods return ``None`` for missing or malformed ids; the service layer
decides how to report them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.addresses.models import Address
from modules.addresses.repositories.interfaces import IAddressRepository

logger = structlog.get_logger(__name__)


class AddressDjangoRepository(IAddressRepository):
    """Concrete Address repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Address]:
        queryset = Address.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset.order_by("-is_default", "-created_at", "-id"))

    def get_active_for_user(self, user_id: str, address_id: str) -> Optional[Address]:
        try:
            return Address.objects.filter(
                id=address_id, user_id=user_id, is_active=True
            ).first()
        except (ValueError, ValidationError):
            return None

    @transaction.atomic
    def save(self, entity: Address) -> Address:
        is_new = entity._state.adding
        entity.save()
        logger.info("address.saved", address_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def clear_default(self, user_id: str) -> int:
        return Address.objects.filter(user_id=user_id, is_default=True).update(
            is_default=False
        )

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an address by ID."""
        address = self.get_by_id(id)
        if not address:
            return False
        address.is_active = False
        address.is_default = False
        address.save(update_fields=["is_active", "is_default"])
        logger.info("address.soft_deleted", address_id=str(id))
        return True
