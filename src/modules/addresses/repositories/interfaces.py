"""Address repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.addresses.models import Address


class IAddressRepository(IRepository["Address"]):
    """Repository contract for user addresses."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Address]:
        """List addresses with optional filters."""

    @abstractmethod
    def get_active_for_user(self, user_id: str, address_id: str) -> Optional[Address]:
        """Active address *address_id* if it belongs to *user_id*."""

    @abstractmethod
    def clear_default(self, user_id: str) -> int:
        """Unset ``is_default`` on every address of *user_id*."""
