"""Seller registration repository interface.

Read-only look-ups used by the exchange registrar (eligibility) and by
the retailer directory endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from modules.sellers.models import SellerRegistration


class ISellerRegistrationRepository(ABC):
    """Repository contract for seller registrations."""

    @abstractmethod
    def get_by_user_id(self, user_id: str) -> Optional[SellerRegistration]:
        """Retrieve the registration of *user_id*, whatever its status."""

    @abstractmethod
    def get_approved(self, user_ids: Iterable[str]) -> List[SellerRegistration]:
        """Approved registrations for the given ids, in a single query."""

    @abstractmethod
    def search_approved(
        self,
        exclude_user_id: str,
        search: Optional[str] = None,
        limit: int = 50,
    ) -> List[SellerRegistration]:
        """Approved registrations except *exclude_user_id*, by shop name."""
