"""Seller service layer.

Answers the two questions other modules ask about sellers: "may these
users trade?" and "who else can I trade with?".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

import structlog

if TYPE_CHECKING:
    from modules.sellers.models import SellerRegistration
    from modules.sellers.repositories.interfaces import ISellerRegistrationRepository

logger = structlog.get_logger(__name__)

RETAILER_LIST_LIMIT = 50


class SellerService:
    """Application service for seller registration look-ups.

    Receives an ``ISellerRegistrationRepository`` via constructor injection.
    """

    def __init__(self, repository: ISellerRegistrationRepository) -> None:
        self._repo = repository

    def approved_registrations(
        self, user_ids: Iterable[str]
    ) -> Dict[str, SellerRegistration]:
        """Map of user id to approved registration, built from one query."""
        registrations = self._repo.get_approved(user_ids)
        return {registration.user_id: registration for registration in registrations}

    def list_retailers(
        self, caller_id: str, search: Optional[str] = None
    ) -> List[SellerRegistration]:
        """Approved retailers the caller can propose an exchange to."""
        search = (search or "").strip() or None
        retailers = self._repo.search_approved(
            exclude_user_id=caller_id,
            search=search,
            limit=RETAILER_LIST_LIMIT,
        )
        logger.info(
            "sellers.retailers_listed",
            caller_id=caller_id,
            search=search,
            count=len(retailers),
        )
        return retailers
