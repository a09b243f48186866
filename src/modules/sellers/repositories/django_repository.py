"""Django ORM implementation of the seller registration repository."""

from __future__ import annotations

from typing import Iterable, List, Optional

from django.db.models import Q

from modules.sellers.models import RegistrationStatus, SellerRegistration
from modules.sellers.repositories.interfaces import ISellerRegistrationRepository


class SellerRegistrationDjangoRepository(ISellerRegistrationRepository):
    """Concrete seller registration repository backed by Django ORM."""

    def get_by_user_id(self, user_id: str) -> Optional[SellerRegistration]:
        return SellerRegistration.objects.filter(user_id=user_id).first()

    def get_approved(self, user_ids: Iterable[str]) -> List[SellerRegistration]:
        ids = {str(user_id) for user_id in user_ids}
        return list(
            SellerRegistration.objects.filter(
                user_id__in=ids,
                status=RegistrationStatus.APPROVED,
            )
        )

    def search_approved(
        self,
        exclude_user_id: str,
        search: Optional[str] = None,
        limit: int = 50,
    ) -> List[SellerRegistration]:
        queryset = SellerRegistration.objects.filter(
            status=RegistrationStatus.APPROVED
        ).exclude(user_id=exclude_user_id)
        if search:
            queryset = queryset.filter(
                Q(shop_name__icontains=search) | Q(display_name__icontains=search)
            )
        return list(queryset.order_by("shop_name")[:limit])
