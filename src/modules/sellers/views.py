"""Retailer directory API view."""

from __future__ import annotations

from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import resolve_caller_id
from modules.sellers.repositories.django_repository import (
    SellerRegistrationDjangoRepository,
)
from modules.sellers.serializers import RetailerSerializer
from modules.sellers.services import SellerService


class RetailerViewSet(GenericViewSet):
    """Lists approved retailers other than the caller.

    The result is capped server-side, so it is returned unpaginated.
    """

    serializer_class = RetailerSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = SellerService(repository=SellerRegistrationDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/retailers/?search="""
        caller_id = resolve_caller_id(request)
        retailers = self._service.list_retailers(
            caller_id, search=request.query_params.get("search")
        )
        return Response(RetailerSerializer(retailers, many=True).data)
