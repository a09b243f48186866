"""Address API views.

Every request is scoped to the authenticated caller: a user can only
see and delete their own addresses.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.addresses.dtos import CreateAddressDTO
from modules.addresses.exceptions import AddressNotFound
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.serializers import AddressSerializer, CreateAddressSerializer
from modules.addresses.services import AddressService
from modules.core.identity import resolve_caller_id


class AddressViewSet(GenericViewSet):
    """List, create and delete the caller's addresses."""

    serializer_class = AddressSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AddressService(repository=AddressDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/addresses/"""
        addresses = self._service.list_addresses(resolve_caller_id(request))
        return Response(AddressSerializer(addresses, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/addresses/"""
        caller_id = resolve_caller_id(request)
        serializer = CreateAddressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateAddressDTO(**serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        address = self._service.create_address(caller_id, dto)
        return Response(
            AddressSerializer(address).data, status=status.HTTP_201_CREATED
        )

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/addresses/{pk}/"""
        caller_id = resolve_caller_id(request)
        try:
            self._service.delete_address(caller_id, str(pk))
        except AddressNotFound:
            return Response(
                {"detail": "Address not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
