"""Exchange API views.

Exposes the exchange services via HTTP using a DRF ViewSet.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.identity import resolve_caller_id
from modules.core.pagination import StandardResultsSetPagination
from modules.exchanges.dtos import (
    CreateExchangeDTO,
    ExchangeItemDTO,
    UpdateDeliveryStatusDTO,
)
from modules.exchanges.filters import ExchangeFilter
from modules.exchanges.exceptions import (
    ExchangeConflict,
    ExchangeForbidden,
    ExchangeNotFound,
    ExchangeStorageError,
    ExchangeValidationError,
    InvalidExchangeStatus,
    SellerNotEligible,
)
from modules.exchanges.serializers import (
    ApproveExchangeSerializer,
    CreateExchangeSerializer,
    ExchangeListSerializer,
    ExchangeSerializer,
    ReasonSerializer,
    UpdateDeliverySerializer,
)
from modules.exchanges.services import build_exchange_services

# Most specific first: ExchangeConflict subclasses InvalidExchangeStatus.
ERROR_STATUS = (
    (ExchangeValidationError, status.HTTP_400_BAD_REQUEST),
    (SellerNotEligible, status.HTTP_403_FORBIDDEN),
    (ExchangeForbidden, status.HTTP_403_FORBIDDEN),
    (ExchangeNotFound, status.HTTP_404_NOT_FOUND),
    (ExchangeConflict, status.HTTP_409_CONFLICT),
    (InvalidExchangeStatus, status.HTTP_400_BAD_REQUEST),
    (ExchangeStorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)

DOMAIN_ERRORS = tuple(exc_class for exc_class, _ in ERROR_STATUS)


def error_response(exc: Exception) -> Response:
    for exc_class, http_status in ERROR_STATUS:
        if isinstance(exc, exc_class):
            return Response({"detail": str(exc)}, status=http_status)
    raise exc


class ExchangeViewSet(GenericViewSet):
    """ViewSet for the exchange workflow.

    Every action resolves the caller first; all ORM access goes through
    the service/repository layer.
    """

    serializer_class = ExchangeSerializer
    filterset_class = ExchangeFilter
    filter_backends = [DjangoFilterBackend]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._services = build_exchange_services()

    def get_throttles(self) -> list[BaseThrottle]:
        """Throttle scope per action."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "exchange_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "exchange_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/exchanges/"""
        caller_id = resolve_caller_id(request)
        serializer = CreateExchangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            dto = CreateExchangeDTO(
                receiver_id=data["receiver_id"],
                initiator_address_id=data["initiator_address_id"],
                initiator_items=[ExchangeItemDTO(**i) for i in data["initiator_items"]],
                receiver_items=[ExchangeItemDTO(**i) for i in data["receiver_items"]],
                initiator_notes=data.get("initiator_notes", ""),
                price_difference=data.get("price_difference"),
            )
        except PydanticValidationError as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            exchange = self._services.registrar.create_exchange(caller_id, dto)
        except DOMAIN_ERRORS as exc:
            return error_response(exc)

        return Response(
            ExchangeSerializer(exchange).data, status=status.HTTP_201_CREATED
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/exchanges/?role=&status=&product=&start_date=&end_date=

        ``role`` and ``status`` are validated by the registrar; the remaining
        parameters are applied by ``ExchangeFilter``.
        """
        caller_id = resolve_caller_id(request)
        try:
            exchanges = self._services.registrar.get_exchanges(
                caller_id,
                role=request.query_params.get("role"),
                status=request.query_params.get("status"),
            )
        except DOMAIN_ERRORS as exc:
            return error_response(exc)
        exchanges = self.filter_queryset(exchanges)

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(exchanges, request, view=self)
        serializer = ExchangeListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/exchanges/{pk}/"""
        caller_id = resolve_caller_id(request)
        try:
            exchange = self._services.registrar.get_exchange_by_id(str(pk), caller_id)
        except DOMAIN_ERRORS as exc:
            return error_response(exc)
        return Response(ExchangeSerializer(exchange).data)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def approve(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/exchanges/{pk}/approve/"""
        caller_id = resolve_caller_id(request)
        serializer = ApproveExchangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            exchange = self._services.state_machine.approve_exchange(
                str(pk),
                caller_id,
                receiver_address_id=str(data["receiver_address_id"]),
                receiver_notes=data["receiver_notes"],
            )
        except DOMAIN_ERRORS as exc:
            return error_response(exc)
        return Response(ExchangeSerializer(exchange).data)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/exchanges/{pk}/reject/"""
        caller_id = resolve_caller_id(request)
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            exchange = self._services.state_machine.reject_exchange(
                str(pk), caller_id, reason=serializer.validated_data["reason"]
            )
        except DOMAIN_ERRORS as exc:
            return error_response(exc)
        return Response(ExchangeSerializer(exchange).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/exchanges/{pk}/cancel/"""
        caller_id = resolve_caller_id(request)
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            exchange = self._services.state_machine.cancel_exchange(
                str(pk), caller_id, reason=serializer.validated_data["reason"]
            )
        except DOMAIN_ERRORS as exc:
            return error_response(exc)
        return Response(ExchangeSerializer(exchange).data)

    @action(detail=True, methods=["post"])
    def delivery(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/exchanges/{pk}/delivery/"""
        caller_id = resolve_caller_id(request)
        serializer = UpdateDeliverySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateDeliveryStatusDTO(**serializer.validated_data)
        try:
            exchange = self._services.delivery.update_delivery_status(
                str(pk), caller_id, dto
            )
        except DOMAIN_ERRORS as exc:
            return error_response(exc)
        return Response(ExchangeSerializer(exchange).data)
