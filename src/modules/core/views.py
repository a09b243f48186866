import time
from typing import Any, Callable, Dict, Tuple

import structlog
from django.core.cache import cache
from django.db import connections
from django.db.models import Count
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.identity import resolve_caller_id
from modules.core.models import EventStatus, OutboxEvent
from modules.core.users import DjangoUserDirectory
from modules.sellers.repositories.django_repository import (
    SellerRegistrationDjangoRepository,
)

logger = structlog.get_logger()


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


_PROBES: Tuple[Tuple[str, Callable[[], None]], ...] = (
    ("database", _check_database),
    ("cache", _check_cache),
)


def _outbox_backlog() -> Dict[str, int]:
    """Unpublished exchange events; reported, never fails the check."""
    counts = dict(
        OutboxEvent.objects.backlog()
        .order_by()
        .values_list("status")
        .annotate(total=Count("id"))
    )
    return {
        "pending": counts.get(EventStatus.PENDING, 0),
        "failed": counts.get(EventStatus.FAILED, 0),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    for name, probe in _PROBES:
        start = time.monotonic()
        try:
            probe()
        except Exception:
            services[name] = {"status": "down"}
            overall_healthy = False
            logger.error("health.service_down", service=name, exc_info=True)
            continue
        services[name] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }

    body: Dict[str, Any] = {
        "status": "healthy" if overall_healthy else "unhealthy",
        "timestamp": timezone.now().isoformat(),
        "services": services,
    }
    if services["database"]["status"] == "up":
        body["outbox"] = _outbox_backlog()

    logger.info("health.checked", status=body["status"])
    return JsonResponse(body, status=200 if overall_healthy else 503)


class CurrentRetailerView(APIView):
    """Who am I, as far as the exchange workflow is concerned.

    Doubles as the fail-closed auth probe:
    * No token  -> 401
    * Bad token -> 401
    * Valid JWT -> 200
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: HttpRequest) -> Response:
        caller_id = resolve_caller_id(request)
        registration = SellerRegistrationDjangoRepository().get_by_user_id(caller_id)
        return Response(
            {
                "message": "authenticated",
                "user_id": caller_id,
                "display_name": DjangoUserDirectory().display_name(caller_id),
                "seller_status": registration.status if registration else None,
            }
        )
