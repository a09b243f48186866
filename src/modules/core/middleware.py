import re
import time
import uuid
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

# Client-supplied ids end up in every log line; anything else is replaced.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

logger = structlog.get_logger(__name__)


def _request_id(request: HttpRequest) -> str:
    supplied = request.META.get("HTTP_X_REQUEST_ID", "")
    if supplied and _REQUEST_ID_RE.match(supplied):
        return supplied
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Tags each request with an ``X-Request-ID``.

    A well-formed incoming header is reused, otherwise a UUID4 is generated.
    The id is bound into the structlog context for the lifetime of the
    request, so exchange transitions logged by the services carry it, and
    is echoed back on the response.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = _request_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = round((time.monotonic() - started) * 1000, 2)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "http.request_finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response["X-Request-ID"] = cid
        return response
