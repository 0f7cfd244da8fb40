"""Request correlation for the order, delivery and cash flow APIs.

Every request gets an id (the client's ``X-Request-ID`` when it is usable,
a fresh UUID4 otherwise).  The id is bound into structlog's contextvars,
so ``order.updated``, ``cashflow.entry_created`` and friends logged while
serving the request carry it, and it is echoed in the response header.
"""

import re
import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"

# Printable token, bounded so a client cannot flood the logs.
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)


def resolve_correlation_id(raw: str | None) -> str:
    if raw and _ACCEPTED_ID.match(raw):
        return raw
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = resolve_correlation_id(request.META.get("HTTP_X_REQUEST_ID"))
        correlation_id_var.set(cid)
        request.correlation_id = cid

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        log = logger.bind(method=request.method, path=request.path)
        log.info("request.started")

        response = self.get_response(request)

        elapsed_ms = round((time.monotonic() - started) * 1000, 2)
        if response.status_code >= 500:
            log.error("request.finished", status_code=response.status_code, duration_ms=elapsed_ms)
        else:
            log.info("request.finished", status_code=response.status_code, duration_ms=elapsed_ms)

        response[REQUEST_ID_HEADER] = cid
        return response
