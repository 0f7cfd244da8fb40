"""DRF exception handler.

Domain errors become ``{"detail": ...}`` responses carrying the status
code of their category.  DTO validation errors raised while a view
builds its service input are answered with 400.  DRF's own exceptions
(401, serializer 400s, 405...) keep the default handling.  Anything else
is logged with its traceback and answered with a generic 500 so
internals never leak.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from pydantic import ValidationError as DTOValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from modules.core.exceptions import DomainError

logger = structlog.get_logger(__name__)


def _view_name(context: dict[str, Any]) -> Optional[str]:
    view = context.get("view")
    return type(view).__name__ if view else None


def domain_exception_handler(exc: Exception, context: dict[str, Any]) -> Optional[Response]:
    if isinstance(exc, DomainError):
        logger.info(
            "request.domain_error",
            error=type(exc).__name__,
            detail=exc.detail,
            view=_view_name(context),
        )
        return Response({"detail": exc.detail}, status=exc.status_code)

    if isinstance(exc, DTOValidationError):
        messages = [error["msg"] for error in exc.errors()]
        logger.info("request.dto_invalid", errors=messages, view=_view_name(context))
        return Response(
            {"detail": "; ".join(messages) or "Invalid data."},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    logger.exception("request.unhandled_error", error=type(exc).__name__)
    return Response(
        {"detail": "Internal server error."},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
