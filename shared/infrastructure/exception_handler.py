"""DRF exception handler that renders booking-core errors."""

from __future__ import annotations

import logging

from django.db import DatabaseError  # type: ignore
from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):  # type: ignore
    """Map DomainError kinds to ``{"code", "detail"}`` responses.

    Storage failures are the only unexpected case: they are logged with the
    traceback for operators and answered with 503.
    """

    if isinstance(exc, DomainError):
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception(
            "Storage failure in %s", view.__class__.__name__ if view else "unknown view"
        )
        return Response(
            {"code": "storage_unavailable", "detail": "Storage is temporarily unavailable."},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return drf_exception_handler(exc, context)
