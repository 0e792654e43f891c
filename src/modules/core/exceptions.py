"""API-level exceptions and the REST framework exception handler.

Views translate domain exceptions into the classes below; the handler
renders every error through ``drf_standardized_errors`` so clients always
receive ``{"type": ..., "errors": [{"code", "detail", "attr"}]}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from drf_standardized_errors.handler import (
    exception_handler as standardized_exception_handler,
)
from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = structlog.get_logger(__name__)


class ConflictError(exceptions.APIException):
    """The request is valid but conflicts with the current order state."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"


class ServiceUnavailableError(exceptions.APIException):
    """The store calendar cannot satisfy the request right now."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable."
    default_code = "service_unavailable"


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Log unexpected failures and hide their detail from the client.

    Anything that is not an ``APIException`` (or one of the Django
    exceptions DRF already converts) becomes a bare 500 "server error".
    """
    if not isinstance(exc, (exceptions.APIException, Http404, PermissionDenied)):
        view = context.get("view") if context else None
        logger.error(
            "api.unhandled_exception",
            view=type(view).__name__ if view is not None else None,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        exc = exceptions.APIException()
    return standardized_exception_handler(exc, context)
