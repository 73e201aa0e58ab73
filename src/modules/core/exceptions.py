"""Standardised error responses.

Every error leaving the API has the drf-standardized-errors shape::

    {
        "type": "validation_error" | "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "field" | None}]
    }

``standardized_exception_handler`` is registered as DRF's
``EXCEPTION_HANDLER``; it delegates the formatting of exceptions raised by
DRF itself (authentication, parsing, serializer validation, throttling) to
drf-standardized-errors and logs the outcome.  Views that translate domain
exceptions build the same body with ``error_response``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from drf_standardized_errors.handler import exception_handler
from rest_framework.response import Response

logger = structlog.get_logger(__name__)

VALIDATION_ERROR = "validation_error"
CLIENT_ERROR = "client_error"
SERVER_ERROR = "server_error"


def error_payload(
    code: str,
    detail: str,
    attr: Optional[str] = None,
    error_type: str = CLIENT_ERROR,
) -> Dict[str, Any]:
    return {
        "type": error_type,
        "errors": [{"code": code, "detail": detail, "attr": attr}],
    }


def error_response(
    status_code: int,
    code: str,
    detail: str,
    attr: Optional[str] = None,
    error_type: str = CLIENT_ERROR,
) -> Response:
    """Build a ``Response`` carrying a single standardised error."""
    return Response(
        error_payload(code, detail, attr=attr, error_type=error_type),
        status=status_code,
    )


def standardized_exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is None:
        return None

    log = logger.bind(
        status_code=response.status_code,
        error_type=response.data.get("type"),
        exception=exc.__class__.__name__,
    )
    if response.status_code >= 500:
        log.error("api.error")
    else:
        log.info("api.error")
    return response
