"""
DRF exception handler producing the API error envelope.

Configured via REST_FRAMEWORK["EXCEPTION_HANDLER"]. Every error leaving
the REST surface has the same shape as ServiceResult.to_response():

    {"success": false, "error": "...", "error_code": "...", "errors": {...}}

Unexpected exceptions are logged and rendered as 500. The exception text
is only included when DEBUG is on.
"""

from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)

STATUS_ERROR_CODES = {
    400: "VALIDATION_ERROR",
    401: "NOT_AUTHENTICATED",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    429: "RATE_LIMIT_EXCEEDED",
}


def _first_message(detail) -> str:
    """Pull a single human-readable message out of a DRF error detail."""
    if isinstance(detail, dict):
        if "detail" in detail:
            return _first_message(detail["detail"])
        for value in detail.values():
            return _first_message(value)
        return "Invalid input"
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else "Invalid input"
    return str(detail)


def api_exception_handler(exc, context):
    """Render application, DRF and unexpected exceptions as the error envelope."""
    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        payload = {
            "success": False,
            "error": _first_message(response.data),
            "error_code": STATUS_ERROR_CODES.get(response.status_code, "ERROR"),
        }
        if isinstance(exc, ValidationError):
            payload["errors"] = response.data
        response.data = payload
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    payload = {
        "success": False,
        "error": "Internal server error",
        "error_code": "INTERNAL_ERROR",
    }
    if settings.DEBUG:
        payload["errors"] = {"detail": [str(exc)]}
    return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
