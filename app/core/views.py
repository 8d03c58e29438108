"""
Infrastructure endpoints and response helpers shared by the API apps.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from rest_framework.response import Response

logger = logging.getLogger(__name__)


def failure_response(result) -> Response:
    """Render a failed ServiceResult with its mapped HTTP status."""
    return Response(result.to_response(), status=result.status_code())


def health_check(request):
    """
    Health check endpoint for load balancers and container orchestration.

    Components:
        - database: required; failure marks the service unhealthy (503)
        - cache: optional; reported but never fails the check
        - channel_layer: optional; real-time delivery degrades to polling
          when it is down, so it is reported but never fails the check

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception as e:
        logger.warning(f"Health check cache failure: {e}")
        health_status["cache"] = "disconnected"

    try:
        layer = get_channel_layer()
        if layer is None:
            health_status["channel_layer"] = "not configured"
        else:
            async_to_sync(layer.group_send)("health_check", {"type": "health.ping"})
            health_status["channel_layer"] = "connected"
    except Exception as e:
        logger.warning(f"Health check channel layer failure: {e}")
        health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503
    return JsonResponse(health_status, status=status_code)
