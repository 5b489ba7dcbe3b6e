"""
Core views providing infrastructure endpoints and response helpers.

Contents:
    health_check: Liveness/readiness check (database, cache, channel layer)
    error_response: Convert a failed ServiceResult into a DRF Response
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

if TYPE_CHECKING:
    from collections.abc import Mapping

    from core.services import ServiceResult

logger = logging.getLogger(__name__)


def error_response(
    result: ServiceResult,
    status_map: Mapping[str, int] | None = None,
    default_status: int = status.HTTP_400_BAD_REQUEST,
) -> Response:
    """
    Build the standard error body for a failed service result.

    Args:
        result: Failed ServiceResult
        status_map: error_code -> HTTP status overrides
        default_status: Status used when the code is not mapped

    Returns:
        Response with {"error", "error_code"[, "errors"]}

    Example:
        result = GroupService.join(group, request.user)
        if not result.success:
            return error_response(result, GROUP_ERROR_STATUS)
    """
    body = {"error": result.error, "error_code": result.error_code}
    if result.errors:
        body["errors"] = result.errors
    code = (status_map or {}).get(result.error_code, default_status)
    return Response(body, status=code)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - cache: "connected" or "disconnected"
        - channel_layer: "connected", "disconnected" or "disabled"
        - live_sessions: live connections bound in this process

    HTTP Status Codes:
        200: Database reachable (cache and channel layer may be degraded)
        503: Database unreachable
    """
    from chat.realtime.hub import get_hub

    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "channel_layer": "unknown",
        "live_sessions": len(get_hub().registry),
    }
    is_healthy = True

    # Check database connectivity
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Check Redis cache connectivity
    try:
        from django.core.cache import cache

        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        # Cache failure is not critical (graceful degradation)
        health_status["cache"] = "disconnected"

    # Live delivery depends on the channel layer
    layer = get_channel_layer()
    if layer is None:
        health_status["channel_layer"] = "disabled"
    else:
        try:
            channel = async_to_sync(layer.new_channel)()
            async_to_sync(layer.send)(channel, {"type": "health.check"})
            health_status["channel_layer"] = "connected"
        except Exception:
            logger.warning("Health check: channel layer unreachable", exc_info=True)
            health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
