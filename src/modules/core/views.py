import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def health_check(request: HttpRequest) -> JsonResponse:
    """Report database and cache reachability (200 healthy, 503 otherwise)."""
    services: Dict[str, Dict[str, Any]] = {}
    overall_healthy = True

    try:
        start = time.monotonic()
        conn = connections["default"]
        conn.ensure_connection()
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        services["database"] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }
    except Exception:
        services["database"] = {"status": "down"}
        overall_healthy = False
        logger.exception("health_check_db_failure")

    try:
        start = time.monotonic()
        cache.set("_health_check", "ok", 10)
        if cache.get("_health_check") != "ok":
            raise ConnectionError("Cache read failed")
        services["cache"] = {
            "status": "up",
            "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        }
    except Exception:
        services["cache"] = {"status": "down"}
        overall_healthy = False
        logger.exception("health_check_cache_failure")

    status_code = 200 if overall_healthy else 503
    status_label = "healthy" if overall_healthy else "unhealthy"

    logger.info("health_check_completed", status=status_label)

    return JsonResponse(
        {
            "status": status_label,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=status_code,
    )
