import time
from typing import Any, Callable, Dict, Tuple

import structlog
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.users import display_name

logger = structlog.get_logger(__name__)

HEALTH_CACHE_KEY = "cafeteria:health"


def _probe_database() -> None:
    connection = connections["default"]
    connection.ensure_connection()
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _probe_cache() -> None:
    cache.set(HEALTH_CACHE_KEY, "ok", 10)
    if cache.get(HEALTH_CACHE_KEY) != "ok":
        raise ConnectionError("cache read-back mismatch")


PROBES: Tuple[Tuple[str, Callable[[], None]], ...] = (
    ("database", _probe_database),
    ("cache", _probe_cache),
)


def _run_probe(name: str, probe: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        probe()
    except Exception:
        logger.exception("health.probe_failed", service=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    """Liveness probe for load balancers; public and outside DRF."""
    services = {name: _run_probe(name, probe) for name, probe in PROBES}
    healthy = all(report["status"] == "up" for report in services.values())
    status = "healthy" if healthy else "unhealthy"

    logger.info("health.checked", status=status)

    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """Identity the API resolved for the bearer token.

    The frontend uses it to greet the caller and to confirm that a token
    (Auth0 or local) maps onto an order owner.
    """

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        return Response({"id": request.user.pk, "name": display_name(request.user)})
