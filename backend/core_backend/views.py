from django.db import connection
from django.http import JsonResponse
from django_ratelimit.decorators import ratelimit
import logging

logger = logging.getLogger(__name__)


def ratelimited429(request, exception=None):
    """Returned by django-ratelimit when a blocked request exceeds its rate."""
    return JsonResponse({"error": "Too many requests, please slow down", "code": "rate_limited"}, status=429)


@ratelimit(key="ip", rate="60/m", method="GET", block=True)
def health_check(request):
    """Simple health check endpoint that doesn't require authentication"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        database = "ok"
    except Exception as e:
        logger.error(f"Health check database query failed: {e}")
        database = "unavailable"

    status_code = 200 if database == "ok" else 503
    return JsonResponse(
        {"status": "ok" if status_code == 200 else "degraded", "database": database},
        status=status_code,
    )
