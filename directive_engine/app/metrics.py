"""
Métriques Prometheus du moteur de directives.

Ce module définit toutes les métriques Prometheus utilisées pour le monitoring de la
cascade de résolution (tiers, intégrité, repli d'urgence, résilience) ainsi que la route
d'exposition `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Resolution metrics
DIRECTIVE_RESOLUTIONS = Counter(
    "directive_resolutions_total",
    "Total directive resolutions",
    ["tier", "variant", "tenant"],
)
DIRECTIVE_RESOLUTION_LATENCY = Histogram(
    "directive_resolution_latency_seconds",
    "Latency of directive resolutions",
    ["tier"],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)
DIRECTIVE_TIER_MISSES = Counter(
    "directive_tier_misses_total",
    "Tier lookups that did not yield a context",
    ["tier", "reason"],
)
DIRECTIVE_INTEGRITY_VIOLATIONS = Counter(
    "directive_integrity_violations_total",
    "Cache entries whose integrity seal did not match",
    ["tier"],
)
DIRECTIVE_FAILSAFE_TOTAL = Counter(
    "directive_failsafe_total",
    "Resolutions served by the emergency directive",
    ["reason"],
)
DIRECTIVE_L2_WRITES = Counter(
    "directive_l2_writes_total",
    "Write-through operations to the distributed cache",
    ["result"],
)

# Resilience metrics
RETRY_ATTEMPTS = Counter(
    "directive_retry_attempts_total",
    "Retry attempts of tier operations",
    ["operation", "result"],
)

# Sentinel
SENTINEL_REPORTS = Counter(
    "directive_sentinel_reports_total",
    "Operational reports emitted by the sentinel",
    ["code", "severity"],
)


def _normalize_allowed(allowed: list[str] | str | None) -> list[str]:
    """Normalize allowed values from settings (list or CSV string)."""
    if not allowed:
        return []
    if isinstance(allowed, list):
        if len(allowed) == 1 and "," in (allowed[0] or ""):
            return [s.strip() for s in allowed[0].split(",") if s.strip()]
        return [str(x).strip() for x in allowed if str(x).strip()]
    # string
    return [s.strip() for s in str(allowed).split(",") if s.strip()]


def labelize_tenant(tenant: str | None, allowed: list[str] | str | None) -> str:
    """Project tenant label through a whitelist; otherwise 'unknown'."""
    vals = set(_normalize_allowed(allowed))
    if not vals:
        return tenant or "default"
    return (tenant or "").strip() if (tenant or "").strip() in vals else "unknown"


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware Prometheus comptant les requêtes et mesurant leur latence par route."""

    async def dispatch(self, request: Request, call_next):
        """Traite une requête HTTP et collecte les métriques."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        # gabarit de route (évite un label par tenant)
        route = getattr(request.scope.get("route"), "path", None) or request.scope.get(
            "path", "unknown"
        )
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
