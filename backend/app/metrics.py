"""
Prometheus metrics configuration for the threat level service

Provides application metrics for monitoring:
- HTTP request latency and counts
- Lookup outcomes (cache hits, misses, failures)
- Upstream fetch latency and status codes
- Cache size and sweep evictions
"""
from prometheus_client import Counter, Histogram, Gauge, Info, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Depends, Response
from starlette.routing import Match
import time
import logging

from app.dependencies.access import require_client_identity

logger = logging.getLogger(__name__)

# Create metrics router
metrics_router = APIRouter(tags=["metrics"])

# =============================================================================
# HTTP Metrics
# =============================================================================

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status_code"]
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method", "endpoint"]
)

# =============================================================================
# Lookup Metrics
# =============================================================================

THREAT_LOOKUPS_TOTAL = Counter(
    "threat_lookups_total",
    "Total number of threat level lookups",
    ["outcome"]  # hit, miss, invalid, extraction_failed, unavailable
)

UPSTREAM_FETCH_DURATION = Histogram(
    "upstream_fetch_duration_seconds",
    "Upstream fetch duration in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0]
)

UPSTREAM_RESPONSES_TOTAL = Counter(
    "upstream_responses_total",
    "Upstream responses by status code",
    ["status_code"]  # numeric code, or "error" for transport failures
)

# =============================================================================
# Cache Metrics
# =============================================================================

CACHE_ENTRIES = Gauge(
    "threat_cache_entries",
    "Number of entries currently held in the threat level cache"
)

CACHE_SWEEP_EVICTIONS = Counter(
    "threat_cache_sweep_evictions_total",
    "Total number of expired entries removed by the periodic sweep"
)

# =============================================================================
# System Info
# =============================================================================

APP_INFO = Info(
    "dbip_threat_service",
    "DB-IP threat level service information"
)

APP_INFO.info({
    "version": "1.0.0",
    "framework": "fastapi"
})

# =============================================================================
# Metrics Endpoint
# =============================================================================

@metrics_router.get("/metrics", include_in_schema=False, dependencies=[Depends(require_client_identity)])
async def metrics():
    """
    Prometheus metrics endpoint

    Returns all application metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# =============================================================================
# Middleware for HTTP Metrics
# =============================================================================

UNMATCHED_ENDPOINT = "unmatched"


def resolve_endpoint(request) -> str:
    """
    Return the route template serving a request

    Paths that match no route share the "unmatched" label.
    """
    partial = None
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return route.path
        if match == Match.PARTIAL and partial is None:
            partial = route.path
    return partial or UNMATCHED_ENDPOINT


async def metrics_middleware(request, call_next):
    """
    Middleware to collect HTTP request metrics
    """
    method = request.method
    endpoint = resolve_endpoint(request)

    HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()

    start_time = time.time()

    try:
        response = await call_next(request)
        status_code = str(response.status_code)

        duration = time.time() - start_time
        HTTP_REQUEST_DURATION.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code
        ).observe(duration)

        HTTP_REQUESTS_TOTAL.labels(
            method=method,
            endpoint=endpoint,
            status_code=status_code
        ).inc()

        return response

    except Exception:
        duration = time.time() - start_time
        HTTP_REQUEST_DURATION.labels(
            method=method,
            endpoint=endpoint,
            status_code="500"
        ).observe(duration)

        HTTP_REQUESTS_TOTAL.labels(
            method=method,
            endpoint=endpoint,
            status_code="500"
        ).inc()

        raise

    finally:
        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()


# =============================================================================
# Helper Functions for Lookup Metrics
# =============================================================================

def record_lookup(outcome: str):
    """Record a lookup outcome"""
    THREAT_LOOKUPS_TOTAL.labels(outcome=outcome).inc()


def record_upstream_fetch(status_code, duration: float = None):
    """Record an upstream fetch; status_code is None for transport failures"""
    label = "error" if status_code is None else str(status_code)
    UPSTREAM_RESPONSES_TOTAL.labels(status_code=label).inc()
    if duration is not None:
        UPSTREAM_FETCH_DURATION.observe(duration)


def update_cache_size(count: int):
    """Update the gauge for cached entries"""
    CACHE_ENTRIES.set(count)


def record_sweep_evictions(count: int):
    """Record entries removed by a cache sweep"""
    if count:
        CACHE_SWEEP_EVICTIONS.inc(count)
