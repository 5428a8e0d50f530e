from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from app.config import get_settings
from app.api.lookup_routes import router as lookup_router
from app.metrics import metrics_router, metrics_middleware
from app.logging_config import setup_logging, log_requests_middleware
from app.error_handlers import register_error_handlers
from app.middleware.rate_limit import limiter, rate_limit_handler, SlowAPIMiddleware
from app.schemas.lookup_schemas import HealthResponse
from app.services.extractor import ThreatLevelExtractor
from app.services.scheduler import CacheSweepScheduler
from app.services.threat_lookup import ThreatLookupService
from app.services.ttl_cache import TTLCache
from app.services.upstream import UpstreamFetcher
from slowapi.errors import RateLimitExceeded

settings = get_settings()

setup_logging(
    log_level=settings.log_level,
    log_dir=settings.log_dir,
    app_name="dbip-threat-service",
    enable_json=settings.log_json
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the lookup pipeline on startup and release it on shutdown"""
    logger.info("Starting application...")

    cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds)
    fetcher = UpstreamFetcher(
        base_url=settings.upstream_base_url,
        timeout=settings.upstream_timeout_seconds,
    )
    app.state.lookup_service = ThreatLookupService(
        cache=cache,
        fetcher=fetcher,
        extractor=ThreatLevelExtractor(),
        preview_chars=settings.body_preview_chars,
    )

    sweeper = CacheSweepScheduler(cache, interval_seconds=settings.cache_sweep_interval_seconds)
    sweeper.start()
    app.state.cache_sweeper = sweeper

    logger.info(
        f"Lookup service ready: upstream={settings.upstream_base_url}, "
        f"ttl={settings.cache_ttl_seconds}s"
    )

    yield

    logger.info("Shutting down application...")
    sweeper.stop()
    await fetcher.aclose()


app = FastAPI(
    title=settings.app_name,
    description="DB-IP threat level lookup proxy",
    version=settings.service_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,  # Disable docs in production
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Retry-After"],
)

# Add rate limiting middleware
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_middleware(SlowAPIMiddleware)

register_error_handlers(app)

if settings.enable_request_logging:
    app.middleware("http")(log_requests_middleware)

app.include_router(lookup_router)
app.include_router(metrics_router)

app.middleware("http")(metrics_middleware)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe; does not touch the lookup pipeline"""
    logger.debug("Health check performed")

    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        timestamp=datetime.now(timezone.utc),
    )
