"""
Rate Limiting Middleware

Limits inbound lookups per client address so the service cannot be used
to hammer the upstream source. Uses slowapi for the implementation.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi import Request, Response
from fastapi.responses import JSONResponse
import logging

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Process-local limiter; counts are not shared between instances
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


def retry_after_seconds(exc: RateLimitExceeded) -> int:
    """Length of the exceeded limit window, in seconds"""
    return exc.limit.limit.get_expiry()


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """
    Custom handler for rate limit exceeded errors

    Args:
        request: The FastAPI request
        exc: The RateLimitExceeded exception

    Returns:
        JSONResponse with 429 status code
    """
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "message": f"Too many requests. Limit: {exc.detail}",
            "path": request.url.path,
        },
        headers={"Retry-After": str(retry_after_seconds(exc))},
    )


__all__ = ["limiter", "rate_limit_handler", "SlowAPIMiddleware", "RateLimitExceeded"]
