"""
Error handling for the threat level API

Provides:
- Custom exception classes for the lookup pipeline
- Exception handlers for FastAPI
- Standardized error responses
"""
import logging
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.config import get_settings

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for API exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        extra: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.extra = extra or {}
        super().__init__(self.message)


class InvalidIPFormatError(APIError):
    """Input is not a syntactically valid IPv4/IPv6 address"""

    def __init__(self, ip: str):
        super().__init__(
            message="Invalid IP address format. Please provide a valid IPv4 or IPv6 address",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="INVALID_IP_FORMAT",
            extra={"input": ip}
        )
        self.ip = ip


class AccessDeniedError(APIError):
    """Client identity does not carry the required token"""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="FORBIDDEN"
        )


class UpstreamUnavailableError(APIError):
    """Transport-level failure reaching the upstream source"""

    def __init__(self, ip: str, reason: str, user_agent: Optional[str] = None):
        super().__init__(
            message="Threat level source is unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_code="UPSTREAM_UNAVAILABLE",
            extra={"input": ip}
        )
        self.ip = ip
        self.reason = reason
        self.user_agent = user_agent


class UpstreamExtractionFailedError(APIError):
    """Upstream answered but no threat level could be extracted"""

    def __init__(
        self,
        ip: str,
        error: str,
        status_code: Optional[int],
        user_agent: str,
        url: str,
        preview: str
    ):
        super().__init__(
            message="Failed to extract threat level from DB-IP",
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="UPSTREAM_EXTRACTION_FAILED",
            extra={"input": ip, "detail": error}
        )
        self.ip = ip
        self.error = error
        self.response_status = status_code
        self.user_agent = user_agent
        self.url = url
        self.preview = preview

    def debug_info(self, preview_chars: int) -> Dict[str, Any]:
        """Diagnostic context for triage without replaying the request"""
        preview = self.preview[:preview_chars] + "..." if self.preview else None
        return {
            "user_agent": self.user_agent,
            "response_status": self.response_status,
            "url": self.url,
            "response_preview": preview,
        }


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API exceptions"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        f"API error: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "path": request.url.path
        }
    )

    content = {
        "error": exc.error_code,
        "message": exc.message,
        "path": request.url.path,
        **exc.extra
    }

    if isinstance(exc, UpstreamExtractionFailedError):
        content["debug_info"] = exc.debug_info(get_settings().debug_preview_chars)

    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors"""
    errors = exc.errors()

    logger.warning(
        f"Validation error: {errors}",
        extra={"path": request.url.path}
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in errors],
            "path": request.url.path
        }
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={"path": request.url.path},
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "INTERNAL_ERROR",
            "message": "Internal server error",
            "path": request.url.path
        }
    )


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app"""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    logger.info("Error handlers registered")
