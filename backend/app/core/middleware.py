"""
SIAKAD - HTTP Middleware

- RequestLoggingMiddleware: request id, timing header, one log line per request
- SecurityHeadersMiddleware: browser hardening headers; admin pages are never cached
- RequestSizeLimitMiddleware: rejects oversized bodies before they are parsed
"""

import time
from typing import Callable, Dict, FrozenSet
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)


# Probes and docs are not worth a log line each
SKIP_LOGGING_PATHS: FrozenSet[str] = frozenset({
    "/",
    "/health",
    "/api/v1/health/live",
    "/api/v1/health/ready",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
})

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

ADMIN_PATH_PREFIX = "/admin"


def should_skip_logging(path: str) -> bool:
    return path in SKIP_LOGGING_PATHS or path.startswith("/static/")


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it and log the outcome"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{request.method} {path} raised {type(exc).__name__}",
                exc_info=True,
                extra={
                    "event_type": "http_request_error",
                    "http_method": request.method,
                    "http_path": path,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                }
            )
            raise
        else:
            duration_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
            if not should_skip_logging(path):
                logger.log_request(
                    request.method,
                    path,
                    response.status_code,
                    duration_ms,
                    client_ip=_client_ip(request),
                )
            return response
        finally:
            set_request_id("")
            set_user_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add SECURITY_HEADERS to every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if request.url.path.startswith(ADMIN_PATH_PREFIX):
            # Student records must not linger in shared browser caches
            response.headers["Cache-Control"] = "no-store"
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """413 in the API error envelope when Content-Length exceeds max_size"""

    def __init__(self, app: ASGIApp, max_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {declared} byte body on {request.url.path} (limit {self.max_size})",
                extra={"event_type": "request_too_large", "http_path": request.url.path}
            )
            message = f"Request body too large. Maximum size is {self.max_size // 1024}KB."
            return JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "message": message,
                    "error": {"code": "PAYLOAD_TOO_LARGE", "message": message, "details": {}},
                }
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "should_skip_logging",
    "SKIP_LOGGING_PATHS",
    "SECURITY_HEADERS",
]
