"""
Rate Limiting for SIAKAD API
============================
Implements rate limiting using slowapi.

Storage is selected with RATE_LIMIT_STORAGE_URI ("memory://" by default,
"redis://..." when several workers share counters).

Sensitive endpoints have their own limits:
- /auth/register: 3 req/min
- /auth/login: 5 req/min (brute force protection)
- /auth/forgot-password: 3 req/min
- /auth/verify-otp: 5 req/min (OTP guessing protection)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


# Endpoint limits, shared by the decorators below
REGISTER_LIMIT = "3/minute"
LOGIN_LIMIT = "5/minute"
FORGOT_PASSWORD_LIMIT = "3/minute"
VERIFY_OTP_LIMIT = "5/minute"


def get_client_identifier(request: Request) -> str:
    """
    Rate limit key for a request.

    Authenticated students are keyed by NIM (set on request.state by the
    bearer dependency), everyone else by client IP address.
    """
    nim = getattr(request.state, 'student_nim', None)
    if nim:
        return f"student:{nim}"
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns the common error envelope with a Retry-After header.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        extra={
            "event_type": "rate_limit_exceeded",
            "http_path": request.url.path,
        }
    )

    message = "Too many requests. Please try again later."
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": message,
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": message,
                "details": {"limit": str(exc.detail)},
            },
        },
        headers={"Retry-After": "60"},
    )
