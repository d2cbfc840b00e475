from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from slowapi.errors import RateLimitExceeded

from app.core.config import settings
from app.core.csrf import CSRFError
from app.core.database import get_engine, init_db, close_db
from app.core.exceptions import SiakadError, ValidationError, error_response, field_errors
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.api.v1.router import api_router
from app.modules.auth.dependencies import AdminLoginRequired
from app.web.router import web_router
from app.web.templating import render_error_page


async def validate_critical_config():
    """Validate critical configuration at startup - fail fast if missing"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if not settings.SECRET_KEY or settings.SECRET_KEY == "CHANGE_ME":
        errors.append("SECRET_KEY is not set or using default value")

    if not settings.JWT_SECRET_KEY or settings.JWT_SECRET_KEY == "CHANGE_ME":
        errors.append("JWT_SECRET_KEY is not set or using default value")

    # Warnings: App can function but some features may not work
    if not (settings.SMTP_USER and settings.SMTP_PASSWORD):
        warnings.append("SMTP credentials not set - verification and OTP emails will not be sent")

    if settings.DEBUG and settings.ENVIRONMENT == "production":
        warnings.append("DEBUG is on in production - error details will be exposed")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")

    logger.info("[Startup] ✓ Critical configuration validated")
    return True


async def ensure_database_ready():
    """Create missing tables; programs of study still have to be seeded"""
    try:
        await init_db()
        async with get_engine().connect() as conn:
            programs = await conn.scalar(text("SELECT COUNT(*) FROM programs_of_study"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"[Startup] Failed to ensure database ready: {e}")
        return False

    if not programs:
        logger.warning(
            "[Startup] No programs of study found - registration will fail until "
            "`python -m app.db.seed_data` is run"
        )
    logger.info("[Startup] Database tables ready")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} - {settings.INSTITUTION_NAME}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"API Version: {settings.API_VERSION}")
    logger.info("=" * 60)

    await validate_critical_config()

    db_ready = await ensure_database_ready()
    if not db_ready:
        logger.warning("[Startup] Database not ready - some features may fail")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Student information system: student self-service API and admin pages",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
# 1. Request logging (runs first for all requests)
app.add_middleware(RequestLoggingMiddleware)

# 2. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 3. Request size limit
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE_BYTES)

# 4. Signed cookie sessions for the admin pages
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=settings.ENVIRONMENT == "production",
)

# 5. CORS - Origins from CORS_ORIGINS_STR in .env
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(SiakadError)
async def siakad_exception_handler(request: Request, exc: SiakadError):
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(field_errors(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error_response(error))


@app.exception_handler(CSRFError)
async def csrf_exception_handler(request: Request, exc: CSRFError):
    logger.warning(
        f"[CSRF] Token mismatch on {request.method} {request.url.path}",
        extra={"event_type": "csrf_mismatch", "http_path": request.url.path}
    )
    return render_error_page(
        request,
        status.HTTP_403_FORBIDDEN,
        "Your session has expired or the form is invalid. Please go back and try again."
    )


@app.exception_handler(AdminLoginRequired)
async def admin_login_required_handler(request: Request, exc: AdminLoginRequired):
    return RedirectResponse(request.url_for("admin.login"), status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, context=f"{request.method} {request.url.path}")
    message = "An unexpected error occurred."
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": message,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) if settings.DEBUG else message,
                "details": {},
            },
        }
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME} {settings.INSTITUTION_NAME}",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "admin": "/admin/login",
    }


# Include API router
app.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

# Server-rendered admin pages
app.include_router(web_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
