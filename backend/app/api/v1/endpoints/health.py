"""
Health Check Endpoints

Endpoints:
- /health/live  - Basic liveness (app is running)
- /health/ready - Readiness check (database reachable, tables present)
- /health/deep  - Detailed diagnostics including mail configuration
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from typing import Dict, Any
import time

from app.core.config import settings
from app.core.database import get_engine
from app.core.logging_config import logger
from app.services.email_service import email_service


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the students table is accessible"""
    start = time.time()
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1 as health"))

            try:
                await conn.execute(text("SELECT COUNT(*) FROM students"))
                tables_ok = True
            except SQLAlchemyError:
                tables_ok = False

            latency = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "latency_ms": round(latency, 2),
                "connection": "ok",
                "tables_ready": tables_ok,
                "message": "Database connection successful"
            }
    except (SQLAlchemyError, OSError) as e:
        latency = (time.time() - start) * 1000
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round(latency, 2),
            "connection": "failed",
            "tables_ready": False,
            "message": "Database connection failed"
        }


def check_email_config() -> Dict[str, Any]:
    """Report whether outgoing mail can be sent (OTP and verification depend on it)"""
    if email_service.is_configured:
        return {
            "status": "healthy",
            "provider": "smtp",
            "host": settings.SMTP_HOST,
            "message": "SMTP configured"
        }
    return {
        "status": "degraded",
        "provider": "smtp",
        "message": "SMTP credentials missing - verification and OTP emails will not be sent"
    }


@router.get("/live")
async def liveness_check():
    """Liveness probe - returns 200 while the process is alive"""
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness probe - 200 only when the database is reachable and migrated,
    503 otherwise.
    """
    db_check = await check_database()
    is_ready = db_check["status"] == "healthy" and db_check["tables_ready"]

    content = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {"database": db_check},
    }
    return JSONResponse(status_code=200 if is_ready else 503, content=content)


@router.get("/deep")
async def deep_health_check():
    """Detailed diagnostics for operators"""
    db_check = await check_database()
    email_check = check_email_config()

    statuses = {db_check["status"], email_check["status"]}
    if "unhealthy" in statuses:
        overall = "unhealthy"
    elif "degraded" in statuses:
        overall = "degraded"
    else:
        overall = "healthy"

    return {
        "status": overall,
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "checks": {
            "database": db_check,
            "email": email_check,
        },
    }
