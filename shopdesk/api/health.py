"""Health check endpoints"""
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdesk import __version__
from shopdesk.config import settings
from shopdesk.database import get_db
from shopdesk.middleware.monitoring import get_request_id
from shopdesk.utils.logger import logger

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


@router.get("")
def health_check(request: Request):
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "requestId": get_request_id(request),
        "status": "healthy",
        "service": "ShopDesk",
        "version": __version__,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/ready")
def readiness_check(request: Request, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Readiness check - verifies the database is reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks = {
        "database": False,
        "database_latency_ms": None,
        "storage_configured": bool(settings.STORAGE_URL and settings.STORAGE_SERVICE_KEY),
    }

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        checks["database"] = True
        checks["database_latency_ms"] = round(latency_ms, 2)
    except SQLAlchemyError:
        logger.error("Readiness check failed", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "requestId": get_request_id(request),
                "status": "unhealthy",
                "checks": checks,
                "message": "Database check failed",
            },
        )

    if latency_ms > 1000:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "requestId": get_request_id(request),
                "status": "degraded",
                "checks": checks,
                "message": "Database latency is high",
            },
        )

    return {
        "requestId": get_request_id(request),
        "status": "ready",
        "checks": checks,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/live")
def liveness_check(request: Request):
    """
    Liveness check - verifies service is alive

    Used by Kubernetes liveness probe
    """
    return {
        "requestId": get_request_id(request),
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": datetime.utcnow().isoformat()
    }
