"""
Health check endpoints.

Used for monitoring and load balancer health checks.
"""
import logging
import platform

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from core.domain.clock import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns process liveness only.
    """
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "service": request.app.title,
        "version": request.app.version,
        "python_version": platform.python_version(),
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Ready when the database answers a trivial query.
    """
    database = "ok"
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        database = "not initialized"
    else:
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Readiness check failed: {e}")
            database = "unavailable"

    ready = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not ready",
            "timestamp": utcnow().isoformat(),
            "checks": {"api": "ok", "database": database},
        },
    )
