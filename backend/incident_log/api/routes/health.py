import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from incident_log.core.logging import SERVICE_NAME

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness check for the load balancer.

    Returns 503 during graceful shutdown so traffic drains.
    """
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": SERVICE_NAME},
        )
    return {"status": "healthy", "service": SERVICE_NAME}

@router.get("/ready")
async def readiness_check():
    """Readiness check - verifies the database, and Redis when it is configured."""
    from incident_log.db.base import get_session_factory
    from incident_log.db.redis import get_redis_or_none

    checks: dict[str, bool | None] = {"database": False, "redis": None}

    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e), error_type=type(e).__name__)

    redis = get_redis_or_none()
    if redis is not None:
        try:
            await redis.ping()
            checks["redis"] = True
        except Exception as e:
            checks["redis"] = False
            logger.error("redis_health_check_failed", error=str(e), error_type=type(e).__name__)

    all_healthy = all(value is not False for value in checks.values())
    status_code = 200 if all_healthy else 503

    return JSONResponse(
        status_code=status_code,
        content={"status": "ready" if all_healthy else "degraded", "checks": checks},
    )
