import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError

from bikeshop.api.dependencies import get_redis_client

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for load balancer.

    Returns 503 during graceful shutdown so the balancer stops routing traffic.
    """
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": "bikeshop-backend"},
        )
    return {"status": "healthy", "service": "bikeshop-backend"}


@router.get("/ready")
async def readiness_check(redis: Redis = Depends(get_redis_client)):
    """Readiness check - verifies the workflow store is reachable."""
    checks = {"redis": False}

    try:
        await redis.ping()
        checks["redis"] = True
    except (RedisError, OSError) as e:
        logger.error("redis_health_check_failed", error=str(e), error_type=type(e).__name__)

    all_healthy = all(checks.values())
    status_code = 200 if all_healthy else 503

    return JSONResponse(
        status_code=status_code,
        content={"status": "ready" if all_healthy else "degraded", "checks": checks},
    )
