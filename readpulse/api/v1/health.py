"""Health check endpoint."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from readpulse.cache.redis_client import get_redis_client
from readpulse.config import settings
from readpulse.db.session import get_db

router = APIRouter()


@router.get(
    "/health",
    summary="Health check",
    description="""
System health check for monitoring and load balancers.

**Status Values:**
- `healthy` - All systems operational
- `degraded` - Database unreachable, or Redis enabled but unreachable

**No authentication required.**
    """,
)
async def health_check(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    """Health check endpoint for monitoring and load balancer probes."""
    health_status = {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {},
    }

    # Check database connectivity
    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        health_status["checks"]["database"] = "healthy"
    except Exception as e:
        health_status["status"] = "degraded"
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"

    # Redis backs the shared rankings; optional when disabled
    if not settings.redis_enabled:
        health_status["checks"]["redis"] = "disabled"
    elif await get_redis_client() is None:
        health_status["status"] = "degraded"
        health_status["checks"]["redis"] = "unhealthy"
    else:
        health_status["checks"]["redis"] = "healthy"

    return health_status
