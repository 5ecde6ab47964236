"""
Health Check Endpoints

Provides health, readiness, and liveness probes for monitoring and
load balancers.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings
from app.infra.database import check_db_health
from app.infra.redis import check_redis_health

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

APP_VERSION = "1.0.0"

# Application start time for uptime calculation
_start_time: Optional[datetime] = None


def set_start_time() -> None:
    """Set application start time. Called once on startup."""
    global _start_time
    _start_time = datetime.now(timezone.utc)


def get_uptime_seconds() -> Optional[float]:
    """Get application uptime in seconds."""
    if _start_time is None:
        return None
    return (datetime.now(timezone.utc) - _start_time).total_seconds()


class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: datetime
    version: str
    environment: str


class ReadyResponse(BaseModel):
    """Readiness check response with dependency status."""
    status: str
    timestamp: datetime
    checks: dict[str, str]


class LiveResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: datetime
    uptime_seconds: Optional[float] = None


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the application is running. Does not check dependencies.",
)
async def health() -> HealthResponse:
    """Basic health check. Use /health/ready for dependency checks."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        environment=settings.app_env,
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description=(
        "Checks Redis and, when appointments are stored in the database, "
        "database connectivity. Returns 503 if the appointment store is unavailable."
    ),
    responses={
        200: {"description": "Ready (Redis may be degraded to in-memory sessions)"},
        503: {"description": "The appointment database is unavailable"},
    },
)
async def ready() -> ReadyResponse:
    """
    Readiness probe.

    Checks:
    - Redis connectivity (sessions fall back to memory when down)
    - PostgreSQL connectivity, only with the database appointment store

    Returns 503 only if the appointment store is down.
    """
    checks = {}
    ready_ok = True
    degraded = False

    if settings.appointment_store == "database":
        db_ok = await check_db_health()
        checks["database"] = "ok" if db_ok else "failed"
        if not db_ok:
            ready_ok = False
            logger.warning("Readiness check: Database unhealthy")
    else:
        checks["database"] = "skipped"

    redis_ok = await check_redis_health()
    checks["redis"] = "ok" if redis_ok else "failed"
    if not redis_ok:
        degraded = True
        logger.warning("Readiness check: Redis unhealthy, sessions kept in memory")

    if not ready_ok:
        response_status = "not_ready"
    elif degraded:
        response_status = "degraded"
    else:
        response_status = "ready"

    response = ReadyResponse(
        status=response_status,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )

    if not ready_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response


@router.get(
    "/live",
    response_model=LiveResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Returns 200 if the process is alive.",
)
async def live() -> LiveResponse:
    """Liveness probe. Always returns 200 if the process is running."""
    return LiveResponse(
        status="alive",
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=get_uptime_seconds(),
    )
