"""
Health Check Routes

- ``GET /health``: liveness, never touches Redis
- ``GET /health/ready``: readiness, pings the backing store and answers
  503 when it is unreachable
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from muse_cache.api.dependencies import SettingsDep, StoreDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Standard health check response model."""

    status: str
    timestamp: str
    version: str
    components: dict | None = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("", response_model=HealthResponse)
async def health_check(settings: SettingsDep):
    """Liveness probe for load balancers."""
    return HealthResponse(
        status="healthy",
        timestamp=_now_iso(),
        version=settings.app.APP_VERSION,
    )


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(settings: SettingsDep, store: StoreDep):
    """
    Readiness probe.

    Returns 503 with the same body when the store reports unhealthy, so
    the instance is taken out of rotation without being restarted.
    """
    redis_health = await store.health_check()
    body = HealthResponse(
        status=redis_health.get("status", "unhealthy"),
        timestamp=_now_iso(),
        version=settings.app.APP_VERSION,
        components={"redis": redis_health},
    )
    if body.status != "healthy":
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
