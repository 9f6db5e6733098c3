"""
Admin Routes

Operational endpoints over the cache and its metrics:

- cache statistics (detailed, hourly, per-namespace key counts)
- Prometheus exposition of the in-process counters
- invalidation by user and by search fragment
- metrics reset

Every handler lets ``CacheError`` propagate; the application-level handler
turns it into a 503.
"""

from fastapi import APIRouter, Path, Query, Response

from muse_cache.api.dependencies import CacheMetricsDep, CollectorDep, MusicCacheDep
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.monitoring.cache_metrics import METRIC_KINDS
from muse_cache.models.metrics import CacheStats, DetailedCacheStats

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# STATISTICS
# ============================================================================


@router.get("/cache/stats", response_model=DetailedCacheStats)
async def get_cache_stats(metrics: CacheMetricsDep):
    """Overall, per-kind and hourly hit/miss statistics."""
    return await metrics.detailed_stats()


@router.get("/cache/stats/{kind}/hourly", response_model=list[CacheStats])
async def get_hourly_stats(
    metrics: CacheMetricsDep,
    kind: str = Path(..., pattern="^(" + "|".join(METRIC_KINDS) + ")$"),
    hours: int = Query(24, ge=1, le=168),
):
    """Hourly buckets for one kind, newest first."""
    return await metrics.hourly_stats(kind, hours)


@router.get("/cache/keys")
async def get_key_counts(cache: MusicCacheDep):
    """Live key count per cache namespace plus a total."""
    return await cache.cache_stats()


@router.get("/metrics")
async def get_prometheus_metrics(collector: CollectorDep):
    """Prometheus text exposition."""
    return Response(
        content=collector.get_prometheus_metrics(),
        media_type=collector.get_content_type(),
    )


# ============================================================================
# INVALIDATION
# ============================================================================


@router.post("/cache/invalidate/user/{user_id}")
async def invalidate_user(cache: MusicCacheDep, user_id: str = Path(..., min_length=1)):
    deleted = await cache.invalidate_user(user_id)
    logger.info("Admin invalidated user cache", user_id=user_id, deleted=deleted)
    return {"user_id": user_id, "deleted": deleted}


@router.post("/cache/invalidate/search")
async def invalidate_search(cache: MusicCacheDep, fragment: str = Query(..., min_length=1)):
    deleted = await cache.invalidate_search(fragment)
    logger.info("Admin invalidated search cache", fragment=fragment, deleted=deleted)
    return {"fragment": fragment, "deleted": deleted}


@router.delete("/cache/metrics")
async def reset_metrics(metrics: CacheMetricsDep):
    """Drop every windowed metrics key."""
    deleted = await metrics.reset()
    return {"deleted": deleted}
