"""
FastAPI Dependency Injection

Providers for the singletons built during application startup. Route
handlers receive them through the ``*Dep`` aliases, so tests can swap any
of them via ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from muse_cache.core.config.settings import Settings, get_settings
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.infrastructure.cache.music_cache import MusicCache
from muse_cache.infrastructure.monitoring.cache_metrics import CacheMetrics
from muse_cache.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)

# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


def get_store(request: Request) -> CacheStore:
    """Backing store connected in the lifespan."""
    return request.app.state.store


def get_music_cache(request: Request) -> MusicCache:
    """MusicCache facade stored on ``app.state`` at startup."""
    return request.app.state.music_cache


def get_cache_metrics(request: Request) -> CacheMetrics:
    return request.app.state.cache_metrics


# ============================================================================
# TYPE ALIASES
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings)]
StoreDep = Annotated[CacheStore, Depends(get_store)]
MusicCacheDep = Annotated[MusicCache, Depends(get_music_cache)]
CacheMetricsDep = Annotated[CacheMetrics, Depends(get_cache_metrics)]
CollectorDep = Annotated[MetricsCollector, Depends(get_metrics_collector)]
