from muse_cache.infrastructure.monitoring.cache_metrics import CacheMetrics
from muse_cache.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)

__all__ = ["CacheMetrics", "MetricsCollector", "get_metrics_collector"]
