#!/usr/bin/env python3
"""
Process Metrics with Prometheus Integration

Per-process counters and histograms scraped from the admin API:
- Cache lookups by kind and outcome, with latency histograms
- Records written by kind
- Store errors by operation and error type
- Keys removed by invalidation
- Failed writes to the Redis-backed metrics pipeline

These complement the Redis-backed CacheMetrics, which aggregates across
every instance sharing the store.

Architectural Decision: prometheus-client for industry-standard metrics
"""


from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from muse_cache.core.config.settings import get_settings
from muse_cache.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

CACHE_LOOKUPS = Counter(
    'muse_cache_lookups_total',
    'Cache lookups by record kind and outcome',
    ['kind', 'outcome']  # hit or miss
)

CACHE_LOOKUP_DURATION = Histogram(
    'muse_cache_lookup_duration_seconds',
    'Cache lookup latency in seconds',
    ['kind', 'outcome'],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)
)

CACHE_WRITES = Counter(
    'muse_cache_writes_total',
    'Records written to the cache',
    ['kind']
)

CACHE_SERIALIZATION_SKIPS = Counter(
    'muse_cache_serialization_skips_total',
    'Records skipped in a batch write because they failed to serialize',
    ['kind']
)

STORE_ERRORS = Counter(
    'muse_cache_store_errors_total',
    'Store command failures by operation and error type',
    ['operation', 'error_type']
)

INVALIDATED_KEYS = Counter(
    'muse_cache_invalidated_keys_total',
    'Keys removed by invalidation',
    ['scope']  # user or search
)

METRICS_WRITE_FAILURES = Counter(
    'muse_cache_metrics_write_failures_total',
    'Failed writes to the Redis-backed metrics pipeline',
    ['outcome']
)

APP_INFO = Info(
    'muse_cache_app',
    'Cache service information'
)


class MetricsCollector:
    """
    Process metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = get_metrics_collector()
        metrics.record_lookup("track", "hit", 0.0012)
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        logger.info("Metrics collector initialized", stage="M.0")

    # =========================================================================
    # Cache Metrics
    # =========================================================================

    def record_lookup(self, kind: str, outcome: str, duration_seconds: float) -> None:
        """Record one cache lookup and its latency."""
        CACHE_LOOKUPS.labels(kind=kind, outcome=outcome).inc()
        CACHE_LOOKUP_DURATION.labels(kind=kind, outcome=outcome).observe(duration_seconds)

    def record_writes(self, kind: str, count: int = 1) -> None:
        """Record records written to the cache."""
        if count > 0:
            CACHE_WRITES.labels(kind=kind).inc(count)

    def record_serialization_skips(self, kind: str, count: int = 1) -> None:
        if count > 0:
            CACHE_SERIALIZATION_SKIPS.labels(kind=kind).inc(count)

    def record_store_error(self, operation: str, error_type: str) -> None:
        """Record a failed store command."""
        STORE_ERRORS.labels(operation=operation, error_type=error_type).inc()

    def record_invalidation(self, scope: str, deleted: int) -> None:
        """Record keys removed by an invalidation sweep."""
        if deleted > 0:
            INVALIDATED_KEYS.labels(scope=scope).inc(deleted)

    def record_metrics_write_failure(self, outcome: str) -> None:
        METRICS_WRITE_FAILURES.labels(outcome=outcome).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
