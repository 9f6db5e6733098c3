"""
System Constants and Enumerations

This module defines constants shared by the cache, invalidation and
metrics components: stage identifiers for structured logs and the fixed
segments of the Redis key layout.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages used as the ``stage`` field of log events.

    Format: {PREFIX}.{STEP}_{DESCRIPTIVE_NAME}
    """

    INITIALIZATION = "0.0_INITIALIZATION"

    CACHE_GET = "CACHE.1_ENTITY_GET"
    CACHE_PUT = "CACHE.2_ENTITY_PUT"
    CACHE_BATCH_GET = "CACHE.3_BATCH_GET"
    CACHE_BATCH_PUT = "CACHE.4_BATCH_PUT"
    CACHE_WARM_UP = "CACHE.5_WARM_UP"
    CACHE_SEARCH = "CACHE.6_SEARCH"
    CACHE_TOKEN = "CACHE.7_TOKEN"
    CACHE_ASIDE = "CACHE.8_CACHE_ASIDE"
    CACHE_POPULAR = "CACHE.9_POPULAR"

    INVALIDATE_USER = "INVALIDATE.1_USER"
    INVALIDATE_SEARCH = "INVALIDATE.2_SEARCH"
    INVALIDATE_STATS = "INVALIDATE.3_KEY_STATS"

    METRICS_RECORD = "METRICS.1_RECORD"
    METRICS_READ = "METRICS.2_READ"
    METRICS_RESET = "METRICS.3_RESET"


# ============================================================================
# Metric outcomes
# ============================================================================


class MetricOutcome(str, Enum):
    """Outcome of a cache lookup as recorded by the metrics pipeline."""

    HIT = "hit"
    MISS = "miss"


# ============================================================================
# Redis key segments
# ============================================================================

# Entity namespaces under CACHE_NAMESPACE
KEY_SEGMENT_SEARCH = "search"
KEY_SEGMENT_TOKEN = "token"
KEY_SEGMENT_POPULAR = "popular"

# Metrics namespaces under METRICS_NAMESPACE
METRIC_SEGMENT_HITS = "hits"
METRIC_SEGMENT_MISSES = "misses"
METRIC_SEGMENT_TIMING = "timing"
METRIC_SEGMENT_POPULAR = "popular"
METRIC_SEGMENT_FREQUENT = "frequent"
METRIC_SEGMENT_TOTAL = "total"

# Hour bucket format (UTC)
HOUR_BUCKET_FORMAT = "%Y-%m-%d-%H"

# HTTP
HEADER_REQUEST_ID = "X-Request-ID"
