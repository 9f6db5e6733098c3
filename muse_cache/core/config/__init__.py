"""
Configuration Module

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Stage identifiers and Redis key segments

Usage:
------
```python
from muse_cache.core.config import get_settings
from muse_cache.core.config.constants import Stage

settings = get_settings()
ttl = settings.cache.CACHE_TRACK_TTL
```
"""

from muse_cache.core.config.constants import (
    HEADER_REQUEST_ID,
    HOUR_BUCKET_FORMAT,
    KEY_SEGMENT_POPULAR,
    KEY_SEGMENT_SEARCH,
    KEY_SEGMENT_TOKEN,
    METRIC_SEGMENT_FREQUENT,
    METRIC_SEGMENT_HITS,
    METRIC_SEGMENT_MISSES,
    METRIC_SEGMENT_POPULAR,
    METRIC_SEGMENT_TIMING,
    METRIC_SEGMENT_TOTAL,
    MetricOutcome,
    Stage,
)
from muse_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "MetricOutcome",
    # Key segments
    "KEY_SEGMENT_POPULAR",
    "KEY_SEGMENT_SEARCH",
    "KEY_SEGMENT_TOKEN",
    "METRIC_SEGMENT_HITS",
    "METRIC_SEGMENT_MISSES",
    "METRIC_SEGMENT_TIMING",
    "METRIC_SEGMENT_POPULAR",
    "METRIC_SEGMENT_FREQUENT",
    "METRIC_SEGMENT_TOTAL",
    "HOUR_BUCKET_FORMAT",
    # HTTP
    "HEADER_REQUEST_ID",
]
