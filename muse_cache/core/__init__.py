"""
Core Module

Foundational components: configuration, logging, exceptions and deadlines.
"""

from .deadline import cache_deadline, effective_timeout, remaining_time
from .exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CacheTimeoutError,
    ConfigurationError,
    MuseBaseError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "CacheConnectionError",
    "CacheError",
    "CacheKeyError",
    "CacheSerializationError",
    "CacheTimeoutError",
    "ConfigurationError",
    "MuseBaseError",
    "cache_deadline",
    "clear_request_id",
    "effective_timeout",
    "get_logger",
    "get_request_id",
    "log_stage",
    "remaining_time",
    "set_request_id",
    "setup_logging",
]
