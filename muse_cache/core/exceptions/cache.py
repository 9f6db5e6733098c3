"""
Cache-Related Exceptions

All exceptions raised by the store adapter and the caches built on it.
A cache miss is never an exception: lookups return ``None``.
"""

from muse_cache.core.exceptions.base import MuseBaseError


class CacheError(MuseBaseError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the cache store (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a store command fails.

    Common causes:
    - Wrong key type for the command
    - Memory limit exceeded
    - Command rejected by the server
    """
    pass


class CacheTimeoutError(CacheError):
    """
    Raised when a store call exceeds the caller's deadline.

    A timeout is not a miss: callers must not fall through to the origin
    as if the key were absent.
    """
    pass


class CacheSerializationError(CacheError):
    """Raised when a record cannot be serialized for writing."""
    pass
