"""
Cache infrastructure: the Redis store adapter and the caches built on it.
"""

from muse_cache.infrastructure.cache.entity_cache import EntityCache
from muse_cache.infrastructure.cache.invalidation import CacheInvalidator
from muse_cache.infrastructure.cache.keys import CacheKeyBuilder, TTLPolicy, escape_glob
from muse_cache.infrastructure.cache.music_cache import MusicCache
from muse_cache.infrastructure.cache.popular_cache import PopularCache
from muse_cache.infrastructure.cache.redis_client import (
    RedisClient,
    close_redis,
    get_redis_client,
    init_redis,
)
from muse_cache.infrastructure.cache.search_cache import SearchCache
from muse_cache.infrastructure.cache.token_cache import TokenCache

__all__ = [
    "CacheInvalidator",
    "CacheKeyBuilder",
    "EntityCache",
    "MusicCache",
    "PopularCache",
    "RedisClient",
    "SearchCache",
    "TTLPolicy",
    "TokenCache",
    "close_redis",
    "escape_glob",
    "get_redis_client",
    "init_redis",
]
