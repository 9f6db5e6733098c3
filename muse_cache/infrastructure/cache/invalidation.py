"""
Pattern-Based Cache Invalidation

Both sweeps enumerate matching keys with SCAN and then delete them in
chunks. They are best-effort and non-atomic: a concurrent writer can
repopulate a key between enumeration and delete, and that key survives
with a fresh TTL.
"""

from typing import Any

from muse_cache.core.config.constants import (
    KEY_SEGMENT_POPULAR,
    KEY_SEGMENT_SEARCH,
    KEY_SEGMENT_TOKEN,
    Stage,
)
from muse_cache.core.exceptions import CacheError
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.keys import USER_SCOPED_SEGMENTS, CacheKeyBuilder
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from muse_cache.models.entities import EntityKind

logger = get_logger(__name__)

# Report label → key segment
STATS_NAMESPACES = {
    "tracks": EntityKind.TRACK.value,
    "albums": EntityKind.ALBUM.value,
    "artists": EntityKind.ARTIST.value,
    "user_data": EntityKind.USER.value,
    "recommendations": EntityKind.RECOMMENDATIONS.value,
    "history": EntityKind.HISTORY.value,
    "popular": KEY_SEGMENT_POPULAR,
    "searches": KEY_SEGMENT_SEARCH,
    "tokens": KEY_SEGMENT_TOKEN,
}


class CacheInvalidator:
    """
    Evicts keys by user and by search-query fragment.

    Args:
        store: Cache store
        keys: Key builder for the shared namespace
        scan_count: SCAN COUNT hint
        delete_chunk_size: Keys per DEL command
    """

    def __init__(
        self,
        store: CacheStore,
        keys: CacheKeyBuilder,
        scan_count: int = 500,
        delete_chunk_size: int = 500,
    ):
        self._store = store
        self._keys = keys
        self._scan_count = scan_count
        self._chunk = delete_chunk_size

    async def _delete_keys(self, keys: list[str]) -> int:
        deleted = 0
        for start in range(0, len(keys), self._chunk):
            deleted += await self._store.delete(*keys[start:start + self._chunk])
        return deleted

    async def invalidate_user(self, user_id: str) -> int:
        """
        Delete the user's snapshot, recommendations, listening history and token.

        STAGE-INVALIDATE.1: User sweep

        Catalog keys that happen to share the id, and other users' keys,
        are left alone.

        Returns:
            Number of keys deleted
        """
        pattern = self._keys.user_pattern(user_id)
        candidates = await self._store.scan_keys(pattern, self._scan_count)

        targets = []
        for key in candidates:
            parts = self._keys.split(key)
            if parts and parts[0] in USER_SCOPED_SEGMENTS and parts[1] == user_id:
                targets.append(key)

        deleted = await self._delete_keys(targets)
        get_metrics_collector().record_invalidation("user", deleted)

        logger.info(
            "User cache invalidated",
            stage=Stage.INVALIDATE_USER.value,
            user_id=user_id,
            matched=len(targets),
            deleted=deleted,
        )
        return deleted

    async def invalidate_search(self, fragment: str) -> int:
        """
        Delete every cached search whose query contains ``fragment``.

        STAGE-INVALIDATE.2: Search sweep

        Returns:
            Number of keys deleted
        """
        pattern = self._keys.search_pattern(fragment)
        targets = await self._store.scan_keys(pattern, self._scan_count)

        deleted = await self._delete_keys(targets)
        get_metrics_collector().record_invalidation("search", deleted)

        logger.info(
            "Search cache invalidated",
            stage=Stage.INVALIDATE_SEARCH.value,
            fragment=fragment,
            matched=len(targets),
            deleted=deleted,
        )
        return deleted

    async def key_counts(self) -> dict[str, Any]:
        """
        Count cached keys per namespace.

        STAGE-INVALIDATE.3: Key statistics

        A namespace whose scan fails is left out of the report.
        """
        stats: dict[str, Any] = {}
        for label, segment in STATS_NAMESPACES.items():
            try:
                keys = await self._store.scan_keys(self._keys.segment_pattern(segment), self._scan_count)
            except CacheError as e:
                logger.warning(
                    "Key count failed for namespace",
                    stage=Stage.INVALIDATE_STATS.value,
                    namespace=label,
                    error=e.message,
                )
                continue
            stats[label] = len(keys)

        stats["total"] = sum(stats.values())
        return stats
