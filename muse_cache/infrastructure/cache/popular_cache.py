"""
Popular-Content Cache

Globally popular albums and tracks are cached as one list per kind under
``{ns}:popular:albums`` and ``{ns}:popular:tracks``. A list is replaced
whole on every write; there is no per-item update.
"""

from typing import Sequence

from pydantic import TypeAdapter

from muse_cache.core.config.constants import Stage
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.codec import decode_with, encode_with
from muse_cache.infrastructure.cache.keys import CacheKeyBuilder
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from muse_cache.models.entities import Album, PopularKind, Track

logger = get_logger(__name__)

_ADAPTERS: dict[PopularKind, TypeAdapter] = {
    PopularKind.ALBUMS: TypeAdapter(list[Album]),
    PopularKind.TRACKS: TypeAdapter(list[Track]),
}


class PopularCache:
    """Whole-list cache for popular albums and tracks."""

    def __init__(self, store: CacheStore, keys: CacheKeyBuilder, ttl: int):
        self._store = store
        self._keys = keys
        self.ttl = ttl

    async def put(self, kind: PopularKind, items: Sequence[Album] | Sequence[Track]) -> None:
        """
        Replace the cached list for ``kind``.

        STAGE-CACHE.9: Popular PUT

        Raises:
            CacheSerializationError: If the list cannot be serialized
        """
        kind = PopularKind(kind)
        key = self._keys.popular(kind)
        await self._store.set(key, encode_with(list(items), _ADAPTERS[kind]), ttl=self.ttl)
        get_metrics_collector().record_writes("popular")

        logger.debug(
            "Cached popular content",
            stage=Stage.CACHE_POPULAR.value,
            key=key,
            item_count=len(items),
        )

    async def get(self, kind: PopularKind) -> list[Album] | list[Track] | None:
        """The cached list, or None if absent, expired or undecodable."""
        kind = PopularKind(kind)
        key = self._keys.popular(kind)
        payload = await self._store.get(key)
        if payload is None:
            return None
        return decode_with(payload, _ADAPTERS[kind], key)
