"""
Cache-Aside Read Path

Pattern: cache-aside (lazy loading)
- Look up the cache and time the lookup
- Report the hit or miss to CacheMetrics
- On a miss, fetch from the origin and write the result back
- Return the record

There is no single-flight guard: concurrent misses for the same id each
call the origin.
"""

import asyncio
import inspect
import time
from typing import Any, Callable, Iterable

from muse_cache.core.config.constants import Stage
from muse_cache.core.exceptions import CacheError
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.entity_cache import dedupe
from muse_cache.infrastructure.cache.music_cache import MusicCache
from muse_cache.infrastructure.monitoring.cache_metrics import CacheMetrics
from muse_cache.models.entities import EntityKind

logger = get_logger(__name__)

Fetch = Callable[[str], Any]
FetchMany = Callable[[list[str]], Any]


async def _call(fn: Callable, *args) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class CacheAside:
    """
    Read-through helper combining the cache, the metrics pipeline and an
    origin fetcher supplied per call.

    Usage:
        reader = CacheAside(music_cache, cache_metrics)
        track = await reader.get_or_fetch(EntityKind.TRACK, "t1", provider.get_track)
    """

    def __init__(self, cache: MusicCache, metrics: CacheMetrics):
        self._cache = cache
        self._metrics = metrics

    async def get_or_fetch(self, kind: EntityKind, entity_id: str, fetch: Fetch) -> Any | None:
        """
        Serve one record from the cache, or from ``fetch`` on a miss.

        STAGE-CACHE.8: Cache-aside single read

        Returns:
            The record, or None if the origin has none either

        Raises:
            CacheError: If the cache lookup fails (not treated as a miss)
        """
        entity_cache = self._cache.entity(kind)
        key = entity_cache.key_for(entity_id)

        start = time.perf_counter()
        record = await entity_cache.get(entity_id)
        elapsed = time.perf_counter() - start

        if record is not None:
            await self._metrics.record_hit(entity_cache.kind, key, elapsed)
            return record

        await self._metrics.record_miss(entity_cache.kind, key, elapsed)

        record = await _call(fetch, entity_id)
        if record is not None:
            await self._write_back(entity_cache.kind, [record])
        return record

    async def get_many_or_fetch(
        self, kind: EntityKind, ids: Iterable[str], fetch_many: FetchMany
    ) -> list[Any]:
        """
        Serve many records, fetching only the ids the cache is missing.

        STAGE-CACHE.8: Cache-aside batch read

        Returns:
            Cached records followed by fetched records
        """
        entity_cache = self._cache.entity(kind)
        unique_ids = dedupe(ids)
        if not unique_ids:
            return []

        start = time.perf_counter()
        batch = await entity_cache.get_many(unique_ids)
        elapsed = time.perf_counter() - start

        missing = set(batch.missing)
        await asyncio.gather(*(
            (self._metrics.record_miss if entity_id in missing else self._metrics.record_hit)(
                entity_cache.kind, entity_cache.key_for(entity_id), elapsed
            )
            for entity_id in unique_ids
        ))

        if not batch.missing:
            return list(batch.found)

        fetched = [record for record in await _call(fetch_many, list(batch.missing)) if record is not None]
        if fetched:
            await self._write_back(entity_cache.kind, fetched)

        logger.debug(
            "Cache-aside batch served",
            stage=Stage.CACHE_ASIDE.value,
            kind=entity_cache.kind.value,
            cached=len(batch.found),
            fetched=len(fetched),
        )
        return [*batch.found, *fetched]

    async def _write_back(self, kind: EntityKind, records: list[Any]) -> None:
        """
        Populate the cache with origin records.

        The caller already holds the records, so a failed write-back is
        logged and the records are still returned.
        """
        try:
            if len(records) == 1:
                await self._cache.entity(kind).put(records[0])
            else:
                await self._cache.entity(kind).put_many(records)
        except CacheError as e:
            logger.warning(
                "Cache write-back failed",
                stage=Stage.CACHE_ASIDE.value,
                kind=kind.value,
                count=len(records),
                error=e.message,
            )
