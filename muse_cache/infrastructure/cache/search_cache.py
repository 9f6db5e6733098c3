"""
Search-Result Cache

A search result is cached and invalidated as one unit under
``{ns}:search:{kind}:{query}``. The stored envelope carries the query, the
result kind, the results and the time it was cached; on read it is decoded
as a tagged union and only accepted if its tag matches the requested kind.
"""

from datetime import datetime, timezone
from typing import Sequence

from pydantic import BaseModel

from muse_cache.core.config.constants import Stage
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.codec import decode_with, encode
from muse_cache.infrastructure.cache.keys import CacheKeyBuilder
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from muse_cache.models.search import (
    SEARCH_RESULT_MODELS,
    SearchResult,
    SearchResultKind,
    search_result_adapter,
)

logger = get_logger(__name__)


class SearchCache:
    """Whole-unit cache for provider search responses."""

    def __init__(self, store: CacheStore, keys: CacheKeyBuilder, ttl: int):
        self._store = store
        self._keys = keys
        self.ttl = ttl

    async def put(
        self, query: str, kind: SearchResultKind, results: Sequence[BaseModel]
    ) -> SearchResult:
        """
        Cache the results of one search.

        STAGE-CACHE.6: Search PUT

        Returns:
            The envelope as stored
        """
        kind = SearchResultKind(kind)
        envelope = SEARCH_RESULT_MODELS[kind](
            query=query,
            results=list(results),
            timestamp=datetime.now(timezone.utc),
        )
        key = self._keys.search(kind, query)
        await self._store.set(key, encode(envelope), ttl=self.ttl)
        get_metrics_collector().record_writes("search")

        logger.debug(
            "Cached search results",
            stage=Stage.CACHE_SEARCH.value,
            key=key,
            result_count=len(envelope.results),
        )
        return envelope

    async def get(self, query: str, kind: SearchResultKind) -> SearchResult | None:
        """
        Look up a cached search.

        Returns:
            The typed envelope, or None if absent, expired, undecodable or
            tagged with a different kind
        """
        kind = SearchResultKind(kind)
        key = self._keys.search(kind, query)
        payload = await self._store.get(key)
        if payload is None:
            return None

        envelope = decode_with(payload, search_result_adapter, key)
        if envelope is not None and envelope.result_type != kind.value:
            logger.warning(
                "Search payload tagged with unexpected kind",
                stage=Stage.CACHE_SEARCH.value,
                key=key,
                expected=kind.value,
                found=envelope.result_type,
            )
            return None
        return envelope
