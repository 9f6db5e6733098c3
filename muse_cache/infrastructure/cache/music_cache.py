"""
Music Metadata Cache (Public Facade)

Architecture:
    MusicCache
        ├── EntityCache × 6 (track, album, artist, user snapshot, recommendations, history)
        ├── SearchCache
        ├── PopularCache
        ├── TokenCache
        └── CacheInvalidator

The query layer calls into this facade on every read. On a miss it fetches
from the metadata provider and writes back through ``put*`` or ``warm_up``.
Metrics are reported by the caller (see ``CacheAside``), never read here.

Usage:
    cache = MusicCache(await init_redis())

    batch = await cache.get_tracks(["t1", "t2", "t3"])
    fetched = await provider.tracks(batch.missing)
    await cache.put_tracks(fetched)
"""

from datetime import datetime, timezone
from typing import Iterable

from muse_cache.core.config.constants import Stage
from muse_cache.core.config.settings import get_settings
from muse_cache.core.exceptions import CacheSerializationError
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.cache.entity_cache import EntityCache
from muse_cache.infrastructure.cache.invalidation import CacheInvalidator
from muse_cache.infrastructure.cache.keys import CacheKeyBuilder, TTLPolicy
from muse_cache.infrastructure.cache.popular_cache import PopularCache
from muse_cache.infrastructure.cache.search_cache import SearchCache
from muse_cache.infrastructure.cache.token_cache import TokenCache
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from muse_cache.models.batch import BatchWriteResult, PartialBatchResult
from muse_cache.models.entities import (
    Album,
    Artist,
    EntityKind,
    ListeningHistory,
    PopularKind,
    Recommendations,
    Track,
    UserSnapshot,
)
from muse_cache.models.search import SearchResult, SearchResultKind

logger = get_logger(__name__)


class MusicCache:
    """
    Cache-aside data layer for provider metadata.

    Args:
        store: Cache store (RedisClient in production)
        settings: Application settings (defaults to the global settings)
    """

    def __init__(self, store: CacheStore, settings=None):
        self._settings = settings or get_settings()
        cfg = self._settings.cache

        self._store = store
        self.keys = CacheKeyBuilder(cfg.CACHE_NAMESPACE)
        self.ttl = TTLPolicy.from_settings(self._settings)
        self._recently_played_limit = cfg.CACHE_RECENTLY_PLAYED_LIMIT

        self._entities: dict[EntityKind, EntityCache] = {
            kind: EntityCache(store, kind, self.keys, self.ttl.for_kind(kind))
            for kind in EntityKind
        }
        self.search = SearchCache(store, self.keys, self.ttl.search)
        self.popular = PopularCache(store, self.keys, self.ttl.popular)
        self.tokens = TokenCache(store, self.keys, self.ttl.token, cfg.CACHE_TOKEN_SAFETY_MARGIN)
        self.invalidator = CacheInvalidator(
            store,
            self.keys,
            scan_count=cfg.CACHE_SCAN_COUNT,
            delete_chunk_size=cfg.CACHE_DELETE_CHUNK_SIZE,
        )

    def entity(self, kind: EntityKind) -> EntityCache:
        """Get the cache for one record kind."""
        return self._entities[EntityKind(kind)]

    # -------------------------------------------------------------------------
    # Tracks, albums, artists
    # -------------------------------------------------------------------------

    async def get_track(self, track_id: str) -> Track | None:
        return await self._entities[EntityKind.TRACK].get(track_id)

    async def put_track(self, track: Track) -> None:
        await self._entities[EntityKind.TRACK].put(track)

    async def get_tracks(self, track_ids: Iterable[str]) -> PartialBatchResult[Track]:
        return await self._entities[EntityKind.TRACK].get_many(track_ids)

    async def put_tracks(self, tracks: Iterable[Track]) -> BatchWriteResult:
        return await self._entities[EntityKind.TRACK].put_many(tracks)

    async def get_album(self, album_id: str) -> Album | None:
        return await self._entities[EntityKind.ALBUM].get(album_id)

    async def put_album(self, album: Album) -> None:
        await self._entities[EntityKind.ALBUM].put(album)

    async def get_albums(self, album_ids: Iterable[str]) -> PartialBatchResult[Album]:
        return await self._entities[EntityKind.ALBUM].get_many(album_ids)

    async def put_albums(self, albums: Iterable[Album]) -> BatchWriteResult:
        return await self._entities[EntityKind.ALBUM].put_many(albums)

    async def get_artist(self, artist_id: str) -> Artist | None:
        return await self._entities[EntityKind.ARTIST].get(artist_id)

    async def put_artist(self, artist: Artist) -> None:
        await self._entities[EntityKind.ARTIST].put(artist)

    async def get_artists(self, artist_ids: Iterable[str]) -> PartialBatchResult[Artist]:
        return await self._entities[EntityKind.ARTIST].get_many(artist_ids)

    async def put_artists(self, artists: Iterable[Artist]) -> BatchWriteResult:
        return await self._entities[EntityKind.ARTIST].put_many(artists)

    # -------------------------------------------------------------------------
    # Per-user data
    # -------------------------------------------------------------------------

    async def get_user_snapshot(self, user_id: str) -> UserSnapshot | None:
        return await self._entities[EntityKind.USER].get(user_id)

    async def put_user_snapshot(self, snapshot: UserSnapshot) -> UserSnapshot:
        """Store a snapshot stamped with the write time; returns the stamped copy."""
        stamped = snapshot.model_copy(update={"last_updated": datetime.now(timezone.utc)})
        await self._entities[EntityKind.USER].put(stamped)
        return stamped

    async def get_recommendations(self, user_id: str) -> Recommendations | None:
        return await self._entities[EntityKind.RECOMMENDATIONS].get(user_id)

    async def put_recommendations(self, recommendations: Recommendations) -> Recommendations:
        """Store recommendations stamped with the generation time; returns the stamped copy."""
        stamped = recommendations.model_copy(update={"generated_at": datetime.now(timezone.utc)})
        await self._entities[EntityKind.RECOMMENDATIONS].put(stamped)
        return stamped

    async def add_recently_played(self, user_id: str, track: Track) -> UserSnapshot:
        """
        Prepend a play to the user's snapshot, keeping the newest plays only.

        Read-modify-write without a lock: two concurrent plays for the same
        user can lose one of the two updates.
        """
        snapshot = await self.get_user_snapshot(user_id) or UserSnapshot(user_id=user_id)
        recent = [track, *snapshot.recently_played][: self._recently_played_limit]
        return await self.put_user_snapshot(snapshot.model_copy(update={"recently_played": recent}))

    async def get_listening_history(self, user_id: str) -> ListeningHistory | None:
        return await self._entities[EntityKind.HISTORY].get(user_id)

    async def put_listening_history(self, history: ListeningHistory) -> ListeningHistory:
        """Store listening history stamped with the write time; returns the stamped copy."""
        stamped = history.model_copy(update={"timestamp": datetime.now(timezone.utc)})
        await self._entities[EntityKind.HISTORY].put(stamped)
        return stamped

    # -------------------------------------------------------------------------
    # Popular content
    # -------------------------------------------------------------------------

    async def get_popular_albums(self) -> list[Album] | None:
        return await self.popular.get(PopularKind.ALBUMS)

    async def put_popular_albums(self, albums: Iterable[Album]) -> None:
        await self.popular.put(PopularKind.ALBUMS, list(albums))

    async def get_popular_tracks(self) -> list[Track] | None:
        return await self.popular.get(PopularKind.TRACKS)

    async def put_popular_tracks(self, tracks: Iterable[Track]) -> None:
        await self.popular.put(PopularKind.TRACKS, list(tracks))

    # -------------------------------------------------------------------------
    # Search and tokens
    # -------------------------------------------------------------------------

    async def get_search(self, query: str, kind: SearchResultKind) -> SearchResult | None:
        return await self.search.get(query, kind)

    async def put_search(self, query: str, kind: SearchResultKind, results) -> SearchResult:
        return await self.search.put(query, kind, results)

    async def get_token(self, subject_id: str) -> str | None:
        return await self.tokens.get(subject_id)

    async def put_token(self, subject_id: str, token: str, expires_in: int | None = None) -> bool:
        return await self.tokens.put(subject_id, token, expires_in)

    async def delete_token(self, subject_id: str) -> bool:
        return await self.tokens.delete(subject_id)

    # -------------------------------------------------------------------------
    # Warm-up and invalidation
    # -------------------------------------------------------------------------

    async def warm_up(
        self,
        user_id: str,
        tracks: Iterable[Track] = (),
        albums: Iterable[Album] = (),
        artists: Iterable[Artist] = (),
    ) -> BatchWriteResult:
        """
        Pre-populate tracks, albums and artists in one pipelined round trip.

        STAGE-CACHE.5: Warm-up

        Each kind keeps its own TTL. Records that fail to serialize are
        skipped; the call raises only if every record was skipped.
        ``user_id`` is for log correlation only.

        Raises:
            CacheSerializationError: If a non-empty batch has nothing to write
        """
        outcome = BatchWriteResult()
        written_by_kind: dict[str, int] = {}
        pipe = self._store.pipeline()

        for kind, records in (
            (EntityKind.TRACK, tracks),
            (EntityKind.ALBUM, albums),
            (EntityKind.ARTIST, artists),
        ):
            cache = self._entities[kind]
            for record in records:
                if cache.queue_put(pipe, record):
                    outcome.written += 1
                    written_by_kind[kind.value] = written_by_kind.get(kind.value, 0) + 1
                else:
                    outcome.skipped.append(record.id)

        if outcome.written == 0 and outcome.skipped:
            raise CacheSerializationError(
                message="No record in the warm-up batch could be serialized",
                details={"user_id": user_id, "skipped": outcome.skipped},
            )

        if outcome.written:
            await self._store.execute_pipeline(pipe)
            metrics = get_metrics_collector()
            for kind_value, count in written_by_kind.items():
                metrics.record_writes(kind_value, count)

        logger.info(
            "Cache warm-up complete",
            stage=Stage.CACHE_WARM_UP.value,
            user_id=user_id,
            written=outcome.written,
            skipped=len(outcome.skipped),
        )
        return outcome

    async def invalidate_user(self, user_id: str) -> int:
        return await self.invalidator.invalidate_user(user_id)

    async def invalidate_search(self, fragment: str) -> int:
        return await self.invalidator.invalidate_search(fragment)

    async def cache_stats(self) -> dict[str, int]:
        """Cached key counts per namespace."""
        return await self.invalidator.key_counts()
