"""
Data models for cached records, batch outcomes and metrics aggregates.
"""

from muse_cache.models.batch import BatchWriteResult, PartialBatchResult
from muse_cache.models.entities import (
    ENTITY_MODELS,
    Album,
    Artist,
    EntityKind,
    Image,
    ListeningHistory,
    PopularKind,
    Recommendations,
    Track,
    UserSnapshot,
)
from muse_cache.models.metrics import (
    CacheStats,
    DetailedCacheStats,
    PopularKey,
    RealtimeHitRate,
)
from muse_cache.models.search import (
    SEARCH_RESULT_MODELS,
    AlbumSearchResult,
    ArtistSearchResult,
    SearchResult,
    SearchResultKind,
    TrackSearchResult,
    search_result_adapter,
)

__all__ = [
    "ENTITY_MODELS",
    "SEARCH_RESULT_MODELS",
    "Album",
    "AlbumSearchResult",
    "Artist",
    "ArtistSearchResult",
    "BatchWriteResult",
    "CacheStats",
    "DetailedCacheStats",
    "EntityKind",
    "Image",
    "ListeningHistory",
    "PartialBatchResult",
    "PopularKey",
    "PopularKind",
    "RealtimeHitRate",
    "Recommendations",
    "SearchResult",
    "SearchResultKind",
    "Track",
    "TrackSearchResult",
    "UserSnapshot",
    "search_result_adapter",
]
