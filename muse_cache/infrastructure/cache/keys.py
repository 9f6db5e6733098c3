"""
Cache Key Layout and TTL Policy

Key layout (namespace defaults to "spotify"):

    {ns}:track:{id}              {ns}:album:{id}            {ns}:artist:{id}
    {ns}:user:{user_id}          {ns}:recommendations:{user_id}
    {ns}:history:{user_id}
    {ns}:popular:albums          {ns}:popular:tracks
    {ns}:search:{kind}:{query}
    {ns}:token:{subject_id}

Keys are pure functions of their inputs, so re-caching the same record or
query always lands on the same key.
"""

import re
from dataclasses import dataclass

from muse_cache.core.config.constants import (
    KEY_SEGMENT_POPULAR,
    KEY_SEGMENT_SEARCH,
    KEY_SEGMENT_TOKEN,
)
from muse_cache.core.exceptions import ConfigurationError
from muse_cache.models.entities import EntityKind, PopularKind
from muse_cache.models.search import SearchResultKind

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")

# Namespaces swept by user invalidation
USER_SCOPED_SEGMENTS = frozenset(
    {kind.value for kind in EntityKind if kind.is_user_scoped} | {KEY_SEGMENT_TOKEN}
)


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so caller input matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class CacheKeyBuilder:
    """Builds entity, search, token and popular-content keys and the SCAN patterns over them."""

    def __init__(self, namespace: str = "spotify"):
        self.namespace = namespace

    def entity(self, kind: EntityKind, entity_id: str) -> str:
        return f"{self.namespace}:{kind.value}:{entity_id}"

    def search(self, kind: SearchResultKind, query: str) -> str:
        return f"{self.namespace}:{KEY_SEGMENT_SEARCH}:{kind.value}:{query}"

    def token(self, subject_id: str) -> str:
        return f"{self.namespace}:{KEY_SEGMENT_TOKEN}:{subject_id}"

    def popular(self, kind: PopularKind) -> str:
        return f"{self.namespace}:{KEY_SEGMENT_POPULAR}:{kind.value}"

    def user_pattern(self, user_id: str) -> str:
        """Every key whose last segment is ``user_id``; callers filter by namespace."""
        return f"{self.namespace}:*:{escape_glob(user_id)}"

    def search_pattern(self, fragment: str) -> str:
        """Every search key whose query contains ``fragment``."""
        return f"{self.namespace}:{KEY_SEGMENT_SEARCH}:*:*{escape_glob(fragment)}*"

    def segment_pattern(self, segment: str) -> str:
        return f"{self.namespace}:{segment}:*"

    def split(self, key: str) -> tuple[str, str] | None:
        """
        Split a key into ``(segment, identifier)``.

        Returns None for keys outside this namespace.
        """
        prefix = f"{self.namespace}:"
        if not key.startswith(prefix):
            return None
        segment, sep, identifier = key[len(prefix):].partition(":")
        if not sep:
            return None
        return segment, identifier


@dataclass(frozen=True)
class TTLPolicy:
    """
    Expiry in seconds per kind of cached record.

    Catalog data lives long, per-user data briefly, tokens within their own
    validity window.
    """
    track: int
    album: int
    artist: int
    user: int
    recommendations: int
    search: int
    token: int
    history: int
    popular: int

    def __post_init__(self):
        for name, value in self.__dict__.items():
            if value <= 0:
                raise ConfigurationError(
                    message=f"TTL for {name} must be positive", details={"ttl": value}
                )

    @classmethod
    def from_settings(cls, settings) -> "TTLPolicy":
        cfg = settings.cache
        return cls(
            track=cfg.CACHE_TRACK_TTL,
            album=cfg.CACHE_ALBUM_TTL,
            artist=cfg.CACHE_ARTIST_TTL,
            user=cfg.CACHE_USER_TTL,
            recommendations=cfg.CACHE_RECOMMENDATIONS_TTL,
            search=cfg.CACHE_SEARCH_TTL,
            token=cfg.CACHE_TOKEN_TTL,
            history=cfg.CACHE_HISTORY_TTL,
            popular=cfg.CACHE_POPULAR_TTL,
        )

    def for_kind(self, kind: EntityKind) -> int:
        return getattr(self, kind.value)
