"""
Catalog and per-user records held in the cache.

Records are immutable snapshots of what the metadata provider returned.
The cache owns none of this data; every record can be re-fetched from the
provider at any time.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """
    Kinds of record the entity cache stores, one key namespace and TTL each.

    TRACK, ALBUM, ARTIST: catalog records keyed by provider id
    USER: per-user listening snapshot keyed by user id
    RECOMMENDATIONS: per-user recommendation set keyed by user id
    HISTORY: per-user listening history keyed by user id
    """
    TRACK = "track"
    ALBUM = "album"
    ARTIST = "artist"
    USER = "user"
    RECOMMENDATIONS = "recommendations"
    HISTORY = "history"

    @property
    def is_user_scoped(self) -> bool:
        return self in (EntityKind.USER, EntityKind.RECOMMENDATIONS, EntityKind.HISTORY)


class Image(BaseModel):
    model_config = {"frozen": True}

    url: str
    height: int | None = None
    width: int | None = None


class Artist(BaseModel):
    """An artist as returned by the provider."""
    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    name: str
    images: list[Image] = Field(default_factory=list)
    genres: list[str] = Field(default_factory=list)
    followers: int = 0


class Album(BaseModel):
    """An album, with its artists and the ids of its tracks."""
    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    name: str
    artists: list[Artist] = Field(default_factory=list)
    release_date: str | None = None
    images: list[Image] = Field(default_factory=list)
    total_tracks: int = 0
    track_ids: list[str] = Field(default_factory=list)


class Track(BaseModel):
    """A track, embedding its artists and (optionally) its album."""
    model_config = {"frozen": True}

    id: str = Field(..., min_length=1)
    name: str
    artists: list[Artist] = Field(default_factory=list)
    album: Album | None = None
    duration_ms: int = 0
    track_number: int = 0
    preview_url: str | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)


class UserSnapshot(BaseModel):
    """
    Per-user listening snapshot.

    ``last_updated`` is stamped by the cache on every write.
    """
    model_config = {"frozen": True}

    user_id: str = Field(..., min_length=1)
    recently_played: list[Track] = Field(default_factory=list)
    top_tracks: list[Track] = Field(default_factory=list)
    top_artists: list[Artist] = Field(default_factory=list)
    saved_tracks: list[str] = Field(default_factory=list)
    saved_albums: list[str] = Field(default_factory=list)
    playlist_ids: list[str] = Field(default_factory=list)
    last_updated: datetime | None = None

    @property
    def id(self) -> str:
        return self.user_id


class Recommendations(BaseModel):
    """
    Recommendation set generated for one user.

    ``generated_at`` is stamped by the cache on every write.
    """
    model_config = {"frozen": True}

    user_id: str = Field(..., min_length=1)
    recommended_tracks: list[Track] = Field(default_factory=list)
    recommended_albums: list[Album] = Field(default_factory=list)
    recommended_artists: list[Artist] = Field(default_factory=list)
    based_on_genres: list[str] = Field(default_factory=list)
    based_on_artists: list[str] = Field(default_factory=list)
    generated_at: datetime | None = None

    @property
    def id(self) -> str:
        return self.user_id


class ListeningHistory(BaseModel):
    """
    What one user listened to recently, by track, album and artist.

    ``timestamp`` is stamped by the cache on every write.
    """
    model_config = {"frozen": True}

    user_id: str = Field(..., min_length=1)
    tracks: list[Track] = Field(default_factory=list)
    albums: list[Album] = Field(default_factory=list)
    artists: list[Artist] = Field(default_factory=list)
    timestamp: datetime | None = None

    @property
    def id(self) -> str:
        return self.user_id


class PopularKind(str, Enum):
    """Globally popular content lists, one key each."""
    ALBUMS = "albums"
    TRACKS = "tracks"


ENTITY_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.TRACK: Track,
    EntityKind.ALBUM: Album,
    EntityKind.ARTIST: Artist,
    EntityKind.USER: UserSnapshot,
    EntityKind.RECOMMENDATIONS: Recommendations,
    EntityKind.HISTORY: ListeningHistory,
}
