"""
Search result envelopes.

A cached search result is one whole unit: the query, the kind of result,
the concrete entities and when they were cached. The envelope is a tagged
union keyed by ``result_type`` so a payload is only ever decoded into the
concrete entity type its tag names.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from muse_cache.models.entities import Album, Artist, Track


class SearchResultKind(str, Enum):
    TRACKS = "tracks"
    ALBUMS = "albums"
    ARTISTS = "artists"


class _SearchResultBase(BaseModel):
    model_config = {"frozen": True}

    query: str
    timestamp: datetime


class TrackSearchResult(_SearchResultBase):
    result_type: Literal["tracks"] = "tracks"
    results: list[Track] = Field(default_factory=list)


class AlbumSearchResult(_SearchResultBase):
    result_type: Literal["albums"] = "albums"
    results: list[Album] = Field(default_factory=list)


class ArtistSearchResult(_SearchResultBase):
    result_type: Literal["artists"] = "artists"
    results: list[Artist] = Field(default_factory=list)


SearchResult = Annotated[
    Union[TrackSearchResult, AlbumSearchResult, ArtistSearchResult],
    Field(discriminator="result_type"),
]

search_result_adapter: TypeAdapter[SearchResult] = TypeAdapter(SearchResult)

SEARCH_RESULT_MODELS: dict[SearchResultKind, type[_SearchResultBase]] = {
    SearchResultKind.TRACKS: TrackSearchResult,
    SearchResultKind.ALBUMS: AlbumSearchResult,
    SearchResultKind.ARTISTS: ArtistSearchResult,
}
