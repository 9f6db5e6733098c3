"""
Unit Tests for SearchCache
"""

import pytest

from muse_cache.models.search import (
    AlbumSearchResult,
    SearchResultKind,
    TrackSearchResult,
)


@pytest.mark.unit
class TestSearchCache:
    async def test_put_then_get_returns_typed_envelope(self, music_cache, sample_tracks):
        stored = await music_cache.put_search("rick", SearchResultKind.TRACKS, sample_tracks)

        cached = await music_cache.get_search("rick", SearchResultKind.TRACKS)

        assert isinstance(cached, TrackSearchResult)
        assert cached.query == "rick"
        assert cached.results == sample_tracks
        assert cached.timestamp == stored.timestamp

    async def test_kinds_are_cached_separately(self, music_cache, sample_tracks, sample_album):
        await music_cache.put_search("x", SearchResultKind.TRACKS, sample_tracks)
        await music_cache.put_search("x", SearchResultKind.ALBUMS, [sample_album])

        albums = await music_cache.get_search("x", SearchResultKind.ALBUMS)

        assert isinstance(albums, AlbumSearchResult)
        assert albums.results == [sample_album]

    async def test_absent_search_is_none(self, music_cache):
        assert await music_cache.get_search("nothing", SearchResultKind.ARTISTS) is None

    async def test_search_ttl(self, music_cache, memory_store):
        await music_cache.put_search("q", SearchResultKind.ARTISTS, [])

        assert await memory_store.ttl("spotify:search:artists:q") == 1800

    async def test_search_expires(self, music_cache, fake_clock):
        await music_cache.put_search("q", SearchResultKind.ARTISTS, [])

        fake_clock.advance(1800)

        assert await music_cache.get_search("q", SearchResultKind.ARTISTS) is None

    async def test_mismatched_tag_is_a_miss(self, music_cache, memory_store, sample_tracks):
        stored = await music_cache.put_search("q", SearchResultKind.TRACKS, sample_tracks)
        payload = await memory_store.get("spotify:search:tracks:q")
        await memory_store.set("spotify:search:albums:q", payload, ttl=60)

        assert stored.result_type == "tracks"
        assert await music_cache.get_search("q", SearchResultKind.ALBUMS) is None

    async def test_kind_accepts_plain_string(self, music_cache):
        await music_cache.put_search("q", "artists", [])

        assert await music_cache.get_search("q", "artists") is not None
