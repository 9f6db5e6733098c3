"""
Unit Tests for MusicCache

Per-user records, popular content, warm-up and the key-count report.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from muse_cache.core.exceptions import CacheSerializationError
from muse_cache.infrastructure.cache.codec import encode
from muse_cache.models.search import SearchResultKind


@pytest.mark.unit
class TestUserRecords:
    async def test_user_snapshot_is_stamped(self, music_cache, catalog):
        before = datetime.now(timezone.utc)

        stored = await music_cache.put_user_snapshot(catalog.user_snapshot("u1"))

        assert stored.last_updated is not None
        assert stored.last_updated >= before
        assert await music_cache.get_user_snapshot("u1") == stored

    async def test_user_snapshot_ttl(self, music_cache, memory_store, catalog):
        await music_cache.put_user_snapshot(catalog.user_snapshot("u1"))

        assert await memory_store.ttl("spotify:user:u1") == 900

    async def test_recommendations_are_stamped(self, music_cache, memory_store, catalog):
        stored = await music_cache.put_recommendations(catalog.recommendations("u1"))

        assert stored.generated_at is not None
        assert (await music_cache.get_recommendations("u1")).generated_at == stored.generated_at
        assert await memory_store.ttl("spotify:recommendations:u1") == 7200

    async def test_add_recently_played_creates_snapshot(self, music_cache, catalog):
        snapshot = await music_cache.add_recently_played("u9", catalog.track("p1"))

        assert [track.id for track in snapshot.recently_played] == ["p1"]
        assert (await music_cache.get_user_snapshot("u9")).recently_played[0].id == "p1"

    async def test_add_recently_played_keeps_newest_first_and_caps(self, music_cache, catalog):
        for track_id in ("p1", "p2", "p3", "p4"):
            await music_cache.add_recently_played("u1", catalog.track(track_id))

        snapshot = await music_cache.get_user_snapshot("u1")

        # limit is 3 in test settings
        assert [track.id for track in snapshot.recently_played] == ["p4", "p3", "p2"]

    async def test_listening_history_is_stamped(self, music_cache, memory_store, catalog):
        before = datetime.now(timezone.utc)

        stored = await music_cache.put_listening_history(catalog.listening_history("u1"))

        assert stored.timestamp >= before
        cached = await music_cache.get_listening_history("u1")
        assert cached == stored
        assert [track.id for track in cached.tracks] == ["h1", "h2"]
        assert await memory_store.ttl("spotify:history:u1") == 86400

    async def test_missing_listening_history(self, music_cache):
        assert await music_cache.get_listening_history("nobody") is None


@pytest.mark.unit
class TestPopularContent:
    async def test_popular_albums_round_trip(self, music_cache, memory_store, catalog):
        await music_cache.put_popular_albums([catalog.album("a1"), catalog.album("a2")])

        albums = await music_cache.get_popular_albums()

        assert [album.id for album in albums] == ["a1", "a2"]
        assert await memory_store.ttl("spotify:popular:albums") == 21600

    async def test_popular_tracks_replaced_whole(self, music_cache, catalog):
        await music_cache.put_popular_tracks([catalog.track("t1"), catalog.track("t2")])
        await music_cache.put_popular_tracks([catalog.track("t3")])

        assert [track.id for track in await music_cache.get_popular_tracks()] == ["t3"]

    async def test_popular_lists_are_independent(self, music_cache, catalog):
        await music_cache.put_popular_tracks([catalog.track("t1")])

        assert await music_cache.get_popular_albums() is None

    async def test_empty_list_is_a_hit(self, music_cache):
        await music_cache.put_popular_albums([])

        assert await music_cache.get_popular_albums() == []

    async def test_corrupt_payload_reads_as_miss(self, music_cache, memory_store):
        await memory_store.set("spotify:popular:tracks", "{not json")

        assert await music_cache.get_popular_tracks() is None


@pytest.mark.unit
class TestWarmUp:
    async def test_warm_up_writes_all_kinds_in_one_round_trip(
        self, music_cache, memory_store, catalog
    ):
        before = memory_store.round_trips

        outcome = await music_cache.warm_up(
            "u1",
            tracks=[catalog.track("t1"), catalog.track("t2")],
            albums=[catalog.album("a1")],
            artists=[catalog.artist("r1")],
        )

        assert outcome.written == 4
        assert memory_store.round_trips == before + 1
        assert await memory_store.ttl("spotify:track:t1") == 86400
        assert await memory_store.ttl("spotify:album:a1") == 86400
        assert await memory_store.ttl("spotify:artist:r1") == 43200

    async def test_warm_up_with_nothing_skips_store(self, music_cache, memory_store):
        before = memory_store.round_trips

        outcome = await music_cache.warm_up("u1")

        assert outcome.written == 0
        assert memory_store.round_trips == before

    async def test_warm_up_skips_unserializable(self, music_cache, catalog):
        def fake_encode(record):
            if record.id == "bad":
                raise CacheSerializationError("unserializable")
            return encode(record)

        with patch("muse_cache.infrastructure.cache.entity_cache.encode", side_effect=fake_encode):
            outcome = await music_cache.warm_up(
                "u1", tracks=[catalog.track("bad"), catalog.track("good")]
            )

        assert outcome.written == 1
        assert outcome.skipped == ["bad"]
        assert await music_cache.get_track("good") is not None

    async def test_warm_up_raises_when_nothing_serializes(self, music_cache, memory_store, catalog):
        before = memory_store.round_trips

        with patch(
            "muse_cache.infrastructure.cache.entity_cache.encode",
            side_effect=CacheSerializationError("unserializable"),
        ):
            with pytest.raises(CacheSerializationError) as exc_info:
                await music_cache.warm_up(
                    "u1", tracks=[catalog.track("a")], albums=[catalog.album("b")]
                )

        assert exc_info.value.details["skipped"] == ["a", "b"]
        assert memory_store.round_trips == before
        assert await music_cache.get_track("a") is None


@pytest.mark.unit
class TestCacheStats:
    async def test_key_counts_per_namespace(self, music_cache, catalog):
        await music_cache.put_tracks([catalog.track("t1"), catalog.track("t2")])
        await music_cache.put_album(catalog.album("a1"))
        await music_cache.put_user_snapshot(catalog.user_snapshot("u1"))
        await music_cache.put_search("q", SearchResultKind.TRACKS, [])
        await music_cache.put_listening_history(catalog.listening_history("u1"))
        await music_cache.put_popular_albums([catalog.album("a2")])
        await music_cache.put_popular_tracks([catalog.track("t3")])
        await music_cache.put_token("client", "tok")

        stats = await music_cache.cache_stats()

        assert stats["tracks"] == 2
        assert stats["albums"] == 1
        assert stats["artists"] == 0
        assert stats["user_data"] == 1
        assert stats["searches"] == 1
        assert stats["tokens"] == 1
        assert stats["history"] == 1
        assert stats["popular"] == 2
        assert stats["total"] == 9
