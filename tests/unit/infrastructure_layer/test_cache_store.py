"""
Unit Tests for the In-Memory Cache Store

The in-memory store backs every other unit test, so its Redis semantics
(TTL expiry, list trimming, sorted-set order, glob SCAN, pipelines) are
pinned down here.
"""

import pytest

from muse_cache.core.exceptions import CacheKeyError
from muse_cache.core.interfaces.cache import CacheStore, InMemoryCacheStore, glob_to_regex


@pytest.mark.unit
class TestGlobMatching:
    @pytest.mark.parametrize(
        "pattern,key,expected",
        [
            ("spotify:*:u1", "spotify:user:u1", True),
            ("spotify:*:u1", "spotify:user:u10", False),
            ("spotify:search:*:*love*", "spotify:search:tracks:i love you", True),
            ("spotify:t?ack:1", "spotify:track:1", True),
            ("spotify:[tu]*:1", "spotify:user:1", True),
            ("spotify:*:a\\*b", "spotify:user:a*b", True),
            ("spotify:*:a\\*b", "spotify:user:axxb", False),
        ],
    )
    def test_redis_glob(self, pattern, key, expected):
        assert bool(glob_to_regex(pattern).fullmatch(key)) is expected


@pytest.mark.unit
class TestInMemoryCacheStore:
    def test_implements_protocol(self):
        assert isinstance(InMemoryCacheStore(), CacheStore)

    async def test_set_get_and_expiry(self, memory_store, fake_clock):
        await memory_store.set("k", "v", ttl=10)

        assert await memory_store.get("k") == "v"
        assert await memory_store.ttl("k") == 10

        fake_clock.advance(10)
        assert await memory_store.get("k") is None
        assert await memory_store.ttl("k") == -2

    async def test_ttl_without_expiry(self, memory_store):
        await memory_store.set("k", "v")
        assert await memory_store.ttl("k") == -1

    async def test_mget_aligns_positionally(self, memory_store):
        await memory_store.set("a", "1")
        await memory_store.set("c", "3")

        assert await memory_store.mget(["a", "b", "c"]) == ["1", None, "3"]

    async def test_list_push_trim_range(self, memory_store):
        for value in ("1", "2", "3", "4"):
            await memory_store.lpush("l", value)
        await memory_store.ltrim("l", 0, 2)

        assert await memory_store.lrange("l", 0, -1) == ["4", "3", "2"]

    async def test_sorted_set_order(self, memory_store):
        await memory_store.zincrby("z", 1, "a")
        await memory_store.zincrby("z", 3, "b")
        await memory_store.zincrby("z", 2, "c")

        assert await memory_store.zrevrange("z", 0, 1, withscores=True) == [("b", 3.0), ("c", 2.0)]

    async def test_wrong_type_raises(self, memory_store):
        await memory_store.lpush("l", "x")

        with pytest.raises(CacheKeyError):
            await memory_store.get("l")

    async def test_scan_keys_matches_glob(self, memory_store):
        await memory_store.set("spotify:user:u1", "{}")
        await memory_store.set("spotify:track:u1", "{}")
        await memory_store.set("spotify:user:u2", "{}")

        assert sorted(await memory_store.scan_keys("spotify:*:u1")) == [
            "spotify:track:u1",
            "spotify:user:u1",
        ]

    async def test_pipeline_single_round_trip(self, memory_store):
        pipe = memory_store.pipeline()
        pipe.set("a", "1", ex=60)
        pipe.incr("n")
        pipe.incr("n")
        before = memory_store.round_trips

        assert await memory_store.execute_pipeline(pipe) == [True, 1, 2]
        assert memory_store.round_trips == before + 1

    async def test_pipeline_captures_errors_when_asked(self, memory_store):
        await memory_store.lpush("l", "x")
        pipe = memory_store.pipeline()
        pipe.incr("l")
        pipe.incr("n")

        results = await memory_store.execute_pipeline(pipe, raise_on_error=False)

        assert isinstance(results[0], CacheKeyError)
        assert results[1] == 1

    async def test_pipeline_raises_first_error_by_default(self, memory_store):
        await memory_store.lpush("l", "x")
        pipe = memory_store.pipeline()
        pipe.incr("l")

        with pytest.raises(CacheKeyError):
            await memory_store.execute_pipeline(pipe)

    async def test_health_check(self, memory_store):
        health = await memory_store.health_check()
        assert health["status"] == "healthy"
