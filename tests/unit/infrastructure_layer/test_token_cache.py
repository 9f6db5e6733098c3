"""
Unit Tests for TokenCache
"""

import pytest


@pytest.mark.unit
class TestTokenCache:
    async def test_put_then_get(self, music_cache):
        assert await music_cache.put_token("client-1", "BQD-token") is True

        assert await music_cache.get_token("client-1") == "BQD-token"

    async def test_default_ttl(self, music_cache, memory_store):
        await music_cache.put_token("client-1", "tok")

        assert await memory_store.ttl("spotify:token:client-1") == 3000

    async def test_ttl_capped_by_remaining_lifetime(self, music_cache, memory_store):
        # expires_in 1000 minus 600s margin
        await music_cache.put_token("client-1", "tok", expires_in=1000)

        assert await memory_store.ttl("spotify:token:client-1") == 400

    async def test_long_lived_token_keeps_configured_ttl(self, music_cache, memory_store):
        await music_cache.put_token("client-1", "tok", expires_in=7200)

        assert await memory_store.ttl("spotify:token:client-1") == 3000

    async def test_token_too_close_to_expiry_not_cached(self, music_cache):
        assert await music_cache.put_token("client-1", "tok", expires_in=600) is False
        assert await music_cache.get_token("client-1") is None

    async def test_token_never_outlives_its_window(self, music_cache, fake_clock):
        await music_cache.put_token("client-1", "tok")

        fake_clock.advance(3000)

        assert await music_cache.get_token("client-1") is None

    async def test_delete_token(self, music_cache):
        await music_cache.put_token("client-1", "tok")

        assert await music_cache.delete_token("client-1") is True
        assert await music_cache.get_token("client-1") is None
        assert await music_cache.delete_token("client-1") is False
