"""
Unit Tests for the Redis Client

Tests deadline enforcement and redis-py error translation with a mocked
redis.asyncio client; no server is needed.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from muse_cache.core.deadline import cache_deadline
from muse_cache.core.exceptions import CacheConnectionError, CacheKeyError, CacheTimeoutError
from muse_cache.infrastructure.cache.redis_client import OperationExecutor, RedisClient


@pytest.fixture
def redis_mock():
    client = MagicMock()
    client.get = AsyncMock(return_value="payload")
    client.mget = AsyncMock(return_value=["a", None])
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=2)
    return client


@pytest.fixture
def executor(redis_mock):
    return OperationExecutor(redis_mock, operation_timeout=0.5)


@pytest.mark.unit
class TestOperationExecutor:
    """Commands pass through; failures map to the cache exception hierarchy."""

    async def test_get_returns_value(self, executor, redis_mock):
        assert await executor.get("spotify:track:1") == "payload"
        redis_mock.get.assert_awaited_once_with("spotify:track:1")

    async def test_set_passes_ttl_as_ex(self, executor, redis_mock):
        await executor.set("spotify:track:1", "{}", ttl=86400)
        redis_mock.set.assert_awaited_once_with("spotify:track:1", "{}", ex=86400)

    async def test_empty_mget_skips_round_trip(self, executor, redis_mock):
        assert await executor.mget([]) == []
        redis_mock.mget.assert_not_awaited()

    async def test_empty_delete_skips_round_trip(self, executor, redis_mock):
        assert await executor.delete() == 0
        redis_mock.delete.assert_not_awaited()

    async def test_connection_error_maps_to_cache_connection_error(self, executor, redis_mock):
        redis_mock.get.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(CacheConnectionError) as exc_info:
            await executor.get("spotify:track:1")

        assert exc_info.value.details["op"] == "GET"

    async def test_socket_timeout_maps_to_cache_timeout_error(self, executor, redis_mock):
        redis_mock.get.side_effect = RedisTimeoutError("Timeout reading from socket")

        with pytest.raises(CacheTimeoutError):
            await executor.get("spotify:track:1")

    async def test_response_error_maps_to_cache_key_error(self, executor, redis_mock):
        redis_mock.get.side_effect = ResponseError("WRONGTYPE Operation against a key")

        with pytest.raises(CacheKeyError):
            await executor.get("spotify:track:1")

    async def test_slow_call_times_out(self, redis_mock):
        async def slow_get(key):
            await asyncio.sleep(1)
            return "late"

        redis_mock.get = slow_get
        executor = OperationExecutor(redis_mock, operation_timeout=0.01)

        with pytest.raises(CacheTimeoutError):
            await executor.get("spotify:track:1")

    async def test_expired_deadline_sends_nothing(self, executor, redis_mock):
        with cache_deadline(-1):
            with pytest.raises(CacheTimeoutError):
                await executor.get("spotify:track:1")

        redis_mock.get.assert_not_called()

    async def test_store_errors_are_counted(self, executor, redis_mock):
        redis_mock.get.side_effect = RedisConnectionError("reset")
        collector = MagicMock()

        with patch(
            "muse_cache.infrastructure.cache.redis_client.get_metrics_collector",
            return_value=collector,
        ):
            with pytest.raises(CacheConnectionError):
                await executor.get("k")

        collector.record_store_error.assert_called_once_with("GET", "connection")

    async def test_scan_keys_collects_all_pages(self, executor, redis_mock):
        async def scan_iter(match=None, count=None):
            for key in ("spotify:user:u1", "spotify:token:u1"):
                yield key

        redis_mock.scan_iter = scan_iter

        assert await executor.scan_keys("spotify:*:u1", 100) == ["spotify:user:u1", "spotify:token:u1"]

    def test_pipeline_is_not_transactional(self, executor, redis_mock):
        executor.pipeline()
        redis_mock.pipeline.assert_called_once_with(transaction=False)

    async def test_execute_pipeline_forwards_raise_on_error(self, executor):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[1, True])

        assert await executor.execute_pipeline(pipe, raise_on_error=False) == [1, True]
        pipe.execute.assert_awaited_once_with(raise_on_error=False)


@pytest.mark.unit
class TestRedisClient:
    async def test_commands_before_connect_raise(self, test_settings):
        client = RedisClient(test_settings)

        with pytest.raises(CacheConnectionError):
            await client.get("spotify:track:1")

    async def test_ping_false_when_not_connected(self, test_settings):
        assert await RedisClient(test_settings).ping() is False

    async def test_health_check_unhealthy_without_client(self, test_settings):
        health = await RedisClient(test_settings).health_check()

        assert health["status"] == "unhealthy"
        assert health["connected"] is False

    async def test_connect_failure_raises_cache_connection_error(self, test_settings):
        client = RedisClient(test_settings)

        with patch("muse_cache.infrastructure.cache.redis_client.redis.Redis") as redis_cls:
            redis_cls.return_value.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
            with pytest.raises(CacheConnectionError):
                await client.connect()

    async def test_connect_then_get_uses_connection(self, test_settings):
        client = RedisClient(test_settings)

        with patch("muse_cache.infrastructure.cache.redis_client.redis.Redis") as redis_cls:
            redis_cls.return_value.ping = AsyncMock(return_value=True)
            redis_cls.return_value.get = AsyncMock(return_value="cached")
            await client.connect()

            assert await client.get("spotify:track:1") == "cached"
            assert await client.ping() is True
