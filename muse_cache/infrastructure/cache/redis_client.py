"""
Redis Client with Connection Pooling

Architecture:
    RedisClient (Public API)
        ├── ConnectionManager (Connection lifecycle)
        ├── OperationExecutor (Command execution with deadlines and error mapping)
        └── HealthMonitor (Health checks and pool metrics)

Every command runs under ``asyncio.wait_for`` with the tighter of the
caller's remaining deadline (see ``muse_cache.core.deadline``) and
CACHE_OPERATION_TIMEOUT. redis-py exceptions are translated to the cache
exception hierarchy here and nowhere else.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from muse_cache.core.config.settings import get_settings
from muse_cache.core.deadline import effective_timeout
from muse_cache.core.exceptions import (
    CacheConnectionError,
    CacheKeyError,
    CacheTimeoutError,
)
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)


# =============================================================================
# LAYER 1: CONNECTION MANAGEMENT
# Handles connection lifecycle and pooling
# =============================================================================


class ConnectionManager:
    """
    Manages Redis connection lifecycle and pooling.

    Responsibility: Connection establishment, pooling, and cleanup.

    Pool Configuration:
    - Max connections: REDIS_MAX_CONNECTIONS
    - Socket timeout: REDIS_SOCKET_TIMEOUT
    - Health check interval: REDIS_HEALTH_CHECK_INTERVAL
    - Decoded responses (str, not bytes)
    """

    def __init__(self, settings):
        self._settings = settings
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = None
        self._is_connected = False

    def _build_pool(self) -> ConnectionPool:
        cfg = self._settings.redis
        common = dict(
            max_connections=cfg.REDIS_MAX_CONNECTIONS,
            socket_connect_timeout=cfg.REDIS_SOCKET_CONNECT_TIMEOUT,
            socket_timeout=cfg.REDIS_SOCKET_TIMEOUT,
            health_check_interval=cfg.REDIS_HEALTH_CHECK_INTERVAL,
            decode_responses=True,
        )
        if cfg.REDIS_URL:
            return ConnectionPool.from_url(cfg.REDIS_URL, **common)
        return ConnectionPool(
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            db=cfg.REDIS_DB,
            password=cfg.REDIS_PASSWORD,
            **common,
        )

    async def connect(self) -> redis.Redis:
        """
        Establish connection to Redis with connection pooling.

        STAGE-REDIS.2: Connection establishment

        Returns:
            redis.Redis: Connected Redis client

        Raises:
            CacheConnectionError: If connection fails
        """
        if self._is_connected and self._client:
            return self._client

        try:
            self._pool = self._build_pool()
            self._client = redis.Redis(connection_pool=self._pool)

            # Verify the pool actually reaches a server
            await self._client.ping()

            self._is_connected = True

            logger.info(
                "Redis connected successfully",
                stage="REDIS.2",
                host=self._settings.redis.REDIS_HOST,
                port=self._settings.redis.REDIS_PORT,
                max_connections=self._settings.redis.REDIS_MAX_CONNECTIONS,
            )

            return self._client

        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Failed to connect to Redis", stage="REDIS.2", error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={
                    "host": self._settings.redis.REDIS_HOST,
                    "port": self._settings.redis.REDIS_PORT,
                },
            )

    async def disconnect(self) -> None:
        """
        Close Redis connection and pool.

        STAGE-REDIS.3: Connection cleanup
        """
        if self._client:
            await self._client.aclose()

        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_connected = False

        logger.info("Redis disconnected", stage="REDIS.3")

    async def ping(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if healthy, False otherwise
        """
        try:
            if self._client and self._is_connected:
                await self._client.ping()
                return True
        except (RedisConnectionError, RedisTimeoutError):
            logger.warning("Redis ping failed", stage="REDIS.PING")
        return False

    def get_client(self) -> redis.Redis | None:
        """Get the Redis client instance."""
        return self._client

    def get_pool(self) -> ConnectionPool | None:
        """Get the connection pool instance."""
        return self._pool

    def is_connected(self) -> bool:
        """Check if connected to Redis."""
        return self._is_connected


# =============================================================================
# LAYER 2: OPERATION EXECUTOR
# Executes Redis commands with deadlines, error mapping and logging
# =============================================================================


class OperationExecutor:
    """
    Executes Redis operations with consistent error handling.

    Responsibility: Command execution under a deadline, error translation
    and logging.

    Error Handling Strategy:
    - Deadline exceeded (asyncio or socket timeout) → CacheTimeoutError
    - Connection refused/reset → CacheConnectionError
    - Any other RedisError → CacheKeyError
    - asyncio.CancelledError propagates unchanged
    """

    def __init__(self, redis_client: redis.Redis, operation_timeout: float):
        self._redis = redis_client
        self._operation_timeout = operation_timeout

    async def _execute(self, op: str, call: Callable[[], Awaitable[Any]], **context) -> Any:
        """
        Run one store call under the effective deadline.

        ``call`` is a zero-argument factory so nothing is sent when the
        caller's deadline has already passed.
        """
        timeout = effective_timeout(self._operation_timeout)
        if timeout <= 0:
            logger.warning("Redis call skipped, deadline exceeded", stage=f"REDIS.{op}", **context)
            raise CacheTimeoutError(
                message=f"Redis {op} skipped: deadline exceeded", details={"op": op, **context}
            )

        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except (asyncio.TimeoutError, RedisTimeoutError) as e:
            get_metrics_collector().record_store_error(op, "timeout")
            logger.error("Redis call timed out", stage=f"REDIS.{op}", timeout=timeout, **context)
            raise CacheTimeoutError(
                message=f"Redis {op} timed out after {timeout:.3f}s",
                details={"op": op, "timeout": timeout, **context},
            ) from e
        except RedisConnectionError as e:
            get_metrics_collector().record_store_error(op, "connection")
            logger.error("Redis connection failed", stage=f"REDIS.{op}", error=str(e), **context)
            raise CacheConnectionError(
                message=f"Redis {op} failed: {e}", details={"op": op, **context}
            ) from e
        except RedisError as e:
            get_metrics_collector().record_store_error(op, type(e).__name__)
            logger.error(f"Redis {op} failed", stage=f"REDIS.{op}", error=str(e), **context)
            raise CacheKeyError(
                message=f"Redis {op} failed: {e}", details={"op": op, **context}
            ) from e

    # -------------------------------------------------------------------------
    # Basic Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """
        Get value from Redis.

        STAGE-REDIS.GET: Redis GET operation

        Returns:
            Value or None if not found
        """
        return await self._execute("GET", lambda: self._redis.get(key), key=key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        """
        Get many values in one round trip.

        STAGE-REDIS.MGET: Redis MGET operation

        Returns:
            Values positionally aligned with ``keys``; None for absent keys
        """
        if not keys:
            return []
        return await self._execute("MGET", lambda: self._redis.mget(keys), key_count=len(keys))

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Set value in Redis.

        STAGE-REDIS.SET: Redis SET operation

        Args:
            key: Redis key
            value: Value to set
            ttl: Time-to-live in seconds (optional)
        """
        result = await self._execute("SET", lambda: self._redis.set(key, value, ex=ttl), key=key)
        return result is not None

    async def delete(self, *keys: str) -> int:
        """
        Delete keys from Redis.

        STAGE-REDIS.DEL: Redis DELETE operation

        Returns:
            Number of keys deleted
        """
        if not keys:
            return 0
        return await self._execute("DEL", lambda: self._redis.delete(*keys), key_count=len(keys))

    async def expire(self, key: str, ttl: int) -> bool:
        """Set TTL on a key."""
        return await self._execute("EXPIRE", lambda: self._redis.expire(key, ttl), key=key)

    async def ttl(self, key: str) -> int:
        """
        Get TTL of a key.

        Returns:
            TTL in seconds, -1 if no TTL, -2 if key doesn't exist
        """
        return await self._execute("TTL", lambda: self._redis.ttl(key), key=key)

    # -------------------------------------------------------------------------
    # Counter, List and Sorted-Set Operations (for metrics)
    # -------------------------------------------------------------------------

    async def incr(self, key: str) -> int:
        """Increment a counter."""
        return await self._execute("INCR", lambda: self._redis.incr(key), key=key)

    async def lpush(self, key: str, *values: str) -> int:
        """Push values to the head of a list."""
        return await self._execute("LPUSH", lambda: self._redis.lpush(key, *values), key=key)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        """Trim a list to the inclusive range."""
        return await self._execute("LTRIM", lambda: self._redis.ltrim(key, start, end), key=key)

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        """Read an inclusive range of a list."""
        return await self._execute("LRANGE", lambda: self._redis.lrange(key, start, end), key=key)

    async def zincrby(self, key: str, amount: float, member: str) -> float:
        """Increment a sorted-set member's score."""
        return await self._execute(
            "ZINCRBY", lambda: self._redis.zincrby(key, amount, member), key=key
        )

    async def zrevrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        """Read a sorted set from highest to lowest score."""
        return await self._execute(
            "ZREVRANGE",
            lambda: self._redis.zrevrange(key, start, end, withscores=withscores),
            key=key,
        )

    # -------------------------------------------------------------------------
    # Key enumeration
    # -------------------------------------------------------------------------

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        """
        Enumerate keys matching a glob pattern with SCAN.

        STAGE-REDIS.SCAN: Incremental key enumeration (never KEYS, which
        blocks the server for the whole keyspace walk)
        """

        async def collect() -> list[str]:
            return [key async for key in self._redis.scan_iter(match=pattern, count=count)]

        return await self._execute("SCAN", collect, pattern=pattern)

    # -------------------------------------------------------------------------
    # Pipelines
    # -------------------------------------------------------------------------

    def pipeline(self):
        """
        Create a non-transactional pipeline for batch operations.

        Usage:
            pipe = executor.pipeline()
            pipe.set("key1", "value1", ex=60)
            pipe.set("key2", "value2", ex=60)
            results = await executor.execute_pipeline(pipe)
        """
        return self._redis.pipeline(transaction=False)

    async def execute_pipeline(self, pipe, raise_on_error: bool = True) -> list[Any]:
        """
        Execute a pipeline in one round trip.

        With ``raise_on_error=False`` failed commands leave their exception
        in the result list instead of raising.
        """
        return await self._execute(
            "PIPELINE",
            lambda: pipe.execute(raise_on_error=raise_on_error),
            command_count=len(pipe),
        )


# =============================================================================
# LAYER 3: HEALTH MONITORING
# Health checks and connection pool metrics
# =============================================================================


class HealthMonitor:
    """
    Monitors Redis health and connection pool metrics.

    Metrics Tracked:
    - Connection status
    - Ping latency
    - Pool size and utilization
    - Pool exhaustion warnings (>80% utilized)
    """

    def __init__(self, connection_manager: ConnectionManager, settings):
        self._conn_mgr = connection_manager
        self._settings = settings

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on Redis connection.

        STAGE-REDIS.HEALTH: Redis health check

        Returns:
            Dict with health status and metrics
        """
        health = {
            "status": "healthy",
            "connected": self._conn_mgr.is_connected(),
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "pool_size": 0,
            "pool_available": 0,
            "pool_utilization_pct": 0,
            "pool_warning": False,
            "ping_latency_ms": None,
        }

        try:
            client = self._conn_mgr.get_client()
            if not client:
                health["status"] = "unhealthy"
                health["error"] = "Client not initialized"
                return health

            start = time.perf_counter()
            await client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)

            pool = self._conn_mgr.get_pool()
            if pool:
                health["pool_size"] = pool.max_connections

                if hasattr(pool, "_available_connections"):
                    available = len(pool._available_connections)
                    in_use = len(getattr(pool, "_in_use_connections", ()))
                    health["pool_available"] = available
                    utilization = 100.0 * in_use / pool.max_connections
                    health["pool_utilization_pct"] = round(utilization, 1)

                    if utilization > 80:
                        health["pool_warning"] = True
                        logger.warning(
                            "Redis pool utilization high",
                            stage="REDIS.HEALTH",
                            pool_utilization=utilization,
                            max_connections=pool.max_connections,
                        )

        except RedisError as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)

        return health


# =============================================================================
# LAYER 4: PUBLIC API
# Clean interface that coordinates all layers
# =============================================================================


class RedisClient:
    """
    Async Redis client implementing the CacheStore protocol.

    Usage:
        client = RedisClient()
        await client.connect()

        await client.set("spotify:track:1", payload, ttl=86400)
        value = await client.get("spotify:track:1")

        await client.disconnect()

    Architecture:
        RedisClient (this class)
            ├── ConnectionManager (connection lifecycle)
            ├── OperationExecutor (command execution)
            └── HealthMonitor (health checks)
    """

    def __init__(self, settings=None):
        """
        Initialize Redis client.

        STAGE-REDIS.1: Client initialization
        """
        self._settings = settings or get_settings()

        self._conn_mgr = ConnectionManager(self._settings)
        self._executor: OperationExecutor | None = None
        self._health_monitor = HealthMonitor(self._conn_mgr, self._settings)

        logger.info(
            "Redis client initialized",
            stage="REDIS.1",
            host=self._settings.redis.REDIS_HOST,
            port=self._settings.redis.REDIS_PORT,
        )

    async def connect(self) -> None:
        """
        Establish connection to Redis with connection pooling.

        Raises:
            CacheConnectionError: If connection fails
        """
        client = await self._conn_mgr.connect()
        self._executor = OperationExecutor(client, self._settings.cache.CACHE_OPERATION_TIMEOUT)

    async def disconnect(self) -> None:
        """Close Redis connection and pool."""
        await self._conn_mgr.disconnect()
        self._executor = None

    async def ping(self) -> bool:
        """Check Redis connection health."""
        return await self._conn_mgr.ping()

    def _require_executor(self) -> OperationExecutor:
        if self._executor is None:
            raise CacheConnectionError(message="Redis client is not connected")
        return self._executor

    # -------------------------------------------------------------------------
    # Delegate to OperationExecutor
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """Get value from Redis."""
        return await self._require_executor().get(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        """Get many values from Redis."""
        return await self._require_executor().mget(keys)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set value in Redis."""
        return await self._require_executor().set(key, value, ttl)

    async def delete(self, *keys: str) -> int:
        """Delete keys from Redis."""
        return await self._require_executor().delete(*keys)

    async def expire(self, key: str, ttl: int) -> bool:
        """Set TTL on key."""
        return await self._require_executor().expire(key, ttl)

    async def ttl(self, key: str) -> int:
        """Get TTL of key."""
        return await self._require_executor().ttl(key)

    async def incr(self, key: str) -> int:
        """Increment counter."""
        return await self._require_executor().incr(key)

    async def lpush(self, key: str, *values: str) -> int:
        """Push values to list head."""
        return await self._require_executor().lpush(key, *values)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        """Trim list."""
        return await self._require_executor().ltrim(key, start, end)

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        """Read list range."""
        return await self._require_executor().lrange(key, start, end)

    async def zincrby(self, key: str, amount: float, member: str) -> float:
        """Increment sorted-set score."""
        return await self._require_executor().zincrby(key, amount, member)

    async def zrevrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        """Read sorted set by descending score."""
        return await self._require_executor().zrevrange(key, start, end, withscores)

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        """Enumerate keys matching a glob pattern."""
        count = count or self._settings.cache.CACHE_SCAN_COUNT
        return await self._require_executor().scan_keys(pattern, count)

    def pipeline(self):
        """Create a non-transactional pipeline."""
        return self._require_executor().pipeline()

    async def execute_pipeline(self, pipe, raise_on_error: bool = True) -> list[Any]:
        """Execute a pipeline in one round trip."""
        return await self._require_executor().execute_pipeline(pipe, raise_on_error)

    async def health_check(self) -> dict[str, Any]:
        """Perform health check."""
        return await self._health_monitor.health_check()


# Global Redis client instance
_redis_client: RedisClient | None = None


def get_redis_client() -> RedisClient:
    """
    Get the global Redis client instance (singleton).

    Returns:
        RedisClient: Global Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = RedisClient()

    return _redis_client


async def init_redis() -> RedisClient:
    """
    Initialize and connect the global Redis client.

    Returns:
        RedisClient: Connected Redis client
    """
    client = get_redis_client()
    await client.connect()
    return client


async def close_redis() -> None:
    """Close the global Redis client."""
    global _redis_client

    if _redis_client:
        await _redis_client.disconnect()
        _redis_client = None
