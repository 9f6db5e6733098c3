"""
Cache Store Protocol

This module defines the protocol every cache store implementation provides,
and an in-memory implementation used for tests and local development.

Architectural Decision: Protocol-based abstraction
- The entity, search and token caches, invalidation and metrics depend only
  on this protocol, never on redis-py directly
- RedisClient is the production implementation
- InMemoryCacheStore mirrors Redis semantics closely enough (TTL expiry,
  list trimming, sorted-set ordering, glob SCAN, pipelines with per-command
  error capture) to exercise the caches without a server
"""

import re
import time
from typing import Any, Callable, Protocol, runtime_checkable

from muse_cache.core.exceptions import CacheKeyError


@runtime_checkable
class CacheStore(Protocol):
    """
    Protocol defining the store operations the cache layer relies on.

    All methods raise a ``CacheError`` subclass on store failure. A missing
    key is reported as ``None`` (or an empty collection), never as an error.
    """

    async def connect(self) -> None:
        """Establish connection to the store."""
        ...

    async def disconnect(self) -> None:
        """Close connection to the store."""
        ...

    async def ping(self) -> bool:
        """Return True if the store answers."""
        ...

    async def get(self, key: str) -> str | None:
        """Get a value, or None if absent or expired."""
        ...

    async def mget(self, keys: list[str]) -> list[str | None]:
        """Get many values in one round trip, positionally aligned with ``keys``."""
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set a value with an optional expiry in seconds."""
        ...

    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""
        ...

    async def ttl(self, key: str) -> int:
        """TTL in seconds, -1 if no TTL, -2 if the key doesn't exist."""
        ...

    async def expire(self, key: str, ttl: int) -> bool:
        """Set TTL on a key."""
        ...

    async def incr(self, key: str) -> int:
        """Increment a counter."""
        ...

    async def lpush(self, key: str, *values: str) -> int:
        """Push values to the head of a list."""
        ...

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        """Trim a list to the inclusive range."""
        ...

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        """Read an inclusive range of a list."""
        ...

    async def zincrby(self, key: str, amount: float, member: str) -> float:
        """Increment a sorted-set member's score."""
        ...

    async def zrevrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        """Read a sorted set from highest to lowest score."""
        ...

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        """Enumerate keys matching a glob pattern without blocking the server."""
        ...

    def pipeline(self) -> Any:
        """Create a non-transactional pipeline."""
        ...

    async def execute_pipeline(self, pipe: Any, raise_on_error: bool = True) -> list[Any]:
        """
        Execute a pipeline in one round trip.

        With ``raise_on_error=False`` a failed command's slot in the result
        list holds the exception instead of raising.
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """Return health status and metrics."""
        ...


def glob_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a Redis glob pattern (``*``, ``?``, ``[...]``, ``\\`` escapes)
    into a regular expression for ``fullmatch``.
    """
    out: list[str] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        elif ch == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = pattern[i + 1:end].replace("\\", "\\\\")
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out), re.DOTALL)


def _normalize_range(length: int, start: int, end: int) -> tuple[int, int]:
    """Convert Redis inclusive (possibly negative) indices to a Python slice."""
    if start < 0:
        start = max(length + start, 0)
    if end < 0:
        end = length + end
    return start, min(end, length - 1) + 1


class InMemoryPipeline:
    """Queues commands until ``InMemoryCacheStore.execute_pipeline`` runs them."""

    _COMMANDS = {
        "get", "set", "delete", "incr", "expire", "lpush", "ltrim",
        "lrange", "zincrby", "zrevrange",
    }

    def __init__(self):
        self.commands: list[tuple[str, tuple, dict]] = []

    def __getattr__(self, name: str):
        if name not in self._COMMANDS:
            raise AttributeError(name)

        def queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self

        return queue

    def __len__(self) -> int:
        return len(self.commands)


class InMemoryCacheStore:
    """
    In-memory cache store implementing the CacheStore protocol.

    Useful for unit tests and development environments.

    Note: This is NOT distributed and NOT safe across processes.

    Args:
        clock: Monotonic clock used for TTL expiry; tests pass a fake
            clock to advance time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, Any] = {}
        self._expires_at: dict[str, float] = {}
        self._connected = False
        self.round_trips = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False
        self._data.clear()
        self._expires_at.clear()

    async def ping(self) -> bool:
        return self._connected

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy" if self._connected else "unhealthy",
            "connected": self._connected,
            "keys_count": len(self._live_keys()),
        }

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _purge(self, key: str) -> None:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and self._clock() >= expires_at:
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    def _live_keys(self) -> list[str]:
        for key in list(self._data):
            self._purge(key)
        return list(self._data)

    def _typed(self, key: str, kind: type, default_factory: Callable[[], Any] | None = None):
        self._purge(key)
        value = self._data.get(key)
        if value is None:
            if default_factory is None:
                return None
            value = default_factory()
            self._data[key] = value
        if not isinstance(value, kind):
            raise CacheKeyError(
                message="WRONGTYPE Operation against a key holding the wrong kind of value",
                details={"key": key},
            )
        return value

    # -------------------------------------------------------------------------
    # Commands (synchronous core shared by direct calls and pipelines)
    # -------------------------------------------------------------------------

    def _get(self, key: str) -> str | None:
        return self._typed(key, str)

    def _set(self, key: str, value: str, ex: int | None = None) -> bool:
        self._data[key] = str(value)
        if ex:
            self._expires_at[key] = self._clock() + ex
        else:
            self._expires_at.pop(key, None)
        return True

    def _delete(self, *keys: str) -> int:
        count = 0
        for key in keys:
            self._purge(key)
            if key in self._data:
                del self._data[key]
                self._expires_at.pop(key, None)
                count += 1
        return count

    def _incr(self, key: str) -> int:
        current = self._typed(key, str, lambda: "0")
        try:
            value = int(current) + 1
        except ValueError:
            raise CacheKeyError(
                message="ERR value is not an integer or out of range", details={"key": key}
            )
        self._data[key] = str(value)
        return value

    def _expire(self, key: str, seconds: int) -> bool:
        self._purge(key)
        if key not in self._data:
            return False
        self._expires_at[key] = self._clock() + seconds
        return True

    def _ttl(self, key: str) -> int:
        self._purge(key)
        if key not in self._data:
            return -2
        expires_at = self._expires_at.get(key)
        if expires_at is None:
            return -1
        return max(int(round(expires_at - self._clock())), 0)

    def _lpush(self, key: str, *values: str) -> int:
        items = self._typed(key, list, list)
        for value in values:
            items.insert(0, str(value))
        return len(items)

    def _ltrim(self, key: str, start: int, end: int) -> bool:
        items = self._typed(key, list)
        if items is None:
            return True
        lo, hi = _normalize_range(len(items), start, end)
        self._data[key] = items[lo:hi]
        if not self._data[key]:
            self._delete(key)
        return True

    def _lrange(self, key: str, start: int, end: int) -> list[str]:
        items = self._typed(key, list)
        if not items:
            return []
        lo, hi = _normalize_range(len(items), start, end)
        return list(items[lo:hi])

    def _zincrby(self, key: str, amount: float, value: str) -> float:
        members = self._typed(key, dict, dict)
        members[value] = members.get(value, 0.0) + float(amount)
        return members[value]

    def _zrevrange(self, key: str, start: int, end: int, withscores: bool = False) -> list[Any]:
        members = self._typed(key, dict)
        if not members:
            return []
        ordered = sorted(members.items(), key=lambda item: (-item[1], item[0]))
        lo, hi = _normalize_range(len(ordered), start, end)
        window = ordered[lo:hi]
        if withscores:
            return [(member, score) for member, score in window]
        return [member for member, _ in window]

    # -------------------------------------------------------------------------
    # CacheStore protocol
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        self.round_trips += 1
        return self._get(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        self.round_trips += 1
        values = []
        for key in keys:
            self._purge(key)
            value = self._data.get(key)
            values.append(value if isinstance(value, str) else None)
        return values

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        self.round_trips += 1
        return self._set(key, value, ex=ttl)

    async def delete(self, *keys: str) -> int:
        self.round_trips += 1
        return self._delete(*keys)

    async def ttl(self, key: str) -> int:
        self.round_trips += 1
        return self._ttl(key)

    async def expire(self, key: str, ttl: int) -> bool:
        self.round_trips += 1
        return self._expire(key, ttl)

    async def incr(self, key: str) -> int:
        self.round_trips += 1
        return self._incr(key)

    async def lpush(self, key: str, *values: str) -> int:
        self.round_trips += 1
        return self._lpush(key, *values)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        self.round_trips += 1
        return self._ltrim(key, start, end)

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        self.round_trips += 1
        return self._lrange(key, start, end)

    async def zincrby(self, key: str, amount: float, member: str) -> float:
        self.round_trips += 1
        return self._zincrby(key, amount, member)

    async def zrevrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        self.round_trips += 1
        return self._zrevrange(key, start, end, withscores=withscores)

    async def scan_keys(self, pattern: str, count: int | None = None) -> list[str]:
        self.round_trips += 1
        matcher = glob_to_regex(pattern)
        return [key for key in self._live_keys() if matcher.fullmatch(key)]

    def pipeline(self) -> InMemoryPipeline:
        return InMemoryPipeline()

    async def execute_pipeline(self, pipe: InMemoryPipeline, raise_on_error: bool = True) -> list[Any]:
        self.round_trips += 1
        results: list[Any] = []
        for name, args, kwargs in pipe.commands:
            try:
                results.append(getattr(self, f"_{name}")(*args, **kwargs))
            except CacheKeyError as e:
                results.append(e)
        pipe.commands.clear()

        if raise_on_error:
            for result in results:
                if isinstance(result, Exception):
                    raise result
        return results
