"""
Redis-Backed Cache Metrics

Time-windowed hit/miss telemetry shared by every instance using the store.

Key layout (namespace defaults to "cache", hour buckets are UTC
``YYYY-MM-DD-HH``):

    {ns}:hits:{kind}:{hour}            hourly counter, expires after 25h
    {ns}:hits:{kind}:total             lifetime counter per kind
    {ns}:hits:total                    lifetime counter across kinds
    {ns}:timing:hits:{kind}:{hour}     newest-first durations (µs), capped
    {ns}:popular:hits:{kind}           sorted set of keys by hit count, 7d
    {ns}:frequent:misses:{kind}        sorted set of keys by miss count, 7d

and the same for misses. All counters use INCR/ZINCRBY in the store, so
concurrent instances converge on one count without read-modify-write.

Metrics are never a correctness dependency: write failures are logged and
dropped, read failures degrade to zeros.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import orjson

from muse_cache.core.config.constants import (
    HOUR_BUCKET_FORMAT,
    METRIC_SEGMENT_FREQUENT,
    METRIC_SEGMENT_HITS,
    METRIC_SEGMENT_MISSES,
    METRIC_SEGMENT_POPULAR,
    METRIC_SEGMENT_TIMING,
    METRIC_SEGMENT_TOTAL,
    MetricOutcome,
    Stage,
)
from muse_cache.core.config.settings import get_settings
from muse_cache.core.exceptions import CacheError
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import get_logger
from muse_cache.infrastructure.monitoring.metrics_collector import get_metrics_collector
from muse_cache.models.metrics import (
    CacheStats,
    DetailedCacheStats,
    PopularKey,
    RealtimeHitRate,
)

logger = get_logger(__name__)

# Kinds reported by detailed_stats, in tie-break order
METRIC_KINDS = ("track", "album", "artist", "user", "recommendations", "search", "token")
DEFAULT_ACTIVE_KIND = METRIC_KINDS[0]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _average(samples: Any) -> float:
    """Mean of the parseable integer samples; unparsable entries are ignored."""
    if not isinstance(samples, list):
        return 0.0
    values = []
    for sample in samples:
        try:
            values.append(int(sample))
        except (TypeError, ValueError):
            continue
    return sum(values) / len(values) if values else 0.0


def hit_rate_pct(hits: int, misses: int) -> float:
    total = hits + misses
    return (hits / total) * 100.0 if total else 0.0


def _kind_label(kind: Any) -> str:
    return str(getattr(kind, "value", kind))


class CacheMetrics:
    """
    Hit/miss counters, timing samples and popularity rankings in Redis.

    Responsibility: record one sample per lookup in a single pipelined
    round trip, and compute hit rates, hourly breakdowns and rankings on
    read.

    Args:
        store: Cache store (RedisClient in production)
        settings: Application settings (defaults to the global settings)
        clock: Returns the current time; tests pass a fixed clock
    """

    def __init__(self, store: CacheStore, settings=None, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._settings = settings or get_settings()
        self._clock = clock
        self._collector = get_metrics_collector()

        cfg = self._settings.metrics
        self.enabled = cfg.METRICS_ENABLED
        self.namespace = cfg.METRICS_NAMESPACE
        self.bucket_ttl = cfg.METRICS_BUCKET_TTL
        self.popularity_ttl = cfg.METRICS_POPULARITY_TTL
        self.sample_cap = cfg.METRICS_TIMING_SAMPLE_CAP
        self.top_n = cfg.METRICS_TOP_N
        self.detail_hours = cfg.METRICS_DETAIL_HOURS

    # -------------------------------------------------------------------------
    # Key helpers
    # -------------------------------------------------------------------------

    def _key(self, *parts: str) -> str:
        return ":".join((self.namespace, *parts))

    def hour_bucket(self, at: datetime | None = None) -> str:
        at = at or self._clock()
        return at.astimezone(timezone.utc).strftime(HOUR_BUCKET_FORMAT)

    @staticmethod
    def _segment(outcome: MetricOutcome) -> str:
        return METRIC_SEGMENT_HITS if outcome is MetricOutcome.HIT else METRIC_SEGMENT_MISSES

    def _counter_key(self, outcome: MetricOutcome, kind: str, period: str) -> str:
        return self._key(self._segment(outcome), kind, period)

    def _global_total_key(self, outcome: MetricOutcome) -> str:
        return self._key(self._segment(outcome), METRIC_SEGMENT_TOTAL)

    def _timing_key(self, outcome: MetricOutcome, kind: str, bucket: str) -> str:
        return self._key(METRIC_SEGMENT_TIMING, self._segment(outcome), kind, bucket)

    def _ranking_key(self, outcome: MetricOutcome, kind: str) -> str:
        if outcome is MetricOutcome.HIT:
            return self._key(METRIC_SEGMENT_POPULAR, METRIC_SEGMENT_HITS, kind)
        return self._key(METRIC_SEGMENT_FREQUENT, METRIC_SEGMENT_MISSES, kind)

    # =========================================================================
    # Recording
    # =========================================================================

    async def record_hit(self, kind: str, key: str, duration: float | timedelta) -> None:
        """Record a cache hit for ``key`` that took ``duration`` (seconds or timedelta)."""
        await self._record(MetricOutcome.HIT, kind, key, duration)

    async def record_miss(self, kind: str, key: str, duration: float | timedelta) -> None:
        """Record a cache miss for ``key`` that took ``duration`` (seconds or timedelta)."""
        await self._record(MetricOutcome.MISS, kind, key, duration)

    async def _record(
        self, outcome: MetricOutcome, kind: str, key: str, duration: float | timedelta
    ) -> None:
        """
        Issue every update for one sample as a single pipeline.

        STAGE-METRICS.1: Record sample

        Never raises a store error.
        """
        kind = _kind_label(kind)
        seconds = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)
        seconds = max(seconds, 0.0)
        self._collector.record_lookup(kind, outcome.value, seconds)

        if not self.enabled:
            return

        bucket = self.hour_bucket()
        hourly = self._counter_key(outcome, kind, bucket)
        timing = self._timing_key(outcome, kind, bucket)
        ranking = self._ranking_key(outcome, kind)

        pipe = self._store.pipeline()
        commands = []

        pipe.incr(hourly)
        pipe.expire(hourly, self.bucket_ttl)
        pipe.incr(self._counter_key(outcome, kind, METRIC_SEGMENT_TOTAL))
        pipe.incr(self._global_total_key(outcome))
        commands += ["INCR hourly", "EXPIRE hourly", "INCR kind total", "INCR global total"]

        pipe.lpush(timing, str(int(seconds * 1_000_000)))
        pipe.ltrim(timing, 0, self.sample_cap - 1)
        pipe.expire(timing, self.bucket_ttl)
        commands += ["LPUSH timing", "LTRIM timing", "EXPIRE timing"]

        pipe.zincrby(ranking, 1, key)
        pipe.expire(ranking, self.popularity_ttl)
        commands += ["ZINCRBY ranking", "EXPIRE ranking"]

        try:
            results = await self._store.execute_pipeline(pipe, raise_on_error=False)
        except CacheError as e:
            self._collector.record_metrics_write_failure(outcome.value)
            logger.warning(
                "Metrics pipeline failed, sample dropped",
                stage=Stage.METRICS_RECORD.value,
                kind=kind,
                outcome=outcome.value,
                error=e.message,
            )
            return

        failed = [
            command for command, result in zip(commands, results) if isinstance(result, Exception)
        ]
        if failed:
            self._collector.record_metrics_write_failure(outcome.value)
            logger.warning(
                "Metrics pipeline commands failed",
                stage=Stage.METRICS_RECORD.value,
                kind=kind,
                outcome=outcome.value,
                failed=failed,
            )

    # =========================================================================
    # Reading
    # =========================================================================

    async def _counts(self, kind: str, period: str) -> tuple[int, int]:
        hits, misses = await self._store.mget([
            self._counter_key(MetricOutcome.HIT, kind, period),
            self._counter_key(MetricOutcome.MISS, kind, period),
        ])
        return _to_int(hits), _to_int(misses)

    async def hit_rate(self, kind: str) -> float:
        """
        Lifetime hit rate for ``kind`` as a percentage in [0, 100].

        Returns 0 when nothing has been recorded or the store is unavailable.
        """
        kind = _kind_label(kind)
        try:
            hits, misses = await self._counts(kind, METRIC_SEGMENT_TOTAL)
        except CacheError as e:
            logger.warning("Hit rate read failed", stage=Stage.METRICS_READ.value, kind=kind, error=e.message)
            return 0.0
        return hit_rate_pct(hits, misses)

    async def realtime_hit_rate(self, kind: str) -> RealtimeHitRate:
        """Hit rate for ``kind`` over the current (partial) hour."""
        kind = _kind_label(kind)
        bucket = self.hour_bucket()
        try:
            hits, misses = await self._counts(kind, bucket)
        except CacheError as e:
            logger.warning(
                "Realtime hit rate read failed", stage=Stage.METRICS_READ.value, kind=kind, error=e.message
            )
            hits = misses = 0
        return RealtimeHitRate(
            type=kind, period=bucket, hits=hits, misses=misses, hit_rate=hit_rate_pct(hits, misses)
        )

    async def hourly_stats(self, kind: str, hours: int = 24) -> list[CacheStats]:
        """
        One CacheStats per hour, newest first, starting with the current hour.

        STAGE-METRICS.2: Hourly breakdown

        Empty buckets report zeros. All reads go out in one pipeline.
        """
        kind = _kind_label(kind)
        if hours <= 0:
            return []

        now = self._clock().astimezone(timezone.utc)
        current_hour = now.replace(minute=0, second=0, microsecond=0)
        slots = [current_hour - timedelta(hours=offset) for offset in range(hours)]
        buckets = [self.hour_bucket(slot) for slot in slots]

        pipe = self._store.pipeline()
        for bucket in buckets:
            pipe.get(self._counter_key(MetricOutcome.HIT, kind, bucket))
            pipe.get(self._counter_key(MetricOutcome.MISS, kind, bucket))
            pipe.lrange(self._timing_key(MetricOutcome.HIT, kind, bucket), 0, -1)
            pipe.lrange(self._timing_key(MetricOutcome.MISS, kind, bucket), 0, -1)

        try:
            results = await self._store.execute_pipeline(pipe, raise_on_error=False)
        except CacheError as e:
            logger.warning(
                "Hourly stats read failed", stage=Stage.METRICS_READ.value, kind=kind, error=e.message
            )
            results = [None] * (4 * hours)

        stats = []
        for index, (slot, bucket) in enumerate(zip(slots, buckets)):
            raw_hits, raw_misses, hit_times, miss_times = results[4 * index:4 * index + 4]
            hits, misses = _to_int(raw_hits), _to_int(raw_misses)
            stats.append(CacheStats(
                type=kind,
                hits=hits,
                misses=misses,
                hit_rate=hit_rate_pct(hits, misses),
                total_ops=hits + misses,
                period=bucket,
                timestamp=slot,
                avg_hit_time_us=_average(hit_times),
                avg_miss_time_us=_average(miss_times),
            ))
        return stats

    async def top_items(
        self, kind: str, outcome: MetricOutcome | str = MetricOutcome.HIT, limit: int | None = None
    ) -> list[PopularKey]:
        """Most frequently hit (or missed) keys for ``kind``, highest score first."""
        kind = _kind_label(kind)
        outcome = MetricOutcome(outcome)
        limit = self.top_n if limit is None else limit
        if limit <= 0:
            return []
        try:
            entries = await self._store.zrevrange(
                self._ranking_key(outcome, kind), 0, limit - 1, withscores=True
            )
        except CacheError as e:
            logger.warning(
                "Ranking read failed", stage=Stage.METRICS_READ.value, kind=kind, error=e.message
            )
            return []
        return [PopularKey(key=member, score=float(score)) for member, score in entries]

    async def detailed_stats(self) -> DetailedCacheStats:
        """
        Cross-kind report.

        Lifetime totals per kind and overall, the single most active kind
        (highest total operations, earliest kind on ties, ``track`` when
        nothing has been recorded), its hourly breakdown, and its top hit
        and miss keys.
        """
        now = self._clock()
        keys = []
        for kind in METRIC_KINDS:
            keys.append(self._counter_key(MetricOutcome.HIT, kind, METRIC_SEGMENT_TOTAL))
            keys.append(self._counter_key(MetricOutcome.MISS, kind, METRIC_SEGMENT_TOTAL))
        keys.append(self._global_total_key(MetricOutcome.HIT))
        keys.append(self._global_total_key(MetricOutcome.MISS))

        try:
            values = await self._store.mget(keys)
        except CacheError as e:
            logger.warning("Detailed stats read failed", stage=Stage.METRICS_READ.value, error=e.message)
            values = [None] * len(keys)

        by_type: dict[str, CacheStats] = {}
        for index, kind in enumerate(METRIC_KINDS):
            hits, misses = _to_int(values[2 * index]), _to_int(values[2 * index + 1])
            by_type[kind] = CacheStats(
                type=kind,
                hits=hits,
                misses=misses,
                hit_rate=hit_rate_pct(hits, misses),
                total_ops=hits + misses,
                period=METRIC_SEGMENT_TOTAL,
                timestamp=now,
            )

        total_hits, total_misses = _to_int(values[-2]), _to_int(values[-1])
        overall = CacheStats(
            type="all",
            hits=total_hits,
            misses=total_misses,
            hit_rate=hit_rate_pct(total_hits, total_misses),
            total_ops=total_hits + total_misses,
            period=METRIC_SEGMENT_TOTAL,
            timestamp=now,
        )

        most_active = DEFAULT_ACTIVE_KIND
        best = 0
        for kind in METRIC_KINDS:
            if by_type[kind].total_ops > best:
                most_active, best = kind, by_type[kind].total_ops

        return DetailedCacheStats(
            overall=overall,
            by_type=by_type,
            by_hour=await self.hourly_stats(most_active, self.detail_hours),
            most_active_type=most_active,
            top_hits=await self.top_items(most_active, MetricOutcome.HIT),
            top_misses=await self.top_items(most_active, MetricOutcome.MISS),
            generated_at=now,
        )

    async def export_metrics(self) -> str:
        """Detailed stats as indented JSON."""
        stats = await self.detailed_stats()
        return orjson.dumps(stats.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode("utf-8")

    # =========================================================================
    # Reset
    # =========================================================================

    async def reset(self) -> int:
        """
        Delete every metrics key.

        STAGE-METRICS.3: Reset

        Keeps going past a failing pattern; returns the number of keys deleted.
        """
        patterns = [
            self._key(segment, "*")
            for segment in (
                METRIC_SEGMENT_HITS,
                METRIC_SEGMENT_MISSES,
                METRIC_SEGMENT_TIMING,
                METRIC_SEGMENT_POPULAR,
                METRIC_SEGMENT_FREQUENT,
            )
        ]

        deleted = 0
        for pattern in patterns:
            try:
                keys = await self._store.scan_keys(pattern)
                if keys:
                    deleted += await self._store.delete(*keys)
            except CacheError as e:
                logger.warning(
                    "Metrics reset failed for pattern",
                    stage=Stage.METRICS_RESET.value,
                    pattern=pattern,
                    error=e.message,
                )

        logger.info("Cache metrics reset", stage=Stage.METRICS_RESET.value, deleted=deleted)
        return deleted
