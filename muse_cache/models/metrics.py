"""
Aggregates returned by the cache metrics pipeline.

All of these are computed on read from Redis counters, timing lists and
popularity sets; none are stored.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CacheStats(BaseModel):
    """
    Hit/miss aggregate for one kind over one period.

    ``period`` is an hour bucket (``YYYY-MM-DD-HH``), ``"total"`` for
    lifetime counters, or ``"all"`` for the cross-kind overall figure.
    """

    type: str
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    total_ops: int = 0
    period: str
    timestamp: datetime
    avg_hit_time_us: float = 0.0
    avg_miss_time_us: float = 0.0


class PopularKey(BaseModel):
    key: str
    score: float


class DetailedCacheStats(BaseModel):
    """Cross-kind report with the hourly breakdown of the most active kind."""

    overall: CacheStats
    by_type: dict[str, CacheStats] = Field(default_factory=dict)
    by_hour: list[CacheStats] = Field(default_factory=list)
    most_active_type: str
    top_hits: list[PopularKey] = Field(default_factory=list)
    top_misses: list[PopularKey] = Field(default_factory=list)
    generated_at: datetime


class RealtimeHitRate(BaseModel):
    type: str
    period: str
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
