"""
Unit Tests for Configuration Constants

Tests stage identifiers and key segments.
"""

import pytest

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


@pytest.mark.unit
class TestStageConstants:
    def test_stage_values_are_unique(self):
        values = [stage.value for stage in Stage]
        assert len(set(values)) == len(values)

    def test_stage_is_string_enum(self):
        assert isinstance(Stage.CACHE_GET, str)


@pytest.mark.unit
class TestMetricSegments:
    def test_segments_are_unique(self):
        segments = [
            METRIC_SEGMENT_HITS,
            METRIC_SEGMENT_MISSES,
            METRIC_SEGMENT_TIMING,
            METRIC_SEGMENT_POPULAR,
            METRIC_SEGMENT_FREQUENT,
            METRIC_SEGMENT_TOTAL,
        ]
        assert len(set(segments)) == len(segments)

    def test_outcomes(self):
        assert MetricOutcome("hit") is MetricOutcome.HIT
        assert MetricOutcome("miss") is MetricOutcome.MISS

    def test_hour_bucket_format(self):
        from datetime import datetime

        assert datetime(2024, 3, 5, 7).strftime(HOUR_BUCKET_FORMAT) == "2024-03-05-07"
