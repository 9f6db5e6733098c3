"""
Unit Tests for Caller Deadlines

Tests the ContextVar-carried deadline that bounds store calls.
"""

import asyncio
from unittest.mock import patch

import pytest

from muse_cache.core.deadline import cache_deadline, effective_timeout, remaining_time


@pytest.mark.unit
class TestCacheDeadline:
    def test_no_deadline_means_unbounded(self):
        assert remaining_time() is None
        assert effective_timeout(2.0) == 2.0

    def test_deadline_tighter_than_ceiling_wins(self):
        with cache_deadline(0.5):
            assert effective_timeout(2.0) <= 0.5

    def test_ceiling_tighter_than_deadline_wins(self):
        with cache_deadline(10.0):
            assert effective_timeout(2.0) == 2.0

    def test_nested_deadline_cannot_extend(self):
        with patch("muse_cache.core.deadline.time.monotonic", return_value=100.0):
            with cache_deadline(1.0):
                with cache_deadline(5.0):
                    assert remaining_time() == pytest.approx(1.0)
                assert remaining_time() == pytest.approx(1.0)

    def test_nested_deadline_can_shorten(self):
        with patch("muse_cache.core.deadline.time.monotonic", return_value=100.0):
            with cache_deadline(5.0):
                with cache_deadline(1.0):
                    assert remaining_time() == pytest.approx(1.0)
                assert remaining_time() == pytest.approx(5.0)

    def test_expired_deadline_gives_zero_timeout(self):
        with cache_deadline(-1.0):
            assert effective_timeout(2.0) == 0.0

    def test_deadline_reset_on_exit(self):
        with cache_deadline(1.0):
            pass
        assert remaining_time() is None

    async def test_deadline_follows_tasks(self):
        async def child():
            return remaining_time()

        with cache_deadline(3.0):
            observed = await asyncio.create_task(child())

        assert observed is not None
        assert 0 < observed <= 3.0
