"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from datetime import datetime, timezone

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


# ============================================================================
# Clocks
# ============================================================================


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


FIXED_NOW = datetime(2024, 3, 15, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fixed_now():
    """Wall-clock instant used by the metrics fixtures (UTC 2024-03-15 14:30)."""
    return FIXED_NOW


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """
    Real Settings instance with test-friendly values.

    Built explicitly rather than mocked so validators run.
    """
    from muse_cache.core.config.settings import Settings

    return Settings(
        ENVIRONMENT="development",
        APP_VERSION="1.0.0-test",
        CACHE_NAMESPACE="spotify",
        METRICS_NAMESPACE="cache",
        METRICS_ENABLED=True,
        METRICS_TIMING_SAMPLE_CAP=5,
        METRICS_DETAIL_HOURS=3,
        CACHE_SCAN_COUNT=100,
        CACHE_DELETE_CHUNK_SIZE=2,
        CACHE_RECENTLY_PLAYED_LIMIT=3,
    )


# ============================================================================
# Store and Cache Fixtures
# ============================================================================


@pytest.fixture
async def memory_store(fake_clock):
    """Connected in-memory store driven by ``fake_clock``."""
    from muse_cache.core.interfaces.cache import InMemoryCacheStore

    store = InMemoryCacheStore(clock=fake_clock)
    await store.connect()
    return store


@pytest.fixture
def music_cache(memory_store, test_settings):
    from muse_cache.infrastructure.cache.music_cache import MusicCache

    return MusicCache(memory_store, test_settings)


@pytest.fixture
def cache_metrics(memory_store, test_settings, fixed_now):
    """CacheMetrics over the in-memory store, frozen at ``fixed_now``."""
    from muse_cache.infrastructure.monitoring.cache_metrics import CacheMetrics

    return CacheMetrics(memory_store, test_settings, clock=lambda: fixed_now)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def catalog():
    from tests.test_fixtures.catalog_factory import CatalogFactory

    return CatalogFactory


@pytest.fixture
def sample_track(catalog):
    return catalog.track("4uLU6hMCjMI75M1A2tKUQC", name="Never Gonna Give You Up")


@pytest.fixture
def sample_tracks(catalog):
    return [catalog.track(f"t{i}") for i in range(1, 6)]


@pytest.fixture
def sample_album(catalog):
    return catalog.album("alb1")


@pytest.fixture
def sample_artist(catalog):
    return catalog.artist("art1")
