"""
Unit Tests for Core Exceptions

Tests the exception hierarchy and its serialization helpers.
"""

import pytest

from muse_cache.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CacheTimeoutError,
    ConfigurationError,
    MuseBaseError,
)


@pytest.mark.unit
class TestMuseBaseError:
    """Test the base exception class."""

    def test_base_error_creation(self):
        error = MuseBaseError("Test message")
        assert str(error) == "Test message"
        assert error.message == "Test message"

    def test_base_error_default_values(self):
        error = MuseBaseError("Test")
        assert error.details == {}
        assert error.request_id is None

    def test_to_dict_shape(self):
        error = CacheTimeoutError("Redis GET timed out", request_id="req-1", details={"op": "GET"})

        assert error.to_dict() == {
            "error_type": "CacheTimeoutError",
            "message": "Redis GET timed out",
            "request_id": "req-1",
            "details": {"op": "GET"},
        }

    def test_with_context_adds_details_and_returns_self(self):
        error = CacheKeyError("bad key")

        result = error.with_context(key="spotify:track:1")

        assert result is error
        assert error.details["key"] == "spotify:track:1"

    def test_from_exception_keeps_original(self):
        original = ValueError("Circular reference detected")

        error = CacheSerializationError.from_exception(original, record_type="Track")

        assert isinstance(error, CacheSerializationError)
        assert error.message == "Circular reference detected"
        assert error.details["original_error"] == "ValueError"
        assert error.details["record_type"] == "Track"

    def test_repr_includes_details(self):
        error = CacheError("boom", details={"op": "MGET"})

        assert "CacheError" in repr(error)
        assert "MGET" in repr(error)


@pytest.mark.unit
class TestHierarchy:
    """Callers catch CacheError for any store failure."""

    @pytest.mark.parametrize(
        "error_class",
        [CacheConnectionError, CacheKeyError, CacheSerializationError, CacheTimeoutError],
    )
    def test_store_errors_are_cache_errors(self, error_class):
        assert issubclass(error_class, CacheError)
        assert issubclass(error_class, MuseBaseError)

    def test_configuration_error_is_not_a_cache_error(self):
        assert not issubclass(ConfigurationError, CacheError)
