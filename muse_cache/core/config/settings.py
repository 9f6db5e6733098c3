#!/usr/bin/env python3
"""
Centralized Configuration Module using Pydantic Settings

This module provides type-safe, environment-based configuration for the
music metadata cache layer. All configuration is centralized here so the
entity cache, search cache, token cache, invalidation and metrics components
read the same TTLs and key namespaces.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on a zero or negative TTL)
- Easy testing with override mechanisms
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """
    Redis configuration for the shared cache store.

    STAGE-0.1: Redis connection configuration

    REDIS_URL takes precedence over host/port when set.
    """

    REDIS_URL: str | None = Field(default=None, description="Full Redis URL (overrides host/port)")
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")

    REDIS_MAX_CONNECTIONS: int = Field(default=100, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Entity, search and token cache configuration.

    STAGE-2: Cache TTL configuration

    Every cached record carries an explicit expiry. TTLs differ per content
    type: catalog data changes rarely, user snapshots change often.
    """

    CACHE_NAMESPACE: str = Field(default="spotify", description="Key prefix for cached entities")

    CACHE_TRACK_TTL: int = Field(default=86400, description="Track TTL (24 hours)")
    CACHE_ALBUM_TTL: int = Field(default=86400, description="Album TTL (24 hours)")
    CACHE_ARTIST_TTL: int = Field(default=43200, description="Artist TTL (12 hours)")
    CACHE_USER_TTL: int = Field(default=900, description="User snapshot TTL (15 minutes)")
    CACHE_RECOMMENDATIONS_TTL: int = Field(default=7200, description="Recommendations TTL (2 hours)")
    CACHE_SEARCH_TTL: int = Field(default=1800, description="Search result TTL (30 minutes)")
    CACHE_TOKEN_TTL: int = Field(default=3000, description="Access token TTL (50 minutes)")
    CACHE_HISTORY_TTL: int = Field(default=86400, description="Listening history TTL (24 hours)")
    CACHE_POPULAR_TTL: int = Field(default=21600, description="Popular albums/tracks TTL (6 hours)")

    CACHE_TOKEN_LIFETIME: int = Field(default=3600, description="Provider token lifetime in seconds")
    CACHE_TOKEN_SAFETY_MARGIN: int = Field(default=600, description="Seconds before token expiry to stop serving it")

    CACHE_OPERATION_TIMEOUT: float = Field(default=2.0, description="Upper bound for a single store call (seconds)")
    CACHE_SCAN_COUNT: int = Field(default=500, description="SCAN COUNT hint for invalidation")
    CACHE_DELETE_CHUNK_SIZE: int = Field(default=500, description="Keys per DEL call during invalidation")
    CACHE_RECENTLY_PLAYED_LIMIT: int = Field(default=50, description="Recently played tracks kept per user")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class MetricsSettings(BaseSettings):
    """
    Redis-backed cache telemetry configuration.

    STAGE-M: Metrics retention configuration
    """

    METRICS_ENABLED: bool = Field(default=True, description="Record hit/miss telemetry")
    METRICS_NAMESPACE: str = Field(default="cache", description="Key prefix for metrics keys")
    METRICS_BUCKET_TTL: int = Field(default=90000, description="Hourly counter and timing retention (25 hours)")
    METRICS_POPULARITY_TTL: int = Field(default=604800, description="Popularity ranking retention (7 days)")
    METRICS_TIMING_SAMPLE_CAP: int = Field(default=1000, description="Timing samples kept per kind and hour")
    METRICS_TOP_N: int = Field(default=10, description="Entries in top hit/miss rankings")
    METRICS_DETAIL_HOURS: int = Field(default=24, description="Hourly breakdown window for detailed stats")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class ApplicationSettings(BaseSettings):
    """
    General application settings.

    STAGE-0: Application initialization
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Muse Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")

    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all HTTP routes")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


_TTL_FIELDS = (
    "CACHE_TRACK_TTL",
    "CACHE_ALBUM_TTL",
    "CACHE_ARTIST_TTL",
    "CACHE_USER_TTL",
    "CACHE_RECOMMENDATIONS_TTL",
    "CACHE_SEARCH_TTL",
    "CACHE_TOKEN_TTL",
    "CACHE_HISTORY_TTL",
    "CACHE_POPULAR_TTL",
    "METRICS_BUCKET_TTL",
    "METRICS_POPULARITY_TTL",
)


# Sizes that must be at least 1
_POSITIVE_COUNT_FIELDS = (
    "CACHE_SCAN_COUNT",
    "CACHE_DELETE_CHUNK_SIZE",
    "METRICS_TIMING_SAMPLE_CAP",
)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from muse_cache.core.config.settings import get_settings

        settings = get_settings()
        track_ttl = settings.cache.CACHE_TRACK_TTL
        bucket_ttl = settings.metrics.METRICS_BUCKET_TTL
    """

    # Redis settings
    REDIS_URL: str | None = Field(default=None, description="Full Redis URL (overrides host/port)")
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=100, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Cache settings
    CACHE_NAMESPACE: str = Field(default="spotify", description="Key prefix for cached entities")
    CACHE_TRACK_TTL: int = Field(default=86400, description="Track TTL (24 hours)")
    CACHE_ALBUM_TTL: int = Field(default=86400, description="Album TTL (24 hours)")
    CACHE_ARTIST_TTL: int = Field(default=43200, description="Artist TTL (12 hours)")
    CACHE_USER_TTL: int = Field(default=900, description="User snapshot TTL (15 minutes)")
    CACHE_RECOMMENDATIONS_TTL: int = Field(default=7200, description="Recommendations TTL (2 hours)")
    CACHE_SEARCH_TTL: int = Field(default=1800, description="Search result TTL (30 minutes)")
    CACHE_TOKEN_TTL: int = Field(default=3000, description="Access token TTL (50 minutes)")
    CACHE_HISTORY_TTL: int = Field(default=86400, description="Listening history TTL (24 hours)")
    CACHE_POPULAR_TTL: int = Field(default=21600, description="Popular albums/tracks TTL (6 hours)")
    CACHE_TOKEN_LIFETIME: int = Field(default=3600, description="Provider token lifetime in seconds")
    CACHE_TOKEN_SAFETY_MARGIN: int = Field(default=600, description="Seconds before token expiry to stop serving it")
    CACHE_OPERATION_TIMEOUT: float = Field(default=2.0, description="Upper bound for a single store call (seconds)")
    CACHE_SCAN_COUNT: int = Field(default=500, description="SCAN COUNT hint for invalidation")
    CACHE_DELETE_CHUNK_SIZE: int = Field(default=500, description="Keys per DEL call during invalidation")
    CACHE_RECENTLY_PLAYED_LIMIT: int = Field(default=50, description="Recently played tracks kept per user")

    # Metrics settings
    METRICS_ENABLED: bool = Field(default=True, description="Record hit/miss telemetry")
    METRICS_NAMESPACE: str = Field(default="cache", description="Key prefix for metrics keys")
    METRICS_BUCKET_TTL: int = Field(default=90000, description="Hourly counter and timing retention (25 hours)")
    METRICS_POPULARITY_TTL: int = Field(default=604800, description="Popularity ranking retention (7 days)")
    METRICS_TIMING_SAMPLE_CAP: int = Field(default=1000, description="Timing samples kept per kind and hour")
    METRICS_TOP_N: int = Field(default=10, description="Entries in top hit/miss rankings")
    METRICS_DETAIL_HOURS: int = Field(default=24, description="Hourly breakdown window for detailed stats")

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    # Application settings
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    DEBUG: bool = Field(default=False, description="Debug mode")
    APP_NAME: str = Field(default="Muse Cache Service", description="Application name")
    APP_VERSION: str = Field(default="1.0.0", description="Application version")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, description="API port")
    API_BASE_PATH: str = Field(default="/api/v1", description="Prefix for all HTTP routes")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator(*_TTL_FIELDS)
    @classmethod
    def validate_positive_ttl(cls, v, info):
        """Every write carries a real expiry; reject zero and negative TTLs."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be a positive number of seconds")
        return v

    @field_validator(*_POSITIVE_COUNT_FIELDS)
    @classmethod
    def validate_positive_count(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v

    @field_validator("CACHE_OPERATION_TIMEOUT")
    @classmethod
    def validate_operation_timeout(cls, v):
        if v <= 0:
            raise ValueError("CACHE_OPERATION_TIMEOUT must be positive")
        return v

    @model_validator(mode="after")
    def validate_token_window(self):
        """A cached token must never outlive the provider's validity window."""
        if self.CACHE_TOKEN_TTL > self.CACHE_TOKEN_LIFETIME - self.CACHE_TOKEN_SAFETY_MARGIN:
            raise ValueError(
                "CACHE_TOKEN_TTL must not exceed CACHE_TOKEN_LIFETIME - CACHE_TOKEN_SAFETY_MARGIN"
            )
        return self

    # Nested configuration objects
    @property
    def redis(self) -> 'RedisSettings':
        """Get Redis settings."""
        return RedisSettings(
            REDIS_URL=self.REDIS_URL,
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL
        )

    @property
    def cache(self) -> 'CacheSettings':
        """Get cache settings."""
        return CacheSettings(
            CACHE_NAMESPACE=self.CACHE_NAMESPACE,
            CACHE_TRACK_TTL=self.CACHE_TRACK_TTL,
            CACHE_ALBUM_TTL=self.CACHE_ALBUM_TTL,
            CACHE_ARTIST_TTL=self.CACHE_ARTIST_TTL,
            CACHE_USER_TTL=self.CACHE_USER_TTL,
            CACHE_RECOMMENDATIONS_TTL=self.CACHE_RECOMMENDATIONS_TTL,
            CACHE_SEARCH_TTL=self.CACHE_SEARCH_TTL,
            CACHE_TOKEN_TTL=self.CACHE_TOKEN_TTL,
            CACHE_HISTORY_TTL=self.CACHE_HISTORY_TTL,
            CACHE_POPULAR_TTL=self.CACHE_POPULAR_TTL,
            CACHE_TOKEN_LIFETIME=self.CACHE_TOKEN_LIFETIME,
            CACHE_TOKEN_SAFETY_MARGIN=self.CACHE_TOKEN_SAFETY_MARGIN,
            CACHE_OPERATION_TIMEOUT=self.CACHE_OPERATION_TIMEOUT,
            CACHE_SCAN_COUNT=self.CACHE_SCAN_COUNT,
            CACHE_DELETE_CHUNK_SIZE=self.CACHE_DELETE_CHUNK_SIZE,
            CACHE_RECENTLY_PLAYED_LIMIT=self.CACHE_RECENTLY_PLAYED_LIMIT
        )

    @property
    def metrics(self) -> 'MetricsSettings':
        """Get metrics settings."""
        return MetricsSettings(
            METRICS_ENABLED=self.METRICS_ENABLED,
            METRICS_NAMESPACE=self.METRICS_NAMESPACE,
            METRICS_BUCKET_TTL=self.METRICS_BUCKET_TTL,
            METRICS_POPULARITY_TTL=self.METRICS_POPULARITY_TTL,
            METRICS_TIMING_SAMPLE_CAP=self.METRICS_TIMING_SAMPLE_CAP,
            METRICS_TOP_N=self.METRICS_TOP_N,
            METRICS_DETAIL_HOURS=self.METRICS_DETAIL_HOURS
        )

    @property
    def logging(self) -> 'LoggingSettings':
        """Get logging settings."""
        return LoggingSettings(
            LOG_LEVEL=self.LOG_LEVEL,
            LOG_FORMAT=self.LOG_FORMAT
        )

    @property
    def app(self) -> 'ApplicationSettings':
        """Get application settings."""
        return ApplicationSettings(
            ENVIRONMENT=self.ENVIRONMENT,
            DEBUG=self.DEBUG,
            APP_NAME=self.APP_NAME,
            APP_VERSION=self.APP_VERSION,
            API_HOST=self.API_HOST,
            API_PORT=self.API_PORT,
            API_BASE_PATH=self.API_BASE_PATH
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Ignore extra environment variables
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
