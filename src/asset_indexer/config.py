"""Configuration management service with Pydantic Settings.

This module provides centralized configuration management for the
asset indexer, loading and validating environment variables at startup.
"""

from __future__ import annotations

import logging
import socket
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import Web3

DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgres://",
    "postgresql+asyncpg://",
    "sqlite://",
    "sqlite+aiosqlite://",
)


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="")

    url: str = Field(
        default="sqlite+aiosqlite:///asset_indexer.db",
        alias="DATABASE_URL",
        description="PostgreSQL or SQLite connection string",
    )
    echo: bool = Field(
        default=False,
        alias="DATABASE_ECHO",
        description="Log every SQL statement",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(DATABASE_URL_PREFIXES):
            raise ValueError("DATABASE_URL must be a PostgreSQL or SQLite connection string")
        return v


class RedisSettings(BaseSettings):
    """Redis connection settings."""

    model_config = SettingsConfigDict(env_prefix="")

    url: str = Field(
        default="redis://localhost:6379",
        alias="REDIS_URL",
        description="Redis connection string",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith("redis://"):
            raise ValueError("REDIS_URL must start with redis://")
        return v


class StreamSettings(BaseSettings):
    """Decoded event stream consumer settings."""

    model_config = SettingsConfigDict(env_prefix="STREAM_")

    name: str = Field(
        default="contract-events",
        alias="STREAM_NAME",
        description="Redis Stream carrying decoded events",
    )
    group: str = Field(
        default="asset-indexer",
        alias="STREAM_GROUP",
        description="Consumer group name",
    )
    consumer: str = Field(
        default_factory=socket.gethostname,
        alias="STREAM_CONSUMER",
        description="Consumer name within the group",
    )
    batch_size: int = Field(
        default=100,
        alias="STREAM_BATCH_SIZE",
        description="Maximum entries read per call",
        ge=1,
    )
    block_ms: int = Field(
        default=1000,
        alias="STREAM_BLOCK_MS",
        description="Milliseconds to block waiting for new entries",
        ge=0,
    )
    max_retries: int = Field(
        default=5,
        alias="STREAM_MAX_RETRIES",
        description="Attempts per event before the pipeline stops",
        ge=1,
    )
    retry_backoff: float = Field(
        default=1.0,
        alias="STREAM_RETRY_BACKOFF",
        description="Base delay in seconds between attempts, doubled each time",
        ge=0,
    )


class IndexerSettings(BaseSettings):
    """Indexing engine settings."""

    model_config = SettingsConfigDict(env_prefix="INDEXER_")

    default_decimals: int = Field(
        default=18,
        alias="INDEXER_DEFAULT_DECIMALS",
        description="Decimals for assets seen before their registration",
        ge=0,
        le=77,
    )
    asset_decimals: dict[str, int] = Field(
        default_factory=dict,
        alias="INDEXER_ASSET_DECIMALS",
        description="JSON object mapping asset address to decimals",
    )

    @field_validator("asset_decimals")
    @classmethod
    def validate_asset_decimals(cls, v: dict[str, int]) -> dict[str, int]:
        """Normalize asset addresses and check decimal ranges."""
        normalized: dict[str, int] = {}
        for address, decimals in v.items():
            if not Web3.is_address(address):
                raise ValueError(f"Invalid asset address: {address}")
            if not 0 <= decimals <= 77:
                raise ValueError(f"Decimals out of range for {address}: {decimals}")
            normalized[address.lower()] = decimals
        return normalized


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from asset_indexer.config import get_settings

        settings = get_settings()
        print(settings.database.url)
        print(settings.stream.group)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Nested configuration groups
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    stream: StreamSettings = Field(default_factory=StreamSettings)
    indexer: IndexerSettings = Field(default_factory=IndexerSettings)

    # Application settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    health_port: int = Field(
        default=8080,
        alias="HEALTH_PORT",
        description="HTTP port for health check endpoints",
        ge=1,
        le=65535,
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "database_url": self._redact_url(self.database.url),
            "redis_url": self._redact_url(self.redis.url),
            "stream": {
                "name": self.stream.name,
                "group": self.stream.group,
                "consumer": self.stream.consumer,
                "batch_size": str(self.stream.batch_size),
                "max_retries": str(self.stream.max_retries),
            },
            "indexer": {
                "default_decimals": str(self.indexer.default_decimals),
                "asset_decimals": str(len(self.indexer.asset_decimals)),
            },
            "log_level": self.log_level,
            "health_port": str(self.health_port),
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact password from URL if present."""
        if "@" in url and "://" in url:
            # URL has credentials - redact the password
            protocol_end = url.index("://") + 3
            at_pos = url.index("@")
            creds_part = url[protocol_end:at_pos]
            if ":" in creds_part:
                username = creds_part.split(":")[0]
                return f"{url[:protocol_end]}{username}:***@{url[at_pos + 1 :]}"
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Uses LRU cache to ensure settings are loaded only once and
    reused across the application.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
