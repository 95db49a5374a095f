"""
Configuration for logstream clients.

Settings are read from ``LOGSTREAM_*`` environment variables and an
optional ``.env`` file, validated by pydantic, and converted into the
StreamConfig used by the stream clients.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logstream.models import (
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_INTERVAL,
    StreamConfig,
)


class LogStreamSettings(BaseSettings):
    """Stream client configuration."""

    base_url: str = Field(default="http://localhost:3456", description="Dashboard server base URL")
    reconnect_interval: float = Field(default=RECONNECT_INTERVAL, description="Delay before each automatic reconnect in seconds")
    max_reconnect_attempts: int = Field(default=MAX_RECONNECT_ATTEMPTS, description="Automatic reconnects before giving up")
    connect_timeout: float = Field(default=10.0, description="Connection timeout in seconds")
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="LOGSTREAM_",
        env_file=".env",
        extra="ignore"
    )

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        """Ensure base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Base URL must start with http:// or https://, got: {v}")
        return v.rstrip("/")

    @field_validator('reconnect_interval', 'connect_timeout')
    @classmethod
    def validate_positive(cls, v):
        """Ensure durations are positive."""
        if v <= 0:
            raise ValueError(f"Duration must be positive, got: {v}")
        return v

    @field_validator('max_reconnect_attempts')
    @classmethod
    def validate_attempts(cls, v):
        """Ensure attempt bound is not negative."""
        if v < 0:
            raise ValueError(f"Max reconnect attempts must not be negative, got: {v}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    def to_stream_config(self) -> StreamConfig:
        """Convert settings to the StreamConfig used by clients."""
        return StreamConfig(
            base_url=self.base_url,
            reconnect_interval=self.reconnect_interval,
            max_reconnect_attempts=self.max_reconnect_attempts,
            connect_timeout=self.connect_timeout,
        )


def load_settings(**overrides) -> LogStreamSettings:
    """Load settings from the environment, applying non-None overrides."""
    values = {key: value for key, value in overrides.items() if value is not None}
    return LogStreamSettings(**values)
