"""Configuration management for wundergrounded.

Loads defaults from environment variables using Pydantic. Every value here is
only a default: clients override them per instance through their fluent
setters (``api_key()``, ``cache()``, ``limit()``, ``debug()``).

Usage:
    from wundergrounded.config import settings

    print(settings.api_key)  # None unless WUNDERGROUND_API_KEY is set
    print(settings.rate_interval)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Interval names accepted by the token bucket, in seconds
INTERVALS: dict[str, float] = {
    "second": 1.0,
    "sec": 1.0,
    "minute": 60.0,
    "min": 60.0,
    "hour": 3600.0,
    "hr": 3600.0,
    "day": 86400.0,
}


class Settings(BaseSettings):
    """wundergrounded configuration from environment variables.

    Loads from .env file automatically. Validates on instantiation.
    Nothing is required: a client without an API key can still be built,
    it just reports ``MissingAPIKey`` on every request.

    Attributes:
        api_key: Weather Underground API key
        base_url: API root, the key and features are appended to it
        debug: Emit request trace lines from new clients
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR)
        cache_ttl_seconds: Default lifetime of a cached response
        cache_sweep_seconds: Default interval between expired-entry sweeps
        rate_limit: Default tokens granted per interval
        rate_interval: Default interval name for the token bucket
        timeout: HTTP timeout in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="WUNDERGROUND_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        min_length=1,
        description="Weather Underground API key",
    )
    base_url: str = Field(
        default="http://api.wunderground.com/api",
        description="API root URL",
    )

    debug: bool = Field(default=False, description="Trace requests from new clients")
    log_level: str = Field(default="INFO", description="Logging level")

    # Response cache
    cache_ttl_seconds: int = Field(default=300, ge=1, description="Seconds a response stays cached")
    cache_sweep_seconds: int = Field(default=30, ge=1, description="Seconds between expiry sweeps")

    # Rate limiting
    rate_limit: int = Field(default=10, ge=1, description="Requests per interval")
    rate_interval: str = Field(default="minute", description="Rate limit interval name")

    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout (seconds)")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper

    @field_validator("rate_interval")
    @classmethod
    def validate_rate_interval(cls, v: str) -> str:
        """Ensure the interval is one the rate limiter understands."""
        v_lower = v.lower()
        if v_lower not in INTERVALS:
            raise ValueError(f"rate_interval must be one of {sorted(INTERVALS)}, got '{v}'")
        return v_lower

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# Global settings instance, loaded once at import
settings = Settings()
