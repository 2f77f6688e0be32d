from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartline.core.retry import RetryConfig


def _validate_http_url(v: str, name: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError(f"{name} base URL must start with http:// or https://")
    return v.rstrip("/")


class BackendSettings(BaseSettings):
    """Dispatch and pricing backend."""

    base_url: str = "http://localhost:3000/api"
    timeout_seconds: float = Field(default=10.0, gt=0, le=120.0)
    service_token: str = ""

    model_config = SettingsConfigDict(env_prefix="BACKEND_")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_http_url(v, "Backend")


class RoutingSettings(BaseSettings):
    """Directions provider and the route fetch retry policy."""

    base_url: str = "https://api.mapbox.com"
    access_token: str = ""
    profile: Literal["driving", "driving-traffic", "cycling", "walking"] = "driving"
    attempt_timeout_seconds: float = Field(default=15.0, gt=0, le=120.0)
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_delay_seconds: float = Field(default=1.0, ge=0.0, le=30.0)

    model_config = SettingsConfigDict(env_prefix="ROUTING_")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_http_url(v, "Routing")

    def retry_config(self, retryable_exceptions: tuple[type[Exception], ...]) -> RetryConfig:
        """Fixed-backoff policy: one attempt plus max_retries retries."""
        return RetryConfig(
            max_attempts=self.max_retries + 1,
            base_delay=self.retry_delay_seconds,
            multiplier=1.0,
            max_delay=self.retry_delay_seconds,
            attempt_timeout=self.attempt_timeout_seconds,
            retryable_exceptions=retryable_exceptions,
        )


class RedisSettings(BaseSettings):
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: str | None = None
    ssl: bool = False

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class LogSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["text", "json"] = "text"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class APISettings(BaseSettings):
    key: str = ""
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(env_prefix="API_")


class Settings(BaseSettings):
    backend: BackendSettings = Field(default_factory=BackendSettings)
    routing: RoutingSettings = Field(default_factory=RoutingSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    api: APISettings = Field(default_factory=APISettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
