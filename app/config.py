"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify signed access tokens", min_length=1
    )
    redis_url: str | None = Field(
        default=None,
        description="Redis URL backing the offline queue; in-memory queue when empty",
    )
    offline_queue_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Seconds a recipient's offline queue survives after the last enqueue",
        gt=0,
    )
    send_timeout_seconds: float = Field(
        default=5.0,
        description="Upper bound for a single websocket write",
        gt=0,
    )
    app_timezone: str = Field(
        default="Asia/Seoul",
        description="IANA timezone used for notification timestamps",
    )
    environment: str = Field(
        default="development",
        description="Deployment environment name; 'production' disables test endpoints",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )

    @field_validator("redis_url")
    @classmethod
    def _blank_redis_url_is_unset(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
