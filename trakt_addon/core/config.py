"""
Application configuration models and helpers.

Centralizes settings management so the addon server, the background token
refresher and the operational scripts share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


_SETTINGS_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class TraktSettings(BaseSettings):
    """Configuration required for interacting with the Trakt API."""

    model_config = _SETTINGS_CONFIG

    client_id: str = Field(..., validation_alias="TRAKT_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="TRAKT_CLIENT_SECRET")
    api_base_url: AnyHttpUrl = Field(
        "https://api.trakt.tv",
        validation_alias="TRAKT_API_BASE_URL",
    )
    api_version: str = Field("2", validation_alias="TRAKT_API_VERSION")

    @property
    def base_url(self) -> str:
        return str(self.api_base_url).rstrip("/")


class MetadataSettings(BaseSettings):
    """Optional keys for the poster lookup services."""

    model_config = _SETTINGS_CONFIG

    tmdb_api_key: Optional[str] = Field(None, validation_alias="TMDB_API_KEY")
    omdb_api_key: Optional[str] = Field(None, validation_alias="OMDB_API_KEY")
    poster_cache_ttl_seconds: int = Field(
        7 * 24 * 60 * 60,
        validation_alias="POSTER_CACHE_TTL_SECONDS",
    )


class StorageSettings(BaseSettings):
    """Filesystem locations for persisted state."""

    model_config = _SETTINGS_CONFIG

    data_dir: Path = Field(Path("./data"), validation_alias="DATA_DIR")
    token_filename: str = Field("trakt_tokens.json", validation_alias="TOKEN_FILENAME")
    lists_filename: str = Field("lists.json", validation_alias="LISTS_FILENAME")
    poster_cache_filename: str = Field(
        "poster_cache.json", validation_alias="POSTER_CACHE_FILENAME"
    )

    @property
    def token_path(self) -> Path:
        return self.data_dir / self.token_filename

    @property
    def lists_path(self) -> Path:
        return self.data_dir / "config" / self.lists_filename

    @property
    def poster_cache_path(self) -> Path:
        return self.data_dir / self.poster_cache_filename


class TokenSettings(BaseSettings):
    """Token lifecycle tuning."""

    model_config = _SETTINGS_CONFIG

    refresh_buffer_seconds: int = Field(
        2 * 60 * 60,
        validation_alias="TOKEN_REFRESH_BUFFER_SECONDS",
        description="Refresh once the access token is this close to expiring.",
    )
    refresh_interval_seconds: int = Field(
        30 * 60,
        validation_alias="TOKEN_REFRESH_INTERVAL_SECONDS",
        description="Period of the background refresh check.",
    )
    refresh_timeout_seconds: float = Field(
        30.0, validation_alias="TOKEN_REFRESH_TIMEOUT_SECONDS"
    )
    device_poll_max_attempts: int = Field(60, validation_alias="DEVICE_POLL_MAX_ATTEMPTS")

    @field_validator("refresh_buffer_seconds", "refresh_interval_seconds")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive number of seconds")
        return value


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = _SETTINGS_CONFIG

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    addon_version: str = Field("1.0.0", validation_alias="ADDON_VERSION")
    trakt: TraktSettings = Field(default_factory=TraktSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    tokens: TokenSettings = Field(default_factory=TokenSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "MetadataSettings",
    "StorageSettings",
    "TokenSettings",
    "TraktSettings",
    "get_settings",
]
