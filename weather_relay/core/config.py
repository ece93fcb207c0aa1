"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the fetch scheduler and
the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


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


class NetatmoSettings(BaseSettings):
    """Configuration required for talking to the Netatmo API."""

    model_config = SettingsConfigDict(extra="ignore")

    client_id: str = Field(..., validation_alias="NETATMO_APP_ID")
    client_secret: str = Field(..., validation_alias="NETATMO_CLIENT_SECRET")
    device_id: str = Field(..., validation_alias="NETATMO_DEVICE_ID")
    outdoor_module_id: str = Field(..., validation_alias="NETATMO_OUTDOOR_MODULE_ID")
    refresh_token: Optional[str] = Field(
        None,
        validation_alias="NETATMO_REFRESH_TOKEN",
        description=(
            "Bootstrap refresh token. Only used when the store holds none, or "
            "as a fallback when the stored one is rejected at startup."
        ),
    )
    api_base_url: AnyHttpUrl = Field(
        "https://api.netatmo.com", validation_alias="NETATMO_API_BASE"
    )
    request_timeout: float = Field(10.0, validation_alias="NETATMO_REQUEST_TIMEOUT")


class SchedulerSettings(BaseSettings):
    """Cadence of the background fetch loop."""

    model_config = SettingsConfigDict(extra="ignore")

    fetch_interval_seconds: float = Field(
        30.0, gt=0, validation_alias="FETCH_INTERVAL_SECONDS"
    )


class CORSSettings(BaseSettings):
    """Origins allowed to read the snapshot endpoint from a browser."""

    model_config = SettingsConfigDict(extra="ignore")

    allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        (), validation_alias="ALLOWED_ORIGINS"
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing origins as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(origin.strip() for origin in value.split(",") if origin.strip())


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the weather relay."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    host: str = Field("0.0.0.0", validation_alias="APP_HOST")
    port: int = Field(8000, validation_alias="APP_PORT")
    store_db_path: str = Field(
        "data/weather_relay.db",
        validation_alias="STORE_DB_PATH",
        description="SQLite file holding tokens and the latest snapshot.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    netatmo: NetatmoSettings = Field(default_factory=NetatmoSettings)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in {"development", "dev", "local"}


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "CORSSettings",
    "NetatmoSettings",
    "SchedulerSettings",
    "SecuritySettings",
    "get_settings",
]
