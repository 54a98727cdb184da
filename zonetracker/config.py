"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    database_url: str = Field(
        default="sqlite:///./data/zonetracker.db",
        description="SQLAlchemy-compatible database URL.",
    )
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)
    debug: bool = Field(default=False)

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))

    # Ring (Oura)
    oura_client_id: str | None = None
    oura_client_secret: str | None = None
    oura_access_token: str | None = Field(
        default=None,
        description="Bootstrap token saved to the token store on first use.",
    )
    oura_refresh_token: str | None = None

    # Band (WHOOP)
    whoop_client_id: str | None = None
    whoop_client_secret: str | None = None
    whoop_access_token: str | None = None
    whoop_refresh_token: str | None = None

    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Externally reachable base URL used to build OAuth redirect URIs.",
    )
    oauth_use_pkce: bool = Field(
        default=True,
        description="Send a PKCE challenge to providers that support it (WHOOP).",
    )

    admin_token: str | None = Field(default=None, description="Bearer token guarding POST /api/sync.")
    cron_secret: str | None = Field(default=None, description="Bearer token guarding /api/cron routes.")

    sync_days: int = Field(default=90, ge=1, le=730)
    default_weeks: int = Field(default=12, ge=1, le=104)
    token_refresh_buffer_seconds: int = Field(default=300, ge=0)
    zone_config_path: Path | None = Field(
        default=None,
        description="Optional YAML file overriding zone thresholds.",
    )
    week_start: str = Field(default="sunday")

    scheduler_hour: int = Field(default=8, ge=0, le=23)
    scheduler_minute: int = Field(default=0, ge=0, le=59)
    scheduler_lock_file: Path = Field(default=Path(".scheduler.lock"))

    http_timeout_seconds: float = Field(default=30.0, gt=0)
    http_max_retries: int = Field(default=4, ge=1, le=10)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    @field_validator("week_start")
    @classmethod
    def normalize_week_start(cls, value: str) -> str:
        lower = value.strip().lower()
        if lower not in {"sunday", "monday"}:
            raise ValueError("WEEK_START must be 'sunday' or 'monday'")
        return lower

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
