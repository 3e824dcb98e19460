"""Application configuration."""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_key: str
    local_db_path: str = "macro_tracker.db"
    timezone: str = "UTC"
    reachability_url: str | None = None
    reachability_interval_seconds: float = 5.0
    reachability_timeout_seconds: float = 3.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def resolved_reachability_url(self) -> str:
        """URL probed for connectivity, defaulting to the Supabase URL."""
        return self.reachability_url or self.supabase_url


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the named timezone, or UTC when unset or unknown."""
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")
