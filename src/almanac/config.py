"""Configuration management using pydantic-settings."""

from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ALMANAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Data storage
    data_path: Path = Path("data")
    db_name: str = "calendar.json"

    # IANA zone such as "Europe/Berlin"; None uses the system local time
    timezone: str | None = None

    @property
    def db_path(self) -> Path:
        return self.data_path / self.db_name


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()


def current_time(settings: Settings) -> datetime:
    """Naive wall-clock time in the configured zone, truncated to the second."""
    if settings.timezone:
        now = datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None)
    else:
        now = datetime.now()
    return now.replace(microsecond=0)
