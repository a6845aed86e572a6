"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "gcp", "test"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Local database (remote store stand-in + local cache)
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./countdown.db"

    # ===========================================
    # Local cache keys
    # ===========================================
    LOCAL_MILESTONES_KEY: str = "milestones_v1"
    THEME_KEY: str = "theme_pref_v1"
    # Lives in its own namespace, never cleared once written
    MIGRATION_SENTINEL_KEY: str = "remote_migrated_v1"

    # ===========================================
    # Google Cloud (remote store in "gcp" mode)
    # ===========================================
    GOOGLE_CLOUD_PROJECT: str = ""
    FIRESTORE_COLLECTION: str = "milestones"

    # ===========================================
    # Timeline
    # ===========================================
    # IANA zone used for naive timestamps such as "2026-02-09T10:00"
    TIMEZONE: str = "UTC"
    TICK_INTERVAL_SECONDS: float = 1.0

    # ===========================================
    # Import / Export
    # ===========================================
    EXPORT_FILENAME: str = "milestones-backup.json"

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    @property
    def is_gcp(self) -> bool:
        """Check if running in GCP environment."""
        return self.ENVIRONMENT == "gcp"

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
