"""Application configuration from environment variables.

Settings are read from OS environment variables and the .env file in the
working directory, with sensible defaults for local development.
"""

import logging
from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./rentbook.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/rentbook.log", description="Path to log file")

    # Members
    record_retention_months: int = Field(
        default=12,
        ge=1,
        description="Months an inactive member record is kept after the leave date",
    )

    # Admins
    max_admins: int = Field(default=3, ge=1, description="Maximum number of administrators")

    # Billing
    payment_due_day: int = Field(
        default=5,
        ge=1,
        le=28,
        description="Day of month after which unpaid bills count as overdue",
    )

    def validate_database(self) -> None:
        """Validate required configuration is present."""
        if not self.database_url:
            raise ValueError("DATABASE_URL environment variable is required")


# Lazy loader to ensure environment is loaded before instantiation
_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the settings instance.

    Lazy-loaded so that a CLI can call load_dotenv() (or tests can monkeypatch
    the environment) before the first access.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        _settings_instance.validate_database()
        logger.debug("Settings loaded: database_url=%s", _settings_instance.database_url)
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings_instance
    _settings_instance = None


__all__ = ["Settings", "get_settings", "reset_settings"]
