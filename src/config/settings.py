import logging
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Google Sheets (Apps Script web app) Configuration
    sheets_web_app_url: Optional[HttpUrl] = Field(
        None, description="Deployment URL of the Google Apps Script web app."
    )
    sheets_timeout_seconds: float = Field(
        30.0, gt=0, description="Timeout for a single call to the web app."
    )
    sheets_max_attempts: int = Field(
        4,  # 1 call + 3 retries
        ge=1,
        le=10,
        description="Total attempts for a retryable web app call.",
    )

    # Local Cache Configuration
    cache_dir: str = Field(
        ".cache", description="Directory for the local roster/match JSON cache."
    )

    # Balancing Defaults
    default_team_count: int = Field(
        2, ge=2, le=3, description="Number of teams when none is requested."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
