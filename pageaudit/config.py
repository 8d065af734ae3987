"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Page Audit Service"
    version: str = "0.4.0"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",  # Vite default
        "http://127.0.0.1:3000",
    ]

    # Run execution
    run_timeout_seconds: float = 60.0
    audit_concurrency: Optional[int] = None  # None = every audit may be in flight at once

    # Defaults for run-scoped settings when a request does not provide them
    default_gather_mode: str = "navigation"
    default_form_factor: str = "mobile"
    default_throttling_method: str = "simulate"
    default_locale: str = "en-US"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
