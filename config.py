"""
config.py

Centralized configuration management using pydantic-settings.
All modules must import settings from this file.
Direct os.getenv() calls are prohibited elsewhere.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings loaded from .env file."""

    # Launch gate (both values are percent-encoded at rest)
    unlock_date: str = ""
    base_destination: str = ""

    # Completion record storage
    database_url: str = "sqlite+aiosqlite:///./launch_state.db"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
