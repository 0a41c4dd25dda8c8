"""
Application configuration using Pydantic Settings.
Loads from environment variables with sensible defaults.
"""

from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "OPD Token Allocation"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Schedules
    DEFAULT_SLOT_CAPACITY: int = 6
    DEFAULT_SLOT_DURATION: int = 60  # minutes
    DEFAULT_AVG_CONSULTATION_TIME: int = 10  # minutes
    SEED_DEMO_DOCTORS: bool = True

    # Emergency tokens score 1000 + this, above every regular channel
    EMERGENCY_PRIORITY_ADJUSTMENT: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
