"""
Application settings and configuration
"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Basic app settings
    DEBUG: bool = Field(default=False)
    APP_NAME: str = Field(default="BookingDesk")

    # Server settings
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Database settings
    DATABASE_URL: str = Field(default="sqlite:///./bookingdesk.db")
    DB_POOL_SIZE: int = Field(default=10)
    DB_MAX_OVERFLOW: int = Field(default=20)

    # Availability engine
    CONFLICT_WINDOW_MINUTES: int = Field(default=30, gt=0)  # Independent of slot duration
    DEFAULT_SLOT_DURATION_MINUTES: int = Field(default=30, gt=0)
    DEFAULT_DATE_RANGE_DAYS: int = Field(default=30, ge=0)
    MAX_DATE_RANGE_DAYS: int = Field(default=365, ge=1)

    # Monitoring settings
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
