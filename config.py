"""
Configuration management for DoseKeeper
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseKeeper"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database (durable key/value store)
    DATABASE_URL: str = "sqlite:///./dosekeeper.db"
    DATABASE_ECHO: bool = False

    # Local time zone (IANA name). None uses the host zone.
    TIMEZONE: Optional[str] = None

    # Notifications
    NOTIFICATIONS_ENABLED: bool = True
    NOTIFICATION_ACTIONS_ENABLED: bool = True  # surface supports the snooze button

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class SchedulerConfig:
    """Configuration for the background notification scheduler"""

    # Forward window of armed timers
    HORIZON_HOURS: int = 48

    # Self re-arm period, well inside the horizon
    REARM_INTERVAL_HOURS: int = 6

    # Snooze chain
    SNOOZE_MINUTES: int = 15
    MAX_SNOOZES: int = 3

    # Largest single timer delay a host timer accepts (32-bit signed ms)
    MAX_TIMER_DELAY_MS: int = 2147483647


# Durable store keys
class StorageKeys:
    MEDICATIONS = "medications"
    HISTORY = "medicationHistory"
    SCHEDULER_MIRROR = "scheduler.medications"


settings = get_settings()
scheduler_config = SchedulerConfig()
