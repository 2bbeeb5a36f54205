"""Configuration for taskengine, loaded from environment variables."""

import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    APP_NAME: str = "taskengine"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database - SQLite by default (local dev)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./taskengine.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    DB_POOL_TIMEOUT_SEC: int = int(os.getenv("DB_POOL_TIMEOUT_SEC", "30"))

    # Reminder sweep
    REMINDERS_ENABLED: bool = os.getenv("REMINDERS_ENABLED", "True").lower() == "true"
    REMINDER_SWEEP_MINUTES: int = int(os.getenv("REMINDER_SWEEP_MINUTES", "5"))
    # A task stays eligible for its at-time (0%) reminder this long after the reference time
    REMINDER_GRACE_MINUTES: int = int(os.getenv("REMINDER_GRACE_MINUTES", "5"))


settings = Settings()
