"""Environment configuration for the reminder service."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./reminders.db")
        self.BETTER_AUTH_SECRET: str = os.getenv("BETTER_AUTH_SECRET", "")
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.JWT_ALGORITHM: str = "HS256"
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

        # Scheduler loop
        self.SCHEDULER_ENABLED: bool = _env_bool("SCHEDULER_ENABLED", True)
        self.SCHEDULER_INTERVAL_SECONDS: int = int(os.getenv("SCHEDULER_INTERVAL_SECONDS", "60"))
        self.SCHEDULER_BATCH_SIZE: int = int(os.getenv("SCHEDULER_BATCH_SIZE", "100"))

        # Email channel (SMTP relay)
        self.SMTP_SERVER: str = os.getenv("SMTP_SERVER", "")
        self.SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
        self.SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
        self.FROM_EMAIL: str = os.getenv("FROM_EMAIL", "")

        # Push channel (Firebase Cloud Messaging)
        self.FCM_PROJECT_ID: str = os.getenv("FCM_PROJECT_ID", "")
        self.FCM_CREDENTIALS_JSON: str = os.getenv("FCM_CREDENTIALS_JSON", "")

    @property
    def email_configured(self) -> bool:
        return bool(self.SMTP_SERVER and self.FROM_EMAIL)

    @property
    def push_configured(self) -> bool:
        return bool(self.FCM_CREDENTIALS_JSON or self.FCM_PROJECT_ID)

    def validate(self) -> None:
        """Validate that required environment variables are set."""
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL environment variable is required")
        if not self.BETTER_AUTH_SECRET:
            raise ValueError("BETTER_AUTH_SECRET environment variable is required")
        if self.SCHEDULER_INTERVAL_SECONDS <= 0:
            raise ValueError("SCHEDULER_INTERVAL_SECONDS must be positive")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    return settings
