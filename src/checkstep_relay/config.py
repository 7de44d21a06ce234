"""Application configuration via environment variables."""

import logging
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class NotificationLevel(str, Enum):
    """Which moderation outcomes are reported to content owners."""

    ALL = "all"
    MODERATE = "moderate"  # Everything except "no action" reviews
    SEVERE = "severe"  # Removals and suspensions only


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    environment: str = "development"
    debug: bool = False
    service_name: str = "checkstep-relay"
    log_level: Literal["error", "warning", "info", "debug"] = "warning"

    # CORS
    cors_origins: list[str] = ["*"]

    # CheckStep API
    api_key: str = ""
    api_url: str = "https://api.checkstep.com/v1"
    request_timeout: float = 30.0

    # Inbound webhooks
    webhook_secret: str = ""
    defer_decisions: bool = False  # Answer 202 and apply decisions in the background

    # Moderation behaviour
    appeal_url: str = ""
    notification_level: NotificationLevel = NotificationLevel.MODERATE
    auto_moderation: bool = True

    # Queue
    db_path: Path = Path.home() / ".checkstep-relay" / "queue.db"
    batch_size: int = 10
    sweep_interval_seconds: int = 60
    stale_claim_seconds: int = 600
    scheduler_enabled: bool = False

    # Local host content (JSON seed for the in-memory host)
    content_file: Path | None = None

    class Config:
        env_prefix = "CHECKSTEP_"
        env_file = ".env"
        case_sensitive = False

    @property
    def logging_level(self) -> int:
        """Numeric level for the stdlib logging module."""
        if self.debug:
            return logging.DEBUG
        return getattr(logging, self.log_level.upper())


settings = Settings()
