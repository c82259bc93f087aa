from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from event_subscriber.application.exceptions import ConfigurationError


class Settings(BaseSettings):
    QUEUE_URL: str = ""
    AWS_REGION: str | None = None
    AWS_ENDPOINT_URL: str | None = None

    MAX_MESSAGES_PER_BATCH: int = Field(default=10, ge=1, le=10)
    WAIT_TIME_SECONDS: int = Field(default=20, ge=0, le=20)
    VISIBILITY_TIMEOUT_SECONDS: int = Field(default=30, gt=0)
    WORKER_COUNT: int = Field(default=5, ge=1)

    # "inspect" leaves messages on the queue, "consume" deletes them once handled
    CONSUMER_PROFILE: Literal["inspect", "consume"] = "consume"
    ACKNOWLEDGE_ON_PROCESS: bool | None = None

    RECEIVE_BACKOFF_SECONDS: float = Field(default=5.0, gt=0)
    RENDER_PAUSE_SECONDS: float = Field(default=0.05, ge=0)
    DRAIN_ON_SHUTDOWN: bool = False

    EVENT_BUS_NAME: str = "default"

    LOG_LEVEL: str = "INFO"

    @property
    def acknowledge_on_process(self) -> bool:
        if self.ACKNOWLEDGE_ON_PROCESS is not None:
            return self.ACKNOWLEDGE_ON_PROCESS
        return self.CONSUMER_PROFILE == "consume"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Load settings on first use; invalid values surface as ConfigurationError."""
    global _settings
    if _settings is None:
        try:
            _settings = Settings()
        except ValidationError as exc:
            raise ConfigurationError(f"invalid configuration: {exc}") from exc
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
