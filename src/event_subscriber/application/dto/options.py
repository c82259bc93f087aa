from __future__ import annotations

from dataclasses import dataclass

from event_subscriber.application.exceptions import ConfigurationError
from event_subscriber.config import Settings


@dataclass(frozen=True, slots=True)
class ConsumerOptions:
    """Run-time knobs of one subscriber instance, fixed for the whole run."""

    queue_url: str
    max_messages: int = 10
    wait_time_seconds: int = 20
    visibility_timeout_seconds: int = 30
    worker_count: int = 5
    acknowledge_on_process: bool = True
    receive_backoff_seconds: float = 5.0
    render_pause_seconds: float = 0.05
    drain_on_shutdown: bool = False

    def __post_init__(self) -> None:
        if not self.queue_url.strip():
            raise ConfigurationError("queue URL is required")
        if not 1 <= self.max_messages <= 10:
            raise ConfigurationError("max messages per batch must be between 1 and 10")
        if not 0 <= self.wait_time_seconds <= 20:
            raise ConfigurationError("wait time must be between 0 and 20 seconds")
        if self.visibility_timeout_seconds <= 0:
            raise ConfigurationError("visibility timeout must be positive")
        if self.worker_count < 1:
            raise ConfigurationError("at least one worker is required")

    @classmethod
    def from_settings(cls, settings: Settings) -> ConsumerOptions:
        return cls(
            queue_url=settings.QUEUE_URL,
            max_messages=settings.MAX_MESSAGES_PER_BATCH,
            wait_time_seconds=settings.WAIT_TIME_SECONDS,
            visibility_timeout_seconds=settings.VISIBILITY_TIMEOUT_SECONDS,
            worker_count=settings.WORKER_COUNT,
            acknowledge_on_process=settings.acknowledge_on_process,
            receive_backoff_seconds=settings.RECEIVE_BACKOFF_SECONDS,
            render_pause_seconds=settings.RENDER_PAUSE_SECONDS,
            drain_on_shutdown=settings.DRAIN_ON_SHUTDOWN,
        )
