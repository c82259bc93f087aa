from __future__ import annotations

from typing import Protocol, Sequence

from event_subscriber.domain.entities.message import RawMessage


class QueueClient(Protocol):
    """Poll/ack interface of the external queue.

    Both calls raise ``TransportError`` on failure.
    """

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout_seconds: int,
    ) -> list[RawMessage]: ...

    async def acknowledge(self, receipt_handle: str) -> None: ...


class EventPublisher(Protocol):
    def publish(
        self,
        source: str,
        detail_type: str,
        detail: str,
        *,
        resources: Sequence[str] | None = None,
        trace_header: str | None = None,
    ) -> str: ...
