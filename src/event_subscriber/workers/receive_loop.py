"""Poller: long-polls the queue and feeds the bounded buffer."""
from __future__ import annotations

import asyncio
import logging

from event_subscriber.application.dto.options import ConsumerOptions
from event_subscriber.application.exceptions import TransportError
from event_subscriber.application.ports.queue import QueueClient
from event_subscriber.domain.entities.message import RawMessage
from event_subscriber.workers.message_buffer import (
    MessageBuffer,
    OperationCancelled,
    until_cancelled,
)

logger = logging.getLogger(__name__)


class ReceiveLoop:
    def __init__(
        self,
        client: QueueClient,
        buffer: MessageBuffer,
        options: ConsumerOptions,
        cancelled: asyncio.Event,
    ) -> None:
        self._client = client
        self._buffer = buffer
        self._options = options
        self._cancelled = cancelled

    async def run(self) -> None:
        """Poll until cancelled. Receive failures are retried after a fixed backoff."""
        logger.info(
            "Receive loop started (batch=%d, wait=%ds, visibility=%ds)",
            self._options.max_messages,
            self._options.wait_time_seconds,
            self._options.visibility_timeout_seconds,
        )
        while not self._cancelled.is_set():
            try:
                messages = await until_cancelled(
                    self._client.receive(
                        self._options.max_messages,
                        self._options.wait_time_seconds,
                        self._options.visibility_timeout_seconds,
                    ),
                    self._cancelled,
                )
            except OperationCancelled:
                break
            except TransportError as exc:
                logger.error(
                    "Error receiving messages: %s (retrying in %.1fs)",
                    exc.detail, self._options.receive_backoff_seconds,
                )
                await self._backoff()
                continue
            except Exception:
                logger.exception(
                    "Receive loop error, retrying in %.1fs",
                    self._options.receive_backoff_seconds,
                )
                await self._backoff()
                continue

            if not await self._enqueue(messages):
                break
        logger.info("Receive loop stopped")

    async def _enqueue(self, messages: list[RawMessage]) -> bool:
        for index, message in enumerate(messages):
            try:
                await self._buffer.put(message, self._cancelled)
            except OperationCancelled:
                # left for redelivery once the visibility timeout expires
                logger.info(
                    "Shutdown while enqueueing; abandoning %d received message(s)",
                    len(messages) - index,
                )
                return False
        return True

    async def _backoff(self) -> None:
        try:
            await asyncio.wait_for(
                self._cancelled.wait(), timeout=self._options.receive_backoff_seconds,
            )
        except TimeoutError:
            pass
