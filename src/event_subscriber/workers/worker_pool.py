"""Fixed pool of workers draining the message buffer."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable

from event_subscriber.application.dto.options import ConsumerOptions
from event_subscriber.application.exceptions import TransportError
from event_subscriber.application.ports.queue import QueueClient
from event_subscriber.domain.entities.message import ProcessingOutcome, RawMessage
from event_subscriber.domain.value_objects.enums import EventKind
from event_subscriber.services.message_processor import process_message
from event_subscriber.workers.message_buffer import MessageBuffer, OperationCancelled

logger = logging.getLogger(__name__)

MessageProcessor = Callable[[RawMessage], tuple[ProcessingOutcome, str]]
OnOutcomeCallback = Callable[[ProcessingOutcome], None]


class WorkerPool:
    """N workers, each claiming one message at a time from the shared buffer.

    A worker finishes its current message (and its acknowledge) before it
    notices cancellation. Messages still buffered at that point are left for
    redelivery unless ``drain_on_shutdown`` is set.
    """

    def __init__(
        self,
        client: QueueClient,
        buffer: MessageBuffer,
        options: ConsumerOptions,
        cancelled: asyncio.Event,
        *,
        processor: MessageProcessor = process_message,
        on_outcome: OnOutcomeCallback | None = None,
    ) -> None:
        self._client = client
        self._buffer = buffer
        self._options = options
        self._cancelled = cancelled
        self._processor = processor
        self._on_outcome = on_outcome
        self._tasks: list[asyncio.Task[None]] = []

    def start(self) -> None:
        if self._tasks:
            logger.warning("Worker pool already started, ignoring duplicate start call")
            return
        self._tasks = [
            asyncio.create_task(self._work(worker_id), name=f"queue-worker-{worker_id}")
            for worker_id in range(self._options.worker_count)
        ]
        logger.info("Started %d workers", len(self._tasks))

    async def join(self) -> None:
        """Wait until every worker has returned."""
        if self._tasks:
            await asyncio.gather(*self._tasks)
        logger.info("All workers stopped")

    async def _work(self, worker_id: int) -> None:
        while not self._cancelled.is_set():
            try:
                message = await self._buffer.get(self._cancelled)
            except OperationCancelled:
                break
            await self._handle(worker_id, message)

        if self._options.drain_on_shutdown:
            while (message := self._buffer.get_nowait()) is not None:
                await self._handle(worker_id, message)

    async def _handle(self, worker_id: int, message: RawMessage) -> None:
        try:
            outcome, rendered = self._processor(message)
        except Exception as exc:
            # left unacknowledged so the queue redelivers it
            logger.exception("[worker %d] Error processing message %s", worker_id, message.id)
            outcome = ProcessingOutcome(message.id, EventKind.UNKNOWN, error=str(exc))
        else:
            logger.info("[worker %d]\n%s", worker_id, rendered)
            if self._options.acknowledge_on_process:
                outcome = await self._acknowledge(worker_id, message, outcome)

        if self._on_outcome is not None:
            self._on_outcome(outcome)

        if self._options.render_pause_seconds:
            await asyncio.sleep(self._options.render_pause_seconds)

    async def _acknowledge(
        self, worker_id: int, message: RawMessage, outcome: ProcessingOutcome,
    ) -> ProcessingOutcome:
        try:
            await self._client.acknowledge(message.receipt_handle)
        except TransportError as exc:
            logger.error(
                "[worker %d] Error deleting message %s: %s",
                worker_id, message.id, exc.detail,
            )
            return outcome
        logger.info("[worker %d] Deleted message %s", worker_id, message.id)
        return dataclasses.replace(outcome, acknowledged=True)
