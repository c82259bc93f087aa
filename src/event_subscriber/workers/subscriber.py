"""Subscriber process: receive loop + worker pool + graceful shutdown."""
from __future__ import annotations

import asyncio
import logging
import signal
import sys

from event_subscriber.application.dto.options import ConsumerOptions
from event_subscriber.application.exceptions import AppError
from event_subscriber.application.ports.queue import QueueClient
from event_subscriber.config import Settings, get_settings
from event_subscriber.infrastructure.queue.sqs_client import SqsQueueClient, create_sqs_client
from event_subscriber.workers.message_buffer import MessageBuffer
from event_subscriber.workers.receive_loop import ReceiveLoop
from event_subscriber.workers.worker_pool import OnOutcomeCallback, WorkerPool

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """Owns the cancellation signal shared by the poller and the workers."""

    def __init__(self) -> None:
        self.cancelled = asyncio.Event()

    def install_signal_handlers(
        self,
        signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM),
    ) -> None:
        loop = asyncio.get_running_loop()
        for sig in signals:
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)

    def request_shutdown(self, reason: str = "requested") -> None:
        if self.cancelled.is_set():
            return
        logger.info("Shutting down gracefully (%s)...", reason)
        self.cancelled.set()

    async def wait(self) -> None:
        await self.cancelled.wait()


class Subscriber:
    def __init__(
        self,
        client: QueueClient,
        options: ConsumerOptions,
        *,
        coordinator: ShutdownCoordinator | None = None,
        on_outcome: OnOutcomeCallback | None = None,
    ) -> None:
        self.options = options
        self.coordinator = coordinator or ShutdownCoordinator()
        self.buffer = MessageBuffer(options.max_messages)
        self._receive_loop = ReceiveLoop(client, self.buffer, options, self.coordinator.cancelled)
        self._pool = WorkerPool(
            client, self.buffer, options, self.coordinator.cancelled, on_outcome=on_outcome,
        )

    async def run(self) -> None:
        """Consume until shutdown is requested, then wait for every worker."""
        self._pool.start()
        receiver = asyncio.create_task(self._receive_loop.run(), name="queue-receiver")
        stop = asyncio.create_task(self.coordinator.wait(), name="shutdown-wait")

        await asyncio.wait({receiver, stop}, return_when=asyncio.FIRST_COMPLETED)
        if receiver.done() and not stop.done():
            # the loop only returns on cancellation, so this is a crash
            self.coordinator.request_shutdown("receive loop exited")
        await stop

        self.buffer.close()
        try:
            await receiver
        finally:
            await self._pool.join()
        logger.info("Shutdown complete")


async def run_subscriber(settings: Settings) -> None:
    options = ConsumerOptions.from_settings(settings)
    client = SqsQueueClient(create_sqs_client(settings), options.queue_url)
    await client.check_connection()

    subscriber = Subscriber(client, options)
    subscriber.coordinator.install_signal_handlers()

    logger.info("Listening for messages on queue: %s", options.queue_url)
    logger.info(
        "Workers: %d, max messages per batch: %d, wait time: %ds, acknowledge: %s",
        options.worker_count,
        options.max_messages,
        options.wait_time_seconds,
        options.acknowledge_on_process,
    )
    await subscriber.run()
    if options.wait_time_seconds:
        # asyncio.run joins the executor thread still blocked in the abandoned long-poll
        logger.info(
            "Exiting once the pending long-poll returns (at most %ds)",
            options.wait_time_seconds,
        )


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.LOG_LEVEL)
        asyncio.run(run_subscriber(settings))
    except AppError as exc:
        logger.error("Subscriber failed to start: %s", exc.detail)
        sys.exit(1)


if __name__ == "__main__":
    main()
