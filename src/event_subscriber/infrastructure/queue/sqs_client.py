"""Amazon SQS implementation of the QueueClient port."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from event_subscriber.application.exceptions import QueueUnavailableError, TransportError
from event_subscriber.config import Settings
from event_subscriber.domain.entities.message import RawMessage

logger = logging.getLogger(__name__)

# headroom above the 20s long-poll ceiling before the SDK gives up on a read
_READ_TIMEOUT_HEADROOM = 10


def create_sqs_client(settings: Settings) -> Any:
    """Build a boto3 SQS client from settings; credentials come from the default chain."""
    try:
        client = boto3.client(
            "sqs",
            region_name=settings.AWS_REGION,
            endpoint_url=settings.AWS_ENDPOINT_URL,
            config=Config(
                read_timeout=settings.WAIT_TIME_SECONDS + _READ_TIMEOUT_HEADROOM,
                connect_timeout=10,
            ),
        )
    except (BotoCoreError, ClientError) as exc:
        raise QueueUnavailableError(f"cannot create SQS client: {exc}") from exc
    logger.info("SQS client initialized (region=%s)", client.meta.region_name)
    return client


class SqsQueueClient:
    """Implements application.ports.queue.QueueClient.

    boto3 is blocking, so every call runs in the default executor.
    """

    def __init__(self, client: Any, queue_url: str) -> None:
        self._client = client
        self._queue_url = queue_url

    async def check_connection(self) -> None:
        """Startup check: fail fast when the queue cannot be reached."""
        try:
            await asyncio.to_thread(
                self._client.get_queue_attributes,
                QueueUrl=self._queue_url,
                AttributeNames=["QueueArn"],
            )
        except (BotoCoreError, ClientError) as exc:
            raise QueueUnavailableError(f"queue {self._queue_url} is unreachable: {exc}") from exc

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout_seconds: int,
    ) -> list[RawMessage]:
        return await asyncio.to_thread(
            self._receive_sync, max_messages, wait_time_seconds, visibility_timeout_seconds,
        )

    async def acknowledge(self, receipt_handle: str) -> None:
        await asyncio.to_thread(self._delete_sync, receipt_handle)

    def _receive_sync(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout_seconds: int,
    ) -> list[RawMessage]:
        try:
            resp = self._client.receive_message(
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=max_messages,
                WaitTimeSeconds=wait_time_seconds,
                VisibilityTimeout=visibility_timeout_seconds,
                AttributeNames=["All"],
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"receive failed: {exc}") from exc

        return [
            RawMessage(
                id=entry["MessageId"],
                body=entry.get("Body", ""),
                receipt_handle=entry["ReceiptHandle"],
                attributes=dict(entry.get("Attributes", {})),
            )
            for entry in resp.get("Messages", [])
        ]

    def _delete_sync(self, receipt_handle: str) -> None:
        try:
            self._client.delete_message(
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"acknowledge failed: {exc}") from exc
