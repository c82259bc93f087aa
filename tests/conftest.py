"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from event_subscriber.application.dto.options import ConsumerOptions
from event_subscriber.application.exceptions import TransportError
from event_subscriber.config import reset_settings
from event_subscriber.domain.entities.message import ProcessingOutcome, RawMessage

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/000000000000/orders-events-test"

PAYMENT_BODY = json.dumps({
    "paymentId": "p1",
    "orderId": "o1",
    "amount": 9.99,
    "currency": "USD",
    "paymentMethod": "card",
    "status": "captured",
    "timestamp": "2024-01-01T00:00:00Z",
})

ORDER_CREATED_BODY = json.dumps({
    "orderId": "o1",
    "customerId": "c1",
    "amount": 25.5,
    "currency": "EUR",
    "items": [{"sku": "SKU-1", "quantity": 2, "price": 12.75}],
    "status": "created",
    "timestamp": "2024-01-01T00:00:00Z",
})


def make_message(
    body: str = PAYMENT_BODY,
    *,
    message_id: str | None = None,
    attributes: dict[str, str] | None = None,
) -> RawMessage:
    message_id = message_id or uuid.uuid4().hex
    return RawMessage(
        id=message_id,
        body=body,
        receipt_handle=f"rh-{message_id}",
        attributes=attributes or {},
    )


def make_options(**overrides: Any) -> ConsumerOptions:
    values: dict[str, Any] = {
        "queue_url": QUEUE_URL,
        "max_messages": 10,
        "wait_time_seconds": 0,
        "visibility_timeout_seconds": 30,
        "worker_count": 3,
        "acknowledge_on_process": True,
        "receive_backoff_seconds": 0.01,
        "render_pause_seconds": 0,
    }
    values.update(overrides)
    return ConsumerOptions(**values)


@dataclass
class FakeQueueClient:
    """In-memory queue: hands out scripted batches, records acknowledges."""
    batches: list[list[RawMessage] | Exception] = field(default_factory=list)
    ack_failures: set[str] = field(default_factory=set)
    acknowledged: list[str] = field(default_factory=list)
    receive_calls: int = 0
    receive_args: list[tuple[int, int, int]] = field(default_factory=list)

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout_seconds: int,
    ) -> list[RawMessage]:
        self.receive_calls += 1
        self.receive_args.append((max_messages, wait_time_seconds, visibility_timeout_seconds))
        if self.batches:
            batch = self.batches.pop(0)
            if isinstance(batch, Exception):
                raise batch
            return batch
        # an empty long-poll
        await asyncio.sleep(0.01)
        return []

    async def acknowledge(self, receipt_handle: str) -> None:
        if receipt_handle in self.ack_failures:
            raise TransportError(f"delete failed for {receipt_handle}")
        self.acknowledged.append(receipt_handle)


@dataclass
class OutcomeRecorder:
    outcomes: list[ProcessingOutcome] = field(default_factory=list)

    def __call__(self, outcome: ProcessingOutcome) -> None:
        self.outcomes.append(outcome)

    def ids(self) -> list[str]:
        return [o.message_id for o in self.outcomes]


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_client() -> FakeQueueClient:
    return FakeQueueClient()


@pytest.fixture
def recorder() -> OutcomeRecorder:
    return OutcomeRecorder()
