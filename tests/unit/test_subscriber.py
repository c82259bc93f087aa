from __future__ import annotations

import asyncio
import logging
import signal

import boto3
import pytest
from botocore.stub import Stubber

from event_subscriber.application.dto.options import ConsumerOptions
from event_subscriber.application.exceptions import ConfigurationError
from event_subscriber.config import Settings, get_settings
from event_subscriber.workers import subscriber as subscriber_module
from event_subscriber.workers.subscriber import ShutdownCoordinator, Subscriber
from tests.conftest import (
    QUEUE_URL,
    FakeQueueClient,
    OutcomeRecorder,
    make_message,
    make_options,
    wait_until,
)


@pytest.mark.asyncio
async def test_runs_until_shutdown_and_processes_everything(
    fake_client: FakeQueueClient, recorder: OutcomeRecorder,
):
    fake_client.batches = [
        [make_message(message_id=str(i)) for i in range(3)],
        [make_message("not json at all", message_id="bad")],
    ]
    subscriber = Subscriber(fake_client, make_options(), on_outcome=recorder)

    run = asyncio.create_task(subscriber.run())
    await wait_until(lambda: len(recorder.outcomes) == 4)
    subscriber.coordinator.request_shutdown("test")
    await asyncio.wait_for(run, timeout=2)

    assert sorted(recorder.ids()) == ["0", "1", "2", "bad"]
    assert sorted(fake_client.acknowledged) == ["rh-0", "rh-1", "rh-2", "rh-bad"]
    assert subscriber.buffer.closed


@pytest.mark.asyncio
async def test_no_pushes_after_shutdown(fake_client: FakeQueueClient, recorder: OutcomeRecorder):
    subscriber = Subscriber(fake_client, make_options(), on_outcome=recorder)

    run = asyncio.create_task(subscriber.run())
    await wait_until(lambda: fake_client.receive_calls >= 1)
    subscriber.coordinator.request_shutdown("test")
    await asyncio.wait_for(run, timeout=2)

    calls = fake_client.receive_calls
    fake_client.batches = [[make_message()]]
    await asyncio.sleep(0.05)
    assert fake_client.receive_calls == calls
    assert subscriber.buffer.qsize() == 0


@pytest.mark.asyncio
async def test_waits_for_in_flight_work_before_returning(recorder: OutcomeRecorder):
    release = asyncio.Event()

    class SlowAckClient(FakeQueueClient):
        async def acknowledge(self, receipt_handle: str) -> None:
            await release.wait()
            await super().acknowledge(receipt_handle)

    client = SlowAckClient(batches=[[make_message(message_id="slow")]])
    subscriber = Subscriber(client, make_options(worker_count=1), on_outcome=recorder)

    run = asyncio.create_task(subscriber.run())
    await wait_until(lambda: client.receive_calls >= 2)
    subscriber.coordinator.request_shutdown("test")
    await asyncio.sleep(0.02)
    assert not run.done()

    release.set()
    await asyncio.wait_for(run, timeout=2)
    assert client.acknowledged == ["rh-slow"]


def test_request_shutdown_is_idempotent():
    coordinator = ShutdownCoordinator()

    coordinator.request_shutdown("first")
    coordinator.request_shutdown("second")

    assert coordinator.cancelled.is_set()


def test_options_require_queue_url():
    with pytest.raises(ConfigurationError):
        ConsumerOptions.from_settings(Settings(QUEUE_URL=""))


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_messages": 0},
        {"max_messages": 11},
        {"wait_time_seconds": 21},
        {"visibility_timeout_seconds": 0},
        {"worker_count": 0},
    ],
)
def test_options_reject_out_of_range_values(overrides):
    with pytest.raises(ConfigurationError):
        make_options(**overrides)


def test_options_from_settings_defaults():
    options = ConsumerOptions.from_settings(
        Settings(QUEUE_URL=QUEUE_URL, CONSUMER_PROFILE="consume", ACKNOWLEDGE_ON_PROCESS=None)
    )

    assert options.max_messages == 10
    assert options.wait_time_seconds == 20
    assert options.visibility_timeout_seconds == 30
    assert options.worker_count == 5
    assert options.acknowledge_on_process is True


def test_inspect_profile_defaults_to_no_acknowledge():
    assert Settings(CONSUMER_PROFILE="inspect", ACKNOWLEDGE_ON_PROCESS=None).acknowledge_on_process is False
    assert Settings(CONSUMER_PROFILE="inspect", ACKNOWLEDGE_ON_PROCESS=True).acknowledge_on_process is True
    assert Settings(CONSUMER_PROFILE="consume", ACKNOWLEDGE_ON_PROCESS=False).acknowledge_on_process is False


def test_main_exits_1_without_queue_url(monkeypatch, caplog):
    monkeypatch.setenv("QUEUE_URL", "")

    with pytest.raises(SystemExit) as exc:
        subscriber_module.main()

    assert exc.value.code == 1
    assert "queue URL is required" in caplog.text


def test_main_exits_1_on_invalid_environment(monkeypatch, caplog):
    monkeypatch.setenv("WORKER_COUNT", "0")

    with pytest.raises(ConfigurationError):
        get_settings()
    with pytest.raises(SystemExit) as exc:
        subscriber_module.main()

    assert exc.value.code == 1
    assert "invalid configuration" in caplog.text


def test_main_exits_1_when_queue_is_unreachable(monkeypatch):
    client = boto3.client("sqs", region_name="us-east-1")
    stubber = Stubber(client)
    stubber.add_client_error(
        "get_queue_attributes",
        service_error_code="AWS.SimpleQueueService.NonExistentQueue",
    )
    stubber.activate()
    monkeypatch.setattr(subscriber_module, "create_sqs_client", lambda settings: client)

    with pytest.raises(SystemExit) as exc:
        subscriber_module.main()

    assert exc.value.code == 1
    stubber.assert_no_pending_responses()


def test_main_returns_cleanly_after_sigint(monkeypatch, caplog):
    caplog.set_level(logging.INFO)

    class InterruptedClient(FakeQueueClient):
        async def check_connection(self) -> None:
            return None

        async def receive(self, max_messages, wait_time_seconds, visibility_timeout_seconds):
            if self.receive_calls == 0:
                signal.raise_signal(signal.SIGINT)
            return await super().receive(max_messages, wait_time_seconds, visibility_timeout_seconds)

    queue = InterruptedClient(batches=[[make_message(message_id="m1")]])
    monkeypatch.setenv("WAIT_TIME_SECONDS", "20")
    monkeypatch.setattr(subscriber_module, "create_sqs_client", lambda settings: object())
    monkeypatch.setattr(subscriber_module, "SqsQueueClient", lambda client, queue_url: queue)

    subscriber_module.main()

    assert queue.receive_calls >= 1
    assert "Shutting down gracefully (SIGINT)" in caplog.text
    assert "Shutdown complete" in caplog.text
    assert "Exiting once the pending long-poll returns (at most 20s)" in caplog.text
