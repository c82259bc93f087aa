"""EventBridge publisher: submits one event per call."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from event_subscriber.application.exceptions import PublishError
from event_subscriber.config import Settings

logger = logging.getLogger(__name__)


def create_eventbridge_client(settings: Settings) -> Any:
    try:
        return boto3.client(
            "events",
            region_name=settings.AWS_REGION,
            endpoint_url=settings.AWS_ENDPOINT_URL,
        )
    except (BotoCoreError, ClientError) as exc:
        raise PublishError(f"cannot create EventBridge client: {exc}") from exc


def prepare_detail(text: str) -> str:
    """Pass JSON through unchanged; wrap anything else as a JSON string."""
    if not text.strip():
        raise ValueError("detail payload cannot be empty")
    try:
        json.loads(text)
    except ValueError:
        return json.dumps(text)
    return text


def split_and_trim(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class EventBridgePublisher:
    """Implements application.ports.queue.EventPublisher."""

    def __init__(self, client: Any, event_bus: str) -> None:
        self._client = client
        self._event_bus = event_bus

    def publish(
        self,
        source: str,
        detail_type: str,
        detail: str,
        *,
        resources: Sequence[str] | None = None,
        trace_header: str | None = None,
    ) -> str:
        entry: dict[str, Any] = {
            "EventBusName": self._event_bus,
            "Source": source,
            "DetailType": detail_type,
            "Detail": detail,
            "Time": datetime.now(timezone.utc),
        }
        if resources:
            entry["Resources"] = list(resources)
        if trace_header and trace_header.strip():
            entry["TraceHeader"] = trace_header.strip()

        try:
            resp = self._client.put_events(Entries=[entry])
        except (BotoCoreError, ClientError) as exc:
            raise PublishError(f"error sending event: {exc}") from exc

        entries = resp.get("Entries") or []
        if not entries:
            raise PublishError("no response entries returned from EventBridge")
        result = entries[0]
        if result.get("ErrorCode"):
            raise PublishError(
                f"EventBridge error ({result['ErrorCode']}): {result.get('ErrorMessage', '')}"
            )

        event_id = result.get("EventId", "")
        logger.info(
            "Event published bus=%s detail_type=%s event_id=%s",
            self._event_bus, detail_type, event_id,
        )
        return event_id
