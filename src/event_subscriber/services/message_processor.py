"""Per-message unit of work: parse, classify, decode and render one message."""
from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from event_subscriber.application.exceptions import PayloadDecodeError
from event_subscriber.domain.entities.message import ProcessingOutcome, RawMessage
from event_subscriber.domain.value_objects.enums import EventKind
from event_subscriber.schemas.events import (
    OrderCreated,
    OrderUpdated,
    PaymentProcessed,
    TypedEvent,
)
from event_subscriber.services.event_classifier import classify

logger = logging.getLogger(__name__)

_EVENT_MODELS: dict[EventKind, type[TypedEvent]] = {
    EventKind.ORDER_CREATED: OrderCreated,
    EventKind.ORDER_UPDATED: OrderUpdated,
    EventKind.PAYMENT_PROCESSED: PaymentProcessed,
}

_BANNER = "========== New Message =========="
_FOOTER = "================================="


def decode_event(kind: EventKind, payload: Mapping[str, Any]) -> TypedEvent:
    """Decode *payload* into the typed shape registered for *kind*."""
    model = _EVENT_MODELS.get(kind)
    if model is None:
        raise PayloadDecodeError(f"no typed shape for kind {kind}")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise PayloadDecodeError(f"{kind} payload does not match: {errors}") from exc


def process_message(message: RawMessage) -> tuple[ProcessingOutcome, str]:
    """Handle one message.

    Returns (outcome, rendering). Never raises for bad payloads: an unparsable
    body or a payload that does not fit its typed shape is reported in the
    outcome and the rendering falls back to the raw content. The message still
    counts as handled, so the caller acknowledges it when configured to.
    """
    try:
        payload = json.loads(message.body)
    except (ValueError, RecursionError):
        # RecursionError: nesting too deep for the decoder
        logger.warning("Message %s has an unparsable body", message.id)
        outcome = ProcessingOutcome(message.id, EventKind.UNKNOWN, error="unparsable body")
        lines = [f"Body (unparsable): {message.body}"]
        return outcome, _render(message, EventKind.UNKNOWN, lines)

    kind = classify(payload)
    if kind is EventKind.UNKNOWN:
        outcome = ProcessingOutcome(message.id, kind)
        return outcome, _render(message, kind, _json_lines(payload))

    try:
        event = decode_event(kind, payload)
    except PayloadDecodeError as exc:
        logger.warning("Message %s: %s", message.id, exc.detail)
        outcome = ProcessingOutcome(message.id, kind, error=exc.detail)
        lines = [f"Decode error: {exc.detail}", *_json_lines(payload)]
        return outcome, _render(message, kind, lines)

    return ProcessingOutcome(message.id, kind), _render(message, kind, _event_lines(event))


def _event_lines(event: TypedEvent) -> list[str]:
    lines: list[str] = []
    for name, value in event.model_dump(by_alias=True, exclude_none=True).items():
        if name == "items":
            lines.append(f"  {name}:")
            for item in value:
                lines.append(
                    f"    - sku={item['sku']} quantity={item['quantity']} price={item['price']}"
                )
        elif isinstance(value, list):
            lines.append(f"  {name}: {', '.join(str(v) for v in value)}")
        else:
            lines.append(f"  {name}: {value}")
    return lines


def _json_lines(payload: Any) -> list[str]:
    formatted = json.dumps(payload, indent=2, ensure_ascii=False)
    return ["Event JSON:", *formatted.splitlines()]


def _render(message: RawMessage, kind: EventKind, body_lines: list[str]) -> str:
    lines = [
        _BANNER,
        f"Message ID: {message.id}",
        f"Event kind: {kind}",
        *body_lines,
    ]
    if message.attributes:
        lines.append("Queue attributes:")
        for key in sorted(message.attributes):
            lines.append(f"  {key}: {message.attributes[key]}")
    lines.append(_FOOTER)
    return "\n".join(lines)
