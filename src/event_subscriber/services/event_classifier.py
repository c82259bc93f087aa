"""Infer the logical event kind of an untyped JSON payload from its shape.

Rules are checked in order and the first match wins. The order matters
because the shapes overlap: a payload carrying both ``paymentId`` and
``previousStatus`` is a payment, never an order update.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping

from event_subscriber.domain.value_objects.enums import EventKind

_Rule = Callable[[Mapping[str, Any]], bool]


def _has(*fields: str) -> _Rule:
    return lambda payload: all(f in payload for f in fields)


_RULES: tuple[tuple[_Rule, EventKind], ...] = (
    (_has("paymentId"), EventKind.PAYMENT_PROCESSED),
    (_has("customerId", "amount", "items"), EventKind.ORDER_CREATED),
    (_has("previousStatus"), EventKind.ORDER_UPDATED),
    (_has("orderId", "status", "customerId"), EventKind.ORDER_CREATED),
    (_has("orderId", "status"), EventKind.ORDER_UPDATED),
)


def classify(payload: Any) -> EventKind:
    """Return the kind of *payload*; anything unrecognised is ``UNKNOWN``."""
    if not isinstance(payload, Mapping):
        return EventKind.UNKNOWN
    for matches, kind in _RULES:
        if matches(payload):
            return kind
    return EventKind.UNKNOWN
