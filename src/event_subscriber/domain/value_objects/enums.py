from __future__ import annotations

from enum import StrEnum


class EventKind(StrEnum):
    ORDER_CREATED = "OrderCreated"
    ORDER_UPDATED = "OrderUpdated"
    PAYMENT_PROCESSED = "PaymentProcessed"
    UNKNOWN = "Unknown"
