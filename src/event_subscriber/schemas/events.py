"""Wire shapes of the order/payment events carried on the queue."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        frozen=True,
        strict=True,
        extra="ignore",
    )


class OrderItem(_WireModel):
    sku: str
    quantity: int
    price: float


class OrderCreated(_WireModel):
    order_id: str
    customer_id: str
    amount: float
    currency: str
    items: list[OrderItem]
    status: str
    timestamp: str


class OrderUpdated(_WireModel):
    order_id: str
    status: str
    previous_status: str | None = None
    updated_fields: list[str] | None = None
    timestamp: str


class PaymentProcessed(_WireModel):
    payment_id: str
    order_id: str
    customer_id: str | None = None
    amount: float
    currency: str
    payment_method: str
    status: str
    transaction_id: str | None = None
    timestamp: str


TypedEvent = OrderCreated | OrderUpdated | PaymentProcessed
