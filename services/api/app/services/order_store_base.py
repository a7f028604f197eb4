from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from packages.shared.schemas.order_v1 import OrderCreateRequestV1


class OrderStoreError(Exception):
    """Base class for order persistence errors."""


class OrderPersistenceError(OrderStoreError):
    def __init__(self, step: str, message: str, *, order_id: str | None = None) -> None:
        super().__init__(message or "Internal error")
        self.step = step
        # Set when the order row was written before a secondary insert failed.
        self.order_id = order_id


class IdempotencyConflictError(OrderStoreError):
    def __init__(self, idempotency_key: str, order_id: str) -> None:
        super().__init__("Idempotency key already used for a different order")
        self.idempotency_key = idempotency_key
        self.order_id = order_id


class OrderStore(Protocol):
    backend: str

    def create_order(self, request: OrderCreateRequestV1) -> str:
        """Persist the order with its line items or courier task and return the order id."""
        ...


def replayed_order_id(request: OrderCreateRequestV1, stored: Mapping[str, Any]) -> str:
    """Return the id of an order already stored under the request's idempotency key.

    The stored row must describe the same order (type, restaurant, address, total); a key
    reused for anything else raises `IdempotencyConflictError`.
    """

    order_id = str(stored["id"])
    same = (
        stored.get("type") == request.type.value
        and stored.get("restaurant_id") == request.restaurant_id
        and stored.get("address") == request.address
        and stored.get("total") == request.total
    )
    if not same:
        raise IdempotencyConflictError(request.idempotency_key or "", order_id)
    return order_id
