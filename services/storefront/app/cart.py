"""Single-store shopping cart.

`Cart` is an immutable value: every transition returns a new cart and the constructor
rejects lines from more than one store, so a mixed cart cannot exist. `CartStore` holds the
current cart for the storefront and persists it on every change.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from packages.shared.schemas.catalog_v1 import CatalogItemV1
from pydantic import ValidationError
from services.storefront.app.errors import CartStoreConflictError, MixedStoreCartError
from services.storefront.app.local_state import LocalState

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "velocigo-cart"


@dataclass(frozen=True, slots=True)
class CartLine:
    item: CatalogItemV1
    quantity: int
    store_id: str

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def unit_price(self) -> int:
        return self.item.price


@dataclass(frozen=True, slots=True)
class Cart:
    lines: tuple[CartLine, ...] = ()

    def __post_init__(self) -> None:
        store_ids = {line.store_id for line in self.lines}
        if len(store_ids) > 1:
            raise MixedStoreCartError(store_ids)

        seen: set[str] = set()
        for line in self.lines:
            if line.quantity < 1:
                raise ValueError(f"Cart line {line.item_id!r} has quantity {line.quantity}")
            if line.item_id in seen:
                raise ValueError(f"Duplicate cart line for item {line.item_id!r}")
            seen.add(line.item_id)

    @property
    def store_id(self) -> str | None:
        return self.lines[0].store_id if self.lines else None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def line(self, item_id: str) -> CartLine | None:
        return next((line for line in self.lines if line.item_id == item_id), None)

    def with_added(self, item: CatalogItemV1, store_id: str) -> Cart:
        if self.store_id is not None and self.store_id != store_id:
            raise CartStoreConflictError(self.store_id, store_id)

        if self.line(item.id) is None:
            return Cart(self.lines + (CartLine(item=item, quantity=1, store_id=store_id),))
        return self._with_quantity_delta(item.id, +1)

    def with_incremented(self, item_id: str) -> Cart:
        if self.line(item_id) is None:
            return self
        return self._with_quantity_delta(item_id, +1)

    def with_decremented(self, item_id: str) -> Cart:
        if self.line(item_id) is None:
            return self
        return self._with_quantity_delta(item_id, -1)

    def _with_quantity_delta(self, item_id: str, delta: int) -> Cart:
        lines: list[CartLine] = []
        for line in self.lines:
            if line.item_id != item_id:
                lines.append(line)
                continue
            quantity = line.quantity + delta
            if quantity > 0:
                lines.append(CartLine(item=line.item, quantity=quantity, store_id=line.store_id))
        return Cart(tuple(lines))

    def to_snapshot(self) -> dict[str, Any]:
        return {
            line.item_id: {
                "item": line.item.model_dump(mode="json"),
                "qty": line.quantity,
                "storeId": line.store_id,
            }
            for line in self.lines
        }

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> Cart:
        lines = [
            CartLine(
                item=CatalogItemV1.model_validate(row["item"]),
                quantity=int(row["qty"]),
                store_id=str(row["storeId"]),
            )
            for row in snapshot.values()
        ]
        return cls(tuple(lines))


class CartStore:
    """The shopper's cart, persisted under CART_STORAGE_KEY after every change.

    State is loaded once, when the store is created.
    """

    def __init__(self, local_state: LocalState) -> None:
        self._local_state = local_state
        self._cart = self._load()

    def snapshot(self) -> Cart:
        return self._cart

    @property
    def store_id(self) -> str | None:
        return self._cart.store_id

    @property
    def item_count(self) -> int:
        return self._cart.item_count

    def add(self, item: CatalogItemV1, store_id: str) -> Cart:
        try:
            cart = self._cart.with_added(item, store_id)
        except CartStoreConflictError:
            logger.warning(
                "Rejected %s from store %s, cart belongs to %s",
                item.id,
                store_id,
                self._cart.store_id,
            )
            raise
        return self._replace(cart)

    def increment(self, item_id: str) -> Cart:
        return self._replace(self._cart.with_incremented(item_id))

    def decrement(self, item_id: str) -> Cart:
        return self._replace(self._cart.with_decremented(item_id))

    def clear(self) -> Cart:
        return self._replace(Cart())

    def _replace(self, cart: Cart) -> Cart:
        self._cart = cart
        self._local_state.set_item(CART_STORAGE_KEY, json.dumps(cart.to_snapshot()))
        return cart

    def _load(self) -> Cart:
        raw = self._local_state.get_item(CART_STORAGE_KEY)
        if not raw:
            return Cart()

        try:
            snapshot = json.loads(raw)
            if not isinstance(snapshot, dict):
                raise ValueError("cart snapshot is not an object")
            return Cart.from_snapshot(snapshot)
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning("Discarding unreadable cart snapshot: %s", e)
            return Cart()
