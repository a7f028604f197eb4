from __future__ import annotations

import json
from pathlib import Path

import pytest
from packages.shared.schemas.catalog_v1 import CatalogItemV1
from services.storefront.app.cart import CART_STORAGE_KEY, Cart, CartLine, CartStore
from services.storefront.app.errors import CartStoreConflictError, MixedStoreCartError
from services.storefront.app.local_state import JsonFileLocalState, MemoryLocalState

PASTOR = CatalogItemV1(id="a1", name="Tacos al pastor (5u)", price=89, tags=["Top"])
HORCHATA = CatalogItemV1(id="a4", name="Agua de horchata", price=39)
CLASICA = CatalogItemV1(id="b1", name="Clásica 150g", price=139)


def test_add_same_item_twice_increments_quantity() -> None:
    cart = Cart().with_added(PASTOR, "rs1").with_added(PASTOR, "rs1")

    assert cart.store_id == "rs1"
    assert cart.line("a1").quantity == 2
    assert cart.item_count == 2


def test_add_from_another_store_is_rejected() -> None:
    cart = Cart().with_added(PASTOR, "rs1")

    with pytest.raises(CartStoreConflictError) as info:
        cart.with_added(CLASICA, "rs2")

    assert info.value.cart_store_id == "rs1"
    assert info.value.requested_store_id == "rs2"
    assert "otro restaurante" in str(info.value)


def test_decrement_to_zero_removes_line_and_store() -> None:
    cart = Cart().with_added(PASTOR, "rs1").with_decremented("a1")

    assert cart.is_empty
    assert cart.store_id is None
    # Once empty, any store may be added.
    assert cart.with_added(CLASICA, "rs2").store_id == "rs2"


def test_increment_or_decrement_of_absent_item_is_noop() -> None:
    cart = Cart().with_added(PASTOR, "rs1")

    assert cart.with_incremented("zz") is cart
    assert cart.with_decremented("zz") is cart


def test_mixed_store_cart_cannot_be_constructed() -> None:
    with pytest.raises(MixedStoreCartError):
        Cart(
            (
                CartLine(item=PASTOR, quantity=1, store_id="rs1"),
                CartLine(item=CLASICA, quantity=1, store_id="rs2"),
            )
        )


def test_zero_quantity_line_is_rejected() -> None:
    with pytest.raises(ValueError):
        Cart((CartLine(item=PASTOR, quantity=0, store_id="rs1"),))


def test_cart_store_persists_every_change() -> None:
    local_state = MemoryLocalState()
    store = CartStore(local_state)

    store.add(PASTOR, "rs1")
    store.add(HORCHATA, "rs1")
    store.increment("a4")

    snapshot = json.loads(local_state.get_item(CART_STORAGE_KEY))
    assert snapshot["a1"]["qty"] == 1
    assert snapshot["a4"] == {
        "item": {"id": "a4", "name": "Agua de horchata", "price": 39, "tags": []},
        "qty": 2,
        "storeId": "rs1",
    }

    store.clear()
    assert json.loads(local_state.get_item(CART_STORAGE_KEY)) == {}


def test_cart_store_conflict_leaves_cart_unchanged() -> None:
    local_state = MemoryLocalState()
    store = CartStore(local_state)
    store.add(PASTOR, "rs1")
    before = local_state.get_item(CART_STORAGE_KEY)

    with pytest.raises(CartStoreConflictError):
        store.add(CLASICA, "rs2")

    assert store.store_id == "rs1"
    assert local_state.get_item(CART_STORAGE_KEY) == before


def test_cart_survives_restart_on_disk(tmp_path: Path) -> None:
    path = tmp_path / "state" / "storefront.json"
    first = CartStore(JsonFileLocalState(path))
    first.add(PASTOR, "rs1")
    first.add(PASTOR, "rs1")

    second = CartStore(JsonFileLocalState(path))

    assert second.snapshot() == first.snapshot()
    assert second.snapshot().line("a1").quantity == 2


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2]",
        json.dumps({"a1": {"qty": 1}}),
        json.dumps(
            {
                "a1": {"item": PASTOR.model_dump(), "qty": 1, "storeId": "rs1"},
                "b1": {"item": CLASICA.model_dump(), "qty": 1, "storeId": "rs2"},
            }
        ),
    ],
)
def test_unreadable_snapshot_starts_empty(raw: str) -> None:
    store = CartStore(MemoryLocalState({CART_STORAGE_KEY: raw}))

    assert store.snapshot().is_empty
