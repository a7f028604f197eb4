from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    db_path = tmp_path / "velocigo_orders.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("VELOCIGO_DB_AUTO_CREATE", "true")
    monkeypatch.setenv("VELOCIGO_ORDER_STORE", "sql")

    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


def _food_payload(**overrides: object) -> dict:
    payload = {
        "type": "food",
        "restaurant_id": "rs1",
        "address": "Av. Juárez 123, Guadalajara, Jal.",
        "details": "Depto 4",
        "payment_method": "Efectivo",
        "total": 212,
        "items": [{"name": "Tacos al pastor (5u)", "unit_price": 89, "qty": 2}],
    }
    payload.update(overrides)
    return payload


def test_create_food_order_persists_order_and_items(client: TestClient) -> None:
    response = client.post("/api/create-order", json=_food_payload())
    assert response.status_code == 200

    order_id = response.json()["id"]
    assert order_id

    from services.api.app.db.database import db_session
    from services.api.app.db.models import DeliveryTask, Order, OrderItem

    db = db_session()
    try:
        order = db.get(Order, order_id)
        assert order is not None
        assert order.type == "food"
        assert order.status == "placed"
        assert order.total == 212

        items = db.query(OrderItem).filter(OrderItem.order_id == order_id).all()
        assert [(i.name, i.unit_price, i.qty) for i in items] == [("Tacos al pastor (5u)", 89, 2)]
        assert db.query(DeliveryTask).count() == 0
    finally:
        db.close()


def test_create_courier_order_persists_delivery_task(client: TestClient) -> None:
    payload = {
        "type": "mandado",
        "restaurant_id": None,
        "address": "Av. Vallarta 6503, Zapopan",
        "payment_method": "Tarjeta",
        "total": 70,
        "mandado": {
            "what": "recoger paquete",
            "from": "Parque Revolución, GDL",
            "to": "Av. Vallarta 6503, Zapopan",
        },
    }
    response = client.post("/api/create-order", json=payload)
    assert response.status_code == 200
    order_id = response.json()["id"]

    from services.api.app.db.database import db_session
    from services.api.app.db.models import DeliveryTask, Order, OrderItem

    db = db_session()
    try:
        order = db.get(Order, order_id)
        assert order is not None
        assert order.type == "courier"
        assert order.restaurant_id is None

        task = db.query(DeliveryTask).filter(DeliveryTask.order_id == order_id).one()
        assert task.what == "recoger paquete"
        assert task.from_address == "Parque Revolución, GDL"
        assert task.to_address == "Av. Vallarta 6503, Zapopan"
        assert db.query(OrderItem).count() == 0
    finally:
        db.close()


@pytest.mark.parametrize("missing", ["type", "address", "payment_method"])
def test_create_order_requires_type_address_and_payment(client: TestClient, missing: str) -> None:
    payload = _food_payload()
    payload[missing] = ""

    response = client.post("/api/create-order", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid payload"}


def test_create_order_rejects_unknown_type(client: TestClient) -> None:
    response = client.post("/api/create-order", json=_food_payload(type="pizza"))
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid payload"}


def test_create_order_rejects_non_object_body(client: TestClient) -> None:
    response = client.post(
        "/api/create-order",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid payload"}


@pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "OPTIONS"])
def test_create_order_only_accepts_post(client: TestClient, method: str) -> None:
    response = client.request(method, "/api/create-order")
    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def test_create_order_head_is_405(client: TestClient) -> None:
    assert client.head("/api/create-order").status_code == 405


def test_create_order_replays_idempotency_key(client: TestClient) -> None:
    payload = _food_payload(idempotency_key="checkout-1")

    first = client.post("/api/create-order", json=payload)
    second = client.post("/api/create-order", json=payload)
    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]

    from services.api.app.db.database import db_session
    from services.api.app.db.models import Order, OrderItem

    db = db_session()
    try:
        assert db.query(Order).count() == 1
        assert db.query(OrderItem).count() == 1
    finally:
        db.close()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_create_order_rejects_key_reused_for_other_order(client: TestClient) -> None:
    first = client.post("/api/create-order", json=_food_payload(idempotency_key="checkout-2"))
    assert first.status_code == 200

    response = client.post(
        "/api/create-order", json=_food_payload(idempotency_key="checkout-2", total=999)
    )
    assert response.status_code == 409
    assert response.json() == {"error": "Idempotency key already used for a different order"}
