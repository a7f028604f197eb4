from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from services.api.app.services.order_store_base import OrderPersistenceError, OrderStoreError

_PAYLOAD = {
    "type": "food",
    "restaurant_id": "rs2",
    "address": "C. Colón 456, GDL",
    "payment_method": "SPEI",
    "total": 228,
    "items": [{"name": "Doble queso 180g", "unit_price": 169, "qty": 1}],
}


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    db_path = tmp_path / "velocigo_store_errors.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("VELOCIGO_DB_AUTO_CREATE", "true")

    from services.api.app.main import app

    with TestClient(app) as c:
        yield c


class _RaisingStore:
    backend = "FAKE"

    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    def create_order(self, request: object) -> str:
        del request
        raise self._exc


@pytest.mark.parametrize(
    ("exc", "message"),
    [
        (OrderPersistenceError("order_items", "insert into order_items failed"), None),
        (OrderStoreError("store offline"), "store offline"),
        (RuntimeError("boom"), "Internal error"),
    ],
)
def test_create_order_maps_store_errors_to_500(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    exc: Exception,
    message: str | None,
) -> None:
    import services.api.app.routers.order as order_router

    monkeypatch.setattr(order_router, "get_order_store", lambda: _RaisingStore(exc))

    response = client.post("/api/create-order", json=_PAYLOAD)
    assert response.status_code == 500
    assert response.json()["error"] == (message or str(exc))


def test_create_order_without_supabase_env_is_500(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("VELOCIGO_ORDER_STORE", "supabase")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE", "service-key")

    response = client.post("/api/create-order", json=_PAYLOAD)
    assert response.status_code == 500
    assert response.json() == {"error": "Missing Supabase env vars"}


def test_create_order_with_unknown_store_is_500(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("VELOCIGO_ORDER_STORE", "nope")

    response = client.post("/api/create-order", json=_PAYLOAD)
    assert response.status_code == 500
    assert "Unknown VELOCIGO_ORDER_STORE" in response.json()["error"]


def test_invalid_payload_is_rejected_before_store_lookup(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    import services.api.app.routers.order as order_router

    def _unexpected() -> None:
        raise AssertionError("store must not be touched")

    monkeypatch.setattr(order_router, "get_order_store", _unexpected)

    response = client.post("/api/create-order", json={**_PAYLOAD, "address": ""})
    assert response.status_code == 400
