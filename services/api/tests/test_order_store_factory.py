import pytest
from services.api.app.services.order_store_factory import get_order_store


def test_get_order_store_defaults_to_sql(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VELOCIGO_ORDER_STORE", raising=False)
    store = get_order_store()
    assert store.backend == "SQL"


def test_get_order_store_selects_supabase(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VELOCIGO_ORDER_STORE", "supabase")
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE", "service-key")
    store = get_order_store()
    assert store.backend == "SUPABASE"


def test_get_order_store_rejects_unknown(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VELOCIGO_ORDER_STORE", "nope")
    with pytest.raises(ValueError, match="Unknown VELOCIGO_ORDER_STORE"):
        get_order_store()
