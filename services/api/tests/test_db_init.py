from pathlib import Path

from sqlalchemy import inspect


def test_init_db_creates_tables(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "nested" / "velocigo_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("VELOCIGO_DB_AUTO_CREATE", "true")

    from services.api.app.db.database import get_engine
    from services.api.app.db.init_db import init_db

    init_db()

    inspector = inspect(get_engine())
    tables = set(inspector.get_table_names())

    assert {"orders", "order_items", "delivery_tasks", "restaurants", "menu_items"} <= tables
    assert db_path.exists()


def test_init_db_can_be_disabled(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "velocigo_off.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("VELOCIGO_DB_AUTO_CREATE", "false")

    from services.api.app.db.database import get_engine
    from services.api.app.db.init_db import init_db

    init_db()

    assert inspect(get_engine()).get_table_names() == []
