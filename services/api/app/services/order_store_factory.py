from __future__ import annotations

import os

from services.api.app.db.database import db_session
from services.api.app.services.order_store_base import OrderStore
from services.api.app.services.order_store_sql import SqlOrderStore


def get_order_store() -> OrderStore:
    """Select the order store based on env vars.

    Defaults to the local SQL store so tests and local dev need no hosted database.
    """

    mode = os.getenv("VELOCIGO_ORDER_STORE", "sql").strip().lower()

    if mode == "sql":
        return SqlOrderStore(db_session)

    if mode == "supabase":
        from services.api.app.services.order_store_supabase import SupabaseOrderStore

        return SupabaseOrderStore.from_env()

    raise ValueError(f"Unknown VELOCIGO_ORDER_STORE={mode!r}. Expected sql or supabase.")
