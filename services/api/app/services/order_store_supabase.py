from __future__ import annotations

import json
import logging
import os
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from packages.shared.schemas.order_v1 import (
    OrderCreateRequestV1,
    OrderStatusV1,
    OrderTypeV1,
)
from services.api.app.services.order_store_base import OrderPersistenceError, replayed_order_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _SupabaseConfig:
    url: str
    service_role_key: str
    timeout_s: float


class SupabaseOrderStore:
    """Order store on the hosted Supabase database, via its PostgREST API.

    The order row is inserted first, then the line items or the courier task. PostgREST
    offers no transaction across the two calls: if the second insert fails the order row
    stays behind and the error is still reported to the caller. The idempotency key is
    written last, so only complete orders are ever replayed.

    Env vars:
    - VELOCIGO_ORDER_STORE=supabase
    - SUPABASE_URL (required)
    - SUPABASE_SERVICE_ROLE (required, service-role key; never ship it to clients)
    - SUPABASE_TIMEOUT_S (default: 15)
    """

    backend = "SUPABASE"

    def __init__(self, cfg: _SupabaseConfig) -> None:
        self._cfg = cfg

    @classmethod
    def from_env(cls) -> "SupabaseOrderStore":
        url = os.getenv("SUPABASE_URL", "").strip().rstrip("/")
        service = os.getenv("SUPABASE_SERVICE_ROLE", "").strip()
        if not url or not service:
            raise ValueError("Missing Supabase env vars")

        return cls(
            _SupabaseConfig(
                url=url,
                service_role_key=service,
                timeout_s=float(os.getenv("SUPABASE_TIMEOUT_S", "15")),
            )
        )

    def create_order(self, request: OrderCreateRequestV1) -> str:
        if request.idempotency_key:
            rows = self._request(
                "GET",
                "orders",
                query={
                    "select": "id,type,restaurant_id,address,total",
                    "idempotency_key": f"eq.{request.idempotency_key}",
                    "limit": "1",
                },
                step="orders",
            )
            if rows:
                order_id = replayed_order_id(request, rows[0])
                logger.info(
                    "Idempotent replay for key=%s -> order %s", request.idempotency_key, order_id
                )
                return order_id

        order_row: dict[str, Any] = {
            "type": request.type.value,
            "restaurant_id": request.restaurant_id,
            "address": request.address,
            "details": request.details,
            "payment_method": request.payment_method,
            "total": request.total,
            "status": OrderStatusV1.PLACED.value,
        }
        inserted = self._request("POST", "orders", body=[order_row], step="orders")
        try:
            order_id = str(inserted[0]["id"])
        except (IndexError, KeyError, TypeError) as e:
            raise OrderPersistenceError(
                "orders", f"Unexpected Supabase response shape: {inserted!r}"
            ) from e

        if request.type == OrderTypeV1.FOOD and request.items:
            rows = [
                {"order_id": order_id, "name": i.name, "unit_price": i.unit_price, "qty": i.qty}
                for i in request.items
            ]
            self._request("POST", "order_items", body=rows, step="order_items", order_id=order_id)

        if request.type == OrderTypeV1.COURIER and request.mandado is not None:
            task = {
                "order_id": order_id,
                "what": request.mandado.what,
                "from_address": request.mandado.from_address,
                "to_address": request.mandado.to_address,
            }
            self._request(
                "POST", "delivery_tasks", body=[task], step="delivery_tasks", order_id=order_id
            )

        if request.idempotency_key:
            self._request(
                "PATCH",
                "orders",
                query={"id": f"eq.{order_id}"},
                body={"idempotency_key": request.idempotency_key},
                step="idempotency_key",
                order_id=order_id,
            )

        return order_id

    def _request(
        self,
        method: str,
        table: str,
        *,
        step: str,
        body: list[dict[str, Any]] | dict[str, Any] | None = None,
        query: dict[str, str] | None = None,
        order_id: str | None = None,
    ) -> Any:
        url = f"{self._cfg.url}/rest/v1/{quote(table)}"
        if query:
            url = f"{url}?{urlencode(query)}"

        try:
            return _postgrest_json(
                method=method,
                url=url,
                api_key=self._cfg.service_role_key,
                body=body,
                timeout_s=self._cfg.timeout_s,
            )
        except RuntimeError as e:
            if order_id is not None:
                logger.error(
                    "Order %s persisted without its %s: %s", order_id, step, e
                )
            raise OrderPersistenceError(step, str(e), order_id=order_id) from e


def _postgrest_json(
    *,
    method: str,
    url: str,
    api_key: str,
    body: list[dict[str, Any]] | dict[str, Any] | None,
    timeout_s: float,
) -> Any:
    req = urllib.request.Request(url, method=method)
    req.add_header("apikey", api_key)
    req.add_header("Authorization", f"Bearer {api_key}")
    req.add_header("Accept", "application/json")
    data = None
    if body is not None:
        req.add_header("Content-Type", "application/json")
        req.add_header("Prefer", "return=representation")
        data = json.dumps(body).encode("utf-8")

    try:
        with urllib.request.urlopen(req, data=data, timeout=timeout_s) as resp:
            raw = resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        raw_err = e.read().decode("utf-8", errors="replace")
        raise RuntimeError(_postgrest_error_message(raw_err) or f"Supabase HTTP {e.code}") from e
    except urllib.error.URLError as e:
        raise RuntimeError(f"Supabase unreachable: {e.reason}") from e

    return json.loads(raw) if raw else None


def _postgrest_error_message(raw: str) -> str:
    try:
        payload = json.loads(raw)
    except ValueError:
        return raw.strip()
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("error") or "")
    return ""
