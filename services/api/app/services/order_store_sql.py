from __future__ import annotations

import logging
from collections.abc import Callable
from uuid import uuid4

from packages.shared.schemas.order_v1 import (
    OrderCreateRequestV1,
    OrderStatusV1,
    OrderTypeV1,
)
from services.api.app.db.models import DeliveryTask, Order, OrderItem
from services.api.app.services.order_store_base import OrderPersistenceError, replayed_order_id
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class SqlOrderStore:
    """Order store backed by the SQLAlchemy models.

    The order row and its line items (or courier task) commit in one transaction, so a
    failed secondary insert leaves nothing behind. Two submissions racing on the same
    idempotency key resolve to whichever committed first.
    """

    backend = "SQL"

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_order(self, request: OrderCreateRequestV1) -> str:
        db = self._session_factory()
        try:
            existing = self._find_existing(db, request)
            if existing is not None:
                logger.info(
                    "Idempotent replay for key=%s -> order %s", request.idempotency_key, existing
                )
                return existing

            order_id = uuid4().hex
            try:
                self._insert(db, order_id, request)
                db.commit()
            except IntegrityError:
                db.rollback()
                existing = self._find_existing(db, request)
                if existing is None:
                    raise
                logger.info(
                    "Concurrent submit for key=%s -> order %s", request.idempotency_key, existing
                )
                return existing
        except SQLAlchemyError as e:
            db.rollback()
            raise OrderPersistenceError("orders", str(getattr(e, "orig", None) or e)) from e
        finally:
            db.close()

        return order_id

    def _find_existing(self, db: Session, request: OrderCreateRequestV1) -> str | None:
        if not request.idempotency_key:
            return None

        row = db.query(Order).filter(Order.idempotency_key == request.idempotency_key).first()
        if row is None:
            return None
        return replayed_order_id(
            request,
            {
                "id": row.id,
                "type": row.type,
                "restaurant_id": row.restaurant_id,
                "address": row.address,
                "total": row.total,
            },
        )

    def _insert(self, db: Session, order_id: str, request: OrderCreateRequestV1) -> None:
        db.add(
            Order(
                id=order_id,
                type=request.type.value,
                restaurant_id=request.restaurant_id,
                address=request.address,
                details=request.details,
                payment_method=request.payment_method,
                total=request.total,
                status=OrderStatusV1.PLACED.value,
                idempotency_key=request.idempotency_key,
            )
        )
        db.flush()

        if request.type == OrderTypeV1.FOOD and request.items:
            db.add_all(
                OrderItem(
                    order_id=order_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    qty=line.qty,
                )
                for line in request.items
            )

        if request.type == OrderTypeV1.COURIER and request.mandado is not None:
            db.add(
                DeliveryTask(
                    order_id=order_id,
                    what=request.mandado.what,
                    from_address=request.mandado.from_address,
                    to_address=request.mandado.to_address,
                )
            )
