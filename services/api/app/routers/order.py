from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from packages.shared.schemas.order_v1 import (
    ErrorResponseV1,
    OrderCreateRequestV1,
    OrderCreateResponseV1,
)
from services.api.app.services.order_store_base import (
    IdempotencyConflictError,
    OrderPersistenceError,
    OrderStoreError,
)
from services.api.app.services.order_store_factory import get_order_store

logger = logging.getLogger(__name__)

router = APIRouter()

CREATE_ORDER_PATH = "/api/create-order"


def _raise_store_http_error(e: Exception) -> None:
    if isinstance(e, IdempotencyConflictError):
        raise HTTPException(status_code=409, detail=str(e)) from e

    if isinstance(e, OrderPersistenceError):
        raise HTTPException(status_code=500, detail=str(e)) from e

    if isinstance(e, OrderStoreError):
        raise HTTPException(status_code=500, detail=str(e) or "Internal error") from e

    raise HTTPException(status_code=500, detail="Internal error") from e


@router.post(
    CREATE_ORDER_PATH,
    response_model=OrderCreateResponseV1,
    responses={
        400: {"model": ErrorResponseV1},
        409: {"model": ErrorResponseV1},
        500: {"model": ErrorResponseV1},
    },
)
def create_order(payload: OrderCreateRequestV1) -> OrderCreateResponseV1:
    missing = payload.missing_required_fields()
    if missing:
        logger.info("Rejected order payload, missing=%s", missing)
        raise HTTPException(status_code=400, detail="Invalid payload")

    try:
        order_store = get_order_store()
    except ValueError as e:
        logger.error("Order store misconfigured: %s", e)
        raise HTTPException(status_code=500, detail=str(e)) from e

    try:
        order_id = order_store.create_order(payload)
    except Exception as e:
        logger.exception("Order creation failed on %s", order_store.backend)
        _raise_store_http_error(e)

    logger.info(
        "Order %s created type=%s total=%s via %s",
        order_id,
        payload.type.value,
        payload.total,
        order_store.backend,
    )
    return OrderCreateResponseV1(id=order_id)


@router.api_route(
    CREATE_ORDER_PATH,
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
def create_order_wrong_method() -> None:
    raise HTTPException(status_code=405, detail="Method not allowed")
