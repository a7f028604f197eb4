from __future__ import annotations

import logging

from packages.shared.schemas.order_v1 import OrderCreateRequestV1, OrderCreateResponseV1
from pydantic import ValidationError
from services.storefront.app.errors import (
    OrderSubmissionError,
    OrderValidationError,
    TransportError,
)
from services.storefront.app.transport import Transport

logger = logging.getLogger(__name__)

CREATE_ORDER_PATH = "/api/create-order"


class OrderGateway:
    """Client side of the order-creation endpoint.

    One call per submission: requests missing a required field never leave the process, and
    failures are raised to the caller without retrying.
    """

    def __init__(self, transport: Transport, *, path: str = CREATE_ORDER_PATH) -> None:
        self._transport = transport
        self._path = path

    def submit(self, request: OrderCreateRequestV1) -> str:
        missing = request.missing_required_fields()
        if missing:
            raise OrderValidationError(missing)

        try:
            status, payload = self._transport.request_json("POST", self._path, request.to_wire())
        except TransportError as e:
            logger.warning("Order submission failed before a response: %s", e)
            raise OrderSubmissionError(str(e)) from e

        if status != 200:
            message = _error_message(payload) or f"Error del servidor ({status})"
            logger.warning("Order submission rejected status=%s error=%s", status, message)
            raise OrderSubmissionError(message)

        try:
            created = OrderCreateResponseV1.model_validate(payload)
        except ValidationError as e:
            raise OrderSubmissionError("Respuesta inesperada del servidor") from e

        logger.info("Order %s created", created.id)
        return created.id


def _error_message(payload: object) -> str:
    if isinstance(payload, dict):
        return str(payload.get("error") or "")
    return ""
