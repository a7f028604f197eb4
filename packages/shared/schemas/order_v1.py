"""Shared order schema (v1).

The storefront sends these payloads to the order-creation endpoint. Field names follow the
wire format the hosted database already uses (`unit_price`, `qty`, `from`, `to`).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderTypeV1(str, Enum):
    FOOD = "food"
    COURIER = "courier"


# Legacy wire values still sent by the browser storefront.
_ORDER_TYPE_ALIASES = {
    "comida": OrderTypeV1.FOOD,
    "mandado": OrderTypeV1.COURIER,
    "mandados": OrderTypeV1.COURIER,
}


class OrderStatusV1(str, Enum):
    PLACED = "placed"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    PICKUP = "pickup"
    DELIVERED = "delivered"


class OrderLineV1(BaseModel):
    name: str
    unit_price: int = Field(..., ge=0)
    qty: int = Field(..., ge=1)


class MandadoV1(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    what: str
    from_address: str = Field(..., alias="from")
    to_address: str = Field(..., alias="to")


class OrderCreateRequestV1(BaseModel):
    """Create request for one order and its line items or courier task.

    Required fields are checked with `missing_required_fields()` rather than by the schema so
    the client can reject locally and the server can answer with a plain 400.
    """

    type: OrderTypeV1 | None = None
    restaurant_id: str | None = None
    address: str = ""
    details: str = ""
    payment_method: str = ""
    total: int = Field(0, ge=0)

    items: list[OrderLineV1] = Field(default_factory=list)
    mandado: MandadoV1 | None = None

    # Client-generated; a repeated key maps to the order already created.
    idempotency_key: str | None = Field(None, max_length=64)

    @field_validator("type", mode="before")
    @classmethod
    def _accept_legacy_type(cls, v: object) -> object:
        if isinstance(v, str):
            key = v.strip().lower()
            return _ORDER_TYPE_ALIASES.get(key, key or None)
        return v

    def missing_required_fields(self) -> list[str]:
        missing: list[str] = []
        if self.type is None:
            missing.append("type")
        if not self.address.strip():
            missing.append("address")
        if not self.payment_method.strip():
            missing.append("payment_method")
        return missing

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class OrderCreateResponseV1(BaseModel):
    id: str


class ErrorResponseV1(BaseModel):
    error: str
