"""Shared catalog schema (v1).

Restaurants and menu items are read separately and merged on the client by `restaurant_id`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CatalogItemV1(BaseModel):
    id: str
    name: str
    # Whole pesos (MXN).
    price: int = Field(..., ge=0)
    tags: list[str] = Field(default_factory=list)


class MenuItemRowV1(CatalogItemV1):
    restaurant_id: str


class RestaurantRowV1(BaseModel):
    id: str
    name: str
    category: str
    eta_min: int = Field(..., ge=0)
    eta_max: int = Field(..., ge=0)
    rating: float = Field(..., ge=0.0, le=5.0)
    fee: int = Field(..., ge=0)
    promo: str = ""
    image: str = ""


class RestaurantV1(RestaurantRowV1):
    menu: list[CatalogItemV1] = Field(default_factory=list)

    def find_item(self, item_id: str) -> CatalogItemV1 | None:
        return next((item for item in self.menu if item.id == item_id), None)
