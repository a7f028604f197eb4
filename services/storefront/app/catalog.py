from __future__ import annotations

import os
from collections.abc import Iterable
from typing import Protocol

from packages.shared.schemas.catalog_v1 import (
    CatalogItemV1,
    MenuItemRowV1,
    RestaurantRowV1,
    RestaurantV1,
)
from services.storefront.app.errors import StorefrontError
from services.storefront.app.transport import Transport

ALL_CATEGORIES = "Todo"
CATEGORIES = [ALL_CATEGORIES, "Mexicana", "Hamburguesas", "Pizza"]
SORT_OPTIONS = ("recomendado", "rapido", "rating", "barato")

RESTAURANTS_GDL: list[RestaurantV1] = [
    RestaurantV1(
        id="rs1",
        name="Tacos Providencia",
        category="Mexicana",
        eta_min=18,
        eta_max=30,
        rating=4.7,
        fee=29,
        promo="2x1 en pastor (hoy)",
        image="https://picsum.photos/seed/tacos/640/360",
        menu=[
            CatalogItemV1(id="a1", name="Tacos al pastor (5u)", price=89, tags=["Top"]),
            CatalogItemV1(id="a2", name="Quesadilla de asada", price=79),
            CatalogItemV1(id="a3", name="Gringa", price=95, tags=["Popular"]),
            CatalogItemV1(id="a4", name="Agua de horchata", price=39),
        ],
    ),
    RestaurantV1(
        id="rs2",
        name="Burger Chapu",
        category="Hamburguesas",
        eta_min=22,
        eta_max=35,
        rating=4.8,
        fee=35,
        promo="Combo con papas",
        image="https://picsum.photos/seed/chapu/640/360",
        menu=[
            CatalogItemV1(id="b1", name="Clásica 150g", price=139),
            CatalogItemV1(id="b2", name="Doble queso 180g", price=169, tags=["Top"]),
            CatalogItemV1(id="b3", name="Papas gajo", price=59),
            CatalogItemV1(id="b4", name="Refresco 355ml", price=29),
        ],
    ),
    RestaurantV1(
        id="rs3",
        name="Pizzería Arcos",
        category="Pizza",
        eta_min=20,
        eta_max=32,
        rating=4.6,
        fee=32,
        promo="Mediana 2 toppings $149",
        image="https://picsum.photos/seed/pizza-gdl/640/360",
        menu=[
            CatalogItemV1(id="p1", name="Margarita", price=129, tags=["Veggie"]),
            CatalogItemV1(id="p2", name="Pepperoni", price=149, tags=["Top"]),
            CatalogItemV1(id="p3", name="Hawaiana", price=149),
            CatalogItemV1(id="p4", name="Limonada", price=35),
        ],
    ),
]


class CatalogError(StorefrontError):
    pass


class CatalogSource(Protocol):
    def load(self) -> list[RestaurantV1]: ...


class StaticCatalogSource:
    def __init__(self, restaurants: list[RestaurantV1] | None = None) -> None:
        self._restaurants = list(RESTAURANTS_GDL if restaurants is None else restaurants)

    def load(self) -> list[RestaurantV1]:
        return list(self._restaurants)


class HttpCatalogSource:
    """Reads restaurants and menu items from the API and joins them here."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def load(self) -> list[RestaurantV1]:
        restaurants = [RestaurantRowV1.model_validate(r) for r in self._get("/api/restaurants")]
        items = [MenuItemRowV1.model_validate(m) for m in self._get("/api/menu-items")]
        return merge_catalog(restaurants, items)

    def _get(self, path: str) -> list:
        status, payload = self._transport.request_json("GET", path)
        if status != 200 or not isinstance(payload, list):
            raise CatalogError(f"No se pudo cargar el catálogo ({status})")
        return payload


def get_catalog_source(transport: Transport) -> CatalogSource:
    mode = os.getenv("VELOCIGO_CATALOG", "static").strip().lower()

    if mode == "static":
        return StaticCatalogSource()

    if mode == "api":
        return HttpCatalogSource(transport)

    raise ValueError(f"Unknown VELOCIGO_CATALOG={mode!r}. Expected static or api.")


def merge_catalog(
    restaurants: Iterable[RestaurantRowV1], items: Iterable[MenuItemRowV1]
) -> list[RestaurantV1]:
    by_restaurant: dict[str, list[CatalogItemV1]] = {}
    for item in items:
        by_restaurant.setdefault(item.restaurant_id, []).append(
            CatalogItemV1(id=item.id, name=item.name, price=item.price, tags=item.tags)
        )

    return [
        RestaurantV1(**r.model_dump(), menu=by_restaurant.get(r.id, []))
        for r in restaurants
    ]


def browse(
    restaurants: Iterable[RestaurantV1],
    *,
    category: str = ALL_CATEGORIES,
    search: str = "",
    sort: str = "recomendado",
) -> list[RestaurantV1]:
    out = list(restaurants)
    if category != ALL_CATEGORIES:
        out = [r for r in out if r.category == category]

    needle = search.strip().lower()
    if needle:
        out = [r for r in out if needle in r.name.lower()]

    if sort == "rapido":
        out.sort(key=lambda r: r.eta_min)
    elif sort == "barato":
        out.sort(key=lambda r: r.fee)
    else:
        # "rating" and "recomendado" both rank by rating.
        out.sort(key=lambda r: r.rating, reverse=True)
    return out


def find_restaurant(restaurants: Iterable[RestaurantV1], store_id: str) -> RestaurantV1 | None:
    return next((r for r in restaurants if r.id == store_id), None)
