from __future__ import annotations

from fastapi import APIRouter, Depends
from packages.shared.schemas.catalog_v1 import MenuItemRowV1, RestaurantRowV1
from services.api.app.db.database import get_db
from services.api.app.db.models import MenuItem, Restaurant
from sqlalchemy.orm import Session

router = APIRouter()


@router.get("/api/restaurants", response_model=list[RestaurantRowV1])
def list_restaurants(db: Session = Depends(get_db)) -> list[RestaurantRowV1]:
    rows = db.query(Restaurant).order_by(Restaurant.rating.desc(), Restaurant.id).all()

    return [
        RestaurantRowV1(
            id=r.id,
            name=r.name,
            category=r.category,
            eta_min=r.eta_min,
            eta_max=r.eta_max,
            rating=r.rating,
            fee=r.fee,
            promo=r.promo,
            image=r.image,
        )
        for r in rows
    ]


@router.get("/api/menu-items", response_model=list[MenuItemRowV1])
def list_menu_items(
    restaurant_id: str | None = None, db: Session = Depends(get_db)
) -> list[MenuItemRowV1]:
    query = db.query(MenuItem)
    if restaurant_id is not None:
        query = query.filter(MenuItem.restaurant_id == restaurant_id)

    return [
        MenuItemRowV1(
            id=m.id,
            restaurant_id=m.restaurant_id,
            name=m.name,
            price=m.price,
            tags=list(m.tags or []),
        )
        for m in query.order_by(MenuItem.restaurant_id, MenuItem.id).all()
    ]
