"""Storefront screen state.

`AppState` is immutable; the functions below are reducers that return the next state.
`resolve_view` decides which screen is actually shown.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from packages.shared.schemas.order_v1 import OrderStatusV1, OrderTypeV1


class View(str, Enum):
    HOME = "home"
    RESTAURANT = "restaurant"
    CHECKOUT = "checkout"
    TRACK = "track"


class ServiceType(str, Enum):
    FOOD = "comida"
    COURIER = "mandados"


@dataclass(frozen=True, slots=True)
class Rider:
    id: str
    name: str
    vehicle: str
    rating: float


@dataclass(frozen=True, slots=True)
class ActiveOrder:
    id: str
    order_type: OrderTypeV1
    status: OrderStatusV1
    eta_minutes: int
    rider: Rider
    address: str
    total: int


@dataclass(frozen=True, slots=True)
class AppState:
    view: View = View.HOME
    service_type: ServiceType = ServiceType.FOOD
    selected_store_id: str | None = None
    active_order: ActiveOrder | None = None


def open_store(state: AppState, store_id: str) -> AppState:
    return replace(state, selected_store_id=store_id, view=View.RESTAURANT)


def go_home(state: AppState) -> AppState:
    return replace(state, view=View.HOME)


def go_checkout(state: AppState) -> AppState:
    if state.service_type != ServiceType.FOOD or state.view == View.CHECKOUT:
        return state
    return replace(state, view=View.CHECKOUT)


def switch_service(state: AppState, service_type: ServiceType) -> AppState:
    """Change service; the caller empties the cart."""
    return replace(state, service_type=service_type, selected_store_id=None, view=View.HOME)


def track_order(state: AppState, order: ActiveOrder) -> AppState:
    return replace(state, active_order=order, view=View.TRACK)


def update_order_status(state: AppState, order_id: str, status: OrderStatusV1) -> AppState:
    # Late ticks from an order no longer tracked are dropped.
    if state.active_order is None or state.active_order.id != order_id:
        return state
    return replace(state, active_order=replace(state.active_order, status=status))


def clear_active_order(state: AppState) -> AppState:
    view = View.HOME if state.view == View.TRACK else state.view
    return replace(state, active_order=None, view=view)


def resolve_view(state: AppState) -> View:
    if state.view == View.TRACK:
        return View.TRACK if state.active_order is not None else View.HOME

    if state.view == View.RESTAURANT:
        if state.service_type == ServiceType.FOOD and state.selected_store_id is not None:
            return View.RESTAURANT
        return View.HOME

    if state.view == View.CHECKOUT:
        return View.CHECKOUT if state.service_type == ServiceType.FOOD else View.HOME

    return View.HOME
