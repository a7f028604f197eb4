"""The storefront session: catalog, cart, checkout and the tracked order."""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from uuid import uuid4

from packages.shared.schemas.catalog_v1 import RestaurantV1
from packages.shared.schemas.order_v1 import (
    MandadoV1,
    OrderCreateRequestV1,
    OrderLineV1,
    OrderStatusV1,
    OrderTypeV1,
)
from services.storefront.app import state as st
from services.storefront.app.cart import Cart, CartStore
from services.storefront.app.catalog import ALL_CATEGORIES, browse, find_restaurant
from services.storefront.app.errors import CheckoutFormError, StorefrontError
from services.storefront.app.gateway import OrderGateway
from services.storefront.app.pricing import (
    CourierQuote,
    PriceBreakdown,
    clamp_distance_km,
    compute_courier_quote,
    compute_food_total,
)
from services.storefront.app.simulator import (
    TICK_INTERVAL_S,
    IntervalScheduler,
    OrderStatusMachine,
    StatusSimulator,
)

logger = logging.getLogger(__name__)

CITY = "Guadalajara, Jalisco"
DEFAULT_ADDRESS = "Av. Juárez 123, Guadalajara, Jal."
PAYMENT_METHODS = ("Efectivo", "Tarjeta", "Transferencia", "SPEI")

RIDERS = (
    st.Rider(id="r1", name="Ana G.", vehicle="Moto", rating=4.9),
    st.Rider(id="r2", name="Luis R.", vehicle="Bici", rating=4.8),
    st.Rider(id="r3", name="Paola T.", vehicle="Moto", rating=4.7),
    st.Rider(id="r4", name="Diego V.", vehicle="Auto", rating=4.6),
)


@dataclass(frozen=True, slots=True)
class CheckoutForm:
    name: str
    phone: str
    address: str = DEFAULT_ADDRESS
    details: str = ""
    payment_method: str = PAYMENT_METHODS[0]

    def missing_fields(self) -> list[str]:
        return [
            label
            for label, value in (
                ("name", self.name),
                ("phone", self.phone),
                ("address", self.address),
            )
            if not value.strip()
        ]


@dataclass(frozen=True, slots=True)
class MandadoForm:
    what: str
    from_address: str = "Parque Revolución, GDL"
    to_address: str = "Av. Vallarta 6503, Zapopan"
    distance_km: int = 5
    payment_method: str = PAYMENT_METHODS[0]
    details: str = ""

    def missing_fields(self) -> list[str]:
        return [
            label
            for label, value in (
                ("what", self.what),
                ("from", self.from_address),
                ("to", self.to_address),
            )
            if not value.strip()
        ]


class Storefront:
    """One shopper's session.

    All mutation happens on the caller's thread: user actions and `tick()`, which runs the
    status timers that came due.
    """

    def __init__(
        self,
        *,
        cart_store: CartStore,
        gateway: OrderGateway,
        scheduler: IntervalScheduler,
        restaurants: list[RestaurantV1],
        rng: random.Random | None = None,
        tick_interval: float = TICK_INTERVAL_S,
        new_idempotency_key: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self.cart_store = cart_store
        self._gateway = gateway
        self._scheduler = scheduler
        self._restaurants = list(restaurants)
        self._rng = rng or random.Random()
        self._new_idempotency_key = new_idempotency_key
        # (request fingerprint, idempotency key) of the last unconfirmed submission.
        self._submission: tuple[str, str] | None = None
        self._state = st.AppState()

        self.simulator = StatusSimulator(
            scheduler,
            interval=tick_interval,
            on_change=self._on_status_change,
            on_delivered=self._on_delivered,
        )

    # -------------------- reads --------------------

    @property
    def state(self) -> st.AppState:
        return self._state

    @property
    def view(self) -> st.View:
        return st.resolve_view(self._state)

    @property
    def cart(self) -> Cart:
        return self.cart_store.snapshot()

    @property
    def selected_store(self) -> RestaurantV1 | None:
        if self._state.selected_store_id is None:
            return None
        return find_restaurant(self._restaurants, self._state.selected_store_id)

    def restaurants(
        self, *, category: str = ALL_CATEGORIES, search: str = "", sort: str = "recomendado"
    ) -> list[RestaurantV1]:
        if self._state.service_type == st.ServiceType.COURIER:
            return []
        return browse(self._restaurants, category=category, search=search, sort=sort)

    def price(self) -> PriceBreakdown:
        return compute_food_total(self.cart.lines)

    def quote_mandado(self, distance_km: int) -> CourierQuote:
        return compute_courier_quote(clamp_distance_km(distance_km))

    # -------------------- navigation --------------------

    def open_store(self, store_id: str) -> RestaurantV1:
        restaurant = find_restaurant(self._restaurants, store_id)
        if restaurant is None:
            raise StorefrontError(f"Restaurante no encontrado: {store_id}")
        self._state = st.open_store(self._state, restaurant.id)
        return restaurant

    def go_home(self) -> None:
        self._state = st.go_home(self._state)

    def go_checkout(self) -> None:
        self._state = st.go_checkout(self._state)

    def switch_service(self, service_type: st.ServiceType) -> None:
        self._state = st.switch_service(self._state, service_type)
        self.clear_cart()

    def stop_tracking(self) -> None:
        self.simulator.stop()
        self._state = st.clear_active_order(self._state)

    def tick(self) -> int:
        return self._scheduler.run_pending()

    # -------------------- cart --------------------

    def add_item(self, item_id: str) -> Cart:
        restaurant = self.selected_store
        if restaurant is None:
            raise StorefrontError("Abre un restaurante para agregar productos")
        item = restaurant.find_item(item_id)
        if item is None:
            raise StorefrontError(f"Producto no encontrado: {item_id}")

        return self.cart_store.add(item, restaurant.id)

    def increment(self, item_id: str) -> Cart:
        return self.cart_store.increment(item_id)

    def decrement(self, item_id: str) -> Cart:
        return self.cart_store.decrement(item_id)

    def clear_cart(self) -> Cart:
        return self.cart_store.clear()

    # -------------------- orders --------------------

    def place_food_order(self, form: CheckoutForm) -> st.ActiveOrder:
        missing = form.missing_fields()
        if missing:
            raise CheckoutFormError(missing)

        cart = self.cart
        if cart.is_empty:
            raise StorefrontError("Tu carrito está vacío")

        breakdown = compute_food_total(cart.lines)
        request = OrderCreateRequestV1(
            type=OrderTypeV1.FOOD,
            restaurant_id=cart.store_id,
            address=form.address,
            details=form.details,
            payment_method=form.payment_method,
            total=breakdown.total,
            items=[
                OrderLineV1(name=line.item.name, unit_price=line.unit_price, qty=line.quantity)
                for line in cart.lines
            ],
        )
        request = self._with_idempotency_key(request)

        order_id = self._gateway.submit(request)
        return self._start_tracking(
            order_id,
            OrderTypeV1.FOOD,
            address=form.address,
            total=breakdown.total,
            eta_minutes=self._rng.randint(15, 35),
        )

    def request_mandado(self, form: MandadoForm) -> st.ActiveOrder:
        missing = form.missing_fields()
        if missing:
            raise CheckoutFormError(missing)

        quote = self.quote_mandado(form.distance_km)
        request = OrderCreateRequestV1(
            type=OrderTypeV1.COURIER,
            restaurant_id=None,
            address=form.to_address,
            details=form.details,
            payment_method=form.payment_method,
            total=quote.total,
            mandado=MandadoV1(
                what=form.what, from_address=form.from_address, to_address=form.to_address
            ),
        )
        request = self._with_idempotency_key(request)

        order_id = self._gateway.submit(request)
        return self._start_tracking(
            order_id,
            OrderTypeV1.COURIER,
            address=f"{form.to_address} (recoge en: {form.from_address} · {form.what})",
            total=quote.total,
            eta_minutes=self._rng.randint(12, 25),
        )

    def _with_idempotency_key(self, request: OrderCreateRequestV1) -> OrderCreateRequestV1:
        # Resubmitting the same order reuses its key; any other order gets a fresh one.
        fingerprint = json.dumps(request.to_wire(), sort_keys=True)
        if self._submission is None or self._submission[0] != fingerprint:
            self._submission = (fingerprint, self._new_idempotency_key())
        return request.model_copy(update={"idempotency_key": self._submission[1]})

    def _start_tracking(
        self,
        order_id: str,
        order_type: OrderTypeV1,
        *,
        address: str,
        total: int,
        eta_minutes: int,
    ) -> st.ActiveOrder:
        self._submission = None
        order = st.ActiveOrder(
            id=order_id,
            order_type=order_type,
            status=OrderStatusV1.PLACED,
            eta_minutes=eta_minutes,
            rider=self._rng.choice(RIDERS),
            address=address,
            total=total,
        )
        self._state = st.track_order(self._state, order)
        self.simulator.start(order_id, order_type)
        return order

    def _on_status_change(self, machine: OrderStatusMachine) -> None:
        self._state = st.update_order_status(self._state, machine.order_id, machine.status)

    def _on_delivered(self, machine: OrderStatusMachine) -> None:
        if machine.order_type == OrderTypeV1.FOOD:
            logger.info("Order %s delivered, clearing cart", machine.order_id)
            self.clear_cart()
