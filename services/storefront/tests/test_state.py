from packages.shared.schemas.order_v1 import OrderStatusV1, OrderTypeV1
from services.storefront.app import state as st

RIDER = st.Rider(id="r1", name="Ana G.", vehicle="Moto", rating=4.9)


def _order(order_id: str = "9") -> st.ActiveOrder:
    return st.ActiveOrder(
        id=order_id,
        order_type=OrderTypeV1.FOOD,
        status=OrderStatusV1.PLACED,
        eta_minutes=20,
        rider=RIDER,
        address="Av. Juárez 123",
        total=212,
    )


def test_open_store_shows_restaurant() -> None:
    state = st.open_store(st.AppState(), "rs1")

    assert state.selected_store_id == "rs1"
    assert st.resolve_view(state) == st.View.RESTAURANT


def test_checkout_is_food_only() -> None:
    courier = st.switch_service(st.AppState(), st.ServiceType.COURIER)

    assert st.go_checkout(courier) is courier
    assert st.go_checkout(st.AppState()).view == st.View.CHECKOUT


def test_switch_service_resets_store_and_view() -> None:
    state = st.open_store(st.AppState(), "rs2")
    state = st.switch_service(state, st.ServiceType.COURIER)

    assert state.selected_store_id is None
    assert state.view == st.View.HOME
    assert state.service_type == st.ServiceType.COURIER


def test_restaurant_view_without_store_falls_back_home() -> None:
    state = st.AppState(view=st.View.RESTAURANT)

    assert st.resolve_view(state) == st.View.HOME


def test_track_view_requires_an_active_order() -> None:
    tracked = st.track_order(st.AppState(), _order())

    assert st.resolve_view(tracked) == st.View.TRACK
    assert st.resolve_view(st.AppState(view=st.View.TRACK)) == st.View.HOME


def test_status_update_for_other_order_is_ignored() -> None:
    state = st.track_order(st.AppState(), _order("9"))

    assert st.update_order_status(state, "8", OrderStatusV1.DELIVERED) is state
    updated = st.update_order_status(state, "9", OrderStatusV1.ACCEPTED)
    assert updated.active_order.status == OrderStatusV1.ACCEPTED


def test_clear_active_order_leaves_track_view() -> None:
    state = st.clear_active_order(st.track_order(st.AppState(), _order()))

    assert state.active_order is None
    assert state.view == st.View.HOME
