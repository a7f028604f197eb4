"""Order pricing for food carts and courier tasks.

All amounts are whole pesos (MXN). Breakdowns are derived from the cart on every read and
never stored, so the displayed total and the charged total cannot drift apart.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

DELIVERY_FEE = 25
SERVICE_FEE_PERCENT = 5

COURIER_BASE_FEE = 25
COURIER_PER_KM = 8
COURIER_SERVICE_FEE = 5
COURIER_MIN_KM = 1
COURIER_MAX_KM = 20


class PricedLine(Protocol):
    @property
    def unit_price(self) -> int: ...

    @property
    def quantity(self) -> int: ...


@dataclass(frozen=True, slots=True)
class PriceBreakdown:
    subtotal: int
    delivery_fee: int
    service_fee: int
    total: int


@dataclass(frozen=True, slots=True)
class CourierQuote:
    distance_km: int
    subtotal: int
    service_fee: int
    total: int


def _percent_half_up(amount: int, percent: int) -> int:
    # round(amount * percent / 100) with halves rounded up, in exact integer arithmetic.
    return (amount * percent + 50) // 100


def compute_food_total(lines: Iterable[PricedLine]) -> PriceBreakdown:
    subtotal = 0
    count = 0
    for line in lines:
        subtotal += line.unit_price * line.quantity
        count += 1

    delivery_fee = DELIVERY_FEE if count else 0
    service_fee = _percent_half_up(subtotal, SERVICE_FEE_PERCENT)
    return PriceBreakdown(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        service_fee=service_fee,
        total=subtotal + delivery_fee + service_fee,
    )


def clamp_distance_km(distance_km: int) -> int:
    return max(COURIER_MIN_KM, min(COURIER_MAX_KM, int(distance_km)))


def compute_courier_quote(distance_km: int) -> CourierQuote:
    """Price a mandado. The caller clamps `distance_km` to [1, 20] first."""
    subtotal = COURIER_BASE_FEE + COURIER_PER_KM * distance_km
    return CourierQuote(
        distance_km=distance_km,
        subtotal=subtotal,
        service_fee=COURIER_SERVICE_FEE,
        total=subtotal + COURIER_SERVICE_FEE,
    )
