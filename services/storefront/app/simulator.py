"""Simulated delivery tracking.

Status is not read from the backend: a fixed-interval timer walks each order through its
flow, one state per tick. Timers run on an `IntervalScheduler` whose clock is injected, so
tests move time forward by hand.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from packages.shared.schemas.order_v1 import OrderStatusV1, OrderTypeV1

logger = logging.getLogger(__name__)

TICK_INTERVAL_S = 5.0

FOOD_FLOW: tuple[OrderStatusV1, ...] = (
    OrderStatusV1.PLACED,
    OrderStatusV1.ACCEPTED,
    OrderStatusV1.PREPARING,
    OrderStatusV1.PICKUP,
    OrderStatusV1.DELIVERED,
)

# Couriers have nothing to cook.
COURIER_FLOW: tuple[OrderStatusV1, ...] = (
    OrderStatusV1.PLACED,
    OrderStatusV1.ACCEPTED,
    OrderStatusV1.PICKUP,
    OrderStatusV1.DELIVERED,
)

STATUS_LABELS = {
    OrderStatusV1.PLACED: "Pedido realizado",
    OrderStatusV1.ACCEPTED: "Tienda aceptó",
    OrderStatusV1.PREPARING: "Preparando",
    OrderStatusV1.PICKUP: "Repartidor en camino",
    OrderStatusV1.DELIVERED: "Entregado",
}


def status_flow(order_type: OrderTypeV1) -> tuple[OrderStatusV1, ...]:
    return COURIER_FLOW if order_type == OrderTypeV1.COURIER else FOOD_FLOW


def progress_percent(order_type: OrderTypeV1, status: OrderStatusV1) -> int:
    flow = status_flow(order_type)
    if status not in flow:
        return 0
    return round(flow.index(status) * 100 / (len(flow) - 1))


class OrderStatusMachine:
    def __init__(self, order_id: str, order_type: OrderTypeV1) -> None:
        self.order_id = order_id
        self.order_type = order_type
        self._flow = status_flow(order_type)
        self._index = 0

    @property
    def status(self) -> OrderStatusV1:
        return self._flow[self._index]

    @property
    def is_terminal(self) -> bool:
        return self._index == len(self._flow) - 1

    def tick(self) -> OrderStatusV1:
        if not self.is_terminal:
            self._index += 1
        return self.status


@dataclass(eq=False)
class ScheduledJob:
    interval: float
    callback: Callable[[], None]
    next_run: float
    cancelled: bool = field(default=False)

    def cancel(self) -> None:
        self.cancelled = True


class IntervalScheduler:
    """Single-threaded repeating timers.

    Nothing fires on its own: the owner calls `run_pending()` from its event loop, and every
    tick that came due since the last call runs then, in time order.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._jobs: list[ScheduledJob] = []

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledJob:
        if interval <= 0:
            raise ValueError("interval must be positive")
        job = ScheduledJob(interval=interval, callback=callback, next_run=self._clock() + interval)
        self._jobs.append(job)
        return job

    def run_pending(self) -> int:
        now = self._clock()
        fired = 0
        while True:
            due = [j for j in self._jobs if not j.cancelled and j.next_run <= now]
            if not due:
                break
            job = min(due, key=lambda j: j.next_run)
            job.next_run += job.interval
            job.callback()
            fired += 1
        self._jobs = [j for j in self._jobs if not j.cancelled]
        return fired


class StatusSimulator:
    """Drives the one tracked order through its flow.

    Starting a new order stops the previous simulation. Reaching `delivered` cancels the
    timer and fires `on_delivered`.
    """

    def __init__(
        self,
        scheduler: IntervalScheduler,
        *,
        interval: float = TICK_INTERVAL_S,
        on_change: Callable[[OrderStatusMachine], None] | None = None,
        on_delivered: Callable[[OrderStatusMachine], None] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._on_change = on_change
        self._on_delivered = on_delivered
        self._machine: OrderStatusMachine | None = None
        self._job: ScheduledJob | None = None

    @property
    def active(self) -> OrderStatusMachine | None:
        return self._machine

    def start(self, order_id: str, order_type: OrderTypeV1) -> OrderStatusMachine:
        self.stop()
        machine = OrderStatusMachine(order_id, order_type)
        self._machine = machine
        self._job = self._scheduler.call_every(self._interval, lambda: self._advance(machine))
        logger.info("Tracking %s order %s", order_type.value, order_id)
        return machine

    def stop(self, order_id: str | None = None) -> None:
        """Stop tracking. With an id, only stops if that order is the tracked one."""
        if self._machine is None:
            return
        if order_id is not None and self._machine.order_id != order_id:
            return
        if self._job is not None:
            self._job.cancel()
        self._job = None
        self._machine = None

    def _advance(self, machine: OrderStatusMachine) -> None:
        if machine is not self._machine:
            return

        status = machine.tick()
        logger.info("Order %s -> %s", machine.order_id, status.value)
        if self._on_change is not None:
            self._on_change(machine)

        if machine.is_terminal:
            if self._job is not None:
                self._job.cancel()
            self._job = None
            if self._on_delivered is not None:
                self._on_delivered(machine)
