"""VelociGo storefront in the terminal.

Run `python -m services.storefront.app.main` for the REPL, or pass one command as arguments.
Status timers advance whenever a command is handled.
"""

from __future__ import annotations

import logging
import shlex
import sys

from packages.shared.logging_config import setup_logging
from packages.shared.schemas.order_v1 import OrderTypeV1
from services.storefront.app.cart import CartStore
from services.storefront.app.catalog import CATEGORIES, SORT_OPTIONS, get_catalog_source
from services.storefront.app.errors import StorefrontError
from services.storefront.app.gateway import OrderGateway
from services.storefront.app.local_state import JsonFileLocalState
from services.storefront.app.simulator import (
    STATUS_LABELS,
    IntervalScheduler,
    progress_percent,
    status_flow,
)
from services.storefront.app.state import ServiceType, View
from services.storefront.app.storefront import (
    CITY,
    CheckoutForm,
    MandadoForm,
    Storefront,
)
from services.storefront.app.transport import UrllibTransport

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Commands:\n"
    "  list [category] [sort]       - restaurantes (sort: recomendado|rapido|rating|barato)\n"
    "  search <text>                - buscar restaurante\n"
    "  open <store_id>              - ver menú\n"
    "  add|inc|dec <item_id>        - modificar carrito\n"
    "  cart | clear                 - ver / vaciar carrito\n"
    "  service comida|mandados      - cambiar servicio (vacía el carrito)\n"
    "  checkout name=.. phone=.. [address=..] [details=..] [pay=..]\n"
    "  quote <km>                   - cotizar mandado\n"
    "  mandado what=.. [from=..] [to=..] [km=..] [pay=..]\n"
    "  track | stop                 - rastrear / dejar de rastrear\n"
    "  home | help | exit\n"
)


def mxn(amount: int) -> str:
    return f"${amount:,} MXN"


def _kv_args(args: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep:
            raise StorefrontError(f"Argumento inválido: {arg!r} (usa clave=valor)")
        out[key.strip().lower()] = value
    return out


class Shell:
    def __init__(self, storefront: Storefront) -> None:
        self.storefront = storefront
        self.exit_requested = False

    def handle_cmd(self, line: str) -> str:
        self.storefront.tick()

        try:
            parts = shlex.split(line or "")
        except ValueError as e:
            return f"ERR: {e}"
        if not parts:
            return "ERR: empty command\n" + HELP_TEXT

        cmd, args = parts[0].lower(), parts[1:]
        try:
            return self._dispatch(cmd, args)
        except StorefrontError as e:
            # The alert: the view stays where it was.
            return f"ERR: {e}"

    def _dispatch(self, cmd: str, args: list[str]) -> str:
        sf = self.storefront

        if cmd in ("help", "h", "?"):
            return HELP_TEXT
        if cmd in ("exit", "quit"):
            self.exit_requested = True
            return "Hasta pronto."
        if cmd == "home":
            sf.go_home()
            return self._render_home()
        if cmd == "list":
            category = args[0] if args else CATEGORIES[0]
            sort = args[1] if len(args) > 1 else SORT_OPTIONS[0]
            return self._render_home(category=category, sort=sort)
        if cmd == "search":
            return self._render_home(search=" ".join(args))
        if cmd == "open":
            if not args:
                return "ERR: usage: open <store_id>"
            sf.open_store(args[0])
            return self._render_menu()
        if cmd in ("add", "inc", "dec"):
            if not args:
                return f"ERR: usage: {cmd} <item_id>"
            action = {"add": sf.add_item, "inc": sf.increment, "dec": sf.decrement}[cmd]
            action(args[0])
            return self._render_cart()
        if cmd == "cart":
            return self._render_cart()
        if cmd == "clear":
            sf.clear_cart()
            return self._render_cart()
        if cmd == "service":
            if not args or args[0] not in {s.value for s in ServiceType}:
                return "ERR: usage: service comida|mandados"
            sf.switch_service(ServiceType(args[0]))
            return f"Servicio: {args[0]}"
        if cmd == "checkout":
            return self._checkout(args)
        if cmd == "quote":
            km = int(args[0]) if args and args[0].isdigit() else 5
            q = sf.quote_mandado(km)
            return (
                f"Mandado {q.distance_km} km: subtotal {mxn(q.subtotal)}, "
                f"servicio {mxn(q.service_fee)}, total {mxn(q.total)}"
            )
        if cmd == "mandado":
            return self._mandado(args)
        if cmd == "track":
            return self._render_track()
        if cmd == "stop":
            sf.stop_tracking()
            return "Rastreo detenido."

        return f"ERR: unknown command: {cmd}\n" + HELP_TEXT

    def _checkout(self, args: list[str]) -> str:
        sf = self.storefront
        if not args:
            sf.go_checkout()
            if sf.view != View.CHECKOUT:
                return "ERR: el checkout solo aplica a restaurantes"
            return self._render_cart() + "\n\nusa: checkout name=.. phone=.. address=.."

        kv = _kv_args(args)
        form_args = {
            "name": kv.get("name", ""),
            "phone": kv.get("phone", ""),
            "details": kv.get("details", ""),
        }
        if "address" in kv:
            form_args["address"] = kv["address"]
        if "pay" in kv:
            form_args["payment_method"] = kv["pay"]

        order = sf.place_food_order(CheckoutForm(**form_args))
        return f"Pedido #{order.id} realizado.\n" + self._render_track()

    def _mandado(self, args: list[str]) -> str:
        kv = _kv_args(args)
        form_args: dict = {"what": kv.get("what", "")}
        renames = (("from", "from_address"), ("to", "to_address"), ("pay", "payment_method"))
        for key, field_name in renames:
            if key in kv:
                form_args[field_name] = kv[key]
        if "km" in kv:
            if not kv["km"].isdigit():
                return "ERR: km debe ser un entero"
            form_args["distance_km"] = int(kv["km"])

        order = self.storefront.request_mandado(MandadoForm(**form_args))
        return f"Mandado #{order.id} solicitado.\n" + self._render_track()

    # -------------------- rendering --------------------

    def _render_home(self, **filters: str) -> str:
        sf = self.storefront
        if sf.state.service_type == ServiceType.COURIER:
            return "Mandados: usa `quote <km>` y `mandado what=..`"

        rows = sf.restaurants(**filters)
        if not rows:
            return "<sin resultados>"
        lines = [f"Entrega en {CITY}"]
        for r in rows:
            lines.append(
                f"  {r.id:<5} {r.name:<20} {r.category:<12} ★ {r.rating}  "
                f"{r.eta_min}-{r.eta_max} min  entrega {mxn(r.fee)}"
            )
        return "\n".join(lines)

    def _render_menu(self) -> str:
        restaurant = self.storefront.selected_store
        if restaurant is None:
            return "<sin restaurante>"
        lines = [f"{restaurant.name} · {restaurant.promo}"]
        for item in restaurant.menu:
            tags = f"  [{', '.join(item.tags)}]" if item.tags else ""
            lines.append(f"  {item.id:<4} {item.name:<24} {mxn(item.price)}{tags}")
        return "\n".join(lines)

    def _render_cart(self) -> str:
        sf = self.storefront
        cart = sf.cart
        if cart.is_empty:
            return "Tu pedido: <vacío>"

        p = sf.price()
        lines = ["Tu pedido:"]
        for line in cart.lines:
            price = mxn(line.unit_price)
            lines.append(f"  {line.item_id:<4} {line.item.name:<24} {price} × {line.quantity}")
        lines += [
            f"  Subtotal       {mxn(p.subtotal)}",
            f"  Servicio (5%)  {mxn(p.service_fee)}",
            f"  Entrega        {mxn(p.delivery_fee)}",
            f"  Total          {mxn(p.total)}",
        ]
        return "\n".join(lines)

    def _render_track(self) -> str:
        order = self.storefront.state.active_order
        if order is None:
            return "<sin pedido activo>"

        flow = status_flow(order.order_type)
        steps = " > ".join(
            (f"[{STATUS_LABELS[s]}]" if s == order.status else STATUS_LABELS[s]) for s in flow
        )
        kind = "Pedido" if order.order_type == OrderTypeV1.FOOD else "Mandado"
        return (
            f"{kind} #{order.id} · ETA {order.eta_minutes} min · "
            f"{progress_percent(order.order_type, order.status)}%\n"
            f"  {steps}\n"
            f"  📍 {order.address}\n"
            f"  🛵 {order.rider.name} ({order.rider.vehicle}, ★ {order.rider.rating})"
        )


def build_storefront() -> Storefront:
    transport = UrllibTransport.from_env()
    return Storefront(
        cart_store=CartStore(JsonFileLocalState.from_env()),
        gateway=OrderGateway(transport),
        scheduler=IntervalScheduler(),
        restaurants=get_catalog_source(transport).load(),
    )


def repl(shell: Shell) -> None:
    print("Type 'help' to see commands. Type 'exit' to quit.")
    while not shell.exit_requested:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        print(shell.handle_cmd(line))


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    if argv is None:
        argv = sys.argv[1:]

    try:
        shell = Shell(build_storefront())
    except (StorefrontError, ValueError) as e:
        print(f"ERR: {e}")
        return 1

    if not argv:
        repl(shell)
        return 0

    out = shell.handle_cmd(shlex.join(argv))
    print(out)
    return 1 if out.startswith("ERR:") else 0


if __name__ == "__main__":
    raise SystemExit(main())
