"""
Interactive CLI — price carts against a seeded in-memory shop.

Placed orders are written to the database at `TALLY_DATABASE_URL`.

┌─────────────────────────────────────────────────────────────────────────┐
│  COMMAND      NODES USED                              STORES READ       │
├─────────────────────────────────────────────────────────────────────────┤
│  options      DeliveryOptionsNode                     delivery          │
│  quote        Cart → ... → TotalsNode                 all               │
│  order        quote + snapshot                        all + orders      │
└─────────────────────────────────────────────────────────────────────────┘
"""

import logging
import uuid
from decimal import Decimal

from kungfu import Ok, Error

from tally.config import Settings
from tally.display import format_money, format_weight
from tally.pricing import CartLine, CalculatedTotals, ChargeKind, Percent
from tally.store import MemoryStore, Stores, create_database
from tally.checkout import calculate_checkout, get_delivery_options_for_items
from tally.orders import (
    OrderLine,
    OrderStore,
    PlaceOrderRequest,
    SQLAlchemyOrderStore,
    place_order,
)
from tally.seed import seed_all

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Help
# ═══════════════════════════════════════════════════════════════════════════════

HELP_TEXT = """
┌─────────────────────────────────────────────────────────────────────────────┐
│                              COMMANDS                                        │
├─────────────────────────────────────────────────────────────────────────────┤
│  options <items>                    Delivery methods priced for the cart    │
│  quote <delivery> <items> [coupon]  Price a cart                            │
│  order <delivery> <items> [coupon]  Place a pay-on-delivery order           │
├─────────────────────────────────────────────────────────────────────────────┤
│  products                           List products                           │
│  methods                            List delivery methods and weight rules  │
│  charges                            List charges and discounts              │
│  help                               Show this help                          │
│  quit                               Exit                                    │
└─────────────────────────────────────────────────────────────────────────────┘

Items format: PRODUCT:QTY,PRODUCT:QTY  (e.g., TEA:2,MUG:1)

Examples:
  options KETTLE:2                     → standard post priced by weight
  quote standard TEA:2,MUG:1           → totals with VAT and packaging
  quote standard KETTLE:2 summer25     → 25% coupon, minimum 50
  order express TEA:1 WELCOME5         → stored order
"""


def print_help() -> None:
    print(HELP_TEXT)


class Shell:
    def __init__(self, settings: Settings, store: MemoryStore, orders: OrderStore) -> None:
        self.settings = settings
        self.store = store
        self.stores = Stores.of(store)
        self.orders = orders
        self.placed = 0

    def money(self, amount: Decimal) -> str:
        return format_money(amount, self.settings.currency, self.settings.decimals)

    # ═══════════════════════════════════════════════════════════════════════════
    # Data display
    # ═══════════════════════════════════════════════════════════════════════════

    def print_products(self) -> None:
        print("\n┌──────────────────────────────────────────────────────────────┐")
        print("│                         PRODUCTS                             │")
        print("├──────────────────────────────────────────────────────────────┤")
        for p in self.store.products():
            flag = "" if p.purchasable else " (off)"
            print(f"│  [{p.id:8}] {p.name + flag:26} {self.money(p.price):>12} {format_weight(p.weight_grams):>8} │")
        print("└──────────────────────────────────────────────────────────────┘")

    async def print_methods(self) -> None:
        print("\n┌──────────────────────────────────────────────────────────────┐")
        print("│                     DELIVERY METHODS                         │")
        print("├──────────────────────────────────────────────────────────────┤")
        for m in await self.store.list_delivery_methods():
            default = " *" if m.is_default else ""
            print(f"│  [{m.id:9}] {m.label + default:28} {self.money(m.fallback_amount):>14}  │")
            for r in m.active_rules:
                upper = format_weight(r.max_weight_grams) if r.max_weight_grams is not None else "∞"
                print(
                    f"│      {format_weight(r.min_weight_grams)}–{upper}: {self.money(r.base_charge)}"
                    f" + {self.money(r.increment_charge)} / {format_weight(r.increment_unit_grams)}"
                    f" over {format_weight(r.base_weight_grams)} ({r.rounding.value})"
                )
        print("└──────────────────────────────────────────────────────────────┘")

    def print_charges(self) -> None:
        print("\n┌──────────────────────────────────────────────────────────────┐")
        print("│                  CHARGES & DISCOUNTS                         │")
        print("├──────────────────────────────────────────────────────────────┤")
        for c in self.store.all_charges():
            value = f"{c.rate.value}%" if isinstance(c.rate, Percent) else self.money(c.rate.value)
            state = "" if c.is_active else " (off)"
            print(f"│  {c.sort_order:>2}. {c.label + state:24} {c.kind.value:9} {value:>14}      │")
        print("└──────────────────────────────────────────────────────────────┘")

    def print_totals(self, title: str, totals: CalculatedTotals) -> None:
        t = totals.rounded(self.settings.decimals)
        print(f"""
┌──────────────────────────────────────────────────────────────┐
│  {title:58}  │
├──────────────────────────────────────────────────────────────┤
│  Subtotal:           {self.money(t.subtotal):>20}                    │
│  {t.delivery.label[:18] + ':':19} {self.money(t.delivery.amount):>20}                    │""")
        for c in t.charges:
            sign = "-" if c.kind is ChargeKind.DISCOUNT else " "
            print(f"│  {c.label[:18] + ':':19}{sign}{self.money(c.applied_amount):>20}                    │")
        if t.discount is not None:
            print(f"│  {'Coupon ' + t.discount.code[:11] + ':':19}-{self.money(t.discount.applied_amount):>20}                    │")
        print(f"""├──────────────────────────────────────────────────────────────┤
│  TOTAL:              {self.money(t.total):>20}                    │
│  Weight:             {format_weight(t.total_weight_grams):>20}                    │
└──────────────────────────────────────────────────────────────┘""")

    # ═══════════════════════════════════════════════════════════════════════════
    # Parsing
    # ═══════════════════════════════════════════════════════════════════════════

    async def parse_items(self, items_str: str) -> list[CartLine]:
        """Parse 'TEA:2,MUG:1' and price the lines from the catalog."""
        lines: list[CartLine] = []
        for part in items_str.split(","):
            if ":" not in part:
                raise ValueError(f"Invalid format: {part} (expected PRODUCT:QTY)")
            product_id, qty = part.split(":", 1)
            lines.append(CartLine(product_id.strip().upper(), int(qty), Decimal("0")))
        return await self.store.price_lines(lines)

    # ═══════════════════════════════════════════════════════════════════════════
    # Commands
    # ═══════════════════════════════════════════════════════════════════════════

    async def cmd_options(self, items_str: str) -> None:
        lines = await self.parse_items(items_str)
        match await get_delivery_options_for_items(self.stores, lines):
            case Ok(options):
                print()
                for o in options:
                    default = " (default)" if o.is_default else ""
                    rules = " by weight" if o.has_weight_rules else ""
                    print(f"  • {o.label:20} {self.money(o.amount):>14}{rules}{default}")
                if options:
                    print(f"  cart weight: {format_weight(options[0].total_weight_grams)}")
            case Error(e):
                print(f"\n  ✗ Failed: [{e.kind.name}] {e.message}")

    async def cmd_quote(self, delivery_id: str, items_str: str, coupon: str | None) -> None:
        lines = await self.parse_items(items_str)
        match await calculate_checkout(self.stores, lines, delivery_id, coupon):
            case Ok(quote):
                self.print_totals("QUOTE", quote.totals)
                if quote.coupon_rejection is not None:
                    print(f"\n  ⚠️  Coupon not applied: {quote.coupon_rejection.message}")
            case Error(e):
                print(f"\n  ✗ Failed: [{e.kind.name}] {e.message}")

    async def cmd_order(self, delivery_id: str, items_str: str, coupon: str | None) -> None:
        lines = await self.parse_items(items_str)
        request = PlaceOrderRequest(
            idempotency_key=uuid.uuid4().hex,
            lines=tuple(OrderLine(line) for line in lines),
            delivery_id=delivery_id,
            coupon_code=coupon,
            currency=self.settings.currency,
        )
        match await place_order(self.stores, self.orders, request, places=self.settings.decimals):
            case Ok(placed):
                order = placed.order
                self.placed += 1
                print(f"""
╔══════════════════════════════════════════════════════════════╗
║  ORDER {order.id:54}║
╠══════════════════════════════════════════════════════════════╣""")
                for item in order.items:
                    print(f"║    {item.quantity}x {item.product_id:12} {self.money(item.line_total):>20}                   ║")
                print("╠══════════════════════════════════════════════════════════════╣")
                for c in order.charges:
                    print(f"║    {c.type.value:9} {c.label[:22]:22} {self.money(c.applied_amount):>14}          ║")
                print(f"""╠══════════════════════════════════════════════════════════════╣
║  TOTAL: {self.money(order.total):>20}   pay on delivery                ║
╚══════════════════════════════════════════════════════════════╝

  ✓ Order stored ({self.placed} this session).
""")
            case Error(e):
                print(f"\n  ✗ Order failed: [{e.kind.name}] {e.message}")


# ═══════════════════════════════════════════════════════════════════════════════
# Main Loop
# ═══════════════════════════════════════════════════════════════════════════════

BANNER = """
╔════════════════════════════════════════════════════════════════════════════╗
║                              TALLY CHECKOUT                                 ║
╠════════════════════════════════════════════════════════════════════════════╣
║                                                                             ║
║  Prices carts against a demo tea shop:                                      ║
║                                                                             ║
║    • weight-tiered delivery       (standard post)                           ║
║    • charges on the subtotal      (VAT 7.5%, packaging)                     ║
║    • coupons with windows/minimum (SUMMER25, WELCOME5, SPRING10)            ║
║                                                                             ║
╚════════════════════════════════════════════════════════════════════════════╝
"""


async def run_cli(settings: Settings) -> None:
    """Demo catalog in memory; placed orders go to `settings.database_url`."""
    session_factory, engine = await create_database(settings.database_url)
    logger.info("orders stored in %s", engine.url.render_as_string(hide_password=True))
    shell = Shell(settings, seed_all(MemoryStore()), SQLAlchemyOrderStore(session_factory))
    try:
        await repl(shell)
    finally:
        await engine.dispose()


async def repl(shell: Shell) -> None:
    print(BANNER)
    print_help()
    shell.print_products()

    while True:
        try:
            line = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not line:
            continue

        parts = line.split()
        cmd = parts[0].lower()

        try:
            match cmd:
                case "quit" | "exit" | "q":
                    print("Bye!")
                    break

                case "help" | "h" | "?":
                    print_help()

                case "products":
                    shell.print_products()

                case "methods":
                    await shell.print_methods()

                case "charges":
                    shell.print_charges()

                case "options":
                    if len(parts) != 2:
                        print("  Usage: options <items>")
                        print("  Example: options KETTLE:2")
                        continue
                    await shell.cmd_options(parts[1])

                case "quote" | "order":
                    if len(parts) not in (3, 4):
                        print(f"  Usage: {cmd} <delivery> <items> [coupon]")
                        print(f"  Example: {cmd} standard TEA:2,MUG:1 WELCOME5")
                        continue
                    coupon = parts[3] if len(parts) == 4 else None
                    if cmd == "quote":
                        await shell.cmd_quote(parts[1], parts[2], coupon)
                    else:
                        await shell.cmd_order(parts[1], parts[2], coupon)

                case _:
                    print(f"  ✗ Unknown command: {cmd}")
                    print("  Type 'help' for available commands.")

        except ValueError as e:
            print(f"  ✗ Error: {e}")


__all__ = ("Shell", "run_cli", "repl")
