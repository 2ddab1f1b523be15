"""
Order placement — price a cart one last time and freeze it.

    result = await place_order(stores, orders, request)

    match result:
        case Ok(PlacedOrder(order=order, replayed=False)):
            ...                                 # new order
        case Ok(PlacedOrder(order=order, replayed=True)):
            ...                                 # same key seen before
        case Error(CheckoutError(kind=CheckoutErrorKind.COUPON_REJECTED)):
            ...
        case Error(CheckoutError(kind=CheckoutErrorKind.IDEMPOTENCY_MISMATCH)):
            ...                                 # same key, different cart

Differences from a checkout quote:
    - line prices come from the catalog, not from the client
    - a coupon that does not apply is an error, not a soft rejection
    - amounts are rounded once, here, and stored as-is
"""

import hashlib
import json
import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from kungfu import Result, Ok, Error

import combinators as C

from tally.pricing import CalculatedTotals, CartLine, normalize_code, round_money
from tally.store import Stores
from tally.checkout import (
    CheckoutError,
    CheckoutErrorKind,
    CheckoutQuote,
    calculate_checkout,
)
from tally.orders._store import OrderStore
from tally.orders._types import (
    PAY_ON_DELIVERY,
    OrderCharge,
    OrderChargeType,
    OrderItem,
    OrderLine,
    OrderSnapshot,
    OrderStatus,
    PlacedOrder,
    PlaceOrderRequest,
)

logger = logging.getLogger(__name__)


def _upstream(what: str, e: object) -> CheckoutError:
    return CheckoutError(CheckoutErrorKind.UPSTREAM, f"Failed to {what}: {e}")


async def place_order(
    stores: Stores,
    orders: OrderStore,
    request: PlaceOrderRequest,
    now: datetime | None = None,
    places: int = 2,
) -> Result[PlacedOrder, CheckoutError]:
    now = now if now is not None else datetime.now(UTC)
    fingerprint = request_fingerprint(request)

    match await orders.get_by_key(request.idempotency_key):
        case Error(e):
            return Error(_upstream("look up order", e.message))
        case Ok(None):
            pass
        case Ok(existing):
            return _replay(existing, request.idempotency_key, fingerprint)

    priced = await C.catching_async(
        lambda: stores.catalog.price_lines([ol.line for ol in request.lines]),
        on_error=lambda e: _upstream("price cart", e),
    )
    match priced:
        case Error(e):
            return Error(e)
        case Ok(lines):
            pass

    match await calculate_checkout(stores, lines, request.delivery_id, request.coupon_code, now):
        case Error(e):
            return Error(e)
        case Ok(CheckoutQuote(coupon_rejection=rejected)) if rejected is not None:
            logger.info("order refused, coupon %s: %s", rejected.code, rejected.message)
            return Error(CheckoutError(CheckoutErrorKind.COUPON_REJECTED, rejected.message))
        case Ok(quote):
            pass

    snapshot = build_snapshot(request, lines, quote.totals.rounded(places), now, places, fingerprint)

    match await orders.create(snapshot):
        case Error(e):
            return Error(_upstream("store order", e.message))
        case Ok(stored) if stored.id != snapshot.id:
            # another request stored this key between the lookup and the insert
            return _replay(stored, request.idempotency_key, fingerprint)
        case Ok(stored):
            logger.info("order %s placed, total %s %s", stored.id, stored.total, stored.currency)
            return Ok(PlacedOrder(stored))


def _replay(
    stored: OrderSnapshot,
    key: str,
    fingerprint: str,
) -> Result[PlacedOrder, CheckoutError]:
    if stored.request_hash is not None and stored.request_hash != fingerprint:
        logger.info("key %s reused for a different order than %s", key, stored.id)
        return Error(
            CheckoutError(
                CheckoutErrorKind.IDEMPOTENCY_MISMATCH,
                f"Idempotency key '{key}' was already used for a different order.",
            )
        )
    logger.info("order %s replayed for key %s", stored.id, key)
    return Ok(PlacedOrder(stored, replayed=True))


def request_fingerprint(request: PlaceOrderRequest) -> str:
    """
    Hash of what decides the price of an order.

    Lines (product, variant, quantity, in order), the delivery method and the
    normalized coupon code. Contact details and client-side prices are left
    out: the first are not priced, the second are replaced from the catalog.
    """
    payload = {
        "lines": [[ol.line.product_id, ol.line.variant_id, ol.line.quantity] for ol in request.lines],
        "delivery_id": (request.delivery_id or "").strip(),
        "coupon": normalize_code(request.coupon_code or ""),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode()).hexdigest()


# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


def build_snapshot(
    request: PlaceOrderRequest,
    lines: list[CartLine],
    totals: CalculatedTotals,
    now: datetime,
    places: int = 2,
    request_hash: str | None = None,
) -> OrderSnapshot:
    """Freeze already-rounded totals and the priced lines into an order."""
    return OrderSnapshot(
        id=f"ord_{uuid.uuid4().hex}",
        idempotency_key=request.idempotency_key,
        status=OrderStatus.PENDING,
        payment_method=PAY_ON_DELIVERY,
        currency=request.currency,
        subtotal=totals.subtotal,
        total=totals.total,
        contact=request.contact,
        notes=request.notes.strip() if request.notes and request.notes.strip() else None,
        charges=order_charges(totals),
        items=tuple(
            _order_item(ol, line, places) for ol, line in zip(request.lines, lines, strict=True)
        ),
        totals=totals_to_json(totals),
        created_at=now,
        request_hash=request_hash,
    )


def order_charges(totals: CalculatedTotals) -> tuple[OrderCharge, ...]:
    """Delivery first, then the coupon, then charge lines in sort order."""
    delivery = totals.delivery
    charges = [
        OrderCharge(
            type=OrderChargeType.DELIVERY,
            label=delivery.label,
            calc_type="amount",
            base_amount=delivery.amount,
            applied_amount=delivery.amount,
            source_id=delivery.id,
        )
    ]
    if totals.discount is not None:
        d = totals.discount
        charges.append(
            OrderCharge(
                type=OrderChargeType.COUPON,
                label=f"Coupon {d.code}",
                calc_type=d.calc_type,
                base_amount=d.raw_value,
                applied_amount=d.applied_amount,
                source_id=d.coupon_id,
            )
        )
    for line in totals.charges:
        charges.append(
            OrderCharge(
                type=OrderChargeType(line.kind.value),
                label=line.label,
                calc_type=line.calc_type,
                base_amount=line.raw_value,
                applied_amount=line.applied_amount,
                source_id=line.id,
            )
        )
    return tuple(charges)


def _order_item(requested: OrderLine, priced: CartLine, places: int) -> OrderItem:
    return OrderItem(
        product_id=priced.product_id,
        quantity=priced.quantity,
        unit_price=round_money(priced.unit_price, places),
        line_total=round_money(priced.line_total, places),
        product_name=requested.product_name,
        variant_id=priced.variant_id,
        variant_title=requested.variant_title,
        sku=requested.sku,
    )


def totals_to_json(totals: CalculatedTotals) -> dict[str, Any]:
    """JSON-safe breakdown; Decimals become strings so nothing is lost."""
    discount = totals.discount
    return {
        "subtotal": str(totals.subtotal),
        "delivery": {
            "id": totals.delivery.id,
            "label": totals.delivery.label,
            "amount": str(totals.delivery.amount),
        },
        "charges": [
            {
                "id": c.id,
                "label": c.label,
                "kind": c.kind.value,
                "calc_type": c.calc_type,
                "raw_value": str(c.raw_value),
                "applied_amount": str(c.applied_amount),
            }
            for c in totals.charges
        ],
        "discount": (
            {
                "coupon_id": discount.coupon_id,
                "code": discount.code,
                "calc_type": discount.calc_type,
                "raw_value": str(discount.raw_value),
                "applied_amount": str(discount.applied_amount),
            }
            if discount is not None
            else None
        ),
        "total": str(totals.total),
        "total_weight_grams": str(totals.total_weight_grams),
    }


__all__ = ("place_order", "request_fingerprint", "build_snapshot", "order_charges", "totals_to_json")
