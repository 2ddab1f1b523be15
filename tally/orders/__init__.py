"""
Orders — turning a checkout into a stored, pay-on-delivery order.

    from tally.orders import MemoryOrderStore, PlaceOrderRequest, place_order

    result = await place_order(stores, MemoryOrderStore(), request)

Idempotent by `request.idempotency_key`: replaying a key returns the order
stored the first time.
"""

from tally.orders._types import (
    PAY_ON_DELIVERY,
    OrderStatus,
    OrderChargeType,
    Contact,
    OrderLine,
    PlaceOrderRequest,
    OrderCharge,
    OrderItem,
    OrderSnapshot,
    PlacedOrder,
)
from tally.orders._store import OrderStore, MemoryOrderStore
from tally.orders._sqlalchemy import SQLAlchemyOrderStore
from tally.orders._place import (
    place_order,
    request_fingerprint,
    build_snapshot,
    order_charges,
    totals_to_json,
)

__all__ = (
    # Types
    "PAY_ON_DELIVERY",
    "OrderStatus",
    "OrderChargeType",
    "Contact",
    "OrderLine",
    "PlaceOrderRequest",
    "OrderCharge",
    "OrderItem",
    "OrderSnapshot",
    "PlacedOrder",
    # Stores
    "OrderStore",
    "MemoryOrderStore",
    "SQLAlchemyOrderStore",
    # Placement
    "place_order",
    "request_fingerprint",
    "build_snapshot",
    "order_charges",
    "totals_to_json",
)
