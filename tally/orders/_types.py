"""
Order domain — what a placed order freezes.

An OrderSnapshot is written once and never recomputed: charge rows and item
rows hold the rounded amounts the customer was shown, and `totals` keeps the
full breakdown as JSON for auditing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from tally.pricing import CalcType, CartLine

PAY_ON_DELIVERY = "pay_on_delivery"


class OrderStatus(Enum):
    PENDING = "pending"


class OrderChargeType(Enum):
    DELIVERY = "delivery"
    COUPON = "coupon"
    CHARGE = "charge"
    DISCOUNT = "discount"


# ═══════════════════════════════════════════════════════════════════════════════
# Request
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Contact:
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None

    def to_json(self) -> dict[str, str | None]:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> Contact:
        data = data or {}
        return cls(
            full_name=data.get("fullName"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
        )


@dataclass(frozen=True, slots=True)
class OrderLine:
    """A cart line plus the display fields copied onto the order item."""

    line: CartLine
    product_name: str | None = None
    variant_title: str | None = None
    sku: str | None = None


@dataclass(frozen=True, slots=True)
class PlaceOrderRequest:
    idempotency_key: str
    lines: tuple[OrderLine, ...]
    delivery_id: str | None
    coupon_code: str | None = None
    contact: Contact = Contact()
    notes: str | None = None
    currency: str = "USD"


# ═══════════════════════════════════════════════════════════════════════════════
# Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderCharge:
    """
    One priced component of an order.

    Note: base_amount is the configured value (a percentage for percent
    rates), applied_amount the money it contributed.
    """

    type: OrderChargeType
    label: str
    calc_type: CalcType
    base_amount: Decimal
    applied_amount: Decimal
    source_id: str | None = None


@dataclass(frozen=True, slots=True)
class OrderItem:
    product_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    product_name: str | None = None
    variant_id: str | None = None
    variant_title: str | None = None
    sku: str | None = None


@dataclass(frozen=True, slots=True)
class OrderSnapshot:
    id: str
    idempotency_key: str
    status: OrderStatus
    payment_method: str
    currency: str
    subtotal: Decimal
    total: Decimal
    contact: Contact
    notes: str | None
    charges: tuple[OrderCharge, ...]
    items: tuple[OrderItem, ...]
    totals: dict[str, Any]
    created_at: datetime
    # lines, delivery and coupon the order was placed with; see request_fingerprint
    request_hash: str | None = None


@dataclass(frozen=True, slots=True)
class PlacedOrder:
    """
    Result of placing an order.

    Note: replayed=True means the idempotency key was seen before and `order`
    is the one stored back then.
    """

    order: OrderSnapshot
    replayed: bool = False


__all__ = (
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
)
