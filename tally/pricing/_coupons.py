"""
Coupon validator.

    outcome = validate_coupon(coupon, "summer25", subtotal, now)

    match outcome:
        case CouponAccepted(applied_amount=amount):
            ...
        case CouponRejected(reason=RejectReason.BELOW_MINIMUM):
            ...

Checks run in a fixed order: lookup/active → window → minimum order.
A rejection is a value, not an error: checkout carries on without the coupon.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from tally.pricing._rate import Rate


def normalize_code(code: str) -> str:
    """Coupon codes are compared trimmed and upper-cased."""
    return code.strip().upper()


# ═══════════════════════════════════════════════════════════════════════════════
# Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Coupon:
    id: str
    code: str
    rate: Rate
    min_order_amount: Decimal | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    is_active: bool = True
    description: str | None = None


class RejectReason(Enum):
    NOT_FOUND = "not_found"
    OUT_OF_WINDOW = "out_of_window"
    BELOW_MINIMUM = "below_minimum"


@dataclass(frozen=True, slots=True)
class CouponAccepted:
    coupon: Coupon
    applied_amount: Decimal


@dataclass(frozen=True, slots=True)
class CouponRejected:
    code: str
    reason: RejectReason
    message: str


type CouponOutcome = CouponAccepted | CouponRejected


# ═══════════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════════


def validate_coupon(
    coupon: Coupon | None,
    code: str,
    subtotal: Decimal,
    now: datetime,
) -> CouponOutcome:
    """
    Accept or reject `coupon` for an order of `subtotal` at time `now`.

    The applied amount never exceeds the subtotal.
    """
    wanted = normalize_code(code)

    if coupon is None or normalize_code(coupon.code) != wanted:
        return CouponRejected(wanted, RejectReason.NOT_FOUND, "Coupon code is invalid.")
    if not coupon.is_active:
        return CouponRejected(wanted, RejectReason.NOT_FOUND, "Coupon is inactive.")

    if coupon.valid_from is not None and now < coupon.valid_from:
        return CouponRejected(wanted, RejectReason.OUT_OF_WINDOW, "Coupon is not yet active.")
    if coupon.valid_to is not None and now > coupon.valid_to:
        return CouponRejected(wanted, RejectReason.OUT_OF_WINDOW, "Coupon has expired.")

    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        return CouponRejected(
            wanted,
            RejectReason.BELOW_MINIMUM,
            f"Minimum order amount of {coupon.min_order_amount} is required for this coupon.",
        )

    return CouponAccepted(coupon, min(coupon.rate.apply(subtotal), subtotal))


__all__ = (
    "normalize_code",
    "Coupon",
    "RejectReason",
    "CouponAccepted",
    "CouponRejected",
    "CouponOutcome",
    "validate_coupon",
)
