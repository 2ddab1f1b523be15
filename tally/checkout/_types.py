"""
Checkout inputs and outputs.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from tally.pricing import CalculatedTotals, CartLine, CouponRejected


@dataclass(frozen=True, slots=True)
class CheckoutInput:
    """Everything one checkout computation needs besides the stores."""

    lines: tuple[CartLine, ...]
    delivery_id: str | None
    coupon_code: str | None
    now: datetime


@dataclass(frozen=True, slots=True)
class OptionsInput:
    lines: tuple[CartLine, ...]


@dataclass(frozen=True, slots=True)
class CheckoutQuote:
    """
    Successful checkout.

    Note: coupon_rejection is set when a coupon code was given but did not
    apply; the totals are then computed without it.
    """

    totals: CalculatedTotals
    coupon_rejection: CouponRejected | None = None


@dataclass(frozen=True, slots=True)
class DeliveryOption:
    """One selectable delivery method, priced for the current cart."""

    id: str
    label: str
    amount: Decimal
    base_amount: Decimal
    is_default: bool
    total_weight_grams: Decimal
    has_weight_rules: bool


__all__ = ("CheckoutInput", "OptionsInput", "CheckoutQuote", "DeliveryOption")
