"""
Totals assembler.

    total = subtotal
          + delivery.amount
          + Σ charge lines (kind=charge)
          - Σ charge lines (kind=discount)
          - coupon discount
    clamped to >= 0

All arithmetic runs at full Decimal precision. Rounding to cents happens
only in `CalculatedTotals.rounded()`, i.e. when the figures are shown or frozen
onto an order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP

from tally.pricing._rate import ZERO, CalcType
from tally.pricing._delivery import DeliveryLine
from tally.pricing._charges import ChargeLine
from tally.pricing._coupons import CouponAccepted


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round half away from zero to `places` decimals."""
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: str
    quantity: int
    unit_price: Decimal
    weight_grams: Decimal = ZERO
    variant_id: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")
        if self.unit_price < ZERO:
            raise ValueError(f"unit price must be >= 0, got {self.unit_price}")
        if self.weight_grams < ZERO:
            raise ValueError(f"weight must be >= 0, got {self.weight_grams}")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def line_weight(self) -> Decimal:
        return self.weight_grams * self.quantity


def subtotal_of(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def total_weight_of(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_weight for line in lines), ZERO)


# ═══════════════════════════════════════════════════════════════════════════════
# Breakdown
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class AppliedDiscount:
    coupon_id: str
    code: str
    calc_type: CalcType
    raw_value: Decimal
    applied_amount: Decimal

    @classmethod
    def from_accepted(cls, accepted: CouponAccepted) -> AppliedDiscount:
        coupon = accepted.coupon
        return cls(
            coupon_id=coupon.id,
            code=coupon.code,
            calc_type=coupon.rate.calc_type,
            raw_value=coupon.rate.value,
            applied_amount=accepted.applied_amount,
        )


@dataclass(frozen=True, slots=True)
class CalculatedTotals:
    subtotal: Decimal
    delivery: DeliveryLine
    charges: tuple[ChargeLine, ...]
    discount: AppliedDiscount | None
    total: Decimal
    total_weight_grams: Decimal = ZERO

    @property
    def charges_total(self) -> Decimal:
        """Net effect of the charge lines (discount lines count negative)."""
        return sum((c.signed_amount for c in self.charges), ZERO)

    def rounded(self, places: int = 2) -> CalculatedTotals:
        """Copy with every monetary figure rounded for display."""
        return replace(
            self,
            subtotal=round_money(self.subtotal, places),
            delivery=replace(self.delivery, amount=round_money(self.delivery.amount, places)),
            charges=tuple(
                replace(c, applied_amount=round_money(c.applied_amount, places))
                for c in self.charges
            ),
            discount=(
                replace(self.discount, applied_amount=round_money(self.discount.applied_amount, places))
                if self.discount is not None
                else None
            ),
            total=round_money(self.total, places),
        )


def assemble_totals(
    subtotal: Decimal,
    delivery: DeliveryLine,
    charges: tuple[ChargeLine, ...],
    discount: AppliedDiscount | None,
    total_weight_grams: Decimal = ZERO,
) -> CalculatedTotals:
    total = subtotal + delivery.amount + sum((c.signed_amount for c in charges), ZERO)
    if discount is not None:
        total -= discount.applied_amount

    return CalculatedTotals(
        subtotal=subtotal,
        delivery=delivery,
        charges=charges,
        discount=discount,
        total=max(ZERO, total),
        total_weight_grams=total_weight_grams,
    )


__all__ = (
    "round_money",
    "CartLine",
    "subtotal_of",
    "total_weight_of",
    "AppliedDiscount",
    "CalculatedTotals",
    "assemble_totals",
)
