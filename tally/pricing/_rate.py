"""
Rate — tagged variant for percent / fixed-amount values.

    from tally.pricing import Percent, Amount

    Percent(Decimal("10")).apply(Decimal("250"))   # Decimal("25")
    Amount(Decimal("5")).apply(Decimal("250"))     # Decimal("5")

Charges and coupons carry a Rate instead of a (calc_type, number) pair.
Values are validated on construction, so the pipeline never re-checks them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

type CalcType = Literal["percent", "amount"]

ZERO = Decimal("0")
HUNDRED = Decimal("100")


# ═══════════════════════════════════════════════════════════════════════════════
# Variants
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Percent:
    """Share of a base amount, 0..100."""

    value: Decimal

    def __post_init__(self) -> None:
        if not ZERO <= self.value <= HUNDRED:
            raise ValueError(f"percent must be within 0..100, got {self.value}")

    @property
    def calc_type(self) -> CalcType:
        return "percent"

    def apply(self, base: Decimal) -> Decimal:
        return base * self.value / HUNDRED


@dataclass(frozen=True, slots=True)
class Amount:
    """Fixed amount, independent of the base."""

    value: Decimal

    def __post_init__(self) -> None:
        if self.value < ZERO:
            raise ValueError(f"amount must be >= 0, got {self.value}")

    @property
    def calc_type(self) -> CalcType:
        return "amount"

    def apply(self, base: Decimal) -> Decimal:
        return self.value


type Rate = Percent | Amount


def rate_from(calc_type: str, value: Decimal) -> Rate:
    """Build a Rate from the (calc_type, value) pair stored by the admin console."""
    match calc_type:
        case "percent":
            return Percent(value)
        case "amount":
            return Amount(value)
        case _:
            raise ValueError(f"unknown calc_type: {calc_type!r}")


__all__ = (
    "CalcType",
    "ZERO",
    "HUNDRED",
    "Percent",
    "Amount",
    "Rate",
    "rate_from",
)
