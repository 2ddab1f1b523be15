"""
Charge aggregator — operator-configured surcharges and reductions.

Every active definition is applied to the ORIGINAL subtotal, in sort_order:

    subtotal = 100
    [Percent(10) "Service", Amount(5) "Packaging"]  →  [10, 5]

Lines never compound, so the breakdown reads the same whatever the order.
Nothing here can fail: inactive definitions are simply skipped.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from tally.pricing._rate import CalcType, Rate


class ChargeKind(Enum):
    CHARGE = "charge"
    DISCOUNT = "discount"


@dataclass(frozen=True, slots=True)
class ChargeDefinition:
    id: str
    label: str
    kind: ChargeKind
    rate: Rate
    is_active: bool = True
    sort_order: int = 0


@dataclass(frozen=True, slots=True)
class ChargeLine:
    """One applied charge or discount, as shown to the customer."""

    id: str
    label: str
    calc_type: CalcType
    raw_value: Decimal
    applied_amount: Decimal
    kind: ChargeKind

    @property
    def signed_amount(self) -> Decimal:
        """Contribution to the total: positive for charges, negative for discounts."""
        if self.kind is ChargeKind.DISCOUNT:
            return -self.applied_amount
        return self.applied_amount


def apply_charges(
    subtotal: Decimal,
    charges: Iterable[ChargeDefinition],
) -> tuple[ChargeLine, ...]:
    active = sorted((c for c in charges if c.is_active), key=lambda c: c.sort_order)
    return tuple(
        ChargeLine(
            id=c.id,
            label=c.label,
            calc_type=c.rate.calc_type,
            raw_value=c.rate.value,
            applied_amount=c.rate.apply(subtotal),
            kind=c.kind,
        )
        for c in active
    )


__all__ = (
    "ChargeKind",
    "ChargeDefinition",
    "ChargeLine",
    "apply_charges",
)
