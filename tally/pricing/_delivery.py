"""
Rate resolver — weight-tiered delivery pricing.

    line = resolve_delivery(method, total_weight_grams=Decimal("1800"))

    match line:
        case Ok(delivery):     # DeliveryLine(id, label, amount)
            ...
        case Error(e):         # DeliveryUnavailable
            ...

Resolution:
    1. inactive method                 → DeliveryUnavailable
    2. no active rule matches weight   → method.fallback_amount
    3. first matching rule (sort_order)→ base_charge + increments * increment_charge

    increments = rounding((weight - base_weight) / increment_unit)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from enum import Enum

from kungfu import Result, Ok, Error

from tally.pricing._rate import ZERO


# ═══════════════════════════════════════════════════════════════════════════════
# Types
# ═══════════════════════════════════════════════════════════════════════════════


class RoundingMode(Enum):
    """How a fractional number of weight increments becomes whole."""

    CEIL = "ceil"
    FLOOR = "floor"
    ROUND = "round"

    def apply(self, value: Decimal) -> Decimal:
        match self:
            case RoundingMode.CEIL:
                return value.to_integral_value(rounding=ROUND_CEILING)
            case RoundingMode.FLOOR:
                return value.to_integral_value(rounding=ROUND_FLOOR)
            case RoundingMode.ROUND:
                return value.to_integral_value(rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class WeightRule:
    """
    One pricing band of a delivery method.

    Note: max_weight_grams=None means the band is unbounded above.
    """

    id: str
    min_weight_grams: Decimal
    max_weight_grams: Decimal | None
    base_weight_grams: Decimal
    base_charge: Decimal
    increment_unit_grams: Decimal
    increment_charge: Decimal
    rounding: RoundingMode = RoundingMode.CEIL
    is_active: bool = True
    sort_order: int = 0
    label: str | None = None

    def __post_init__(self) -> None:
        problems = _rule_problems(self)
        if problems:
            raise ValueError("; ".join(problems))

    def matches(self, weight_grams: Decimal) -> bool:
        if weight_grams < self.min_weight_grams:
            return False
        if self.max_weight_grams is not None and weight_grams > self.max_weight_grams:
            return False
        return True

    def charge_for(self, weight_grams: Decimal) -> Decimal:
        if self.increment_unit_grams == ZERO:
            increments = ZERO
        else:
            excess = max(ZERO, weight_grams - self.base_weight_grams)
            increments = max(ZERO, self.rounding.apply(excess / self.increment_unit_grams))
        return max(ZERO, self.base_charge + increments * self.increment_charge)


@dataclass(frozen=True, slots=True)
class DeliveryMethod:
    id: str
    label: str
    fallback_amount: Decimal
    is_default: bool = False
    is_active: bool = True
    sort_order: int = 0
    rules: tuple[WeightRule, ...] = ()

    def __post_init__(self) -> None:
        if self.fallback_amount < ZERO:
            raise ValueError(f"fallback amount must be >= 0, got {self.fallback_amount}")

    @property
    def active_rules(self) -> tuple[WeightRule, ...]:
        """Active rules in evaluation order."""
        active = (r for r in self.rules if r.is_active)
        return tuple(sorted(active, key=lambda r: (r.sort_order, r.min_weight_grams)))


@dataclass(frozen=True, slots=True)
class DeliveryLine:
    """Resolved delivery charge for one method and one cart weight."""

    id: str
    label: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class DeliveryUnavailable:
    method_id: str
    message: str


# ═══════════════════════════════════════════════════════════════════════════════
# Resolution
# ═══════════════════════════════════════════════════════════════════════════════


def matching_rule(method: DeliveryMethod, total_weight_grams: Decimal) -> WeightRule | None:
    """First active rule (by sort_order) whose range holds the weight."""
    for rule in method.active_rules:
        if rule.matches(total_weight_grams):
            return rule
    return None


def resolve_delivery(
    method: DeliveryMethod,
    total_weight_grams: Decimal,
) -> Result[DeliveryLine, DeliveryUnavailable]:
    """Delivery charge of `method` for a cart weighing `total_weight_grams`."""
    if not method.is_active:
        return Error(
            DeliveryUnavailable(method.id, f"Delivery method '{method.label}' is not available.")
        )

    rule = matching_rule(method, total_weight_grams)
    if rule is None:
        return Ok(DeliveryLine(method.id, method.label, method.fallback_amount))

    return Ok(DeliveryLine(method.id, method.label, rule.charge_for(total_weight_grams)))


# ═══════════════════════════════════════════════════════════════════════════════
# Write-time validation
# ═══════════════════════════════════════════════════════════════════════════════


def _rule_problems(rule: WeightRule) -> list[str]:
    problems: list[str] = []
    if rule.min_weight_grams < ZERO:
        problems.append("minimum weight must be >= 0.")
    if rule.max_weight_grams is not None and rule.max_weight_grams <= rule.min_weight_grams:
        problems.append("max weight must be greater than min weight.")
    if rule.base_weight_grams < ZERO:
        problems.append("base weight must be >= 0.")
    if rule.base_charge < ZERO:
        problems.append("base charge must be >= 0.")
    if rule.increment_unit_grams < ZERO:
        problems.append("incremental unit must be >= 0.")
    if rule.increment_charge < ZERO:
        problems.append("incremental charge must be >= 0.")
    return problems


def _overlaps(a: WeightRule, b: WeightRule) -> bool:
    a_below_b = a.max_weight_grams is not None and a.max_weight_grams < b.min_weight_grams
    b_below_a = b.max_weight_grams is not None and b.max_weight_grams < a.min_weight_grams
    return not (a_below_b or b_below_a)


def validate_weight_rules(rules: tuple[WeightRule, ...] | list[WeightRule]) -> list[str]:
    """
    Problems that should block saving a rule set.

    Field constraints are enforced when a WeightRule is built; this checks
    the set as a whole. Ranges are inclusive on both ends, so [0, 1000] and
    [1000, 2000] overlap at exactly 1000 g.
    """
    ordered = sorted(rules, key=lambda r: r.sort_order)
    problems: list[str] = []
    active = [(pos, r) for pos, r in enumerate(ordered, start=1) if r.is_active]
    for i, (pos_a, a) in enumerate(active):
        for pos_b, b in active[i + 1:]:
            if _overlaps(a, b):
                problems.append(f"Rule {pos_a} and rule {pos_b}: weight ranges overlap.")
    return problems


__all__ = (
    "RoundingMode",
    "WeightRule",
    "DeliveryMethod",
    "DeliveryLine",
    "DeliveryUnavailable",
    "matching_rule",
    "resolve_delivery",
    "validate_weight_rules",
)
