"""
Pricing — the pure half of checkout.

    from tally import pricing as P

    delivery = P.resolve_delivery(method, weight)          # Rate resolver
    lines = P.apply_charges(subtotal, definitions)         # Charge aggregator
    outcome = P.validate_coupon(coupon, code, subtotal, now)
    totals = P.assemble_totals(subtotal, line, lines, discount)

No I/O and no clocks here: everything a function needs is passed in.
"""

from tally.pricing._rate import (
    CalcType,
    Percent,
    Amount,
    Rate,
    rate_from,
)
from tally.pricing._delivery import (
    RoundingMode,
    WeightRule,
    DeliveryMethod,
    DeliveryLine,
    DeliveryUnavailable,
    matching_rule,
    resolve_delivery,
    validate_weight_rules,
)
from tally.pricing._charges import (
    ChargeKind,
    ChargeDefinition,
    ChargeLine,
    apply_charges,
)
from tally.pricing._coupons import (
    normalize_code,
    Coupon,
    RejectReason,
    CouponAccepted,
    CouponRejected,
    CouponOutcome,
    validate_coupon,
)
from tally.pricing._totals import (
    round_money,
    CartLine,
    subtotal_of,
    total_weight_of,
    AppliedDiscount,
    CalculatedTotals,
    assemble_totals,
)

__all__ = (
    # Rate
    "CalcType",
    "Percent",
    "Amount",
    "Rate",
    "rate_from",
    # Delivery
    "RoundingMode",
    "WeightRule",
    "DeliveryMethod",
    "DeliveryLine",
    "DeliveryUnavailable",
    "matching_rule",
    "resolve_delivery",
    "validate_weight_rules",
    # Charges
    "ChargeKind",
    "ChargeDefinition",
    "ChargeLine",
    "apply_charges",
    # Coupons
    "normalize_code",
    "Coupon",
    "RejectReason",
    "CouponAccepted",
    "CouponRejected",
    "CouponOutcome",
    "validate_coupon",
    # Totals
    "round_money",
    "CartLine",
    "subtotal_of",
    "total_weight_of",
    "AppliedDiscount",
    "CalculatedTotals",
    "assemble_totals",
)
