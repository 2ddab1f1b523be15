"""Pure pricing: rates, delivery rules, charges, coupons, totals."""

from datetime import timedelta
from decimal import Decimal

import pytest
from kungfu import Ok, Error

from tally.pricing import (
    Amount,
    AppliedDiscount,
    ChargeDefinition,
    ChargeKind,
    Coupon,
    CouponAccepted,
    CouponRejected,
    DeliveryLine,
    DeliveryMethod,
    DeliveryUnavailable,
    Percent,
    RejectReason,
    RoundingMode,
    WeightRule,
    apply_charges,
    assemble_totals,
    matching_rule,
    rate_from,
    resolve_delivery,
    round_money,
    subtotal_of,
    total_weight_of,
    validate_coupon,
    validate_weight_rules,
)

from tests._helpers import D, NOW, line


def rule(**overrides: object) -> WeightRule:
    fields: dict[str, object] = dict(
        id="r1",
        min_weight_grams=D(0),
        max_weight_grams=None,
        base_weight_grams=D(500),
        base_charge=D(5),
        increment_unit_grams=D(1000),
        increment_charge=D(2),
    )
    fields.update(overrides)
    return WeightRule(**fields)  # type: ignore[arg-type]


def method(*rules: WeightRule, **overrides: object) -> DeliveryMethod:
    fields: dict[str, object] = dict(id="std", label="Standard", fallback_amount=D(7), rules=rules)
    fields.update(overrides)
    return DeliveryMethod(**fields)  # type: ignore[arg-type]


# ═══════════════════════════════════════════════════════════════════════════════
# Rate
# ═══════════════════════════════════════════════════════════════════════════════


class TestRate:
    def test_percent_applies_to_base(self) -> None:
        assert Percent(D(10)).apply(D(250)) == D(25)

    def test_amount_ignores_base(self) -> None:
        assert Amount(D(5)).apply(D(250)) == D(5)

    def test_percent_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            Percent(D(101))

    def test_negative_amount(self) -> None:
        with pytest.raises(ValueError):
            Amount(D(-1))

    def test_rate_from(self) -> None:
        assert rate_from("percent", D(3)) == Percent(D(3))
        assert rate_from("amount", D(3)) == Amount(D(3))
        with pytest.raises(ValueError, match="unknown calc_type"):
            rate_from("ratio", D(3))


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery
# ═══════════════════════════════════════════════════════════════════════════════


class TestResolveDelivery:
    def test_weight_tier(self) -> None:
        # 1300 g over the base → 2 increments (ceil) → 5 + 2*2
        match resolve_delivery(method(rule()), D(1800)):
            case Ok(delivery):
                assert delivery == DeliveryLine("std", "Standard", D(9))
            case Error(e):
                pytest.fail(e.message)

    def test_under_base_weight(self) -> None:
        match resolve_delivery(method(rule()), D(300)):
            case Ok(delivery):
                assert delivery.amount == D(5)
            case Error(e):
                pytest.fail(e.message)

    @pytest.mark.parametrize(
        ("rounding", "expected"),
        [(RoundingMode.CEIL, D(9)), (RoundingMode.FLOOR, D(7)), (RoundingMode.ROUND, D(9))],
    )
    def test_rounding_modes(self, rounding: RoundingMode, expected: Decimal) -> None:
        match resolve_delivery(method(rule(rounding=rounding)), D(2000)):
            case Ok(delivery):
                assert delivery.amount == expected
            case Error(e):
                pytest.fail(e.message)

    def test_fallback_without_rules(self) -> None:
        for weight in ("0", "1", "25000"):
            match resolve_delivery(method(), D(weight)):
                case Ok(delivery):
                    assert delivery.amount == D(7)
                case Error(e):
                    pytest.fail(e.message)

    def test_fallback_when_no_rule_matches(self) -> None:
        light = rule(max_weight_grams=D(1000))
        match resolve_delivery(method(light), D(1500)):
            case Ok(delivery):
                assert delivery.amount == D(7)
            case Error(e):
                pytest.fail(e.message)

    def test_inactive_rules_ignored(self) -> None:
        match resolve_delivery(method(rule(is_active=False)), D(1800)):
            case Ok(delivery):
                assert delivery.amount == D(7)
            case Error(e):
                pytest.fail(e.message)

    def test_first_rule_by_sort_order_wins(self) -> None:
        cheap = rule(id="cheap", base_charge=D(1), sort_order=2)
        dear = rule(id="dear", base_charge=D(10), sort_order=1)
        m = method(cheap, dear)
        assert matching_rule(m, D(100)) == dear

    def test_inactive_method(self) -> None:
        match resolve_delivery(method(is_active=False), D(100)):
            case Error(e):
                assert e == DeliveryUnavailable("std", "Delivery method 'Standard' is not available.")
            case Ok(_):
                pytest.fail("inactive method priced")

    def test_zero_increment_unit(self) -> None:
        flat = rule(increment_unit_grams=D(0), increment_charge=D(3))
        assert flat.charge_for(D(9000)) == D(5)

    def test_monotonic_in_weight(self) -> None:
        r = rule()
        charges = [r.charge_for(D(w)) for w in range(0, 6000, 50)]
        assert charges == sorted(charges)


class TestWeightRuleConstraints:
    def test_max_must_exceed_min(self) -> None:
        with pytest.raises(ValueError, match="max weight must be greater"):
            rule(min_weight_grams=D(100), max_weight_grams=D(100))

    def test_negative_charge(self) -> None:
        with pytest.raises(ValueError, match="base charge"):
            rule(base_charge=D(-1))

    def test_negative_fallback(self) -> None:
        with pytest.raises(ValueError):
            method(fallback_amount=D(-1))


class TestValidateWeightRules:
    def test_disjoint_ranges(self) -> None:
        a = rule(id="a", max_weight_grams=D(999), sort_order=0)
        b = rule(id="b", min_weight_grams=D(1000), sort_order=1)
        assert validate_weight_rules([a, b]) == []

    def test_shared_boundary_overlaps(self) -> None:
        a = rule(id="a", max_weight_grams=D(1000), sort_order=0)
        b = rule(id="b", min_weight_grams=D(1000), max_weight_grams=D(2000), sort_order=1)
        assert validate_weight_rules([a, b]) == ["Rule 1 and rule 2: weight ranges overlap."]

    def test_unbounded_overlaps_everything_above(self) -> None:
        a = rule(id="a", sort_order=0)
        b = rule(id="b", min_weight_grams=D(5000), sort_order=1)
        assert len(validate_weight_rules([b, a])) == 1

    def test_inactive_rules_not_checked(self) -> None:
        a = rule(id="a")
        b = rule(id="b", is_active=False)
        assert validate_weight_rules([a, b]) == []


# ═══════════════════════════════════════════════════════════════════════════════
# Charges
# ═══════════════════════════════════════════════════════════════════════════════


class TestApplyCharges:
    def test_non_compounding(self) -> None:
        lines = apply_charges(
            D(100),
            [
                ChargeDefinition("svc", "Service", ChargeKind.CHARGE, Percent(D(10)), sort_order=0),
                ChargeDefinition("pkg", "Packaging", ChargeKind.CHARGE, Amount(D(5)), sort_order=1),
            ],
        )
        assert [c.applied_amount for c in lines] == [D(10), D(5)]

    def test_fixed_charge_first_does_not_feed_percent(self) -> None:
        lines = apply_charges(
            D(100),
            [
                ChargeDefinition("pkg", "Packaging", ChargeKind.CHARGE, Amount(D(5)), sort_order=0),
                ChargeDefinition("svc", "Service", ChargeKind.CHARGE, Percent(D(10)), sort_order=1),
            ],
        )
        assert [c.id for c in lines] == ["pkg", "svc"]
        assert [c.applied_amount for c in lines] == [D(5), D(10)]

    def test_sorted_and_filtered(self) -> None:
        lines = apply_charges(
            D(100),
            [
                ChargeDefinition("b", "B", ChargeKind.CHARGE, Amount(D(1)), sort_order=2),
                ChargeDefinition("off", "Off", ChargeKind.CHARGE, Amount(D(9)), is_active=False),
                ChargeDefinition("a", "A", ChargeKind.DISCOUNT, Percent(D(5)), sort_order=1),
            ],
        )
        assert [c.id for c in lines] == ["a", "b"]
        assert lines[0].signed_amount == D(-5)
        assert lines[0].raw_value == D(5)
        assert lines[0].calc_type == "percent"

    def test_nothing_configured(self) -> None:
        assert apply_charges(D(100), []) == ()


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════

SUMMER25 = Coupon("c1", "SUMMER25", Percent(D(25)), min_order_amount=D(50))


class TestValidateCoupon:
    def test_below_minimum(self) -> None:
        outcome = validate_coupon(SUMMER25, "summer25", D(40), NOW)
        assert isinstance(outcome, CouponRejected)
        assert outcome.reason is RejectReason.BELOW_MINIMUM
        assert outcome.message == "Minimum order amount of 50 is required for this coupon."

    def test_accepted(self) -> None:
        assert validate_coupon(SUMMER25, "  Summer25 ", D(100), NOW) == CouponAccepted(SUMMER25, D(25))

    def test_unknown(self) -> None:
        outcome = validate_coupon(None, "nope", D(100), NOW)
        assert outcome == CouponRejected("NOPE", RejectReason.NOT_FOUND, "Coupon code is invalid.")

    def test_inactive(self) -> None:
        coupon = Coupon("c1", "X", Amount(D(5)), is_active=False)
        outcome = validate_coupon(coupon, "x", D(100), NOW)
        assert isinstance(outcome, CouponRejected)
        assert outcome.message == "Coupon is inactive."

    def test_window(self) -> None:
        early = Coupon("c1", "X", Amount(D(5)), valid_from=NOW + timedelta(days=1))
        late = Coupon("c2", "X", Amount(D(5)), valid_to=NOW - timedelta(seconds=1))
        edge = Coupon("c3", "X", Amount(D(5)), valid_from=NOW, valid_to=NOW)

        assert validate_coupon(early, "X", D(100), NOW) == CouponRejected(
            "X", RejectReason.OUT_OF_WINDOW, "Coupon is not yet active."
        )
        assert validate_coupon(late, "X", D(100), NOW) == CouponRejected(
            "X", RejectReason.OUT_OF_WINDOW, "Coupon has expired."
        )
        assert isinstance(validate_coupon(edge, "X", D(100), NOW), CouponAccepted)

    def test_clamped_to_subtotal(self) -> None:
        coupon = Coupon("c1", "BIG", Amount(D(500)))
        outcome = validate_coupon(coupon, "BIG", D(30), NOW)
        assert isinstance(outcome, CouponAccepted)
        assert outcome.applied_amount == D(30)


# ═══════════════════════════════════════════════════════════════════════════════
# Totals
# ═══════════════════════════════════════════════════════════════════════════════


class TestTotals:
    def test_cart_sums(self) -> None:
        lines = [line("TEA", 2, "12.50", "250"), line("MUG", 1, "8", "400")]
        assert subtotal_of(lines) == D("33.00")
        assert total_weight_of(lines) == D(900)

    def test_breakdown(self) -> None:
        delivery = DeliveryLine("std", "Standard", D(9))
        charges = apply_charges(
            D(100),
            [
                ChargeDefinition("vat", "VAT", ChargeKind.CHARGE, Percent(D(10))),
                ChargeDefinition("loyal", "Loyalty", ChargeKind.DISCOUNT, Amount(D(4))),
            ],
        )
        discount = AppliedDiscount.from_accepted(CouponAccepted(SUMMER25, D(25)))

        totals = assemble_totals(D(100), delivery, charges, discount, D(1800))

        assert totals.charges_total == D(6)
        assert totals.total == D(100) + D(9) + D(10) - D(4) - D(25)
        assert totals.total_weight_grams == D(1800)

    def test_clamped_at_zero(self) -> None:
        charges = apply_charges(
            D(10), [ChargeDefinition("d", "Deal", ChargeKind.DISCOUNT, Amount(D(50)))]
        )
        totals = assemble_totals(D(10), DeliveryLine("p", "Pickup", D(0)), charges, None)
        assert totals.total == D(0)

    def test_rounded_half_up(self) -> None:
        charges = apply_charges(
            D("10.10"), [ChargeDefinition("vat", "VAT", ChargeKind.CHARGE, Percent(D("7.5")))]
        )
        totals = assemble_totals(D("10.10"), DeliveryLine("p", "Pickup", D(0)), charges, None)

        assert charges[0].applied_amount == D("0.7575")
        rounded = totals.rounded()
        assert rounded.charges[0].applied_amount == D("0.76")
        assert rounded.total == D("10.86")
        assert totals.total == D("10.8575")

    def test_round_money(self) -> None:
        assert round_money(D("2.345")) == D("2.35")
        assert round_money(D("2.5"), 0) == D(3)
