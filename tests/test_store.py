"""Row validation and the in-memory backend."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from tally.pricing import Amount, ChargeKind, Percent, RoundingMode
from tally.store import (
    ChargeOptionRow,
    CouponRow,
    DeliveryMethodRow,
    MemoryStore,
    ProductRow,
    WeightRuleRow,
)

from tests._helpers import D, line


class TestDeliveryRows:
    def test_loose_strings(self) -> None:
        method = DeliveryMethodRow.model_validate(
            {
                "id": "std",
                "label": " Standard ",
                "amount": "",
                "rules": [
                    {
                        "id": "r2",
                        "min_weight_grams": "1001",
                        "max_weight_grams": "",
                        "base_charge": "9",
                        "increment_rounding": "FLOOR",
                        "sort_order": 2,
                    },
                    {"id": "r1", "max_weight_grams": "1000", "base_charge": "4.5", "sort_order": 1},
                ],
            }
        ).to_domain()

        assert method.label == "Standard"
        assert method.fallback_amount == D(0)
        assert [r.id for r in method.rules] == ["r1", "r2"]
        assert method.rules[1].max_weight_grams is None
        assert method.rules[1].rounding is RoundingMode.FLOOR
        assert method.rules[0].rounding is RoundingMode.CEIL

    def test_rule_max_not_above_min(self) -> None:
        with pytest.raises(ValidationError):
            WeightRuleRow.model_validate({"min_weight_grams": "500", "max_weight_grams": "500"})

    def test_negative_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            WeightRuleRow.model_validate({"base_charge": "-1"})
        with pytest.raises(ValidationError):
            DeliveryMethodRow.model_validate({"id": "x", "label": "X", "amount": "-5"})

    def test_blank_label_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeliveryMethodRow.model_validate({"id": "x", "label": "  "})


class TestChargeRows:
    @pytest.mark.parametrize("kind", ["tax", "fee", "charge", "TAX"])
    def test_surcharge_types(self, kind: str) -> None:
        charge = ChargeOptionRow.model_validate(
            {"id": "c", "label": "C", "type": kind, "calc_type": "percent", "amount": "7.5"}
        ).to_domain()
        assert charge.kind is ChargeKind.CHARGE
        assert charge.rate == Percent(D("7.5"))

    def test_discount_type(self) -> None:
        charge = ChargeOptionRow.model_validate(
            {"id": "d", "label": "D", "type": "discount", "amount": "2"}
        ).to_domain()
        assert charge.kind is ChargeKind.DISCOUNT
        assert charge.rate == Amount(D(2))

    def test_unknown_type(self) -> None:
        with pytest.raises(ValidationError):
            ChargeOptionRow.model_validate({"id": "c", "label": "C", "type": "bonus"})

    def test_percent_above_hundred(self) -> None:
        with pytest.raises(ValidationError):
            ChargeOptionRow.model_validate(
                {"id": "c", "label": "C", "calc_type": "percent", "amount": "150"}
            )

    def test_unknown_calc_type(self) -> None:
        with pytest.raises(ValidationError):
            ChargeOptionRow.model_validate({"id": "c", "label": "C", "calc_type": "ratio"})


class TestCouponRows:
    def test_normalized(self) -> None:
        coupon = CouponRow.model_validate(
            {
                "id": "c1",
                "code": " summer25 ",
                "calc_type": "percent",
                "amount": 25,
                "min_order_amount": "",
                "valid_to": "2026-08-31T23:59:59",
                "description": "",
            }
        ).to_domain()

        assert coupon.code == "SUMMER25"
        assert coupon.min_order_amount is None
        assert coupon.description is None
        assert coupon.valid_to == datetime(2026, 8, 31, 23, 59, 59, tzinfo=UTC)

    def test_blank_code(self) -> None:
        with pytest.raises(ValidationError):
            CouponRow.model_validate({"id": "c1", "code": ""})


class TestProductRows:
    def test_defaults(self) -> None:
        product = ProductRow.model_validate({"id": "p", "name": "P", "price": "3.10"}).to_domain()
        assert product.price == D("3.10")
        assert product.weight_grams == D(0)
        assert product.purchasable

    def test_deleted_not_purchasable(self) -> None:
        product = ProductRow.model_validate({"id": "p", "is_deleted": True}).to_domain()
        assert not product.purchasable


class TestMemoryStore:
    async def test_active_methods_in_order(self, store: MemoryStore) -> None:
        methods = await store.list_delivery_methods()
        assert [m.id for m in methods] == ["standard", "express", "pickup"]

    async def test_inactive_method_still_readable(self, store: MemoryStore) -> None:
        method = await store.get_delivery_method("freight")
        assert method is not None
        assert not method.is_active
        assert await store.get_delivery_method("teleport") is None

    async def test_active_charges(self, store: MemoryStore) -> None:
        charges = await store.list_active_charges()
        assert [c.id for c in charges] == ["vat", "packaging"]

    async def test_coupon_case_insensitive(self, store: MemoryStore) -> None:
        coupon = await store.get_coupon(" Summer25")
        assert coupon is not None
        assert coupon.code == "SUMMER25"

    async def test_unavailable(self, store: MemoryStore) -> None:
        names = await store.unavailable(
            [line("TEA", 1, "1"), line("SAMPLER", 1, "1"), line("GHOST", 2, "1"), line("SAMPLER", 1, "1")]
        )
        assert names == ["Autumn sampler", "GHOST"]

    async def test_price_lines(self, store: MemoryStore) -> None:
        priced = await store.price_lines([line("TEA", 2, "0.01"), line("GHOST", 1, "3")])
        assert priced[0].unit_price == D("12.50")
        assert priced[0].weight_grams == D(250)
        assert priced[0].quantity == 2
        assert priced[1].unit_price == D(3)
