"""calculate_checkout / get_delivery_options_for_items over the seeded shop."""

import logging
from collections.abc import Sequence
from dataclasses import replace

import pytest
from kungfu import Ok, Error

from tally.pricing import CartLine, ChargeKind, RejectReason
from tally.store import MemoryStore, Stores
from tally.seed import seed_all
from tally.checkout import (
    CheckoutError,
    CheckoutErrorKind,
    CheckoutQuote,
    DeliveryOption,
    calculate_checkout,
    get_delivery_options_for_items,
    unavailable_items_message,
)

from tests._helpers import D, NOW, line

TEA = line("TEA", 2, "12.50", "250")
MUG = line("MUG", 1, "8.00", "400")
KETTLE = line("KETTLE", 2, "45.00", "1500")


async def quote(stores: Stores, items: Sequence[CartLine], delivery: str | None, coupon: str | None = None) -> CheckoutQuote:
    match await calculate_checkout(stores, items, delivery, coupon, NOW):
        case Ok(q):
            return q
        case Error(e):
            pytest.fail(f"unexpected {e!r}")


async def failure(stores: Stores, items: Sequence[CartLine], delivery: str | None, coupon: str | None = None) -> CheckoutError:
    match await calculate_checkout(stores, items, delivery, coupon, NOW):
        case Ok(q):
            pytest.fail(f"unexpected success {q!r}")
        case Error(e):
            return e


class BrokenCharges(MemoryStore):
    async def list_active_charges(self):  # type: ignore[override]
        raise ConnectionError("database is down")


class BrokenCatalog(MemoryStore):
    async def unavailable(self, lines):  # type: ignore[override]
        raise TimeoutError("catalog timed out")


# ═══════════════════════════════════════════════════════════════════════════════
# Happy path
# ═══════════════════════════════════════════════════════════════════════════════


class TestCalculate:
    async def test_breakdown(self, stores: Stores) -> None:
        q = await quote(stores, [TEA, MUG], "standard")
        t = q.totals

        assert t.subtotal == D("33.00")
        assert t.total_weight_grams == D(900)
        assert t.delivery.id == "standard"
        assert t.delivery.amount == D(7)
        assert [(c.id, c.applied_amount) for c in t.charges] == [
            ("vat", D("2.475")),
            ("packaging", D("1.50")),
        ]
        assert t.discount is None
        assert t.total == D("43.975")
        assert t.rounded().total == D("43.98")
        assert q.coupon_rejection is None

    async def test_coupon_applied(self, stores: Stores) -> None:
        t = (await quote(stores, [KETTLE], "standard", "summer25")).totals

        assert t.subtotal == D(90)
        assert t.delivery.amount == D(11)
        assert t.discount is not None
        assert t.discount.code == "SUMMER25"
        assert t.discount.applied_amount == D("22.5")
        assert t.total == D("86.75")

    async def test_coupon_below_minimum_is_soft(self, stores: Stores) -> None:
        q = await quote(stores, [replace(KETTLE, quantity=1)], "standard", "SUMMER25")

        assert q.totals.discount is None
        assert q.coupon_rejection is not None
        assert q.coupon_rejection.reason is RejectReason.BELOW_MINIMUM
        assert q.totals.total == D("56.875")

    async def test_unknown_and_expired_coupons(self, stores: Stores) -> None:
        unknown = await quote(stores, [TEA], "pickup", "NOPE")
        expired = await quote(stores, [TEA], "pickup", "spring10")

        assert unknown.coupon_rejection is not None
        assert unknown.coupon_rejection.reason is RejectReason.NOT_FOUND
        assert expired.coupon_rejection is not None
        assert expired.coupon_rejection.message == "Coupon has expired."
        assert unknown.totals == expired.totals

    async def test_blank_coupon_ignored(self, stores: Stores) -> None:
        q = await quote(stores, [TEA], "pickup", "   ")
        assert q.coupon_rejection is None
        assert q.totals.discount is None

    async def test_discount_charge_line(self, store: MemoryStore) -> None:
        store.add_charge(
            {"id": "loyalty", "label": "Loyalty", "type": "discount", "calc_type": "percent",
             "amount": "10", "sort_order": 5}
        )
        t = (await quote(Stores.of(store), [TEA], "pickup")).totals

        loyalty = t.charges[-1]
        assert loyalty.kind is ChargeKind.DISCOUNT
        assert loyalty.applied_amount == D("2.5")
        assert t.total == D(25) + D("1.875") + D("1.50") - D("2.5")

    async def test_same_now_same_totals(self, stores: Stores) -> None:
        first = await quote(stores, [TEA, MUG], "standard", "WELCOME5")
        second = await quote(stores, [TEA, MUG], "standard", "WELCOME5")
        assert first == second

    async def test_configuration_read_per_call(self, store: MemoryStore) -> None:
        stores = Stores.of(store)
        before = await quote(stores, [TEA], "express")
        store.add_delivery_method({"id": "express", "label": "Express courier", "amount": "20"})
        after = await quote(stores, [TEA], "express")

        assert after.totals.delivery.amount - before.totals.delivery.amount == D(5)


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class TestCalculateErrors:
    async def test_empty_cart(self, stores: Stores) -> None:
        e = await failure(stores, [], "standard")
        assert e == CheckoutError(CheckoutErrorKind.EMPTY_CART, "Cart is empty.")
        assert e.kind.is_validation

    @pytest.mark.parametrize("delivery", [None, "", "  "])
    async def test_missing_delivery(self, stores: Stores, delivery: str | None) -> None:
        e = await failure(stores, [TEA], delivery)
        assert e.kind is CheckoutErrorKind.MISSING_DELIVERY
        assert e.message == "Please select a delivery method."

    async def test_empty_cart_checked_first(self, stores: Stores) -> None:
        e = await failure(stores, [], None)
        assert e.kind is CheckoutErrorKind.EMPTY_CART

    async def test_unavailable_items(self, stores: Stores) -> None:
        e = await failure(stores, [TEA, line("SAMPLER", 1, "15"), line("GHOST", 1, "1")], "standard")
        assert e.kind is CheckoutErrorKind.ITEM_UNAVAILABLE
        assert e.message == unavailable_items_message(["Autumn sampler", "GHOST"])

    async def test_unknown_delivery(self, stores: Stores) -> None:
        e = await failure(stores, [TEA], "teleport")
        assert e == CheckoutError(
            CheckoutErrorKind.DELIVERY_UNAVAILABLE, "Delivery method 'teleport' was not found."
        )

    async def test_inactive_delivery(self, stores: Stores) -> None:
        e = await failure(stores, [TEA], "freight")
        assert e == CheckoutError(
            CheckoutErrorKind.DELIVERY_UNAVAILABLE, "Delivery method 'Freight' is not available."
        )

    async def test_failing_charges_store(self) -> None:
        stores = Stores.of(seed_all(BrokenCharges()))
        e = await failure(stores, [TEA], "standard")
        assert e.kind is CheckoutErrorKind.UPSTREAM
        assert e.kind.is_upstream
        assert "database is down" in e.message

    async def test_failing_catalog(self) -> None:
        e = await failure(Stores.of(seed_all(BrokenCatalog())), [TEA], "standard")
        assert e.kind is CheckoutErrorKind.UPSTREAM
        assert e.message.startswith("Failed to load catalog:")


class TestFailureLogging:
    @pytest.fixture
    def levels(self, caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
        caplog.set_level(logging.DEBUG, logger="tally.checkout._service")
        return caplog

    @staticmethod
    def logged(caplog: pytest.LogCaptureFixture) -> list[int]:
        return [r.levelno for r in caplog.records if r.name == "tally.checkout._service"]

    async def test_invalid_input_at_debug(self, stores: Stores, levels: pytest.LogCaptureFixture) -> None:
        await failure(stores, [], "standard")
        assert self.logged(levels) == [logging.DEBUG]

    async def test_business_refusal_at_info(self, stores: Stores, levels: pytest.LogCaptureFixture) -> None:
        await failure(stores, [TEA], "freight")
        assert self.logged(levels) == [logging.INFO]

    async def test_upstream_at_warning(self, levels: pytest.LogCaptureFixture) -> None:
        await failure(Stores.of(seed_all(BrokenCharges())), [TEA], "standard")
        assert self.logged(levels) == [logging.WARNING]


class TestUnavailableMessage:
    def test_lists_three_then_counts(self) -> None:
        message = unavailable_items_message(["A", "B", "C", "D", "E"])
        assert message == (
            "Some items in your cart are unavailable (inactive or deleted product): "
            "A, B, C and 2 more. Please remove them and try again."
        )

    def test_short_list(self) -> None:
        assert ": A. Please" in unavailable_items_message(["A"])


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery options
# ═══════════════════════════════════════════════════════════════════════════════


async def options(stores: Stores, items: Sequence[CartLine]) -> list[DeliveryOption]:
    match await get_delivery_options_for_items(stores, items):
        case Ok(opts):
            return opts
        case Error(e):
            pytest.fail(f"unexpected {e!r}")


class TestDeliveryOptions:
    async def test_priced_for_weight(self, stores: Stores) -> None:
        opts = await options(stores, [KETTLE])

        assert [o.id for o in opts] == ["standard", "express", "pickup"]
        standard = opts[0]
        assert standard.amount == D(11)
        assert standard.base_amount == D(7)
        assert standard.is_default
        assert standard.has_weight_rules
        assert standard.total_weight_grams == D(3000)
        assert opts[1].amount == D(15)
        assert not opts[1].has_weight_rules

    async def test_over_rule_range_falls_back(self, stores: Stores) -> None:
        opts = await options(stores, [replace(KETTLE, quantity=4)])
        assert opts[0].amount == D(7)

    async def test_empty_cart_shows_flat_amounts(self, stores: Stores) -> None:
        opts = await options(stores, [])
        assert [o.amount for o in opts] == [D(7), D(15), D(0)]
        assert not any(o.has_weight_rules for o in opts)

    async def test_upstream(self) -> None:
        class BrokenDelivery(MemoryStore):
            async def list_delivery_methods(self):  # type: ignore[override]
                raise ConnectionError("gone")

        match await get_delivery_options_for_items(Stores.of(BrokenDelivery()), [TEA]):
            case Error(e):
                assert e.kind is CheckoutErrorKind.UPSTREAM
            case Ok(_):
                pytest.fail("expected upstream error")
