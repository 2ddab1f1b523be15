"""
Checkout nodes — one node per pipeline step.

    CartNode → AvailabilityNode → SubtotalNode → DeliveryNode → ChargesNode → CouponNode → TotalsNode

Dependencies are chained on purpose: the catalog is checked before any
configuration is read, and a bad delivery id fails before charges and coupons
are fetched. Store calls go through `combinators.catching_async`, so a failing
backend surfaces as CheckoutError(UPSTREAM) instead of a raw exception.

DeliveryOptionsNode is a separate, smaller graph: it only needs the cart
weight and the active methods.
"""

from collections.abc import Callable
from decimal import Decimal

from kungfu import Ok, Error

import combinators as C

from tally.pricing import (
    AppliedDiscount,
    ChargeLine,
    CouponAccepted,
    CouponRejected,
    DeliveryLine,
    DeliveryMethod,
    apply_charges,
    assemble_totals,
    matching_rule,
    resolve_delivery,
    subtotal_of,
    total_weight_of,
    validate_coupon,
)
from tally.store import Stores
from tally.checkout import _graph as G
from tally.checkout._errors import CheckoutError, CheckoutErrorKind, unavailable_items_message
from tally.checkout._types import CheckoutInput, CheckoutQuote, DeliveryOption, OptionsInput


def _upstream(what: str) -> Callable[[Exception], CheckoutError]:
    return lambda e: CheckoutError(CheckoutErrorKind.UPSTREAM, f"Failed to load {what}: {e}")


# ═══════════════════════════════════════════════════════════════════════════════
# Input & validation
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class CartNode:
    """Entry point: rejects an empty cart or a missing delivery method."""

    def __init__(self, data: CheckoutInput) -> None:
        self.data = data

    @classmethod
    def __compose__(cls, checkout: CheckoutInput) -> "CartNode":
        if not checkout.lines:
            raise CheckoutError(CheckoutErrorKind.EMPTY_CART, "Cart is empty.")
        if not checkout.delivery_id or not checkout.delivery_id.strip():
            raise CheckoutError(
                CheckoutErrorKind.MISSING_DELIVERY, "Please select a delivery method."
            )
        return cls(checkout)


@G.node
class AvailabilityNode:
    """Every product in the cart is known, active and not deleted."""

    def __init__(self, checked: int) -> None:
        self.checked = checked

    @classmethod
    async def __compose__(cls, cart: CartNode, stores: Stores) -> "AvailabilityNode":
        result = await C.catching_async(
            lambda: stores.catalog.unavailable(cart.data.lines),
            on_error=_upstream("catalog"),
        )
        match result:
            case Ok([]):
                return cls(len(cart.data.lines))
            case Ok(names):
                raise CheckoutError(
                    CheckoutErrorKind.ITEM_UNAVAILABLE, unavailable_items_message(names)
                )
            case Error(e):
                raise e


@G.node
class SubtotalNode:
    def __init__(self, subtotal: Decimal, total_weight_grams: Decimal) -> None:
        self.subtotal = subtotal
        self.total_weight_grams = total_weight_grams

    @classmethod
    def __compose__(cls, cart: CartNode, available: AvailabilityNode) -> "SubtotalNode":
        lines = cart.data.lines
        return cls(subtotal_of(lines), total_weight_of(lines))


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery, charges, coupon
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class DeliveryNode:
    """Delivery charge for the selected method and the cart weight."""

    def __init__(self, line: DeliveryLine) -> None:
        self.line = line

    @classmethod
    async def __compose__(
        cls,
        cart: CartNode,
        subtotal: SubtotalNode,
        stores: Stores,
    ) -> "DeliveryNode":
        delivery_id = (cart.data.delivery_id or "").strip()
        fetched = await C.catching_async(
            lambda: stores.delivery.get_delivery_method(delivery_id),
            on_error=_upstream("delivery method"),
        )
        match fetched:
            case Error(e):
                raise e
            case Ok(None):
                raise CheckoutError(
                    CheckoutErrorKind.DELIVERY_UNAVAILABLE,
                    f"Delivery method '{delivery_id}' was not found.",
                )
            case Ok(method):
                match resolve_delivery(method, subtotal.total_weight_grams):
                    case Ok(line):
                        return cls(line)
                    case Error(unavailable):
                        raise CheckoutError(
                            CheckoutErrorKind.DELIVERY_UNAVAILABLE, unavailable.message
                        )


@G.node
class ChargesNode:
    """Active charges and discounts, each applied to the base subtotal."""

    def __init__(self, lines: tuple[ChargeLine, ...]) -> None:
        self.lines = lines

    @classmethod
    async def __compose__(
        cls,
        subtotal: SubtotalNode,
        delivery: DeliveryNode,
        stores: Stores,
    ) -> "ChargesNode":
        fetched = await C.catching_async(
            lambda: stores.charges.list_active_charges(),
            on_error=_upstream("charges"),
        )
        match fetched:
            case Ok(definitions):
                return cls(apply_charges(subtotal.subtotal, definitions))
            case Error(e):
                raise e


@G.node
class CouponNode:
    """
    Coupon discount, if a code was given.

    Rejections are soft: the node succeeds with `rejection` set and no discount.
    """

    def __init__(
        self,
        discount: AppliedDiscount | None,
        rejection: CouponRejected | None,
    ) -> None:
        self.discount = discount
        self.rejection = rejection

    @classmethod
    async def __compose__(
        cls,
        cart: CartNode,
        subtotal: SubtotalNode,
        charges: ChargesNode,
        stores: Stores,
    ) -> "CouponNode":
        code = (cart.data.coupon_code or "").strip()
        if not code:
            return cls(None, None)

        fetched = await C.catching_async(
            lambda: stores.coupons.get_coupon(code),
            on_error=_upstream("coupon"),
        )
        match fetched:
            case Error(e):
                raise e
            case Ok(coupon):
                outcome = validate_coupon(coupon, code, subtotal.subtotal, cart.data.now)

        match outcome:
            case CouponAccepted():
                return cls(AppliedDiscount.from_accepted(outcome), None)
            case CouponRejected():
                return cls(None, outcome)


@G.node
class TotalsNode:
    """Final node: the assembled, unrounded totals."""

    def __init__(self, quote: CheckoutQuote) -> None:
        self.quote = quote

    @classmethod
    def __compose__(
        cls,
        subtotal: SubtotalNode,
        delivery: DeliveryNode,
        charges: ChargesNode,
        coupon: CouponNode,
    ) -> "TotalsNode":
        totals = assemble_totals(
            subtotal.subtotal,
            delivery.line,
            charges.lines,
            coupon.discount,
            subtotal.total_weight_grams,
        )
        return cls(CheckoutQuote(totals, coupon.rejection))


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery options (separate graph)
# ═══════════════════════════════════════════════════════════════════════════════


@G.node
class DeliveryOptionsNode:
    """Every active method priced for the cart weight."""

    def __init__(self, options: list[DeliveryOption]) -> None:
        self.options = options

    @classmethod
    async def __compose__(cls, request: OptionsInput, stores: Stores) -> "DeliveryOptionsNode":
        fetched = await C.catching_async(
            lambda: stores.delivery.list_delivery_methods(),
            on_error=_upstream("delivery methods"),
        )
        match fetched:
            case Ok(methods):
                return cls(_price_options(methods, request))
            case Error(e):
                raise e


def _price_options(methods: list[DeliveryMethod], request: OptionsInput) -> list[DeliveryOption]:
    # without items there is no weight to price against: show the flat amounts
    has_items = bool(request.lines)
    weight = total_weight_of(request.lines)
    options: list[DeliveryOption] = []
    for method in sorted(methods, key=lambda m: m.sort_order):
        if not method.is_active:
            continue
        rule = matching_rule(method, weight) if has_items else None
        options.append(
            DeliveryOption(
                id=method.id,
                label=method.label,
                amount=rule.charge_for(weight) if rule is not None else method.fallback_amount,
                base_amount=method.fallback_amount,
                is_default=method.is_default,
                total_weight_grams=weight,
                has_weight_rules=has_items and bool(method.active_rules),
            )
        )
    return options


__all__ = (
    "CartNode",
    "AvailabilityNode",
    "SubtotalNode",
    "DeliveryNode",
    "ChargesNode",
    "CouponNode",
    "TotalsNode",
    "DeliveryOptionsNode",
)
