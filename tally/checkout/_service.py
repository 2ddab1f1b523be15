"""
Checkout entry points.

    result = await calculate_checkout(stores, lines, "standard", coupon_code="summer25")

    match result:
        case Ok(CheckoutQuote(totals=totals, coupon_rejection=None)):
            ...
        case Ok(CheckoutQuote(coupon_rejection=rejected)):
            ...                             # priced without the coupon
        case Error(CheckoutError(kind=kind, message=message)):
            ...

Every call reads the stores afresh; nothing is cached between calls. Passing
the same `now` against the same store contents yields equal totals.
"""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from kungfu import Result, Ok, Error

from tally.pricing import CartLine
from tally.store import Stores
from tally.checkout import _graph as G
from tally.checkout._errors import CheckoutError
from tally.checkout._nodes import DeliveryOptionsNode, TotalsNode
from tally.checkout._types import CheckoutInput, CheckoutQuote, DeliveryOption, OptionsInput

logger = logging.getLogger(__name__)

_quote_graph = G.graph(TotalsNode)
_options_graph = G.graph(DeliveryOptionsNode)


def _log_failure(operation: str, error: CheckoutError) -> None:
    if error.kind.is_upstream:
        logger.warning("%s failed upstream: %s", operation, error.message)
    elif error.kind.is_validation:
        logger.debug("%s refused invalid input (%s): %s", operation, error.kind.name, error.message)
    else:
        logger.info("%s rejected (%s): %s", operation, error.kind.name, error.message)


async def calculate_checkout(
    stores: Stores,
    items: Sequence[CartLine],
    delivery_id: str | None,
    coupon_code: str | None = None,
    now: datetime | None = None,
) -> Result[CheckoutQuote, CheckoutError]:
    """
    Price a cart: subtotal, delivery, charges, coupon, total.

    Amounts in the quote are unrounded; call `quote.totals.rounded()` for
    display or persistence.
    """
    checkout = CheckoutInput(
        lines=tuple(items),
        delivery_id=delivery_id,
        coupon_code=coupon_code,
        now=now if now is not None else datetime.now(UTC),
    )

    failure: CheckoutError | None = None
    try:
        node = await _quote_graph(checkout, stores)
    except* CheckoutError as group:
        failure = G.first_checkout_error(group)

    if failure is not None:
        _log_failure("checkout", failure)
        return Error(failure)

    quote = node.quote
    if quote.coupon_rejection is not None:
        logger.info(
            "coupon %s not applied: %s",
            quote.coupon_rejection.code,
            quote.coupon_rejection.reason.value,
        )
    return Ok(quote)


async def get_delivery_options_for_items(
    stores: Stores,
    items: Sequence[CartLine],
) -> Result[list[DeliveryOption], CheckoutError]:
    """Active delivery methods priced for the cart weight, ordered by sort_order."""
    failure: CheckoutError | None = None
    try:
        node = await _options_graph(OptionsInput(tuple(items)), stores)
    except* CheckoutError as group:
        failure = G.first_checkout_error(group)

    if failure is not None:
        _log_failure("delivery options", failure)
        return Error(failure)
    return Ok(node.options)


__all__ = ("calculate_checkout", "get_delivery_options_for_items")
