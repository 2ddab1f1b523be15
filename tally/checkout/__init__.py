"""
Checkout — the orchestration over pricing and stores.

    from tally import checkout

    result = await checkout.calculate_checkout(stores, lines, "standard", "SUMMER25")
    options = await checkout.get_delivery_options_for_items(stores, lines)

Steps run as a nodnod graph (see `_nodes`); failures come back as
`Error(CheckoutError)`, never as exceptions.
"""

from tally.checkout._errors import (
    CheckoutErrorKind,
    CheckoutError,
    unavailable_items_message,
)
from tally.checkout._types import (
    CheckoutInput,
    OptionsInput,
    CheckoutQuote,
    DeliveryOption,
)
from tally.checkout._nodes import (
    CartNode,
    AvailabilityNode,
    SubtotalNode,
    DeliveryNode,
    ChargesNode,
    CouponNode,
    TotalsNode,
    DeliveryOptionsNode,
)
from tally.checkout._service import (
    calculate_checkout,
    get_delivery_options_for_items,
)

__all__ = (
    # Errors
    "CheckoutErrorKind",
    "CheckoutError",
    "unavailable_items_message",
    # Types
    "CheckoutInput",
    "OptionsInput",
    "CheckoutQuote",
    "DeliveryOption",
    # Nodes
    "CartNode",
    "AvailabilityNode",
    "SubtotalNode",
    "DeliveryNode",
    "ChargesNode",
    "CouponNode",
    "TotalsNode",
    "DeliveryOptionsNode",
    # Entry points
    "calculate_checkout",
    "get_delivery_options_for_items",
)
