"""
Checkout errors.

Graph nodes raise `CheckoutError`; the entry points catch it and return
`Error(CheckoutError)`. Soft coupon rejections are not errors (see
`tally.pricing.CouponRejected`).
"""

from enum import Enum


class CheckoutErrorKind(Enum):
    EMPTY_CART = "empty_cart"
    MISSING_DELIVERY = "missing_delivery"
    ITEM_UNAVAILABLE = "item_unavailable"
    DELIVERY_UNAVAILABLE = "delivery_unavailable"
    COUPON_REJECTED = "coupon_rejected"
    IDEMPOTENCY_MISMATCH = "idempotency_mismatch"
    UPSTREAM = "upstream"

    @property
    def is_validation(self) -> bool:
        return self in (CheckoutErrorKind.EMPTY_CART, CheckoutErrorKind.MISSING_DELIVERY)

    @property
    def is_upstream(self) -> bool:
        return self is CheckoutErrorKind.UPSTREAM


class CheckoutError(Exception):
    def __init__(self, kind: CheckoutErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"CheckoutError({self.kind.name}, {self.message!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CheckoutError):
            return NotImplemented
        return self.kind is other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))


def unavailable_items_message(names: list[str], shown: int = 3) -> str:
    """
    Customer-facing message for unavailable cart lines.

        unavailable_items_message(["Tea", "Mug", "Jar", "Lid"])
        # "Some items in your cart are unavailable (...): Tea, Mug, Jar and 1 more. ..."
    """
    listed = ", ".join(names[:shown])
    extra = len(names) - shown
    if extra > 0:
        listed = f"{listed} and {extra} more"
    return (
        "Some items in your cart are unavailable (inactive or deleted product): "
        f"{listed}. Please remove them and try again."
    )


__all__ = ("CheckoutErrorKind", "CheckoutError", "unavailable_items_message")
