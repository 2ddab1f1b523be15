"""
Request / response codecs — pydantic models at the HTTP edge.

Requests turn into domain values with `to_domain()`; responses are built from
domain results with `from_domain()`. Money goes out rounded to the configured
number of decimals, as strings, so clients never see binary floats.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from kungfu import Result, Ok, Error
from pydantic import BaseModel, Field

from tally.pricing import CalculatedTotals, CartLine, CouponRejected, round_money
from tally.checkout import CheckoutError, CheckoutErrorKind, CheckoutQuote, DeliveryOption
from tally.orders import Contact, OrderLine, OrderSnapshot, PlaceOrderRequest


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


class CartItemIn(BaseModel):
    product_id: str = Field(min_length=1)
    variant_id: str | None = None
    quantity: int
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    weight_grams: Decimal = Field(default=Decimal("0"), ge=0)
    product_name: str | None = None
    variant_title: str | None = None
    sku: str | None = None

    def to_domain(self) -> CartLine:
        return CartLine(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            weight_grams=self.weight_grams,
            variant_id=self.variant_id,
        )


def _valid_items(items: list[CartItemIn]) -> list[CartItemIn]:
    # lines with a non-positive quantity are dropped, not rejected
    return [item for item in items if item.quantity > 0]


class CalculateIn(BaseModel):
    items: list[CartItemIn] = Field(default_factory=list)
    delivery_id: str | None = None
    coupon_code: str | None = None

    def to_domain(self) -> list[CartLine]:
        return [item.to_domain() for item in _valid_items(self.items)]


class DeliveryOptionsIn(BaseModel):
    items: list[CartItemIn] = Field(default_factory=list)

    def to_domain(self) -> list[CartLine]:
        return [item.to_domain() for item in _valid_items(self.items)]


class ContactIn(BaseModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None

    def to_domain(self) -> Contact:
        def clean(value: str | None) -> str | None:
            return value.strip() if value and value.strip() else None

        return Contact(
            full_name=clean(self.full_name),
            email=clean(self.email),
            phone=clean(self.phone),
            address=clean(self.address),
        )


class OrderIn(BaseModel):
    items: list[CartItemIn] = Field(default_factory=list)
    delivery_id: str | None = None
    coupon_code: str | None = None
    contact: ContactIn = Field(default_factory=ContactIn)
    notes: str | None = None

    def to_domain(self, idempotency_key: str, currency: str) -> PlaceOrderRequest:
        return PlaceOrderRequest(
            idempotency_key=idempotency_key,
            lines=tuple(
                OrderLine(
                    line=item.to_domain(),
                    product_name=item.product_name,
                    variant_title=item.variant_title,
                    sku=item.sku,
                )
                for item in _valid_items(self.items)
            ),
            delivery_id=self.delivery_id,
            coupon_code=self.coupon_code,
            contact=self.contact.to_domain(),
            notes=self.notes,
            currency=currency,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorOut(BaseModel):
    success: Literal[False] = False
    error: str
    code: str

    @classmethod
    def from_domain(cls, dom: CheckoutError) -> ErrorOut:
        return cls(error=dom.message, code=dom.kind.value)


def status_for(error: CheckoutError) -> int:
    """HTTP status: 502 upstream, 409 for a reused idempotency key, 400 for the rest."""
    if error.kind is CheckoutErrorKind.UPSTREAM:
        return 502
    if error.kind is CheckoutErrorKind.IDEMPOTENCY_MISMATCH:
        return 409
    return 400


class DeliveryLineOut(BaseModel):
    id: str
    label: str
    amount: Decimal


class ChargeLineOut(BaseModel):
    id: str
    label: str
    kind: str
    calc_type: str
    raw_value: Decimal
    applied_amount: Decimal


class DiscountOut(BaseModel):
    coupon_id: str
    code: str
    calc_type: str
    raw_value: Decimal
    applied_amount: Decimal


class TotalsOut(BaseModel):
    currency: str
    subtotal: Decimal
    delivery: DeliveryLineOut
    charges: list[ChargeLineOut]
    discount: DiscountOut | None
    total: Decimal
    total_weight_grams: Decimal

    @classmethod
    def from_domain(cls, dom: CalculatedTotals, currency: str, places: int) -> TotalsOut:
        rounded = dom.rounded(places)
        discount = rounded.discount
        return cls(
            currency=currency,
            subtotal=rounded.subtotal,
            delivery=DeliveryLineOut(
                id=rounded.delivery.id,
                label=rounded.delivery.label,
                amount=rounded.delivery.amount,
            ),
            charges=[
                ChargeLineOut(
                    id=c.id,
                    label=c.label,
                    kind=c.kind.value,
                    calc_type=c.calc_type,
                    raw_value=c.raw_value,
                    applied_amount=c.applied_amount,
                )
                for c in rounded.charges
            ],
            discount=(
                DiscountOut(
                    coupon_id=discount.coupon_id,
                    code=discount.code,
                    calc_type=discount.calc_type,
                    raw_value=discount.raw_value,
                    applied_amount=discount.applied_amount,
                )
                if discount is not None
                else None
            ),
            total=rounded.total,
            total_weight_grams=rounded.total_weight_grams,
        )


class CouponRejectionOut(BaseModel):
    code: str
    reason: str
    message: str

    @classmethod
    def from_domain(cls, dom: CouponRejected) -> CouponRejectionOut:
        return cls(code=dom.code, reason=dom.reason.value, message=dom.message)


class CalculateOut(BaseModel):
    success: Literal[True] = True
    data: TotalsOut
    coupon_rejection: CouponRejectionOut | None = None

    @classmethod
    def from_domain(
        cls,
        dom: Result[CheckoutQuote, CheckoutError],
        currency: str,
        places: int,
    ) -> CalculateOut | ErrorOut:
        match dom:
            case Ok(quote):
                rejection = quote.coupon_rejection
                return cls(
                    data=TotalsOut.from_domain(quote.totals, currency, places),
                    coupon_rejection=(
                        CouponRejectionOut.from_domain(rejection) if rejection is not None else None
                    ),
                )
            case Error(e):
                return ErrorOut.from_domain(e)


class DeliveryOptionOut(BaseModel):
    id: str
    label: str
    amount: Decimal
    base_amount: Decimal
    is_default: bool
    total_weight_grams: Decimal
    has_weight_rules: bool

    @classmethod
    def from_domain(cls, dom: DeliveryOption, places: int) -> DeliveryOptionOut:
        return cls(
            id=dom.id,
            label=dom.label,
            amount=round_money(dom.amount, places),
            base_amount=round_money(dom.base_amount, places),
            is_default=dom.is_default,
            total_weight_grams=dom.total_weight_grams,
            has_weight_rules=dom.has_weight_rules,
        )


class DeliveryOptionsOut(BaseModel):
    success: Literal[True] = True
    data: list[DeliveryOptionOut]

    @classmethod
    def from_domain(
        cls,
        dom: Result[list[DeliveryOption], CheckoutError],
        places: int,
    ) -> DeliveryOptionsOut | ErrorOut:
        match dom:
            case Ok(options):
                return cls(data=[DeliveryOptionOut.from_domain(o, places) for o in options])
            case Error(e):
                return ErrorOut.from_domain(e)


class OrderChargeOut(BaseModel):
    type: str
    label: str
    calc_type: str
    base_amount: Decimal
    applied_amount: Decimal
    source_id: str | None


class OrderItemOut(BaseModel):
    product_id: str
    product_name: str | None
    variant_id: str | None
    variant_title: str | None
    sku: str | None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class OrderOut(BaseModel):
    id: str
    status: str
    payment_method: str
    currency: str
    subtotal: Decimal
    total: Decimal
    contact: ContactIn
    notes: str | None
    charges: list[OrderChargeOut]
    items: list[OrderItemOut]
    created_at: datetime
    replayed: bool = False

    @classmethod
    def from_domain(cls, dom: OrderSnapshot, replayed: bool = False) -> OrderOut:
        return cls(
            id=dom.id,
            status=dom.status.value,
            payment_method=dom.payment_method,
            currency=dom.currency,
            subtotal=dom.subtotal,
            total=dom.total,
            contact=ContactIn(
                full_name=dom.contact.full_name,
                email=dom.contact.email,
                phone=dom.contact.phone,
                address=dom.contact.address,
            ),
            notes=dom.notes,
            charges=[
                OrderChargeOut(
                    type=c.type.value,
                    label=c.label,
                    calc_type=c.calc_type,
                    base_amount=c.base_amount,
                    applied_amount=c.applied_amount,
                    source_id=c.source_id,
                )
                for c in dom.charges
            ],
            items=[
                OrderItemOut(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    variant_id=i.variant_id,
                    variant_title=i.variant_title,
                    sku=i.sku,
                    quantity=i.quantity,
                    unit_price=i.unit_price,
                    line_total=i.line_total,
                )
                for i in dom.items
            ],
            created_at=dom.created_at,
            replayed=replayed,
        )


__all__ = (
    "CartItemIn",
    "CalculateIn",
    "DeliveryOptionsIn",
    "ContactIn",
    "OrderIn",
    "ErrorOut",
    "status_for",
    "TotalsOut",
    "CouponRejectionOut",
    "CalculateOut",
    "DeliveryOptionOut",
    "DeliveryOptionsOut",
    "OrderChargeOut",
    "OrderItemOut",
    "OrderOut",
)
