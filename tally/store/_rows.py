"""
Rows — boundary validation for admin-authored records.

The admin console stores loosely typed values: numbers as strings, "" for
"not set", calc_type/type as free text. Rows accept that shape (from dicts or
ORM objects) and hand out validated domain objects:

    method = DeliveryMethodRow.model_validate(orm_row).to_domain()
    charge = ChargeOptionRow.model_validate({"label": "VAT", "type": "tax",
                                             "calc_type": "percent",
                                             "amount": "7.5"}).to_domain()

Invalid payloads raise pydantic.ValidationError here, once, so the pricing
pipeline never has to re-check a value.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tally.pricing import (
    ChargeDefinition,
    ChargeKind,
    Coupon,
    DeliveryMethod,
    RoundingMode,
    WeightRule,
    normalize_code,
    rate_from,
)
from tally.store._base import Product

CHARGE_TYPES = frozenset({"tax", "fee", "charge", "discount"})


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _blank_to_zero(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return Decimal("0")
    return value


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True, str_strip_whitespace=True, extra="ignore")


def _check_percent(calc_type: str, amount: Decimal) -> None:
    if calc_type == "percent" and amount > 100:
        raise ValueError("percent value must be <= 100")


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery
# ═══════════════════════════════════════════════════════════════════════════════


class WeightRuleRow(_Row):
    id: str = ""
    label: str | None = None
    min_weight_grams: Decimal = Field(default=Decimal("0"), ge=0)
    max_weight_grams: Decimal | None = Field(default=None, ge=0)
    base_weight_grams: Decimal = Field(default=Decimal("0"), ge=0)
    base_charge: Decimal = Field(default=Decimal("0"), ge=0)
    incremental_unit_grams: Decimal = Field(default=Decimal("0"), ge=0)
    incremental_charge: Decimal = Field(default=Decimal("0"), ge=0)
    increment_rounding: RoundingMode = RoundingMode.CEIL
    is_active: bool = True
    sort_order: int = 0

    @field_validator(
        "min_weight_grams",
        "base_weight_grams",
        "base_charge",
        "incremental_unit_grams",
        "incremental_charge",
        mode="before",
    )
    @classmethod
    def _zero_when_blank(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    @field_validator("max_weight_grams", "label", mode="before")
    @classmethod
    def _none_when_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("increment_rounding", mode="before")
    @classmethod
    def _rounding(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return RoundingMode.CEIL
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _max_above_min(self) -> WeightRuleRow:
        if self.max_weight_grams is not None and self.max_weight_grams <= self.min_weight_grams:
            raise ValueError("max weight must be greater than min weight")
        return self

    def to_domain(self) -> WeightRule:
        return WeightRule(
            id=self.id,
            label=self.label,
            min_weight_grams=self.min_weight_grams,
            max_weight_grams=self.max_weight_grams,
            base_weight_grams=self.base_weight_grams,
            base_charge=self.base_charge,
            increment_unit_grams=self.incremental_unit_grams,
            increment_charge=self.incremental_charge,
            rounding=self.increment_rounding,
            is_active=self.is_active,
            sort_order=self.sort_order,
        )


class DeliveryMethodRow(_Row):
    id: str
    label: str = Field(min_length=1)
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    is_default: bool = False
    is_active: bool = True
    sort_order: int = 0
    rules: list[WeightRuleRow] = Field(default_factory=list)

    @field_validator("amount", mode="before")
    @classmethod
    def _zero_when_blank(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    def to_domain(self) -> DeliveryMethod:
        return DeliveryMethod(
            id=self.id,
            label=self.label,
            fallback_amount=self.amount,
            is_default=self.is_default,
            is_active=self.is_active,
            sort_order=self.sort_order,
            rules=tuple(r.to_domain() for r in sorted(self.rules, key=lambda r: r.sort_order)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Charges
# ═══════════════════════════════════════════════════════════════════════════════


class ChargeOptionRow(_Row):
    id: str
    label: str = Field(min_length=1)
    type: str = "charge"
    calc_type: Literal["percent", "amount"] = "amount"
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True
    sort_order: int = 0

    @field_validator("type", "calc_type", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in CHARGE_TYPES:
            raise ValueError(f"unknown charge type: {value!r}")
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _zero_when_blank(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    @model_validator(mode="after")
    def _percent_range(self) -> ChargeOptionRow:
        _check_percent(self.calc_type, self.amount)
        return self

    def to_domain(self) -> ChargeDefinition:
        return ChargeDefinition(
            id=self.id,
            label=self.label,
            kind=ChargeKind.DISCOUNT if self.type == "discount" else ChargeKind.CHARGE,
            rate=rate_from(self.calc_type, self.amount),
            is_active=self.is_active,
            sort_order=self.sort_order,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponRow(_Row):
    id: str
    code: str = Field(min_length=1)
    calc_type: Literal["percent", "amount"] = "amount"
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    min_order_amount: Decimal | None = Field(default=None, ge=0)
    valid_from: datetime | None = None
    valid_to: datetime | None = None
    is_active: bool = True
    description: str | None = None

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return normalize_code(value)

    @field_validator("calc_type", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("amount", mode="before")
    @classmethod
    def _zero_when_blank(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    @field_validator("min_order_amount", "valid_from", "valid_to", "description", mode="before")
    @classmethod
    def _none_when_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("valid_from", "valid_to")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        # SQLite hands back naive timestamps; they were written as UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _percent_range(self) -> CouponRow:
        _check_percent(self.calc_type, self.amount)
        return self

    def to_domain(self) -> Coupon:
        return Coupon(
            id=self.id,
            code=self.code,
            rate=rate_from(self.calc_type, self.amount),
            min_order_amount=self.min_order_amount,
            valid_from=self.valid_from,
            valid_to=self.valid_to,
            is_active=self.is_active,
            description=self.description,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class ProductRow(_Row):
    id: str
    name: str = ""
    price: Decimal = Field(default=Decimal("0"), ge=0)
    weight_grams: Decimal = Field(default=Decimal("0"), ge=0)
    is_active: bool = True
    is_deleted: bool = False

    @field_validator("price", "weight_grams", mode="before")
    @classmethod
    def _zero_when_blank(cls, value: Any) -> Any:
        return _blank_to_zero(value)

    def to_domain(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            price=self.price,
            weight_grams=self.weight_grams,
            is_active=self.is_active,
            is_deleted=self.is_deleted,
        )


__all__ = (
    "CHARGE_TYPES",
    "WeightRuleRow",
    "DeliveryMethodRow",
    "ChargeOptionRow",
    "CouponRow",
    "ProductRow",
)
