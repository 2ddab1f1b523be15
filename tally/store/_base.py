"""
Store protocols — what checkout reads from the outside world.

Read methods are plain coroutines that may raise; the checkout graph wraps
every call with `combinators.catching_async`, so a failing backend becomes a
typed UPSTREAM error instead of an exception. Write methods (admin side)
return `Result[..., StoreError]`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from tally.pricing import CartLine, ChargeDefinition, Coupon, DeliveryMethod


# ═══════════════════════════════════════════════════════════════════════════════
# Store Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StoreError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog record
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Product:
    id: str
    name: str
    price: Decimal
    weight_grams: Decimal
    is_active: bool = True
    is_deleted: bool = False

    @property
    def purchasable(self) -> bool:
        return self.is_active and not self.is_deleted


def unavailable_names(lines: Sequence[CartLine], products: dict[str, Product]) -> list[str]:
    """Names (or ids, when unknown) of products in `lines` that cannot be bought."""
    names: list[str] = []
    seen: set[str] = set()
    for line in lines:
        if line.product_id in seen:
            continue
        seen.add(line.product_id)
        product = products.get(line.product_id)
        if product is None:
            names.append(line.product_id)
        elif not product.purchasable:
            names.append(product.name or product.id)
    return names


# ═══════════════════════════════════════════════════════════════════════════════
# Protocols
# ═══════════════════════════════════════════════════════════════════════════════


class DeliveryStore(Protocol):
    async def get_delivery_method(self, method_id: str) -> DeliveryMethod | None:
        """Method with its weight rules, active or not. None if unknown."""
        ...

    async def list_delivery_methods(self) -> list[DeliveryMethod]:
        """Active methods ordered by sort_order."""
        ...


class ChargeStore(Protocol):
    async def list_active_charges(self) -> list[ChargeDefinition]:
        """Active charge/discount definitions ordered by sort_order."""
        ...


class CouponStore(Protocol):
    async def get_coupon(self, code: str) -> Coupon | None:
        """Coupon by code, case-insensitive."""
        ...


class CatalogGateway(Protocol):
    async def unavailable(self, lines: Sequence[CartLine]) -> list[str]:
        """Names of products that are unknown, inactive or deleted."""
        ...

    async def price_lines(self, lines: Sequence[CartLine]) -> list[CartLine]:
        """Lines with current catalog price and weight."""
        ...


class Backend(DeliveryStore, ChargeStore, CouponStore, CatalogGateway, Protocol):
    """A single backend serving every read protocol."""


@dataclass(frozen=True, slots=True)
class Stores:
    """Everything checkout reads, injected into the graph as one value."""

    delivery: DeliveryStore
    charges: ChargeStore
    coupons: CouponStore
    catalog: CatalogGateway

    @classmethod
    def of(cls, backend: Backend) -> Stores:
        return cls(delivery=backend, charges=backend, coupons=backend, catalog=backend)


__all__ = (
    "StoreError",
    "Product",
    "unavailable_names",
    "DeliveryStore",
    "ChargeStore",
    "CouponStore",
    "CatalogGateway",
    "Backend",
    "Stores",
)
