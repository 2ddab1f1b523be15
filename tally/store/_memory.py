"""
In-memory backend — dicts behind the store protocols.

Seeded from the same loosely typed rows the admin console writes, so every
record passes boundary validation exactly as it would from a database:

    store = MemoryStore()
    store.add_delivery_method({"id": "std", "label": "Standard", "amount": "7"})
    store.add_coupon({"id": "c1", "code": "summer25", "calc_type": "percent",
                      "amount": 25, "min_order_amount": 50})

    stores = Stores.of(store)

Used by the CLI and the test-suite.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from tally.pricing import CartLine, ChargeDefinition, Coupon, DeliveryMethod, normalize_code
from tally.store._base import Product, unavailable_names
from tally.store._rows import ChargeOptionRow, CouponRow, DeliveryMethodRow, ProductRow


@dataclass
class MemoryStore:
    _methods: dict[str, DeliveryMethod] = field(default_factory=dict[str, DeliveryMethod])
    _charges: dict[str, ChargeDefinition] = field(default_factory=dict[str, ChargeDefinition])
    _coupons: dict[str, Coupon] = field(default_factory=dict[str, Coupon])
    _products: dict[str, Product] = field(default_factory=dict[str, Product])

    # ═══════════════════════════════════════════════════════════════════════════
    # Seeding
    # ═══════════════════════════════════════════════════════════════════════════

    def add_delivery_method(self, data: Mapping[str, Any]) -> DeliveryMethod:
        method = DeliveryMethodRow.model_validate(data).to_domain()
        self._methods[method.id] = method
        return method

    def add_charge(self, data: Mapping[str, Any]) -> ChargeDefinition:
        charge = ChargeOptionRow.model_validate(data).to_domain()
        self._charges[charge.id] = charge
        return charge

    def add_coupon(self, data: Mapping[str, Any]) -> Coupon:
        coupon = CouponRow.model_validate(data).to_domain()
        self._coupons[coupon.code] = coupon
        return coupon

    def add_product(self, data: Mapping[str, Any]) -> Product:
        product = ProductRow.model_validate(data).to_domain()
        self._products[product.id] = product
        return product

    def products(self) -> list[Product]:
        return sorted(self._products.values(), key=lambda p: p.id)

    def all_charges(self) -> list[ChargeDefinition]:
        return sorted(self._charges.values(), key=lambda c: c.sort_order)

    # ═══════════════════════════════════════════════════════════════════════════
    # DeliveryStore
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_delivery_method(self, method_id: str) -> DeliveryMethod | None:
        return self._methods.get(method_id)

    async def list_delivery_methods(self) -> list[DeliveryMethod]:
        active = (m for m in self._methods.values() if m.is_active)
        return sorted(active, key=lambda m: m.sort_order)

    # ═══════════════════════════════════════════════════════════════════════════
    # ChargeStore / CouponStore
    # ═══════════════════════════════════════════════════════════════════════════

    async def list_active_charges(self) -> list[ChargeDefinition]:
        return [c for c in self.all_charges() if c.is_active]

    async def get_coupon(self, code: str) -> Coupon | None:
        return self._coupons.get(normalize_code(code))

    # ═══════════════════════════════════════════════════════════════════════════
    # CatalogGateway
    # ═══════════════════════════════════════════════════════════════════════════

    async def unavailable(self, lines: Sequence[CartLine]) -> list[str]:
        return unavailable_names(lines, self._products)

    async def price_lines(self, lines: Sequence[CartLine]) -> list[CartLine]:
        priced: list[CartLine] = []
        for line in lines:
            product = self._products.get(line.product_id)
            if product is None:
                priced.append(line)
            else:
                priced.append(
                    replace(line, unit_price=product.price, weight_grams=product.weight_grams)
                )
        return priced


__all__ = ("MemoryStore",)
