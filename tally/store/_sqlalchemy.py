"""
SQLAlchemy backend — async reads for checkout, admin writes for the console.

Usage:

    session_factory, engine = await create_database("sqlite+aiosqlite:///shop.db")
    store = SQLAlchemyStore(session_factory)

    stores = Stores.of(store)                       # checkout reads
    await store.save_delivery_method(method)        # Result[DeliveryMethod, StoreError]
    await store.reorder_delivery_methods(["express", "standard"])

Reads raise on failure (checkout turns that into an UPSTREAM error); writes
return `Result[..., StoreError]` and never raise.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from kungfu import Result, Ok, Error
from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from tally.pricing import (
    CartLine,
    ChargeDefinition,
    ChargeKind,
    Coupon,
    DeliveryMethod,
    WeightRule,
    normalize_code,
    validate_weight_rules,
)
from tally.store._base import Product, StoreError, unavailable_names
from tally.store._rows import ChargeOptionRow, CouponRow, DeliveryMethodRow, ProductRow
from tally.store._tables import (
    ChargeOptionTable,
    CouponTable,
    DeliveryTable,
    ProductTable,
    WeightRuleTable,
)

logger = logging.getLogger(__name__)


def _utc_naive(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


class SQLAlchemyStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads — DeliveryStore, ChargeStore, CouponStore
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_delivery_method(self, method_id: str) -> DeliveryMethod | None:
        async with self._session_factory() as session:
            stmt = (
                select(DeliveryTable)
                .options(selectinload(DeliveryTable.rules))
                .where(DeliveryTable.id == method_id)
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            return DeliveryMethodRow.model_validate(row).to_domain()

    async def list_delivery_methods(self) -> list[DeliveryMethod]:
        async with self._session_factory() as session:
            stmt = (
                select(DeliveryTable)
                .options(selectinload(DeliveryTable.rules))
                .where(DeliveryTable.is_active.is_(True))
                .order_by(DeliveryTable.sort_order, DeliveryTable.id)
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [DeliveryMethodRow.model_validate(r).to_domain() for r in rows]

    async def list_active_charges(self) -> list[ChargeDefinition]:
        async with self._session_factory() as session:
            stmt = (
                select(ChargeOptionTable)
                .where(ChargeOptionTable.is_active.is_(True))
                .order_by(ChargeOptionTable.sort_order, ChargeOptionTable.id)
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [ChargeOptionRow.model_validate(r).to_domain() for r in rows]

    async def get_coupon(self, code: str) -> Coupon | None:
        async with self._session_factory() as session:
            stmt = select(CouponTable).where(CouponTable.code == normalize_code(code))
            row = (await session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            return CouponRow.model_validate(row).to_domain()

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads — CatalogGateway
    # ═══════════════════════════════════════════════════════════════════════════

    async def _products_for(self, lines: Sequence[CartLine]) -> dict[str, Product]:
        ids = {line.product_id for line in lines}
        if not ids:
            return {}
        async with self._session_factory() as session:
            stmt = select(ProductTable).where(ProductTable.id.in_(ids))
            rows = (await session.execute(stmt)).scalars().all()
            products = (ProductRow.model_validate(r).to_domain() for r in rows)
            return {p.id: p for p in products}

    async def unavailable(self, lines: Sequence[CartLine]) -> list[str]:
        return unavailable_names(lines, await self._products_for(lines))

    async def price_lines(self, lines: Sequence[CartLine]) -> list[CartLine]:
        products = await self._products_for(lines)
        priced: list[CartLine] = []
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                priced.append(line)
            else:
                priced.append(
                    replace(line, unit_price=product.price, weight_grams=product.weight_grams)
                )
        return priced

    # ═══════════════════════════════════════════════════════════════════════════
    # Writes — delivery
    # ═══════════════════════════════════════════════════════════════════════════

    async def save_delivery_method(self, method: DeliveryMethod) -> Result[DeliveryMethod, StoreError]:
        """Upsert a method and replace its rule set in one transaction."""
        problems = validate_weight_rules(method.rules)
        if problems:
            return Error(StoreError("; ".join(problems)))

        try:
            async with self._session_factory() as session, session.begin():
                row = await session.get(DeliveryTable, method.id)
                if row is None:
                    row = DeliveryTable(id=method.id)
                    session.add(row)
                row.label = method.label
                row.amount = method.fallback_amount
                row.is_default = method.is_default
                row.is_active = method.is_active
                row.sort_order = method.sort_order

                if method.is_default:
                    await session.execute(
                        update(DeliveryTable)
                        .where(DeliveryTable.id != method.id)
                        .values(is_default=False)
                    )

                await session.execute(
                    delete(WeightRuleTable).where(WeightRuleTable.delivery_id == method.id)
                )
                if method.rules:
                    await session.execute(
                        insert(WeightRuleTable),
                        [_rule_row(method.id, rule) for rule in method.rules],
                    )

        except Exception as e:
            logger.warning("save_delivery_method(%s) failed: %s", method.id, e)
            return Error(StoreError(f"Failed to save delivery method: {e}", e))

        try:
            saved = await self.get_delivery_method(method.id)
        except Exception as e:
            return Error(StoreError(f"Failed to read back delivery method: {e}", e))
        if saved is None:
            return Error(StoreError(f"Delivery method not found after save: {method.id}"))
        return Ok(saved)

    async def reorder_delivery_methods(self, ids: Sequence[str]) -> Result[None, StoreError]:
        """Set sort_order to each id's position, in a single batched update."""
        return await self._reorder(DeliveryTable, ids)

    # ═══════════════════════════════════════════════════════════════════════════
    # Writes — charges, coupons, catalog
    # ═══════════════════════════════════════════════════════════════════════════

    async def save_charge(self, charge: ChargeDefinition) -> Result[ChargeDefinition, StoreError]:
        try:
            async with self._session_factory() as session, session.begin():
                await session.merge(
                    ChargeOptionTable(
                        id=charge.id,
                        label=charge.label,
                        type="discount" if charge.kind is ChargeKind.DISCOUNT else "charge",
                        calc_type=charge.rate.calc_type,
                        amount=charge.rate.value,
                        is_active=charge.is_active,
                        sort_order=charge.sort_order,
                    )
                )
            return Ok(charge)
        except Exception as e:
            logger.warning("save_charge(%s) failed: %s", charge.id, e)
            return Error(StoreError(f"Failed to save charge: {e}", e))

    async def reorder_charges(self, ids: Sequence[str]) -> Result[None, StoreError]:
        return await self._reorder(ChargeOptionTable, ids)

    async def save_coupon(self, coupon: Coupon) -> Result[Coupon, StoreError]:
        """Upsert by id; the code is stored upper-cased."""
        stored = replace(coupon, code=normalize_code(coupon.code))
        try:
            async with self._session_factory() as session, session.begin():
                await session.merge(
                    CouponTable(
                        id=stored.id,
                        code=stored.code,
                        description=stored.description,
                        calc_type=stored.rate.calc_type,
                        amount=stored.rate.value,
                        min_order_amount=stored.min_order_amount,
                        valid_from=_utc_naive(stored.valid_from),
                        valid_to=_utc_naive(stored.valid_to),
                        is_active=stored.is_active,
                    )
                )
            return Ok(stored)
        except Exception as e:
            logger.warning("save_coupon(%s) failed: %s", coupon.id, e)
            return Error(StoreError(f"Failed to save coupon: {e}", e))

    async def save_product(self, product: Product) -> Result[Product, StoreError]:
        try:
            async with self._session_factory() as session, session.begin():
                await session.merge(
                    ProductTable(
                        id=product.id,
                        name=product.name,
                        price=product.price,
                        weight_grams=product.weight_grams,
                        is_active=product.is_active,
                        is_deleted=product.is_deleted,
                    )
                )
            return Ok(product)
        except Exception as e:
            return Error(StoreError(f"Failed to save product: {e}", e))

    async def _reorder(
        self,
        table: type[DeliveryTable] | type[ChargeOptionTable],
        ids: Sequence[str],
    ) -> Result[None, StoreError]:
        if not ids:
            return Ok(None)
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    update(table),
                    [{"id": record_id, "sort_order": pos} for pos, record_id in enumerate(ids)],
                )
            return Ok(None)
        except Exception as e:
            logger.warning("reorder of %s failed: %s", table.__tablename__, e)
            return Error(StoreError(f"Failed to reorder {table.__tablename__}: {e}", e))


def _rule_row(delivery_id: str, rule: WeightRule) -> dict[str, Any]:
    return {
        "id": rule.id or uuid.uuid4().hex,
        "delivery_id": delivery_id,
        "label": rule.label,
        "min_weight_grams": rule.min_weight_grams,
        "max_weight_grams": rule.max_weight_grams,
        "base_weight_grams": rule.base_weight_grams,
        "base_charge": rule.base_charge,
        "incremental_unit_grams": rule.increment_unit_grams,
        "incremental_charge": rule.increment_charge,
        "increment_rounding": rule.rounding.value,
        "is_active": rule.is_active,
        "sort_order": rule.sort_order,
    }


__all__ = ("SQLAlchemyStore",)
