"""
SQLAlchemy order store — `orders` + `order_charges` + `order_items`.

    store = SQLAlchemyOrderStore(session_factory)
    result = await store.create(snapshot)     # INSERT ... ON CONFLICT DO NOTHING, then read back

The conflict target is `orders.idempotency_key`: a replayed key inserts
nothing and the stored order is returned.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, cast

from kungfu import Result, Ok, Error
from sqlalchemy import insert, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from tally.store import StoreError
from tally.store._tables import OrderChargeTable, OrderItemTable, OrderTable
from tally.orders._types import (
    Contact,
    OrderCharge,
    OrderChargeType,
    OrderItem,
    OrderSnapshot,
    OrderStatus,
)

logger = logging.getLogger(__name__)

_SOURCE_COLUMN = {
    OrderChargeType.DELIVERY: "delivery_id",
    OrderChargeType.COUPON: "coupon_id",
    OrderChargeType.CHARGE: "charge_option_id",
    OrderChargeType.DISCOUNT: "charge_option_id",
}


class SQLAlchemyOrderStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, snapshot: OrderSnapshot) -> Result[OrderSnapshot, StoreError]:
        try:
            async with self._session_factory() as session, session.begin():
                stmt = (
                    sqlite_insert(OrderTable)
                    .values(
                        id=snapshot.id,
                        idempotency_key=snapshot.idempotency_key,
                        status=snapshot.status.value,
                        payment_method=snapshot.payment_method,
                        currency=snapshot.currency,
                        subtotal_amount=snapshot.subtotal,
                        total_amount=snapshot.total,
                        shipping_address=snapshot.contact.to_json(),
                        notes=snapshot.notes,
                        totals=snapshot.totals,
                        created_at=snapshot.created_at.astimezone(UTC).replace(tzinfo=None),
                        request_hash=snapshot.request_hash,
                    )
                    .on_conflict_do_nothing(index_elements=["idempotency_key"])
                )
                cursor = cast(CursorResult[Any], await session.execute(stmt))
                if cursor.rowcount > 0:
                    await session.execute(
                        insert(OrderChargeTable),
                        [_charge_row(snapshot.id, i, c) for i, c in enumerate(snapshot.charges)],
                    )
                    if snapshot.items:
                        await session.execute(
                            insert(OrderItemTable),
                            [_item_row(snapshot.id, i, it) for i, it in enumerate(snapshot.items)],
                        )
                else:
                    logger.info("order key %s already used, returning stored order", snapshot.idempotency_key)

        except Exception as e:
            logger.warning("order create failed: %s", e)
            return Error(StoreError(f"Failed to create order: {e}", e))

        match await self.get_by_key(snapshot.idempotency_key):
            case Ok(None):
                return Error(StoreError(f"Order not found after insert: {snapshot.idempotency_key}"))
            case Ok(stored):
                return Ok(stored)
            case Error(e):
                return Error(e)

    async def get(self, order_id: str) -> Result[OrderSnapshot | None, StoreError]:
        return await self._get_where(OrderTable.id == order_id)

    async def get_by_key(self, idempotency_key: str) -> Result[OrderSnapshot | None, StoreError]:
        return await self._get_where(OrderTable.idempotency_key == idempotency_key)

    async def _get_where(self, condition: Any) -> Result[OrderSnapshot | None, StoreError]:
        try:
            async with self._session_factory() as session:
                stmt = (
                    select(OrderTable)
                    .options(selectinload(OrderTable.charges), selectinload(OrderTable.items))
                    .where(condition)
                )
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    return Ok(None)
                return Ok(_to_snapshot(row))

        except Exception as e:
            return Error(StoreError(f"Failed to get order: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Row mapping
# ═══════════════════════════════════════════════════════════════════════════════


def _charge_row(order_id: str, position: int, charge: OrderCharge) -> dict[str, Any]:
    return {
        "order_id": order_id,
        "position": position,
        "type": charge.type.value,
        "calc_type": charge.calc_type,
        "base_amount": charge.base_amount,
        "applied_amount": charge.applied_amount,
        "delivery_id": None,
        "charge_option_id": None,
        "coupon_id": None,
        "metadata_": {"label": charge.label},
    } | {_SOURCE_COLUMN[charge.type]: charge.source_id}


def _item_row(order_id: str, position: int, item: OrderItem) -> dict[str, Any]:
    return {
        "order_id": order_id,
        "position": position,
        "product_id": item.product_id,
        "product_name": item.product_name,
        "variant_id": item.variant_id,
        "variant_title": item.variant_title,
        "sku": item.sku,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "line_total": item.line_total,
    }


def _to_snapshot(row: OrderTable) -> OrderSnapshot:
    created_at: datetime = row.created_at
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)

    return OrderSnapshot(
        id=row.id,
        idempotency_key=row.idempotency_key,
        status=OrderStatus(row.status),
        payment_method=row.payment_method,
        currency=row.currency,
        subtotal=row.subtotal_amount,
        total=row.total_amount,
        contact=Contact.from_json(row.shipping_address),
        notes=row.notes,
        charges=tuple(
            OrderCharge(
                type=OrderChargeType(c.type),
                label=(c.metadata_ or {}).get("label", ""),
                calc_type="percent" if c.calc_type == "percent" else "amount",
                base_amount=c.base_amount,
                applied_amount=c.applied_amount,
                source_id=getattr(c, _SOURCE_COLUMN[OrderChargeType(c.type)]),
            )
            for c in row.charges
        ),
        items=tuple(
            OrderItem(
                product_id=i.product_id,
                quantity=i.quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
                product_name=i.product_name,
                variant_id=i.variant_id,
                variant_title=i.variant_title,
                sku=i.sku,
            )
            for i in row.items
        ),
        totals=row.totals,
        created_at=created_at,
        request_hash=row.request_hash,
    )


__all__ = ("SQLAlchemyOrderStore",)
