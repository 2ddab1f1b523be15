"""
Database layer — SQLAlchemy models mirroring the storefront schema.

Column names follow what the admin console writes (`amount`, `calc_type`,
`incremental_unit_grams`, ...); the row models in `_rows` translate them into
domain objects.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.pool import StaticPool

MONEY = Numeric(12, 2)
RATE = Numeric(12, 4)
GRAMS = Numeric(12, 3)


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Delivery
# ═══════════════════════════════════════════════════════════════════════════════


class DeliveryTable(Base):
    __tablename__ = "delivery"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    rules: Mapped[list["WeightRuleTable"]] = relationship(
        back_populates="delivery",
        cascade="all, delete-orphan",
        order_by="WeightRuleTable.sort_order",
    )


class WeightRuleTable(Base):
    __tablename__ = "delivery_weight_rules"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    delivery_id: Mapped[str] = mapped_column(
        ForeignKey("delivery.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label: Mapped[str | None] = mapped_column(String(200), nullable=True)
    min_weight_grams: Mapped[Decimal] = mapped_column(GRAMS, nullable=False, default=Decimal("0"))
    max_weight_grams: Mapped[Decimal | None] = mapped_column(GRAMS, nullable=True)
    base_weight_grams: Mapped[Decimal] = mapped_column(GRAMS, nullable=False, default=Decimal("0"))
    base_charge: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    incremental_unit_grams: Mapped[Decimal] = mapped_column(GRAMS, nullable=False, default=Decimal("0"))
    incremental_charge: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    increment_rounding: Mapped[str] = mapped_column(String(10), nullable=False, default="ceil")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    delivery: Mapped[DeliveryTable] = relationship(back_populates="rules")


# ═══════════════════════════════════════════════════════════════════════════════
# Charges & Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class ChargeOptionTable(Base):
    __tablename__ = "charge_options"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="charge")
    calc_type: Mapped[str] = mapped_column(String(10), nullable=False, default="amount")
    amount: Mapped[Decimal] = mapped_column(RATE, nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CouponTable(Base):
    __tablename__ = "coupons"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    calc_type: Mapped[str] = mapped_column(String(10), nullable=False, default="amount")
    amount: Mapped[Decimal] = mapped_column(RATE, nullable=False, default=Decimal("0"))
    min_order_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    valid_from: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    valid_to: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class ProductTable(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    weight_grams: Mapped[Decimal] = mapped_column(GRAMS, nullable=False, default=Decimal("0"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderTable(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    idempotency_key: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    payment_method: Mapped[str] = mapped_column(String(30), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    subtotal_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    shipping_address: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    totals: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    request_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)

    charges: Mapped[list["OrderChargeTable"]] = relationship(
        cascade="all, delete-orphan", order_by="OrderChargeTable.position"
    )
    items: Mapped[list["OrderItemTable"]] = relationship(
        cascade="all, delete-orphan", order_by="OrderItemTable.position"
    )


class OrderChargeTable(Base):
    __tablename__ = "order_charges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    calc_type: Mapped[str] = mapped_column(String(10), nullable=False)
    base_amount: Mapped[Decimal] = mapped_column(RATE, nullable=False)
    applied_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    delivery_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    charge_option_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    coupon_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)


class OrderItemTable(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(50), nullable=False)
    product_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    variant_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    variant_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    line_total: Mapped[Decimal] = mapped_column(MONEY, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create database and return (session_factory, engine)."""
    if url.endswith(":memory:"):
        # one shared connection, otherwise every session sees an empty database
        engine = create_async_engine(url, echo=False, poolclass=StaticPool)
    else:
        engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = (
    "Base",
    "DeliveryTable",
    "WeightRuleTable",
    "ChargeOptionTable",
    "CouponTable",
    "ProductTable",
    "OrderTable",
    "OrderChargeTable",
    "OrderItemTable",
    "create_database",
)
