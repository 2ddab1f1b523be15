"""
Store — where checkout reads its configuration from.

    from tally.store import MemoryStore, SQLAlchemyStore, Stores

    stores = Stores.of(MemoryStore())           # tests, CLI
    stores = Stores.of(SQLAlchemyStore(sf))     # real database

Protocols (`DeliveryStore`, `ChargeStore`, `CouponStore`, `CatalogGateway`)
describe the read side. Row models validate loosely typed admin payloads once,
at this boundary.
"""

from tally.store._base import (
    StoreError,
    Product,
    unavailable_names,
    DeliveryStore,
    ChargeStore,
    CouponStore,
    CatalogGateway,
    Backend,
    Stores,
)
from tally.store._rows import (
    CHARGE_TYPES,
    WeightRuleRow,
    DeliveryMethodRow,
    ChargeOptionRow,
    CouponRow,
    ProductRow,
)
from tally.store._memory import MemoryStore
from tally.store._tables import Base, create_database
from tally.store._sqlalchemy import SQLAlchemyStore

__all__ = (
    # Protocols
    "StoreError",
    "Product",
    "unavailable_names",
    "DeliveryStore",
    "ChargeStore",
    "CouponStore",
    "CatalogGateway",
    "Backend",
    "Stores",
    # Rows
    "CHARGE_TYPES",
    "WeightRuleRow",
    "DeliveryMethodRow",
    "ChargeOptionRow",
    "CouponRow",
    "ProductRow",
    # Backends
    "MemoryStore",
    "SQLAlchemyStore",
    "Base",
    "create_database",
)
