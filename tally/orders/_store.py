"""
Order store — persistence for placed orders.

`create` is idempotent by key: the first snapshot stored under a key wins,
later calls with the same key get that first snapshot back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from kungfu import Result, Ok

from tally.store import StoreError
from tally.orders._types import OrderSnapshot


class OrderStore(Protocol):
    async def create(
        self,
        snapshot: OrderSnapshot,
    ) -> Result[OrderSnapshot, StoreError]:
        """Insert unless `snapshot.idempotency_key` exists; return the stored order."""
        ...

    async def get(self, order_id: str) -> Result[OrderSnapshot | None, StoreError]:
        ...

    async def get_by_key(self, idempotency_key: str) -> Result[OrderSnapshot | None, StoreError]:
        ...


@dataclass
class MemoryOrderStore:
    """In-memory store, for tests and the CLI."""

    _orders: dict[str, OrderSnapshot] = field(default_factory=dict[str, OrderSnapshot])
    _by_key: dict[str, str] = field(default_factory=dict[str, str])

    async def create(self, snapshot: OrderSnapshot) -> Result[OrderSnapshot, StoreError]:
        existing = self._by_key.get(snapshot.idempotency_key)
        if existing is not None:
            return Ok(self._orders[existing])
        self._orders[snapshot.id] = snapshot
        self._by_key[snapshot.idempotency_key] = snapshot.id
        return Ok(snapshot)

    async def get(self, order_id: str) -> Result[OrderSnapshot | None, StoreError]:
        return Ok(self._orders.get(order_id))

    async def get_by_key(self, idempotency_key: str) -> Result[OrderSnapshot | None, StoreError]:
        order_id = self._by_key.get(idempotency_key)
        return Ok(self._orders.get(order_id) if order_id is not None else None)

    def __len__(self) -> int:
        return len(self._orders)


__all__ = ("OrderStore", "MemoryOrderStore")
