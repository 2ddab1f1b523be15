import pytest

from tally.store import MemoryStore, Stores
from tally.orders import MemoryOrderStore
from tally.seed import seed_all


@pytest.fixture
def store() -> MemoryStore:
    return seed_all(MemoryStore())


@pytest.fixture
def stores(store: MemoryStore) -> Stores:
    return Stores.of(store)


@pytest.fixture
def orders() -> MemoryOrderStore:
    return MemoryOrderStore()
