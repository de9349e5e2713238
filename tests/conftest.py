import pytest

from awaylog.ledger import CollectionLock, EntryLedger
from awaylog.storage.memory import InMemoryStorage
from tests.helpers import FIXED_NOW, SlowStorage


@pytest.fixture
def storage() -> InMemoryStorage:
    """Provides memory storage."""
    return InMemoryStorage()


@pytest.fixture
def slow_storage() -> SlowStorage:
    return SlowStorage()


@pytest.fixture
def ledger(storage):
    return EntryLedger(storage, clock=lambda: FIXED_NOW)


@pytest.fixture
def make_ledger():
    def _make(backend, retry_count=100, retry_delay=0.01):
        lock = CollectionLock(backend, retry_count=retry_count, retry_delay=retry_delay)
        return EntryLedger(backend, lock=lock, clock=lambda: FIXED_NOW)

    return _make
