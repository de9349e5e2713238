"""Tests for CollectionLock."""

import asyncio

import pytest

from awaylog.core.exceptions import StorageError
from awaylog.ledger.lock import CollectionLock

# Redis needs a running instance, so the lock logic is exercised with
# InMemoryStorage; RedisStorage lock calls are covered in test_redis_storage.


@pytest.fixture
def lock_service(storage):
    """Provides lock service."""
    return CollectionLock(storage, retry_count=1, retry_delay=0.01)


@pytest.mark.asyncio
async def test_acquire_and_release_lock(lock_service):
    """Test basic lock acquire and release."""
    lock_token = await lock_service.acquire("entries")
    assert lock_token is not None
    assert isinstance(lock_token, str)

    # Held: acquiring again should retry and give up
    assert await lock_service.acquire("entries") is None

    assert await lock_service.release("entries", lock_token) is True

    lock_token_3 = await lock_service.acquire("entries")
    assert lock_token_3 is not None
    await lock_service.release("entries", lock_token_3)


@pytest.mark.asyncio
async def test_collections_lock_independently(lock_service):
    first = await lock_service.acquire("entries")
    second = await lock_service.acquire("archive")

    assert first is not None
    assert second is not None


@pytest.mark.asyncio
async def test_lock_ttl(storage):
    """Test that locks expire after TTL."""
    service = CollectionLock(storage, ttl=1, retry_count=0)

    assert await service.acquire("entries") is not None
    assert await service.acquire("entries") is None

    await asyncio.sleep(1.1)

    assert await service.acquire("entries") is not None


@pytest.mark.asyncio
async def test_hold_serializes_in_process(storage):
    service = CollectionLock(storage)
    inside = 0
    peak = 0

    async def writer():
        nonlocal inside, peak
        async with service.hold("entries"):
            inside += 1
            peak = max(peak, inside)
            await asyncio.sleep(0.01)
            inside -= 1

    await asyncio.gather(*(writer() for _ in range(5)))

    assert peak == 1


@pytest.mark.asyncio
async def test_hold_releases_on_error(storage):
    service = CollectionLock(storage, retry_count=0)

    with pytest.raises(RuntimeError):
        async with service.hold("entries"):
            raise RuntimeError("boom")

    token = await storage.acquire_lock("collection:entries")
    assert token is not None


@pytest.mark.asyncio
async def test_hold_raises_when_held_elsewhere(storage, lock_service):
    await storage.acquire_lock("collection:entries", ttl=30)

    with pytest.raises(StorageError, match="locked by another writer"):
        async with lock_service.hold("entries"):
            pass
