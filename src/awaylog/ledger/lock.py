"""
Collection Lock Service.

Serializes read-modify-write cycles on a stored collection so that two
writers can never save over each other's changes. Writers in the same
process queue on an asyncio.Lock; writers in other processes are kept out
by the storage backend's lock (Redis SET NX, file flock).
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from awaylog.core.exceptions import StorageError
from awaylog.core.logging import get_logger

if TYPE_CHECKING:
    from awaylog.storage.base import StorageBackend

logger = get_logger("ledger.lock")


class CollectionLock:
    """
    Single-writer lock for a stored collection.

    Implements a distributed lock pattern using the storage backend.
    """

    def __init__(
        self,
        storage: StorageBackend,
        ttl: int = 30,
        retry_count: int = 20,
        retry_delay: float = 0.05,
    ) -> None:
        """
        Initialize lock service.

        Args:
            storage: Storage backend (Redis/File/Memory)
            ttl: Storage lock time-to-live in seconds
            retry_count: Number of retries if the lock is held elsewhere
            retry_delay: Delay between retries in seconds
        """
        self._storage = storage
        self._ttl = ttl
        self._retry_count = retry_count
        self._retry_delay = retry_delay
        self._local: dict[str, asyncio.Lock] = {}

    @staticmethod
    def _lock_key(collection: str) -> str:
        return f"collection:{collection}"

    async def acquire(self, collection: str) -> str | None:
        """
        Acquire the storage-level lock for a collection.

        Returns:
            lock_token (str) if successful, None if failed
        """
        lock_key = self._lock_key(collection)

        for i in range(self._retry_count + 1):
            token = await self._storage.acquire_lock(lock_key, self._ttl)
            if token:
                logger.debug(f"Acquired lock for collection {collection} (token: {token[:8]}...)")
                return token

            if i < self._retry_count:
                logger.debug(f"Collection {collection} locked, retrying in {self._retry_delay}s...")
                await asyncio.sleep(self._retry_delay)

        logger.warning(
            f"Failed to acquire lock for collection {collection} after {self._retry_count} retries"
        )
        return None

    async def release(self, collection: str, lock_token: str) -> bool:
        """Release a previously acquired storage-level lock."""
        result = await self._storage.release_lock(self._lock_key(collection), lock_token)
        if result:
            logger.debug(f"Released lock for collection {collection}")
        else:
            logger.warning(f"Lock for collection {collection} was gone before release")
        return result

    @asynccontextmanager
    async def hold(self, collection: str) -> AsyncIterator[None]:
        """
        Hold the collection exclusively for the duration of the block.

        Raises:
            StorageError: If the storage-level lock cannot be acquired
        """
        local = self._local.setdefault(collection, asyncio.Lock())
        async with local:
            token = await self.acquire(collection)
            if token is None:
                raise StorageError(
                    f"Collection '{collection}' is locked by another writer",
                    details={"collection": collection},
                )
            try:
                yield
            finally:
                await self.release(collection, token)
