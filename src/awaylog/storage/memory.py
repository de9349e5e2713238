"""
In-Memory Storage Backend.

Default storage backend that keeps all data in memory.
Suitable for development and testing, but not for production.
"""

from __future__ import annotations

import time
import uuid
from copy import deepcopy
from typing import Any

from awaylog.storage.base import StorageBackend, register_storage_backend


class InMemoryStorage(StorageBackend):
    """
    In-memory storage backend.

    Keeps each collection as a list of dicts. Data is lost when the process
    ends. Loads and saves deep-copy so callers never share state with the
    stored value.
    """

    name = "memory"

    def __init__(self) -> None:
        self._data: dict[str, list[dict[str, Any]]] = {}
        self._locks: dict[str, tuple[str, float]] = {}

    async def load(self, collection: str) -> list[dict[str, Any]]:
        """Load a collection from memory."""
        return deepcopy(self._data.get(collection, []))

    async def save(self, collection: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection in memory."""
        self._data[collection] = deepcopy(list(records))

    async def acquire_lock(self, key: str, ttl: int = 30) -> str | None:
        """Acquire lock (simple in-memory implementation)."""
        now = time.monotonic()

        held = self._locks.get(key)
        if held is not None and now < held[1]:
            return None

        token = str(uuid.uuid4())
        self._locks[key] = (token, now + ttl)
        return token

    async def release_lock(self, key: str, token: str) -> bool:
        """Release lock if the token matches."""
        held = self._locks.get(key)
        if held is None or held[0] != token:
            return False
        del self._locks[key]
        return True


# Register as default backend
register_storage_backend("memory", InMemoryStorage)
