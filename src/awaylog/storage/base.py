"""
Storage backend contract and registry.

A backend persists whole collections: ``load`` returns the full list of
records stored under a collection name (empty if nothing was ever saved) and
``save`` replaces that list wholesale. There are no per-record keys and no
partial writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from awaylog.core.exceptions import StorageError

if TYPE_CHECKING:
    from awaylog.core.config import Config

_BACKENDS: dict[str, type[StorageBackend]] = {}


class StorageBackend(ABC):
    """Abstract whole-collection storage backend."""

    name: str = "abstract"

    @classmethod
    def from_config(cls, config: Config) -> StorageBackend:
        """Build the backend from service configuration."""
        return cls()

    @abstractmethod
    async def load(self, collection: str) -> list[dict[str, Any]]:
        """
        Load every record in a collection.

        Returns:
            The records from the last completed save, or [] if none

        Raises:
            StorageError: If the backend is unavailable or data is malformed
        """

    @abstractmethod
    async def save(self, collection: str, records: list[dict[str, Any]]) -> None:
        """
        Replace the collection with ``records``.

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    async def acquire_lock(self, key: str, ttl: int = 30) -> str | None:
        """
        Try to take an exclusive lock.

        Returns:
            Ownership token if acquired, None if already held
        """

    @abstractmethod
    async def release_lock(self, key: str, token: str) -> bool:
        """Release a lock if ``token`` still owns it."""

    async def health_check(self) -> bool:
        """Whether the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""

    def _decode_collection(self, collection: str, data: Any) -> list[dict[str, Any]]:
        """Check that decoded data is a list of objects."""
        if data is None:
            return []
        if not isinstance(data, list):
            raise StorageError(
                f"Collection '{collection}' is not a list",
                backend=self.name,
                details={"type": type(data).__name__},
            )
        for index, record in enumerate(data):
            if not isinstance(record, dict):
                raise StorageError(
                    f"Collection '{collection}' holds a non-object record",
                    backend=self.name,
                    details={"index": index},
                )
        return data


def register_storage_backend(name: str, backend_class: type[StorageBackend]) -> None:
    """Register a backend class under ``name``."""
    _BACKENDS[name] = backend_class


def get_storage_backend(name: str) -> type[StorageBackend] | None:
    """Look up a registered backend class."""
    return _BACKENDS.get(name)


def list_storage_backends() -> list[str]:
    """Names of all registered backends."""
    return sorted(_BACKENDS)
