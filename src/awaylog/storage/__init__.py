"""
Storage backends for awaylog.

Provides pluggable whole-collection persistence for the entry ledger.

Configuration via environment:
    AWAYLOG_STORAGE_BACKEND=memory  # or 'file' / 'redis'
    AWAYLOG_DATA_FILE=data.json
    AWAYLOG_REDIS_URL=redis://localhost:6379/0

Example:
    >>> from awaylog.storage import get_storage, InMemoryStorage, RedisStorage
    >>>
    >>> # Get storage from configuration
    >>> storage = get_storage()
    >>>
    >>> # Or create specific backend
    >>> storage = InMemoryStorage()
    >>> storage = RedisStorage(redis_url="redis://localhost:6379")
"""

from __future__ import annotations

from awaylog.core.config import Config
from awaylog.core.exceptions import ConfigurationError
from awaylog.storage.base import (
    StorageBackend,
    get_storage_backend,
    list_storage_backends,
    register_storage_backend,
)
from awaylog.storage.file import JSONFileStorage
from awaylog.storage.memory import InMemoryStorage
from awaylog.storage.redis import RedisStorage


def get_storage(backend_name: str | None = None, config: Config | None = None) -> StorageBackend:
    """
    Get storage backend from configuration or by name.

    Args:
        backend_name: Backend name, or None to use config.storage_backend
        config: Service configuration, or None to read it from the environment

    Returns:
        StorageBackend instance

    Raises:
        ConfigurationError: If backend name is unknown
    """
    if config is None:
        config = Config.from_env()
    if backend_name is None:
        backend_name = config.storage_backend

    backend_class = get_storage_backend(backend_name)

    if backend_class is None:
        available = list_storage_backends()
        raise ConfigurationError(
            f"Unknown storage backend: '{backend_name}'. Available: {', '.join(available)}",
            details={"backend": backend_name},
        )

    return backend_class.from_config(config)


__all__ = [
    "StorageBackend",
    "InMemoryStorage",
    "JSONFileStorage",
    "RedisStorage",
    "get_storage",
    "get_storage_backend",
    "list_storage_backends",
    "register_storage_backend",
]
