"""
Redis Storage Backend.

Production storage backend. Each collection lives under a single Redis key
(``<prefix>:<collection>``) holding the JSON-encoded list of records.
"""

from __future__ import annotations

import json
import uuid
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from awaylog.core.exceptions import StorageError
from awaylog.core.logging import get_logger
from awaylog.resilience.retry import DEFAULT_ATTEMPTS, execute_with_retry, is_transient_error
from awaylog.storage.base import StorageBackend, register_storage_backend

if TYPE_CHECKING:
    from awaylog.core.config import Config

logger = get_logger("storage.redis")


def _is_transient_redis_error(exception: BaseException) -> bool:
    if isinstance(exception, (RedisConnectionError, RedisTimeoutError)):
        return True
    return is_transient_error(exception)


class RedisStorage(StorageBackend):
    """
    Redis storage backend.

    Uses Redis for persistent storage. Suitable for production.
    """

    name = "redis"

    # Lua script for safe lock release: only delete if token matches
    _RELEASE_LOCK_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: str = "awaylog",
        client: Any | None = None,
        attempts: int = DEFAULT_ATTEMPTS,
    ) -> None:
        """
        Initialize Redis storage.

        Args:
            redis_url: Redis connection URL
            prefix: Key prefix for all storage keys
            client: Pre-built async Redis client (mainly for tests)
            attempts: Tries per call for transient connection errors
        """
        self._redis_url = redis_url
        self._prefix = prefix
        self._client = client
        self._attempts = attempts

    @classmethod
    def from_config(cls, config: Config) -> RedisStorage:
        return cls(redis_url=config.redis_url, prefix=config.redis_prefix)

    def _get_client(self) -> Any:
        """Lazy-create the Redis client."""
        if self._client is None:
            self._client = redis.from_url(self._redis_url, decode_responses=True)
        return self._client

    def _make_key(self, collection: str) -> str:
        return f"{self._prefix}:{collection}"

    def _make_lock_key(self, key: str) -> str:
        return f"{self._prefix}:locks:{key}"

    async def _call(self, operation: str, method: str, *args: Any, **kwargs: Any) -> Any:
        client = self._get_client()
        try:
            return await execute_with_retry(
                getattr(client, method),
                *args,
                attempts=self._attempts,
                transient=_is_transient_redis_error,
                **kwargs,
            )
        except RedisError as e:
            logger.error(f"Redis {operation} failed: {e}")
            raise StorageError(
                f"Could not {operation} Redis storage", backend=self.name, details={"error": str(e)}
            ) from e

    async def load(self, collection: str) -> list[dict[str, Any]]:
        """Load a collection from Redis."""
        raw = await self._call("read from", "get", self._make_key(collection))
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as e:
            logger.error(f"Collection '{collection}' holds invalid JSON: {e}")
            raise StorageError(
                f"Collection '{collection}' holds invalid JSON", backend=self.name
            ) from e

        return self._decode_collection(collection, data)

    async def save(self, collection: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection in Redis."""
        await self._call("write to", "set", self._make_key(collection), json.dumps(records))

    async def acquire_lock(self, key: str, ttl: int = 30) -> str | None:
        """
        Acquire a distributed lock with ownership token (Redis SET NX).

        Args:
            key: Lock key (e.g. "collection:entries")
            ttl: TTL in seconds

        Returns:
            Unique ownership token if acquired, None if already held
        """
        token = str(uuid.uuid4())
        result = await self._call(
            "lock", "set", self._make_lock_key(key), token, nx=True, ex=ttl
        )
        if result:
            return token
        return None

    async def release_lock(self, key: str, token: str) -> bool:
        """
        Release a lock safely using Lua script.

        Only deletes the key if the stored value matches our token,
        so a lock that expired and was re-acquired by someone else is kept.
        """
        result = await self._call(
            "unlock", "eval", self._RELEASE_LOCK_SCRIPT, 1, self._make_lock_key(key), token
        )
        return int(result) > 0

    async def health_check(self) -> bool:
        """Check Redis connection."""
        try:
            await self._get_client().ping()
            return True
        except RedisError as e:
            logger.warning(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Register backend
register_storage_backend("redis", RedisStorage)
