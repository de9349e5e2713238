"""Tests for RedisStorage against a mocked async client."""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from awaylog.core.exceptions import StorageError
from awaylog.storage.redis import RedisStorage

RECORD = {
    "id": "e-1",
    "departureTime": "2024-01-01T10:00:00.000Z",
    "estimatedDuration": 30,
    "returnTime": "2024-01-01T10:40:00.000Z",
    "lateBy": 10,
}


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def redis_storage(client):
    return RedisStorage(prefix="test", client=client)


class TestLoadSave:
    @pytest.mark.asyncio
    async def test_absent_key_is_empty(self, redis_storage, client):
        client.get.return_value = None

        assert await redis_storage.load("entries") == []
        client.get.assert_awaited_once_with("test:entries")

    @pytest.mark.asyncio
    async def test_load_decodes_json(self, redis_storage, client):
        client.get.return_value = json.dumps([RECORD])
        assert await redis_storage.load("entries") == [RECORD]

    @pytest.mark.asyncio
    async def test_save_writes_whole_collection(self, redis_storage, client):
        await redis_storage.save("entries", [RECORD])

        key, payload = client.set.await_args.args
        assert key == "test:entries"
        assert json.loads(payload) == [RECORD]

    @pytest.mark.asyncio
    async def test_invalid_json(self, redis_storage, client):
        client.get.return_value = "{oops"

        with pytest.raises(StorageError, match="invalid JSON"):
            await redis_storage.load("entries")

    @pytest.mark.asyncio
    async def test_non_list_payload(self, redis_storage, client):
        client.get.return_value = json.dumps({"id": "e-1"})

        with pytest.raises(StorageError, match="not a list"):
            await redis_storage.load("entries")

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, redis_storage, client):
        client.get.side_effect = [RedisConnectionError("Connection refused"), json.dumps([RECORD])]

        assert await redis_storage.load("entries") == [RECORD]
        assert client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_persistent_error_becomes_storage_error(self, client):
        storage = RedisStorage(client=client, attempts=2)
        client.set.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(StorageError) as exc_info:
            await storage.save("entries", [RECORD])

        assert exc_info.value.backend == "redis"
        assert client.set.await_count == 2

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self, redis_storage, client):
        client.get.side_effect = ResponseError("WRONGTYPE Operation against a key")

        with pytest.raises(StorageError):
            await redis_storage.load("entries")
        assert client.get.await_count == 1


class TestLocks:
    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx(self, redis_storage, client):
        client.set.return_value = True

        token = await redis_storage.acquire_lock("collection:entries", ttl=15)

        assert token is not None
        client.set.assert_awaited_once_with(
            "test:locks:collection:entries", token, nx=True, ex=15
        )

    @pytest.mark.asyncio
    async def test_acquire_when_held(self, redis_storage, client):
        client.set.return_value = None
        assert await redis_storage.acquire_lock("collection:entries") is None

    @pytest.mark.asyncio
    async def test_release_checks_token(self, redis_storage, client):
        client.eval.return_value = 1
        assert await redis_storage.release_lock("collection:entries", "tok") is True

        args = client.eval.await_args.args
        assert args[1:] == (1, "test:locks:collection:entries", "tok")

        client.eval.return_value = 0
        assert await redis_storage.release_lock("collection:entries", "stale") is False


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_health_check(self, redis_storage, client):
        assert await redis_storage.health_check() is True

        client.ping.side_effect = RedisConnectionError("down")
        assert await redis_storage.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, redis_storage, client):
        await redis_storage.close()
        client.aclose.assert_awaited_once()
