"""Tests for the memory and JSON file storage backends and the registry."""

import json

import pytest

from awaylog.core.config import Config
from awaylog.core.exceptions import ConfigurationError, StorageError
from awaylog.storage import (
    InMemoryStorage,
    JSONFileStorage,
    RedisStorage,
    get_storage,
    list_storage_backends,
)

RECORD = {
    "id": "e-1",
    "departureTime": "2024-01-01T10:00:00.000Z",
    "estimatedDuration": 30,
    "returnTime": None,
    "lateBy": None,
}


class TestInMemoryStorage:
    """Tests for InMemoryStorage."""

    @pytest.mark.asyncio
    async def test_absent_collection_is_empty(self, storage):
        assert await storage.load("entries") == []

    @pytest.mark.asyncio
    async def test_save_replaces(self, storage):
        await storage.save("entries", [RECORD, {**RECORD, "id": "e-2"}])
        await storage.save("entries", [RECORD])

        assert await storage.load("entries") == [RECORD]

    @pytest.mark.asyncio
    async def test_copies_on_load_and_save(self, storage):
        records = [dict(RECORD)]
        await storage.save("entries", records)
        records[0]["lateBy"] = 99

        loaded = await storage.load("entries")
        loaded[0]["id"] = "changed"

        assert await storage.load("entries") == [RECORD]

    @pytest.mark.asyncio
    async def test_lock_ownership(self, storage):
        token = await storage.acquire_lock("k", ttl=30)
        assert token is not None
        assert await storage.acquire_lock("k", ttl=30) is None

        assert await storage.release_lock("k", "wrong-token") is False
        assert await storage.release_lock("k", token) is True
        assert await storage.acquire_lock("k", ttl=30) is not None

    @pytest.mark.asyncio
    async def test_health_check(self, storage):
        assert await storage.health_check() is True


class TestJSONFileStorage:
    """Tests for JSONFileStorage."""

    @pytest.fixture
    def file_storage(self, tmp_path):
        return JSONFileStorage(tmp_path / "data.json")

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, file_storage):
        assert await file_storage.load("entries") == []

    @pytest.mark.asyncio
    async def test_entries_stored_as_bare_list(self, file_storage):
        await file_storage.save("entries", [RECORD])

        on_disk = json.loads(file_storage.path.read_text())
        assert on_disk == [RECORD]
        assert await file_storage.load("entries") == [RECORD]

    @pytest.mark.asyncio
    async def test_reads_existing_bare_list(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps([RECORD]))

        assert await JSONFileStorage(path).load("entries") == [RECORD]

    @pytest.mark.asyncio
    async def test_other_collections_keyed(self, file_storage):
        await file_storage.save("entries", [RECORD])
        await file_storage.save("archive", [{**RECORD, "id": "old"}])

        on_disk = json.loads(file_storage.path.read_text())
        assert set(on_disk) == {"entries", "archive"}
        assert await file_storage.load("entries") == [RECORD]
        assert (await file_storage.load("archive"))[0]["id"] == "old"
        assert await file_storage.load("unknown") == []

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, file_storage):
        file_storage.path.write_text("{not json")

        with pytest.raises(StorageError, match="invalid JSON"):
            await file_storage.load("entries")

    @pytest.mark.asyncio
    async def test_non_object_records_raise(self, file_storage):
        file_storage.path.write_text(json.dumps([1, 2]))

        with pytest.raises(StorageError):
            await file_storage.load("entries")

    @pytest.mark.asyncio
    async def test_empty_file_is_empty(self, file_storage):
        file_storage.path.write_text("")
        assert await file_storage.load("entries") == []

    @pytest.mark.asyncio
    async def test_flock(self, tmp_path):
        first = JSONFileStorage(tmp_path / "data.json")
        second = JSONFileStorage(tmp_path / "data.json")

        token = await first.acquire_lock("collection:entries")
        assert token is not None
        assert await second.acquire_lock("collection:entries") is None

        assert await first.release_lock("collection:entries", token) is True
        other = await second.acquire_lock("collection:entries")
        assert other is not None
        await second.release_lock("collection:entries", other)

    @pytest.mark.asyncio
    async def test_health_check(self, file_storage):
        assert await file_storage.health_check() is True


class TestRegistry:
    """Tests for backend lookup."""

    def test_builtin_backends_registered(self) -> None:
        assert {"memory", "file", "redis"} <= set(list_storage_backends())

    def test_get_storage_by_name(self, tmp_path) -> None:
        config = Config(data_file=str(tmp_path / "d.json"))

        assert isinstance(get_storage("memory", config=config), InMemoryStorage)
        file_storage = get_storage("file", config=config)
        assert isinstance(file_storage, JSONFileStorage)
        assert file_storage.path == tmp_path / "d.json"

    def test_get_storage_from_config(self) -> None:
        storage = get_storage(config=Config(storage_backend="redis", redis_prefix="x"))
        assert isinstance(storage, RedisStorage)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown storage backend"):
            get_storage("sqlite", config=Config())
