"""
JSON File Storage Backend.

Keeps collections in a single pretty-printed JSON file. A file holding a
bare list is treated as the default collection, which is how a plain
``data.json`` of entries is laid out; with several collections the file
holds an object keyed by collection name.

Writes go to a temp file that is then renamed over the original, so a
reader never sees a half-written file. Locks are ``flock`` locks on a
sibling ``.lock`` file and therefore also hold across processes.
"""

from __future__ import annotations

import asyncio
import errno
import fcntl
import json
import os
import tempfile
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from awaylog.core.exceptions import StorageError
from awaylog.core.logging import get_logger
from awaylog.storage.base import StorageBackend, register_storage_backend

if TYPE_CHECKING:
    from awaylog.core.config import Config

logger = get_logger("storage.file")

DEFAULT_COLLECTION = "entries"


class JSONFileStorage(StorageBackend):
    """File-backed storage for single-host deployments."""

    name = "file"

    def __init__(self, path: str | os.PathLike[str] = "data.json") -> None:
        self._path = Path(path)
        self._held: dict[str, tuple[str, int]] = {}

    @classmethod
    def from_config(cls, config: Config) -> JSONFileStorage:
        return cls(path=config.data_file)

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> Any:
        if not self._path.exists():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Error reading data file {self._path}: {e}")
            raise StorageError(
                "Could not read data file", backend=self.name, details={"path": str(self._path)}
            ) from e
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Data file {self._path} holds invalid JSON: {e}")
            raise StorageError(
                "Data file holds invalid JSON", backend=self.name, details={"path": str(self._path)}
            ) from e

    def _write_document(self, document: Any) -> None:
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, indent=2)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error(f"Error writing data file {self._path}: {e}")
            raise StorageError(
                "Could not write data file", backend=self.name, details={"path": str(self._path)}
            ) from e

    def _load_sync(self, collection: str) -> list[dict[str, Any]]:
        document = self._read_document()
        if isinstance(document, list) and collection == DEFAULT_COLLECTION:
            return self._decode_collection(collection, document)
        if isinstance(document, dict):
            return self._decode_collection(collection, document.get(collection))
        if document is None or isinstance(document, list):
            return []
        raise StorageError(
            "Data file has an unexpected layout",
            backend=self.name,
            details={"type": type(document).__name__},
        )

    def _save_sync(self, collection: str, records: list[dict[str, Any]]) -> None:
        document = self._read_document()
        if collection == DEFAULT_COLLECTION and (document is None or isinstance(document, list)):
            self._write_document(list(records))
            return

        if document is None:
            document = {}
        elif isinstance(document, list):
            document = {DEFAULT_COLLECTION: document}
        elif not isinstance(document, dict):
            raise StorageError("Data file has an unexpected layout", backend=self.name)
        document[collection] = list(records)
        self._write_document(document)

    async def load(self, collection: str) -> list[dict[str, Any]]:
        """Load a collection from the data file."""
        return await asyncio.to_thread(self._load_sync, collection)

    async def save(self, collection: str, records: list[dict[str, Any]]) -> None:
        """Replace a collection in the data file."""
        await asyncio.to_thread(self._save_sync, collection, records)

    def _lock_path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self._path.with_name(f"{self._path.name}.{safe}.lock")

    async def acquire_lock(self, key: str, ttl: int = 30) -> str | None:
        """
        Take a non-blocking exclusive ``flock``.

        ``ttl`` is unused: the OS drops the lock when the holder exits.
        """
        if key in self._held:
            return None

        lock_path = self._lock_path(key)
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            raise StorageError(
                "Could not open lock file", backend=self.name, details={"path": str(lock_path)}
            ) from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            if e.errno in (errno.EACCES, errno.EAGAIN):
                return None
            raise StorageError(
                "Could not lock data file", backend=self.name, details={"path": str(lock_path)}
            ) from e

        token = str(uuid.uuid4())
        self._held[key] = (token, fd)
        return token

    async def release_lock(self, key: str, token: str) -> bool:
        """Release a held ``flock``."""
        held = self._held.get(key)
        if held is None or held[0] != token:
            return False
        del self._held[key]
        fd = held[1]
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)
        logger.debug(f"Unlocked {self._lock_path(key)}")
        return True

    async def health_check(self) -> bool:
        """Data directory must exist and be writable."""
        directory = self._path.parent
        return directory.exists() and os.access(directory, os.W_OK)


register_storage_backend("file", JSONFileStorage)
