"""Shared test doubles."""

import asyncio
from datetime import datetime, timezone

from awaylog.storage.memory import InMemoryStorage

FIXED_NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class SlowStorage(InMemoryStorage):
    """Memory storage that yields to the event loop on every call."""

    def __init__(self, delay: float = 0) -> None:
        super().__init__()
        self.delay = delay
        self.saves = 0

    async def load(self, collection):
        await asyncio.sleep(self.delay)
        return await super().load(collection)

    async def save(self, collection, records):
        await asyncio.sleep(self.delay)
        self.saves += 1
        await super().save(collection, records)
