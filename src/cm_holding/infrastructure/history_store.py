"""Consignment-history flag stores.

The flag is write-once: keys are created with SET NX and no expiry and are
never deleted, so a later NOT_CONSIGNED observation cannot clear them.
"""

import redis.asyncio as aioredis

from config.settings import settings
from src.cm_common.enums import ConsignmentStatus


class RedisHistoryFlagStore:
    def __init__(self, redis: aioredis.Redis, key_prefix: str | None = None) -> None:
        self._redis = redis
        self._prefix = key_prefix if key_prefix is not None else settings.HISTORY_KEY_PREFIX

    def _key(self, holding_id: str) -> str:
        return f"{self._prefix}{holding_id}"

    async def has_history(self, holding_id: str) -> bool:
        return bool(await self._redis.exists(self._key(holding_id)))

    async def mark(self, holding_id: str) -> None:
        await self._redis.set(self._key(holding_id), "1", nx=True)

    async def observe(self, holding_id: str, status: ConsignmentStatus) -> bool:
        if status is not ConsignmentStatus.NOT_CONSIGNED:
            await self.mark(holding_id)
            return True
        return await self.has_history(holding_id)


class InMemoryHistoryFlagStore:
    """Process-local store for tests and Redis-less local runs."""

    def __init__(self) -> None:
        self._flags: set[str] = set()

    async def has_history(self, holding_id: str) -> bool:
        return holding_id in self._flags

    async def mark(self, holding_id: str) -> None:
        self._flags.add(holding_id)

    async def observe(self, holding_id: str, status: ConsignmentStatus) -> bool:
        if status is not ConsignmentStatus.NOT_CONSIGNED:
            self._flags.add(holding_id)
        return holding_id in self._flags
