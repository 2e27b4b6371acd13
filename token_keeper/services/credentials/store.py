"""Shared credential store.

``CredentialStore`` is the contract the refresh policy consumes;
``RedisCredentialStore`` implements it on top of ``redis.asyncio``. Every
Redis transport error is surfaced as ``StoreUnavailable`` so that a missing
key (``found=False``) is never confused with a failed read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from redis.exceptions import RedisError

from token_keeper.clients.redis_client import close_redis_client
from token_keeper.core.exceptions import StoreUnavailable
from token_keeper.core.logger import logger

if TYPE_CHECKING:
    import redis.asyncio as aioredis


@runtime_checkable
class CredentialStore(Protocol):
    async def read(self, key: str) -> tuple[str, bool]: ...

    async def time_to_live(self, key: str) -> int: ...

    async def write(self, key: str, value: str, ttl: int) -> None: ...

    async def try_lock(self, key: str, ttl: int) -> bool: ...

    async def release_lock(self, key: str) -> None: ...


class RedisCredentialStore:
    def __init__(self, redis: "aioredis.Redis") -> None:
        self.redis = redis

    async def read(self, key: str) -> tuple[str, bool]:
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            raise StoreUnavailable(f"GET {key} failed: {e}") from e
        if raw is None:
            return "", False
        value = raw.decode() if isinstance(raw, bytes) else str(raw)
        return value, True

    async def time_to_live(self, key: str) -> int:
        """Remaining seconds; 0 for a missing key or a key without expiry."""
        try:
            ttl = await self.redis.ttl(key)
        except RedisError as e:
            raise StoreUnavailable(f"TTL {key} failed: {e}") from e
        # -2: no such key, -1: no expiry
        return int(ttl) if isinstance(ttl, int) and ttl > 0 else 0

    async def write(self, key: str, value: str, ttl: int) -> None:
        """Upsert value and expiry in one command, so readers never see a mix."""
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        try:
            await self.redis.set(key, value, ex=ttl)
        except RedisError as e:
            raise StoreUnavailable(f"SET {key} failed: {e}") from e

    async def try_lock(self, key: str, ttl: int) -> bool:
        try:
            return bool(await self.redis.set(key, "1", ex=ttl, nx=True))
        except RedisError as e:
            raise StoreUnavailable(f"SET NX {key} failed: {e}") from e

    async def release_lock(self, key: str) -> None:
        """Best-effort; an unreleased lock simply expires."""
        try:
            await self.redis.delete(key)
        except RedisError as e:
            logger.debug("Refresh lock release failed for {}: {}", key, e)

    async def aclose(self) -> None:
        await close_redis_client(self.redis)
