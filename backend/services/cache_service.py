"""
Cache stores for resolved cover outcomes.

Entries are JSON-encoded ``CacheEntry`` values with a per-entry TTL. Redis is
the shared production backend; the memory store is for local runs and tests.
"""

import logging
import time
from typing import Optional, Protocol

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from models.schemas import CacheEntry, cache_entry_adapter

logger = logging.getLogger(__name__)

MEMORY_CACHE_URL = "memory://"


class CacheStore(Protocol):
    """Key-value store with per-entry expiration."""

    async def get(self, key: str) -> Optional[CacheEntry]:
        ...

    async def put(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


def encode_entry(entry: CacheEntry) -> str:
    return entry.model_dump_json()


def decode_entry(raw) -> Optional[CacheEntry]:
    """Parse a stored value, treating anything unreadable as a miss."""
    try:
        return cache_entry_adapter.validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Discarding unreadable cache value {raw!r}: {e}")
        return None


class MemoryCacheStore:
    """Process-local store. Expired entries are dropped on read and on every write."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[CacheEntry]:
        item = self._entries.get(key)
        if item is None:
            return None
        raw, expires_at = item
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return decode_entry(raw)

    async def put(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (encode_entry(entry), now + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def _purge_expired(self, now: float) -> None:
        # Keys that are never read again would otherwise live forever.
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()


class RedisCacheStore:
    """
    Redis-backed store shared by every worker.

    Redis outages never fail a request: reads degrade to misses and writes
    are skipped, so resolution simply runs uncached.
    """

    def __init__(self, client: Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheStore":
        return cls(Redis.from_url(url, decode_responses=True, encoding="utf-8"))

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.warning(f"Redis GET error for {key}: {e}")
            return None
        if raw is None:
            return None
        return decode_entry(raw)

    async def put(self, key: str, entry: CacheEntry, ttl_seconds: int) -> None:
        try:
            await self.client.set(key, encode_entry(entry), ex=ttl_seconds)
        except RedisError as e:
            logger.warning(f"Redis SET error for {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as e:
            logger.warning(f"Redis DELETE error for {key}: {e}")

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis PING error: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


def build_cache_store(url: str) -> CacheStore:
    if url == MEMORY_CACHE_URL:
        logger.info("Using in-memory cover cache")
        return MemoryCacheStore()
    logger.info("Using Redis cover cache")
    return RedisCacheStore.from_url(url)
