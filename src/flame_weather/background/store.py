"""Small key-value store shared by the refresh worker and the widget."""

import logging
from typing import Dict, Mapping, Optional, Protocol

import redis.asyncio as redis

from flame_weather.config import CACHE_BACKEND, CACHE_HASH_NAME, REDIS_URL

logger = logging.getLogger(__name__)

KEY_TEMPERATURE = "last_temp"
KEY_LOCATION = "last_loc"
KEY_SYMBOL = "last_symbol"


class KeyValueStore(Protocol):
    async def write(self, values: Mapping[str, str]) -> None:
        ...

    async def read(self) -> Dict[str, str]:
        ...

    async def close(self) -> None:
        ...


class RedisKeyValueStore:
    """Store backed by one Redis hash.

    All fields are written in a single HSET, so readers see either the old or
    the new values of a field, never a partial string.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, name: str = CACHE_HASH_NAME):
        self.redis_client = redis_client or redis.from_url(REDIS_URL, decode_responses=True)
        self.name = name

    async def write(self, values: Mapping[str, str]) -> None:
        await self.redis_client.hset(self.name, mapping=dict(values))

    async def read(self) -> Dict[str, str]:
        raw = await self.redis_client.hgetall(self.name)
        return {
            (k.decode() if isinstance(k, bytes) else k): (v.decode() if isinstance(v, bytes) else v)
            for k, v in raw.items()
        }

    async def close(self) -> None:
        await self.redis_client.aclose()


class MemoryKeyValueStore:
    """Process-local store for running without Redis."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    async def write(self, values: Mapping[str, str]) -> None:
        self._values = {**self._values, **values}

    async def read(self) -> Dict[str, str]:
        return dict(self._values)

    async def close(self) -> None:
        pass


def create_store() -> KeyValueStore:
    """Build the store selected by CACHE_BACKEND."""
    if CACHE_BACKEND == "memory":
        logger.info("Using in-memory widget cache")
        return MemoryKeyValueStore()
    logger.info(f"Using Redis widget cache at {REDIS_URL}")
    return RedisKeyValueStore()
