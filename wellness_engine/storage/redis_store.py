"""
Redis-backed key-value store.

Provides async Redis operations with:
- Automatic JSON serialization/deserialization
- Atomic INCRBY for XP totals and RPUSH for the record ledger
- TTL support
- Operation statistics
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from wellness_engine.exceptions import StorageError, wrap_external_exception
from wellness_engine.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """
    Async Redis store.

    Unlike a best-effort cache, this is the source of truth: failures are
    raised as StorageError rather than silently degraded.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", client: Optional[Any] = None):
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            client: Pre-built redis.asyncio client (tests inject fakes here)
        """
        self.redis_url = redis_url
        self._client = client
        self._stats = {
            "reads": 0,
            "writes": 0,
            "errors": 0,
        }

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._client is not None:
            return

        try:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=10,
            )
            await self._client.ping()
            logger.info(f"Redis connected: {self.redis_url}")
        except redis.RedisError as e:
            self._client = None
            raise wrap_external_exception(e, operation="redis_connect")

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            try:
                await self._client.aclose()
                logger.info("Redis connection closed")
            except redis.RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            self._client = None

    def _require_client(self) -> Any:
        if self._client is None:
            raise StorageError("Redis store is not connected", operation="redis_client")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        client = self._require_client()
        try:
            value = await client.get(key)
            self._stats["reads"] += 1
        except redis.RedisError as e:
            self._stats["errors"] += 1
            raise wrap_external_exception(e, operation="kv_get", context={"key": key})

        if value is None:
            return None

        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            self._stats["errors"] += 1
            raise StorageError(f"Corrupt JSON at key '{key}'", key=key, cause=e)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        client = self._require_client()
        serialized = json.dumps(value)
        try:
            if ttl:
                await client.setex(key, ttl, serialized)
            else:
                await client.set(key, serialized)
            self._stats["writes"] += 1
            logger.debug(f"KV SET: {key} (TTL: {ttl}s)")
        except redis.RedisError as e:
            self._stats["errors"] += 1
            raise wrap_external_exception(e, operation="kv_set", context={"key": key})

    async def delete(self, key: str) -> bool:
        client = self._require_client()
        try:
            result = await client.delete(key)
            self._stats["writes"] += 1
            return result > 0
        except redis.RedisError as e:
            self._stats["errors"] += 1
            raise wrap_external_exception(e, operation="kv_delete", context={"key": key})

    async def incr(self, key: str, amount: int) -> int:
        client = self._require_client()
        try:
            value = await client.incrby(key, amount)
            self._stats["writes"] += 1
            return int(value)
        except redis.RedisError as e:
            self._stats["errors"] += 1
            raise wrap_external_exception(e, operation="kv_incr", context={"key": key})

    async def append(self, key: str, value: Any) -> int:
        client = self._require_client()
        try:
            length = await client.rpush(key, json.dumps(value))
            self._stats["writes"] += 1
            return int(length)
        except redis.RedisError as e:
            self._stats["errors"] += 1
            raise wrap_external_exception(e, operation="kv_append", context={"key": key})

    async def get_list(self, key: str) -> list[Any]:
        client = self._require_client()
        try:
            raw_items = await client.lrange(key, 0, -1)
            self._stats["reads"] += 1
        except redis.RedisError as e:
            self._stats["errors"] += 1
            raise wrap_external_exception(e, operation="kv_get_list", context={"key": key})

        items = []
        for index, item in enumerate(raw_items):
            try:
                items.append(json.loads(item))
            except json.JSONDecodeError as e:
                self._stats["errors"] += 1
                logger.error(f"Skipping corrupt list item {index} at key '{key}': {e}")
        return items

    def get_stats(self) -> dict[str, Any]:
        """Get operation statistics."""
        return dict(self._stats)
