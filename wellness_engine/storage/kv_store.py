"""
Async key-value persistence abstraction.

The engine only needs a handful of primitives from its persistence layer:
whole-value get/set/delete, an atomic integer increment, and an append-only
list. Concrete backends:
- InMemoryKeyValueStore: process-local, used by default and in tests
- RedisKeyValueStore (storage/redis_store.py): shared across processes
"""

import asyncio
import copy
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Interface every persistence backend implements"""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None if absent/expired"""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Replace the whole value stored at key"""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove key; True if something was deleted"""

    @abstractmethod
    async def incr(self, key: str, amount: int) -> int:
        """Atomically add amount to the integer at key and return the new value"""

    @abstractmethod
    async def append(self, key: str, value: Any) -> int:
        """Atomically append value to the list at key; returns new length"""

    @abstractmethod
    async def get_list(self, key: str) -> list[Any]:
        """Return every element of the list at key (empty if absent)"""

    async def close(self) -> None:
        """Release backend resources"""
        return None


class InMemoryKeyValueStore(KeyValueStore):
    """
    Process-local store.

    Values are round-tripped through JSON so callers observe the same
    behaviour as the redis backend (no shared mutable references).
    """

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._expiry: dict[str, float] = {}
        self._lock = asyncio.Lock()

    def _expired(self, key: str) -> bool:
        expiry = self._expiry.get(key)
        if expiry is not None and time.time() >= expiry:
            self._data.pop(key, None)
            self._expiry.pop(key, None)
            logger.debug(f"KV EXPIRED: {key}")
            return True
        return False

    async def get(self, key: str) -> Optional[Any]:
        if self._expired(key) or key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        stored = json.loads(json.dumps(value))
        async with self._lock:
            self._data[key] = stored
            if ttl:
                self._expiry[key] = time.time() + ttl
            else:
                self._expiry.pop(key, None)
        logger.debug(f"KV SET: {key} (TTL: {ttl}s)")

    async def delete(self, key: str) -> bool:
        async with self._lock:
            self._expiry.pop(key, None)
            return self._data.pop(key, None) is not None

    async def incr(self, key: str, amount: int) -> int:
        async with self._lock:
            self._expired(key)
            current = self._data.get(key, 0)
            if not isinstance(current, int):
                raise TypeError(f"value at '{key}' is not an integer")
            self._data[key] = current + amount
            return self._data[key]

    async def append(self, key: str, value: Any) -> int:
        stored = json.loads(json.dumps(value))
        async with self._lock:
            items = self._data.setdefault(key, [])
            if not isinstance(items, list):
                raise TypeError(f"value at '{key}' is not a list")
            items.append(stored)
            return len(items)

    async def get_list(self, key: str) -> list[Any]:
        items = self._data.get(key)
        if not items:
            return []
        return copy.deepcopy(items)

    def keys(self) -> list[str]:
        return list(self._data.keys())
