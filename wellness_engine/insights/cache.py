"""
Time-boxed insight cache

Entries are stored in the key-value store under a typed (user_id, period)
key and are valid for `ttl` seconds. A fresh entry is served without
touching the completion provider; stale entries are purged when read.

Writes always replace the whole entry. If computing a payload fails, the
cache is left untouched and the deterministic fallback payload is
returned instead.
"""

import json
import logging
import math
import time
from typing import Any, Awaitable, Callable, Optional

from wellness_engine.config import INSIGHT_CACHE_TTL_SECONDS
from wellness_engine.exceptions import SerializationError, WellnessEngineError
from wellness_engine.insights.parsing import fallback_payload
from wellness_engine.models.insight import InsightCacheEntry, InsightCacheKey
from wellness_engine.resilience.metrics import record_cache_lookup, record_insight_fallback
from wellness_engine.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

ComputeFn = Callable[[], Awaitable[dict[str, Any]]]

KNOWN_PERIODS = ("day", "week", "month")


def ensure_serializable(payload: Any) -> str:
    """Strict JSON encoding (no NaN/Infinity); raises SerializationError"""
    try:
        return json.dumps(payload, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Insight payload is not JSON-serializable: {e}",
            operation="insight_cache_store",
            cause=e,
        ) from e


class InsightCache:
    """Per-(user, period) cache of computed insight payloads"""

    def __init__(
        self,
        kv: KeyValueStore,
        ttl: float = INSIGHT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.kv = kv
        self.ttl = ttl
        self.clock = clock
        self._stats = {
            "hits": 0,
            "misses": 0,
            "expired": 0,
            "regenerations": 0,
            "fallbacks": 0,
            "store_skipped": 0,
            "invalidations": 0,
        }

    async def _load(self, storage_key: str) -> Optional[InsightCacheEntry]:
        raw = await self.kv.get(storage_key)
        if raw is None:
            return None
        try:
            return InsightCacheEntry.model_validate(raw)
        except ValueError:
            logger.warning(f"[INSIGHT_CACHE] Dropping malformed entry at {storage_key}")
            await self.kv.delete(storage_key)
            return None

    async def get_or_compute(
        self,
        user_id: str,
        period: str,
        regenerate: bool,
        compute_fn: ComputeFn,
    ) -> dict[str, Any]:
        """
        Return the cached payload or compute, store and return a new one.

        Args:
            user_id: Owner of the entry
            period: Insight period label ("day", "week", "month")
            regenerate: Skip the cached value even if it is fresh
            compute_fn: Coroutine factory producing a JSON-serializable dict

        Returns:
            The payload dict. Never raises for compute or storage failures.
        """
        key = InsightCacheKey(user_id=user_id, period=period)
        storage_key = key.storage_key()
        now = self.clock()

        try:
            entry = None if regenerate else await self._load(storage_key)
        except WellnessEngineError as e:
            logger.warning(f"[INSIGHT_CACHE] Lookup failed for {key}: {e.message}")
            entry = None

        if entry is not None:
            if entry.is_fresh(now, self.ttl):
                self._stats["hits"] += 1
                record_cache_lookup("hit")
                logger.debug(f"[INSIGHT_CACHE] Hit for {key}")
                return entry.payload

            # Lazy purge
            self._stats["expired"] += 1
            record_cache_lookup("expired")
            try:
                await self.kv.delete(storage_key)
            except WellnessEngineError as e:
                logger.warning(f"[INSIGHT_CACHE] Could not purge {key}: {e.message}")
        elif regenerate:
            self._stats["regenerations"] += 1
            record_cache_lookup("regenerate")
        else:
            self._stats["misses"] += 1
            record_cache_lookup("miss")

        try:
            payload = await compute_fn()
        except Exception as e:
            self._stats["fallbacks"] += 1
            record_insight_fallback("upstream_error")
            logger.warning(
                f"[INSIGHT_CACHE] Compute failed for {key} ({type(e).__name__}); serving fallback"
            )
            return fallback_payload().model_dump()

        try:
            ensure_serializable(payload)
        except SerializationError:
            self._stats["store_skipped"] += 1
            record_insight_fallback("serialization")
            return payload

        entry = InsightCacheEntry(payload=payload, timestamp=self.clock())
        try:
            await self.kv.set(storage_key, entry.model_dump(), ttl=math.ceil(self.ttl))
        except WellnessEngineError as e:
            self._stats["store_skipped"] += 1
            logger.warning(f"[INSIGHT_CACHE] Store failed for {key}: {e.message}")
        return payload

    async def invalidate(self, user_id: str, period: Optional[str] = None) -> int:
        """Drop one period, or every known period when period is None"""
        periods = [period] if period is not None else list(KNOWN_PERIODS)
        removed = 0
        for p in periods:
            if await self.kv.delete(InsightCacheKey(user_id=user_id, period=p).storage_key()):
                removed += 1
        self._stats["invalidations"] += removed
        if removed:
            logger.info(f"[INSIGHT_CACHE] Invalidated {removed} entr{'y' if removed == 1 else 'ies'} for {user_id}")
        return removed

    def get_stats(self) -> dict[str, Any]:
        lookups = self._stats["hits"] + self._stats["misses"] + self._stats["expired"]
        hit_rate = (self._stats["hits"] / lookups * 100) if lookups else 0.0
        return {
            **self._stats,
            "lookups": lookups,
            "hit_rate_percent": round(hit_rate, 2),
            "ttl_seconds": self.ttl,
        }
