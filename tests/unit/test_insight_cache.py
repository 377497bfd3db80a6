"""Unit tests for the time-boxed insight cache (wellness_engine/insights/cache.py)"""
import pytest
from unittest.mock import AsyncMock

from wellness_engine.exceptions import SerializationError, StorageError
from wellness_engine.insights.cache import InsightCache, ensure_serializable
from wellness_engine.insights.parsing import FALLBACK_INSIGHTS, FALLBACK_RECOMMENDATIONS
from wellness_engine.models.insight import InsightCacheKey

from tests.helpers import ManualClock

PAYLOAD = {"insights": ["a", "b", "c"], "recommendations": ["x", "y", "z"]}


@pytest.fixture
def insight_cache(kv, cache_clock):
    return InsightCache(kv, ttl=600, clock=cache_clock)


def _compute(payload=PAYLOAD):
    return AsyncMock(return_value=payload)


# ============================================================================
# Hit / Miss Tests
# ============================================================================

@pytest.mark.asyncio
async def test_second_call_within_ttl_is_served_from_cache(insight_cache):
    compute = _compute()

    first = await insight_cache.get_or_compute("alice", "week", False, compute)
    second = await insight_cache.get_or_compute("alice", "week", False, compute)

    assert first == second == PAYLOAD
    assert compute.await_count == 1
    stats = insight_cache.get_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


@pytest.mark.asyncio
async def test_regenerate_bypasses_fresh_entry(insight_cache):
    compute = _compute()

    await insight_cache.get_or_compute("alice", "week", False, compute)
    await insight_cache.get_or_compute("alice", "week", True, compute)

    assert compute.await_count == 2
    assert insight_cache.get_stats()["regenerations"] == 1


@pytest.mark.asyncio
async def test_entry_expires_after_ttl(insight_cache, cache_clock):
    compute = _compute()

    await insight_cache.get_or_compute("alice", "week", False, compute)
    cache_clock.advance(599)
    await insight_cache.get_or_compute("alice", "week", False, compute)
    assert compute.await_count == 1

    cache_clock.advance(1)
    await insight_cache.get_or_compute("alice", "week", False, compute)

    assert compute.await_count == 2
    assert insight_cache.get_stats()["expired"] == 1


@pytest.mark.asyncio
async def test_keys_are_per_user_and_period(insight_cache):
    compute = _compute()

    await insight_cache.get_or_compute("alice", "week", False, compute)
    await insight_cache.get_or_compute("alice", "month", False, compute)
    await insight_cache.get_or_compute("bob", "week", False, compute)

    assert compute.await_count == 3


def test_storage_key_cannot_collide_across_delimiters():
    """'a:b' + 'c' and 'a' + 'b:c' stay distinct"""
    assert InsightCacheKey("a:b", "c").storage_key() != InsightCacheKey("a", "b:c").storage_key()


# ============================================================================
# Failure Tests
# ============================================================================

@pytest.mark.asyncio
async def test_compute_failure_returns_fallback_and_leaves_cache_untouched(insight_cache, kv):
    good = _compute()
    await insight_cache.get_or_compute("alice", "week", False, good)

    failing = AsyncMock(side_effect=RuntimeError("provider down"))
    result = await insight_cache.get_or_compute("alice", "week", True, failing)

    assert result == {
        "insights": FALLBACK_INSIGHTS,
        "recommendations": FALLBACK_RECOMMENDATIONS,
    }
    # The earlier entry survives the failed regeneration
    again = await insight_cache.get_or_compute("alice", "week", False, good)
    assert again == PAYLOAD
    assert good.await_count == 1


@pytest.mark.asyncio
async def test_failure_on_empty_cache_stores_nothing(insight_cache, kv):
    failing = AsyncMock(side_effect=RuntimeError("provider down"))

    await insight_cache.get_or_compute("alice", "week", False, failing)

    assert kv.keys() == []


@pytest.mark.asyncio
async def test_non_serializable_payload_is_returned_but_not_cached(insight_cache, kv):
    payload = {"insights": [float("nan")], "recommendations": []}
    compute = _compute(payload)

    result = await insight_cache.get_or_compute("alice", "week", False, compute)
    await insight_cache.get_or_compute("alice", "week", False, compute)

    assert result is payload
    assert compute.await_count == 2
    assert kv.keys() == []
    assert insight_cache.get_stats()["store_skipped"] == 2


def test_ensure_serializable_rejects_nan_and_objects():
    with pytest.raises(SerializationError):
        ensure_serializable({"value": float("inf")})
    with pytest.raises(SerializationError):
        ensure_serializable({"value": object()})
    assert ensure_serializable(PAYLOAD).startswith("{")


@pytest.mark.asyncio
async def test_lookup_failure_falls_through_to_compute(cache_clock):
    kv = AsyncMock()
    kv.get.side_effect = StorageError("redis down")
    cache = InsightCache(kv, ttl=600, clock=cache_clock)
    compute = _compute()

    result = await cache.get_or_compute("alice", "week", False, compute)

    assert result == PAYLOAD
    kv.set.assert_awaited_once()


@pytest.mark.asyncio
async def test_malformed_entry_is_dropped(insight_cache, kv):
    key = InsightCacheKey("alice", "week").storage_key()
    await kv.set(key, {"unexpected": "shape"})
    compute = _compute()

    result = await insight_cache.get_or_compute("alice", "week", False, compute)

    assert result == PAYLOAD
    assert compute.await_count == 1


# ============================================================================
# Invalidation
# ============================================================================

@pytest.mark.asyncio
async def test_invalidate_single_period(insight_cache):
    compute = _compute()
    await insight_cache.get_or_compute("alice", "week", False, compute)
    await insight_cache.get_or_compute("alice", "month", False, compute)

    assert await insight_cache.invalidate("alice", "week") == 1

    await insight_cache.get_or_compute("alice", "week", False, compute)
    await insight_cache.get_or_compute("alice", "month", False, compute)
    assert compute.await_count == 3


@pytest.mark.asyncio
async def test_invalidate_all_periods(insight_cache, kv):
    compute = _compute()
    for period in ("day", "week", "month"):
        await insight_cache.get_or_compute("alice", period, False, compute)

    assert await insight_cache.invalidate("alice") == 3
    assert kv.keys() == []


def test_stats_report_hit_rate():
    cache = InsightCache(AsyncMock(), ttl=600, clock=ManualClock())

    stats = cache.get_stats()

    assert stats["hit_rate_percent"] == 0.0
    assert stats["ttl_seconds"] == 600
