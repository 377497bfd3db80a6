"""Unit tests for XP and Leveling System (wellness_engine/gamification/xp_system.py)"""
import asyncio
import math
import pytest
from unittest.mock import AsyncMock

from wellness_engine.exceptions import StateInconsistencyError, ValidationError
from wellness_engine.gamification.xp_system import (
    XpEngine,
    calculate_level_from_xp,
    calculate_xp_to_next_level,
    get_level_progress,
    get_xp_for_activity,
    xp_key,
)


def _bonus(multiplier=1.0):
    evaluator = AsyncMock()
    evaluator.calculate_xp_bonus = AsyncMock(return_value=multiplier)
    return evaluator


@pytest.fixture
def xp_engine(kv):
    return XpEngine(kv, _bonus())


# ============================================================================
# Level Calculation Tests
# ============================================================================

@pytest.mark.parametrize("total_xp,level", [
    (0, 1),
    (99, 1),
    (100, 2),
    (399, 2),
    (400, 3),
    (900, 4),
    (10_000, 11),
])
def test_calculate_level_from_xp(total_xp, level):
    assert calculate_level_from_xp(total_xp) == level


def test_level_matches_sqrt_formula():
    for total_xp in range(0, 5000, 37):
        assert calculate_level_from_xp(total_xp) == math.floor(math.sqrt(total_xp / 100)) + 1


def test_level_is_monotonic():
    levels = [calculate_level_from_xp(x) for x in range(0, 3000, 10)]
    assert levels == sorted(levels)


def test_xp_to_next_level_and_progress():
    assert calculate_xp_to_next_level(0) == 100
    assert calculate_xp_to_next_level(150) == 250
    assert get_level_progress(0) == 0
    assert get_level_progress(250) == pytest.approx(50.0)


# ============================================================================
# XP Award Rules
# ============================================================================

def test_get_xp_for_activity():
    assert get_xp_for_activity("workout", duration=600, intensity="Beginner") == 50 + 100 + 20
    assert get_xp_for_activity("workout", duration=60, intensity="Intermediate") == 50 + 10 + 30
    assert get_xp_for_activity("workout", duration=0, intensity="Advanced") == 90
    assert get_xp_for_activity("steps", steps=10_000) == 50
    assert get_xp_for_activity("meal_logged") == 10
    assert get_xp_for_activity("sleep_logged", duration=8) == 30
    assert get_xp_for_activity("sleep_logged", duration=6) == 15
    assert get_xp_for_activity("sleep_logged", duration=10) == 20
    assert get_xp_for_activity("sleep_logged", duration=3) == 5
    assert get_xp_for_activity("juggling") == 0


# ============================================================================
# XpEngine Tests
# ============================================================================

@pytest.mark.asyncio
async def test_new_user_has_zero_xp(xp_engine):
    assert await xp_engine.get_xp("alice") == 0
    assert await xp_engine.get_level("alice") == 1


@pytest.mark.asyncio
async def test_add_xp_accumulates(xp_engine):
    assert await xp_engine.add_xp("alice", 60) == 60
    assert await xp_engine.add_xp("alice", 50, "meal") == 110
    assert await xp_engine.get_level("alice") == 2


@pytest.mark.parametrize("multiplier,expected", [(1.1, 110), (1.2, 120), (1.0, 100)])
@pytest.mark.asyncio
async def test_add_xp_applies_multiplier_with_floor(kv, multiplier, expected):
    engine = XpEngine(kv, _bonus(multiplier))

    assert await engine.add_xp("alice", 100) == expected


@pytest.mark.asyncio
async def test_add_xp_floors_fractional_awards(kv):
    engine = XpEngine(kv, _bonus(1.1))

    assert await engine.add_xp("alice", 15) == 16


@pytest.mark.parametrize("amount", [0, -5, True, "10", None, 0.5, 10.0, float("nan"), float("inf")])
@pytest.mark.asyncio
async def test_add_xp_rejects_invalid_amounts(xp_engine, amount):
    with pytest.raises(ValidationError) as exc_info:
        await xp_engine.add_xp("alice", amount)

    assert exc_info.value.field == "amount"
    assert await xp_engine.get_xp("alice") == 0


@pytest.mark.asyncio
async def test_concurrent_awards_are_not_lost(xp_engine):
    await asyncio.gather(*(xp_engine.add_xp("alice", 10) for _ in range(25)))

    assert await xp_engine.get_xp("alice") == 250


@pytest.mark.asyncio
async def test_corrupt_total_raises_state_inconsistency(kv, xp_engine):
    await kv.set(xp_key("alice"), "lots")

    with pytest.raises(StateInconsistencyError):
        await xp_engine.get_xp("alice")
    with pytest.raises(StateInconsistencyError):
        await xp_engine.add_xp("alice", 10)


@pytest.mark.asyncio
async def test_negative_total_is_inconsistent(kv, xp_engine):
    await kv.set(xp_key("alice"), -10)

    with pytest.raises(StateInconsistencyError):
        await xp_engine.get_xp("alice")


@pytest.mark.asyncio
async def test_level_info(xp_engine):
    await xp_engine.add_xp("alice", 450)

    info = await xp_engine.get_level_info("alice")

    assert info.total_xp == 450
    assert info.current_level == 3
    assert info.xp_to_next_level == 450
    assert 0 <= info.level_progress <= 100


@pytest.mark.asyncio
async def test_bonus_evaluated_per_award(kv):
    evaluator = _bonus(1.0)
    engine = XpEngine(kv, evaluator)

    await engine.add_xp("alice", 10)
    await engine.add_xp("bob", 10)

    assert evaluator.calculate_xp_bonus.await_count == 2
