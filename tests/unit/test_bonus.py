"""Unit tests for the streak bonus evaluator (wellness_engine/gamification/bonus.py)"""
import pytest
from datetime import date, timedelta
from unittest.mock import AsyncMock

from wellness_engine.gamification.bonus import StreakBonusEvaluator, evaluate_streaks
from wellness_engine.models.aggregate import DayPoint
from wellness_engine.services.aggregator import TimeAggregator

from tests.helpers import meal_record, sleep_record, steps_record, workout_record


def _points(*days, total=7):
    """Day points for the last len(days) days of a 7-day window, oldest first"""
    start = date(2024, 5, 4)
    padding = [DayPoint(day=start + timedelta(days=i), label="") for i in range(total - len(days))]
    filled = [
        DayPoint(
            day=start + timedelta(days=total - len(days) + i),
            label="",
            record_count=1,
            **values,
        )
        for i, values in enumerate(days)
    ]
    return padding + filled


# ============================================================================
# Rule Tests (pure)
# ============================================================================

def test_steps_streak_gives_ten_percent():
    bonus = evaluate_streaks(_points({"steps": 7000}, {"steps": 6500}, {"steps": 8000}))

    assert bonus.steps_streak is True
    assert bonus.multiplier == 1.1


def test_threshold_is_strict():
    """Exactly 6000 steps does not count"""
    bonus = evaluate_streaks(_points({"steps": 6000}, {"steps": 7000}, {"steps": 7000}))

    assert bonus.steps_streak is False
    assert bonus.multiplier == 1.0


def test_calorie_streak_when_no_steps_streak():
    day = {"calories_in": 1800, "calories_out": 2000}
    bonus = evaluate_streaks(_points(day, day, day))

    assert bonus.calorie_streak is True
    assert bonus.multiplier == 1.1


def test_steps_and_calorie_streaks_do_not_stack():
    day = {"steps": 9000, "calories_in": 1000, "calories_out": 2000}
    bonus = evaluate_streaks(_points(day, day, day))

    assert bonus.steps_streak is True
    assert bonus.calorie_streak is False
    assert bonus.multiplier == 1.1


def test_calorie_deficit_needs_buffer():
    day = {"calories_in": 1900, "calories_out": 2000}
    assert evaluate_streaks(_points(day, day, day)).multiplier == 1.0


def test_sleep_streak_stacks_with_steps():
    day = {"steps": 9000, "sleep_hours": 7.5}
    bonus = evaluate_streaks(_points(day, day, day))

    assert bonus.sleep_streak is True
    assert bonus.multiplier == 1.2


def test_sleep_streak_alone():
    day = {"sleep_hours": 8}
    assert evaluate_streaks(_points(day, day, day)).multiplier == 1.1


def test_fewer_than_three_days_of_data_gives_no_bonus():
    day = {"steps": 9000, "sleep_hours": 8}
    bonus = evaluate_streaks(_points(day, day))

    assert bonus.multiplier == 1.0
    assert bonus.steps_streak is False


def test_short_series_gives_no_bonus():
    day = {"steps": 9000}
    assert evaluate_streaks(_points(day, day, total=2)).multiplier == 1.0


def test_streak_must_cover_most_recent_days():
    """Old data does not count when the last day is empty"""
    points = _points({"steps": 9000}, {"steps": 9000}, {"steps": 9000}, {})
    points[-1] = DayPoint(day=points[-1].day, label="")

    assert evaluate_streaks(points).multiplier == 1.0


# ============================================================================
# Evaluator Tests
# ============================================================================

@pytest.mark.asyncio
async def test_evaluator_reads_weekly_series(record_store, clock):
    for n in range(3):
        await record_store.append(steps_record(n, 8000))
        await record_store.append(sleep_record(n, 8))
    evaluator = StreakBonusEvaluator(TimeAggregator(record_store, clock=clock))

    assert await evaluator.calculate_xp_bonus("alice") == 1.2


@pytest.mark.asyncio
async def test_evaluator_calorie_streak_from_records(record_store, clock):
    for n in range(3):
        await record_store.append(meal_record(n, 1500))
        await record_store.append(workout_record(n, 1700))
    evaluator = StreakBonusEvaluator(TimeAggregator(record_store, clock=clock))

    bonus = await evaluator.evaluate("alice")

    assert bonus.calorie_streak is True
    assert bonus.multiplier == 1.1


@pytest.mark.asyncio
async def test_evaluator_failure_gives_base_multiplier(clock):
    aggregator = AsyncMock()
    aggregator.clock = clock
    aggregator.daily_series.side_effect = RuntimeError("boom")
    evaluator = StreakBonusEvaluator(aggregator)

    assert await evaluator.calculate_xp_bonus("alice") == 1.0
