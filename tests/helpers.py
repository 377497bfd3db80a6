"""Shared builders for wellness engine tests"""
from datetime import datetime, timedelta, timezone
from typing import Optional

FIXED_NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)

VALID_COMPLETION = (
    '{"insights": ["Steps are trending up", "Calories are balanced", "Sleep is steady"], '
    '"recommendations": ["Walk after lunch", "Add protein at breakfast", "Keep a fixed bedtime"]}'
)


class ManualClock:
    """Epoch-seconds clock that only moves when told to"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def days_ago(n: int, hour: int = 9) -> datetime:
    """Timestamp n days before FIXED_NOW at the given hour"""
    day = FIXED_NOW - timedelta(days=n)
    return day.replace(hour=hour, minute=0, second=0, microsecond=0)


def make_record(
    user_id: str = "alice",
    record_type: str = "activity",
    timestamp: Optional[datetime] = None,
    category: Optional[str] = None,
    **metrics,
) -> dict:
    """Plain-dict record as a caller would submit it"""
    record = {
        "user_id": user_id,
        "type": record_type,
        "timestamp": (timestamp or FIXED_NOW).isoformat(),
        "metrics": metrics,
    }
    if category:
        record["category"] = category
    return record


def steps_record(n_days_ago: int, steps: float, user_id: str = "alice") -> dict:
    return make_record(user_id, "steps", days_ago(n_days_ago), quantity=steps)


def meal_record(n_days_ago: int, calories: float, user_id: str = "alice", **extra) -> dict:
    return make_record(user_id, "meal", days_ago(n_days_ago, hour=13), calories=calories, **extra)


def workout_record(n_days_ago: int, calories: float, duration: float = 30, user_id: str = "alice") -> dict:
    return make_record(user_id, "workout", days_ago(n_days_ago, hour=18), calories=calories, duration=duration)


def sleep_record(n_days_ago: int, hours: float, quality: float = 0.8, user_id: str = "alice") -> dict:
    return make_record(user_id, "sleep", days_ago(n_days_ago, hour=6), duration=hours * 60, quality=quality)
