"""
Streak & Bonus Evaluator

Derives the XP multiplier from the last 3 days of the weekly series.

Rules (base multiplier 1.0):
- Steps streak: all 3 days > 6000 steps -> +0.1
- Calorie streak: only when the steps streak is not granted, all 3 days
  burned > consumed + 100 kcal -> +0.1
- Sleep streak: independently, all 3 days > 7 hours -> +0.1

Fewer than 3 days with data in the window means no bonus at all.
Evaluation is a pure read; nothing is written.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Optional

from wellness_engine.models.aggregate import DayPoint
from wellness_engine.models.gamification import StreakBonus
from wellness_engine.services.aggregator import TimeAggregator

logger = logging.getLogger(__name__)

STREAK_DAYS = 3
STEPS_THRESHOLD = 6000
CALORIE_BUFFER = 100
SLEEP_HOURS_THRESHOLD = 7
STREAK_BONUS = 0.1


def _value(x: Optional[float]) -> float:
    return x or 0


def evaluate_streaks(points: Sequence[DayPoint]) -> StreakBonus:
    """
    Apply the streak rules to a per-day series (oldest first).

    Args:
        points: Day points of the weekly window

    Returns:
        StreakBonus with the rule outcomes and the combined multiplier
    """
    recent = list(points)[-STREAK_DAYS:]
    days_with_data = sum(1 for p in points if p.record_count > 0)

    if len(recent) != STREAK_DAYS or days_with_data < STREAK_DAYS:
        return StreakBonus()

    steps_streak = all(_value(p.steps) > STEPS_THRESHOLD for p in recent)
    calorie_streak = all(
        _value(p.calories_out) > _value(p.calories_in) + CALORIE_BUFFER for p in recent
    )
    sleep_streak = all(_value(p.sleep_hours) > SLEEP_HOURS_THRESHOLD for p in recent)

    multiplier = 1.0
    if steps_streak:
        multiplier += STREAK_BONUS
    elif calorie_streak:
        multiplier += STREAK_BONUS
    if sleep_streak:
        multiplier += STREAK_BONUS

    return StreakBonus(
        steps_streak=steps_streak,
        # Mutually exclusive with the steps streak
        calorie_streak=calorie_streak and not steps_streak,
        sleep_streak=sleep_streak,
        multiplier=round(multiplier, 1),
    )


class StreakBonusEvaluator:
    """Reads the weekly series and turns recent streaks into an XP multiplier"""

    def __init__(self, aggregator: TimeAggregator, clock: Optional[Callable[[], datetime]] = None):
        self.aggregator = aggregator
        self.clock = clock or aggregator.clock

    async def evaluate(self, user_id: str) -> StreakBonus:
        weekly = await self.aggregator.daily_series(user_id, "weekly", self.clock())
        return evaluate_streaks(weekly.points)

    async def calculate_xp_bonus(self, user_id: str) -> float:
        """
        Current XP multiplier for a user (>= 1.0).

        Any failure while reading statistics yields 1.0 so awarding XP never
        depends on the aggregator being healthy.
        """
        try:
            bonus = await self.evaluate(user_id)
        except Exception as e:
            logger.error(f"[XP BONUS] Error calculating XP bonus for user {user_id}: {e}", exc_info=True)
            return 1.0

        logger.info(
            f"[XP BONUS] Multiplier for user {user_id}: {bonus.multiplier} "
            f"(steps={bonus.steps_streak}, calories={bonus.calorie_streak}, sleep={bonus.sleep_streak})"
        )
        return bonus.multiplier
