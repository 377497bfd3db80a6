"""
Gamification for the wellness engine

- XP totals and the level curve
- 3-day streak detection feeding an XP multiplier
"""

from wellness_engine.gamification.bonus import StreakBonusEvaluator, evaluate_streaks
from wellness_engine.gamification.xp_system import (
    XpEngine,
    calculate_level_from_xp,
    calculate_xp_to_next_level,
    get_level_progress,
    get_xp_for_activity,
)

__all__ = [
    "StreakBonusEvaluator",
    "evaluate_streaks",
    "XpEngine",
    "calculate_level_from_xp",
    "calculate_xp_to_next_level",
    "get_level_progress",
    "get_xp_for_activity",
]
