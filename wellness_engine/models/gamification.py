"""Gamification value objects"""
from dataclasses import dataclass

from pydantic import BaseModel


class LevelInfo(BaseModel):
    """Level snapshot derived from total XP"""
    user_id: str
    total_xp: int = 0
    current_level: int = 1
    xp_to_next_level: int = 100
    level_progress: float = 0.0  # percent toward next level, 0-100


@dataclass(frozen=True)
class StreakBonus:
    """Outcome of the 3-day streak rules"""
    steps_streak: bool = False
    calorie_streak: bool = False
    sleep_streak: bool = False
    multiplier: float = 1.0
