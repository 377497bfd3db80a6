"""
XP and Leveling System

Owns each user's cumulative XP total and the XP -> level mapping.

Leveling Curve:
    level = floor(sqrt(total_xp / 100)) + 1
    Level 2 at 100 XP, level 3 at 400 XP, level 4 at 900 XP, ...

The level is never stored. It is recomputed from the persisted total on
every read so it can't disagree with the XP it derives from.

XP Award Rules (base amounts, before streak multipliers):
- Workout: 50 + 10 per full minute + intensity bonus (20 / 30 / 40)
- Steps: 1 XP per 200 steps
- Meal logged: 10 XP
- Sleep logged: 30 (7-9 h), 15 (5-7 h), 20 (> 9 h), 5 otherwise
"""

import asyncio
import logging
import math
from collections import defaultdict
from typing import Dict, Optional

from wellness_engine.exceptions import StateInconsistencyError, ValidationError
from wellness_engine.gamification.bonus import StreakBonusEvaluator
from wellness_engine.models.gamification import LevelInfo
from wellness_engine.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

XP_PER_LEVEL_UNIT = 100


def xp_key(user_id: str) -> str:
    return f"xp:{user_id}"


def calculate_level_from_xp(total_xp: int) -> int:
    """Canonical level formula; negative input is treated as 0"""
    return math.isqrt(max(0, int(total_xp)) // XP_PER_LEVEL_UNIT) + 1


def calculate_xp_to_next_level(total_xp: int) -> int:
    """XP still needed to reach the next level"""
    level = calculate_level_from_xp(total_xp)
    return level ** 2 * XP_PER_LEVEL_UNIT - max(0, total_xp)


def get_level_progress(total_xp: int) -> float:
    """Percent progress (0-100) from the current level's threshold to the next"""
    level = calculate_level_from_xp(total_xp)
    level_start = (level - 1) ** 2 * XP_PER_LEVEL_UNIT
    level_end = level ** 2 * XP_PER_LEVEL_UNIT
    progress = (max(0, total_xp) - level_start) / (level_end - level_start) * 100
    return min(100.0, max(0.0, progress))


def get_xp_for_activity(activity_type: str, **details) -> int:
    """
    Calculate the base XP for a logged activity

    Args:
        activity_type: workout, steps, meal_logged or sleep_logged
        **details: duration (seconds for workouts, hours for sleep),
                   intensity ('Beginner' / 'Intermediate' / other), steps

    Returns:
        XP amount (0 for unknown activity types)
    """
    if activity_type == "workout":
        duration_xp = int((details.get("duration") or 0) // 60) * 10
        intensity = details.get("intensity")
        if intensity == "Beginner":
            multiplier = 1.0
        elif intensity == "Intermediate":
            multiplier = 1.5
        else:
            multiplier = 2.0
        return 50 + duration_xp + round(20 * multiplier)

    if activity_type == "steps":
        return int((details.get("steps") or 0) // 200)

    if activity_type == "meal_logged":
        return 10

    if activity_type == "sleep_logged":
        hours = details.get("duration") or 0
        if 7 <= hours <= 9:
            return 30
        if 5 <= hours < 7:
            return 15
        if hours > 9:
            return 20
        return 5

    return 0


class XpEngine:
    """
    Per-user XP counter with streak multipliers.

    Awards for the same user are serialized with a per-user lock, and the
    increment itself uses the store's atomic incr, so concurrent awards can
    never lose an update.
    """

    def __init__(self, kv: KeyValueStore, bonus_evaluator: StreakBonusEvaluator):
        self.kv = kv
        self.bonus_evaluator = bonus_evaluator
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        logger.debug("XpEngine initialized")

    async def get_xp(self, user_id: str) -> int:
        """Persisted XP total (0 for new users)"""
        value = await self.kv.get(xp_key(user_id))
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise StateInconsistencyError(
                f"Stored XP for user {user_id} is invalid: {value!r}",
                key=xp_key(user_id),
                user_id=user_id,
                operation="get_xp",
            )
        return value

    async def add_xp(self, user_id: str, base_amount: int, activity_label: Optional[str] = None) -> int:
        """
        Award XP with the user's current streak multiplier applied

        Args:
            user_id: User to credit
            base_amount: Positive base XP before the multiplier
            activity_label: Human-readable source, for logging only

        Returns:
            New total XP

        Raises:
            ValidationError: If base_amount is not a positive integer
        """
        if isinstance(base_amount, bool) or not isinstance(base_amount, int) or base_amount <= 0:
            raise ValidationError(
                message="XP amount must be a positive integer",
                field="amount",
                value=base_amount,
                user_id=user_id,
                operation="add_xp",
            )

        async with self._locks[user_id]:
            # Surface corrupt state before writing on top of it
            old_total = await self.get_xp(user_id)
            multiplier = await self.bonus_evaluator.calculate_xp_bonus(user_id)
            awarded = math.floor(base_amount * multiplier)
            new_total = await self.kv.incr(xp_key(user_id), awarded)

        old_level = calculate_level_from_xp(old_total)
        new_level = calculate_level_from_xp(new_total)

        logger.info(
            f"Awarded {awarded} XP to user {user_id} for {activity_label or 'unknown activity'} "
            f"(base {base_amount}, multiplier {multiplier}). Total: {new_total} XP, Level: {new_level}"
        )
        if new_level > old_level:
            logger.info(f"User {user_id} leveled up from {old_level} to {new_level}!")

        return new_total

    async def get_level(self, user_id: str) -> int:
        """Level recomputed from the persisted XP total"""
        return calculate_level_from_xp(await self.get_xp(user_id))

    async def get_level_info(self, user_id: str) -> LevelInfo:
        total_xp = await self.get_xp(user_id)
        return LevelInfo(
            user_id=user_id,
            total_xp=total_xp,
            current_level=calculate_level_from_xp(total_xp),
            xp_to_next_level=calculate_xp_to_next_level(total_xp),
            level_progress=get_level_progress(total_xp),
        )
