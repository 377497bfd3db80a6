"""
WellnessEngine - public facade

One object per process (or per test) exposing every engine operation.
Collaborators are injected; anything not supplied falls back to an
in-memory store, a fallback-only insight provider and the UTC wall clock.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from wellness_engine.exceptions import ValidationError, WellnessEngineError
from wellness_engine.gamification.xp_system import calculate_level_from_xp, xp_key
from wellness_engine.models.aggregate import DailyStats, SeriesStats, SummaryStats, TimeAggregate
from wellness_engine.models.gamification import LevelInfo
from wellness_engine.models.insight import InsightPayload
from wellness_engine.models.record import WellnessRecord
from wellness_engine.services.aggregator import DateLike
from wellness_engine.services.container import ServiceContainer
from wellness_engine.storage.kv_store import InMemoryKeyValueStore, KeyValueStore
from wellness_engine.storage.legacy import import_legacy_data
from wellness_engine.storage.record_store import RecordInput, TypeFilter

logger = logging.getLogger(__name__)


class WellnessEngine:
    """
    Records, statistics, XP and insights for many users.

    Example:
        engine = WellnessEngine()
        await engine.append_record({"user_id": "alice", "type": "steps",
                                    "timestamp": "2024-05-01T09:00:00Z",
                                    "metrics": {"quantity": 8000}})
        stats = await engine.get_weekly_stats("alice")
    """

    def __init__(
        self,
        kv: Optional[KeyValueStore] = None,
        completion: Optional[Callable] = None,
        clock: Optional[Callable[[], datetime]] = None,
        container: Optional[ServiceContainer] = None,
        **overrides,
    ):
        if container is None:
            if clock is not None:
                overrides["clock"] = clock
            container = ServiceContainer(
                kv=kv or InMemoryKeyValueStore(),
                completion=completion,
                **overrides,
            )
        self.container = container

    # ----- records -----

    async def append_record(self, record: RecordInput) -> str:
        """Validate and append a record; returns its assigned id"""
        return await self.container.record_store.append(record)

    async def query_records(
        self,
        user_id: str,
        record_type: TypeFilter = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[WellnessRecord]:
        return await self.container.record_store.query(user_id, record_type, start, end)

    async def import_legacy_data(
        self,
        user_id: str,
        activities: Optional[Iterable[Mapping[str, Any]]] = None,
        meals: Optional[Iterable[Mapping[str, Any]]] = None,
        sleep: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> dict[str, int]:
        return await import_legacy_data(self.container.record_store, user_id, activities, meals, sleep)

    # ----- statistics -----

    async def compute_aggregate(
        self, user_id: str, period: str, reference_date: Optional[DateLike] = None
    ) -> TimeAggregate:
        return await self.container.aggregator.compute_aggregate(user_id, period, reference_date)

    async def get_daily_stats(self, user_id: str, day: Optional[DateLike] = None) -> DailyStats:
        return await self.container.aggregator.get_daily_stats(user_id, day)

    async def get_weekly_stats(self, user_id: str, day: Optional[DateLike] = None) -> SeriesStats:
        return await self.container.aggregator.get_weekly_stats(user_id, day)

    async def get_monthly_stats(self, user_id: str, day: Optional[DateLike] = None) -> SeriesStats:
        return await self.container.aggregator.get_monthly_stats(user_id, day)

    async def get_summary_stats(self, user_id: str, day: Optional[DateLike] = None) -> SummaryStats:
        return await self.container.aggregator.get_summary_stats(user_id, day)

    # ----- XP and levels -----

    async def get_xp(self, user_id: str) -> int:
        """Total XP; 0 when the stored value is unreadable (logged)"""
        try:
            return await self.container.xp_engine.get_xp(user_id)
        except WellnessEngineError as e:
            logger.error(f"[XP] Could not read XP for user {user_id}: {e.message}")
            return 0

    async def add_xp(self, user_id: str, amount: int, activity_label: Optional[str] = None) -> int:
        """
        Award XP with the current streak multiplier.

        Raises:
            ValidationError: amount is not a positive number
            StateInconsistencyError: stored XP is corrupt
        """
        return await self.container.xp_engine.add_xp(user_id, amount, activity_label)

    async def get_level(self, user_id: str) -> int:
        return calculate_level_from_xp(await self.get_xp(user_id))

    async def get_level_info(self, user_id: str) -> LevelInfo:
        try:
            return await self.container.xp_engine.get_level_info(user_id)
        except WellnessEngineError as e:
            logger.error(f"[XP] Could not read level info for user {user_id}: {e.message}")
            return LevelInfo(user_id=user_id)

    async def calculate_xp_bonus(self, user_id: str) -> float:
        return await self.container.bonus_evaluator.calculate_xp_bonus(user_id)

    # ----- insights -----

    async def get_insights(
        self, user_id: str, period: str = "week", regenerate: bool = False
    ) -> InsightPayload:
        return await self.container.insight_service.get_insights(user_id, period, regenerate)

    async def invalidate_insights(self, user_id: str, period: Optional[str] = None) -> int:
        return await self.container.insight_cache.invalidate(user_id, period)

    # ----- lifecycle -----

    async def erase_user_data(self, user_id: str) -> None:
        """Remove a user's ledger, XP total and cached insights"""
        if not user_id:
            raise ValidationError("user_id is required", field="user_id", value=user_id,
                                  operation="erase_user_data")
        await self.container.record_store.erase_user(user_id)
        await self.container.kv.delete(xp_key(user_id))
        await self.container.insight_cache.invalidate(user_id)
        logger.warning(f"Erased all wellness data for user {user_id}")

    async def close(self) -> None:
        await self.container.kv.close()
