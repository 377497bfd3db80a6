"""
Time Aggregator

Computes daily / weekly / monthly statistics from the record ledger on
demand. Nothing here is materialized: every call re-reads the records for
its window and folds them from scratch, so aggregates can never drift from
the ledger.

Windows (all half-open, UTC):
- daily: the calendar day of the reference date
- weekly: 7 days ending with the reference day
- monthly: 30 days ending with the reference day
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import Optional, Union

from wellness_engine.exceptions import ValidationError, WellnessEngineError
from wellness_engine.models.aggregate import (
    AggregateAverages,
    AggregateTotals,
    AggregateTrends,
    DailyStats,
    DayPoint,
    DaySummary,
    SeriesStats,
    SummaryStats,
    TimeAggregate,
    WeekSummary,
)
from wellness_engine.models.record import WellnessRecord
from wellness_engine.services import scoring
from wellness_engine.storage.record_store import WellnessRecordStore
from wellness_engine.utils.datetime_helpers import (
    as_date,
    day_window,
    days_in_window,
    now_utc,
    rolling_window,
)

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
}

BURN_TYPES = {"activity", "workout"}
STEP_CATEGORIES = {"steps", "walking", "running"}

DateLike = Union[date, datetime]


def _counts_as_steps(record: WellnessRecord) -> bool:
    return record.type == "steps" or record.category.lower() in STEP_CATEGORIES


def fold_totals(records: Sequence[WellnessRecord]) -> AggregateTotals:
    """Sum a set of records into window totals. Missing numbers count as 0"""
    totals = AggregateTotals()
    for record in records:
        metrics = record.metrics
        totals.xp += metrics.xp_earned or 0

        if record.type == "meal":
            totals.calories_consumed += metrics.calories or 0
        elif record.type in BURN_TYPES:
            totals.calories_burned += metrics.calories or 0
            totals.activity_minutes += metrics.duration or 0
        elif record.type == "sleep":
            totals.sleep_hours += (metrics.duration or 0) / 60

        if _counts_as_steps(record):
            totals.steps += metrics.quantity or 0
    return totals


def compute_averages(records: Sequence[WellnessRecord]) -> AggregateAverages:
    sleeps = [r for r in records if r.type == "sleep"]
    activities = [r for r in records if r.type in BURN_TYPES]
    return AggregateAverages(
        sleep_quality=sum(r.metrics.quality or 0 for r in sleeps) / (len(sleeps) or 1),
        activity_intensity=sum(r.metrics.intensity or 0 for r in activities) / (len(activities) or 1),
        nutrition_balance=scoring.nutrition_balance(records),
    )


def build_day_point(day: date, records: Sequence[WellnessRecord]) -> DayPoint:
    """Chart point for one day; an empty record list yields a zero placeholder"""
    totals = fold_totals(records)
    return DayPoint(
        day=day,
        label=day.strftime("%a"),
        steps=totals.steps,
        calories_in=totals.calories_consumed,
        calories_out=totals.calories_burned,
        net_calories=totals.calories_consumed - totals.calories_burned,
        sleep_hours=totals.sleep_hours,
        xp=totals.xp,
        activity_minutes=totals.activity_minutes,
        record_count=len(records),
        nutrition_score=scoring.nutrition_score(records),
        sleep_score=scoring.sleep_score(records),
        recovery_score=scoring.recovery_score(totals.sleep_hours, totals.activity_minutes),
        meal_quality_trend=scoring.meal_quality_trend(records),
    )


def build_day_points(start: datetime, days: int, records: Sequence[WellnessRecord]) -> list[DayPoint]:
    """Exactly `days` points, oldest first; days without records are zero-filled"""
    by_day: dict[date, list[WellnessRecord]] = defaultdict(list)
    for record in records:
        by_day[as_date(record.timestamp)].append(record)
    return [build_day_point(day, by_day.get(day, [])) for day in days_in_window(start, days)]


def compute_trends(points: Sequence[DayPoint]) -> AggregateTrends:
    if not points:
        return AggregateTrends()
    active_days = sum(1 for p in points if p.record_count > 0)
    return AggregateTrends(
        xp_trend=scoring.slope([p.xp for p in points]),
        calorie_balance_trend=scoring.slope([p.calories_out - p.calories_in for p in points]),
        consistency_score=active_days / len(points) * 100,
    )


def window_for(period: str, reference: DateLike) -> tuple[datetime, datetime]:
    if period not in PERIOD_DAYS:
        raise ValidationError(
            message=f"Unknown period '{period}'. Must be one of: {', '.join(PERIOD_DAYS)}",
            field="period",
            value=period,
        )
    if period == "daily":
        return day_window(reference)
    return rolling_window(reference, PERIOD_DAYS[period])


def aggregate_records(
    period: str,
    start: datetime,
    end: datetime,
    records: Sequence[WellnessRecord],
) -> tuple[TimeAggregate, list[DayPoint]]:
    """Pure fold of a window's records into an aggregate plus its day points"""
    points = build_day_points(start, PERIOD_DAYS[period], records)
    aggregate = TimeAggregate(
        period=period,
        start_date=start,
        end_date=end,
        totals=fold_totals(records),
        averages=compute_averages(records),
        trends=compute_trends(points),
        records=list(records),
    )
    return aggregate, points


class TimeAggregator:
    """
    Read-only statistics over the record ledger.

    Safe to call concurrently: it never writes and never caches.
    """

    def __init__(self, store: WellnessRecordStore, clock: Callable[[], datetime] = now_utc):
        self.store = store
        self.clock = clock
        logger.debug("TimeAggregator initialized")

    async def _window(
        self, user_id: str, period: str, reference_date: Optional[DateLike]
    ) -> tuple[TimeAggregate, list[DayPoint]]:
        reference = reference_date or self.clock()
        start, end = window_for(period, reference)
        records = await self.store.query(user_id, start=start, end=end)
        return aggregate_records(period, start, end, records)

    async def compute_aggregate(
        self,
        user_id: str,
        period: str,
        reference_date: Optional[DateLike] = None,
    ) -> TimeAggregate:
        """
        Aggregate a user's records for a period.

        Args:
            user_id: User to aggregate
            period: 'daily', 'weekly' or 'monthly'
            reference_date: Day the window ends on (defaults to today)

        Returns:
            TimeAggregate whose totals derive only from its records
        """
        aggregate, _ = await self._window(user_id, period, reference_date)
        logger.debug(
            f"[AGGREGATOR] {period} aggregate for user {user_id}: "
            f"{len(aggregate.records)} records, totals={aggregate.totals.model_dump()}"
        )
        return aggregate

    async def daily_series(
        self,
        user_id: str,
        period: str = "weekly",
        reference_date: Optional[DateLike] = None,
    ) -> SeriesStats:
        """
        Fixed-length per-day series for charts: 7 points for weekly,
        30 for monthly, zero-padded for days without records.
        """
        aggregate, points = await self._window(user_id, period, reference_date)
        return SeriesStats(
            period=period,
            start_date=points[0].day,
            end_date=points[-1].day,
            points=points,
            aggregate=aggregate,
        )

    # ------------------------------------------------------------------
    # Read paths used by the UI. Storage failures are logged and turned
    # into zero-valued results instead of errors.
    # ------------------------------------------------------------------

    def _empty_series(self, period: str, reference_date: Optional[DateLike]) -> SeriesStats:
        start, end = window_for(period, reference_date or self.clock())
        aggregate, points = aggregate_records(period, start, end, [])
        return SeriesStats(
            period=period,
            start_date=points[0].day,
            end_date=points[-1].day,
            points=points,
            aggregate=aggregate,
        )

    async def get_daily_stats(self, user_id: str, day: Optional[DateLike] = None) -> DailyStats:
        reference = day or self.clock()
        try:
            aggregate = await self.compute_aggregate(user_id, "daily", reference)
        except ValidationError:
            raise
        except WellnessEngineError as e:
            logger.error(f"[AGGREGATOR] Daily stats unavailable for user {user_id}: {e}")
            start, end = window_for("daily", reference)
            aggregate, _ = aggregate_records("daily", start, end, [])

        totals = aggregate.totals
        records = aggregate.records
        return DailyStats(
            date=as_date(reference),
            steps=totals.steps,
            calories_in=totals.calories_consumed,
            calories_out=totals.calories_burned,
            net_calories=totals.calories_consumed - totals.calories_burned,
            sleep_hours=totals.sleep_hours,
            xp=totals.xp,
            meals=[r for r in records if r.type == "meal"],
            activities=[r for r in records if r.type in BURN_TYPES],
            sleep=[r for r in records if r.type == "sleep"],
            aggregate=aggregate,
        )

    async def get_weekly_stats(self, user_id: str, day: Optional[DateLike] = None) -> SeriesStats:
        try:
            return await self.daily_series(user_id, "weekly", day)
        except ValidationError:
            raise
        except WellnessEngineError as e:
            logger.error(f"[AGGREGATOR] Weekly stats unavailable for user {user_id}: {e}")
            return self._empty_series("weekly", day)

    async def get_monthly_stats(self, user_id: str, day: Optional[DateLike] = None) -> SeriesStats:
        try:
            return await self.daily_series(user_id, "monthly", day)
        except ValidationError:
            raise
        except WellnessEngineError as e:
            logger.error(f"[AGGREGATOR] Monthly stats unavailable for user {user_id}: {e}")
            return self._empty_series("monthly", day)

    async def get_summary_stats(self, user_id: str, day: Optional[DateLike] = None) -> SummaryStats:
        """Today's figures plus 7-day totals, used for dashboards and prompts"""
        reference = day or self.clock()
        daily = await self.get_daily_stats(user_id, reference)
        weekly = await self.get_weekly_stats(user_id, reference)

        calories_in_total = sum(weekly.calories_in)
        calories_out_total = sum(weekly.calories_out)
        return SummaryStats(
            day=DaySummary(
                date=daily.date,
                steps=daily.steps,
                calories_in=daily.calories_in,
                calories_out=daily.calories_out,
                net_calories=daily.net_calories,
                sleep_hours=daily.sleep_hours,
                xp=daily.xp,
            ),
            week=WeekSummary(
                steps_total=sum(weekly.steps),
                calories_in_total=calories_in_total,
                calories_out_total=calories_out_total,
                net_calories_total=calories_in_total - calories_out_total,
                sleep_total=sum(weekly.sleep_hours),
                xp_total=sum(weekly.xp),
            ),
        )
