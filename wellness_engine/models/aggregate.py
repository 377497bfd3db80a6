"""Derived aggregate models. Never persisted; rebuilt from records on every read"""
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from wellness_engine.models.record import WellnessRecord

Period = Literal["daily", "weekly", "monthly"]


class AggregateTotals(BaseModel):
    xp: float = 0
    calories_burned: float = 0
    calories_consumed: float = 0
    activity_minutes: float = 0
    sleep_hours: float = 0
    steps: float = 0


class AggregateAverages(BaseModel):
    sleep_quality: float = 0
    activity_intensity: float = 0
    nutrition_balance: float = 0


class AggregateTrends(BaseModel):
    xp_trend: float = 0  # slope of daily XP over the window
    calorie_balance_trend: float = 0  # slope of daily burned - consumed
    consistency_score: float = 0  # 0-100


class TimeAggregate(BaseModel):
    """Statistics over the half-open window [start_date, end_date)"""
    period: Period
    start_date: datetime
    end_date: datetime
    totals: AggregateTotals = Field(default_factory=AggregateTotals)
    averages: AggregateAverages = Field(default_factory=AggregateAverages)
    trends: AggregateTrends = Field(default_factory=AggregateTrends)
    records: list[WellnessRecord] = Field(default_factory=list)


class DayPoint(BaseModel):
    """One day of a chart series"""
    day: date
    label: str  # short weekday name, e.g. "Mon"
    steps: float = 0
    calories_in: float = 0
    calories_out: float = 0
    net_calories: float = 0
    sleep_hours: float = 0
    xp: float = 0
    activity_minutes: float = 0
    record_count: int = 0
    nutrition_score: float = 0
    sleep_score: float = 0
    recovery_score: float = 0
    meal_quality_trend: float = 0


class DailyStats(BaseModel):
    date: date
    steps: float = 0
    calories_in: float = 0
    calories_out: float = 0
    net_calories: float = 0
    sleep_hours: float = 0
    xp: float = 0
    meals: list[WellnessRecord] = Field(default_factory=list)
    activities: list[WellnessRecord] = Field(default_factory=list)
    sleep: list[WellnessRecord] = Field(default_factory=list)
    aggregate: Optional[TimeAggregate] = None


class SeriesStats(BaseModel):
    """
    Fixed-length per-day series (7 points for weekly, 30 for monthly),
    oldest first, ending on the reference day.
    """
    period: Period
    start_date: date
    end_date: date
    points: list[DayPoint] = Field(default_factory=list)
    aggregate: Optional[TimeAggregate] = None

    def _series(self, attr: str) -> list[float]:
        return [getattr(p, attr) for p in self.points]

    @property
    def dates(self) -> list[str]:
        return [p.label for p in self.points]

    @property
    def steps(self) -> list[float]:
        return self._series("steps")

    @property
    def calories_in(self) -> list[float]:
        return self._series("calories_in")

    @property
    def calories_out(self) -> list[float]:
        return self._series("calories_out")

    @property
    def net_calories(self) -> list[float]:
        return self._series("net_calories")

    @property
    def sleep_hours(self) -> list[float]:
        return self._series("sleep_hours")

    @property
    def xp(self) -> list[float]:
        return self._series("xp")

    @property
    def nutrition_scores(self) -> list[float]:
        return self._series("nutrition_score")

    @property
    def sleep_scores(self) -> list[float]:
        return self._series("sleep_score")

    @property
    def recovery_scores(self) -> list[float]:
        return self._series("recovery_score")

    @property
    def meal_quality_trends(self) -> list[float]:
        return self._series("meal_quality_trend")


class WeekSummary(BaseModel):
    steps_total: float = 0
    calories_in_total: float = 0
    calories_out_total: float = 0
    net_calories_total: float = 0
    sleep_total: float = 0
    xp_total: float = 0


class DaySummary(BaseModel):
    date: date
    steps: float = 0
    calories_in: float = 0
    calories_out: float = 0
    net_calories: float = 0
    sleep_hours: float = 0
    xp: float = 0


class SummaryStats(BaseModel):
    """Compact figures used for dashboards and insight prompts"""
    day: DaySummary
    week: WeekSummary = Field(default_factory=WeekSummary)
