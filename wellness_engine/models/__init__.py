"""Data models for the wellness engine"""
from wellness_engine.models.record import (
    WellnessRecord,
    RecordMetrics,
    RecordMetadata,
    NutritionMetrics,
    SleepStages,
    RecordType,
    VALID_RECORD_TYPES,
)
from wellness_engine.models.aggregate import (
    TimeAggregate,
    AggregateTotals,
    AggregateAverages,
    AggregateTrends,
    DayPoint,
    DailyStats,
    SeriesStats,
    SummaryStats,
    WeekSummary,
    DaySummary,
    Period,
)
from wellness_engine.models.gamification import LevelInfo, StreakBonus
from wellness_engine.models.insight import InsightPayload, InsightCacheKey, InsightCacheEntry

__all__ = [
    "WellnessRecord",
    "RecordMetrics",
    "RecordMetadata",
    "NutritionMetrics",
    "SleepStages",
    "RecordType",
    "VALID_RECORD_TYPES",
    "TimeAggregate",
    "AggregateTotals",
    "AggregateAverages",
    "AggregateTrends",
    "DayPoint",
    "DailyStats",
    "SeriesStats",
    "SummaryStats",
    "WeekSummary",
    "DaySummary",
    "Period",
    "LevelInfo",
    "StreakBonus",
    "InsightPayload",
    "InsightCacheKey",
    "InsightCacheEntry",
]
