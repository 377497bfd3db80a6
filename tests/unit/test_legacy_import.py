"""Unit tests for converting pre-unified data (wellness_engine/storage/legacy.py)"""
import pytest
from datetime import datetime, timezone

from wellness_engine.storage.legacy import (
    activity_to_record,
    import_legacy_data,
    meal_to_record,
    sleep_to_record,
)
from wellness_engine.storage.record_store import validate_record

EPOCH_MS = 1715335200000  # 2024-05-10T10:00:00Z


def test_activity_defaults():
    record = validate_record(activity_to_record({"timestamp": EPOCH_MS, "duration": 30}, "alice"))

    assert record.type == "activity"
    assert record.category == "general"
    assert record.metrics.intensity == 5
    assert record.metrics.duration == 30
    assert record.timestamp == datetime(2024, 5, 10, 10, 0, tzinfo=timezone.utc)


def test_activity_type_becomes_category():
    record = validate_record(activity_to_record({"timestamp": EPOCH_MS, "type": "running"}, "alice"))
    assert record.category == "running"


def test_meal_defaults():
    record = validate_record(meal_to_record({"timestamp": "2024-05-10T08:00:00Z", "calories": 420}, "alice"))

    assert record.type == "meal"
    assert record.metrics.quantity == 1
    assert record.metadata.confidence == 0.8
    assert record.metrics.calories == 420


def test_meal_keeps_nutrition_and_type():
    entry = {
        "timestamp": EPOCH_MS,
        "mealType": "breakfast",
        "nutrition": {"protein": 20, "carbs": 50, "fat": 10},
        "insights": ["High in fibre"],
    }

    record = validate_record(meal_to_record(entry, "alice"))

    assert record.category == "breakfast"
    assert record.metrics.nutrition.carbs == 50
    assert record.metadata.ai_insights == ["High in fibre"]


def test_sleep_defaults():
    record = validate_record(sleep_to_record({"timestamp": EPOCH_MS, "duration": 480}, "alice"))

    assert record.type == "sleep"
    assert record.category == "sleep"
    assert record.metrics.quality == 0.5


@pytest.mark.asyncio
async def test_import_legacy_data_counts_and_skips(record_store):
    result = await import_legacy_data(
        record_store,
        "alice",
        activities=[{"timestamp": EPOCH_MS, "duration": 20, "calories": 150}],
        meals=[
            {"timestamp": EPOCH_MS, "calories": 600},
            {"timestamp": EPOCH_MS, "calories": 300, "confidence": 7},  # out of range
        ],
        sleep=[{"timestamp": EPOCH_MS, "duration": 420, "quality": 0.9}],
    )

    assert result == {"imported": 3, "skipped": 1}
    records = await record_store.query("alice")
    assert sorted(r.type for r in records) == ["activity", "meal", "sleep"]


@pytest.mark.asyncio
async def test_import_with_nothing(record_store):
    assert await import_legacy_data(record_store, "alice") == {"imported": 0, "skipped": 0}
