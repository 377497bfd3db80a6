"""
Legacy Data Import

Converts entries from the pre-unified storage format (separate activity,
meal and sleep lists) into WellnessRecords and appends them to the ledger.

Defaults applied to missing legacy fields:
- activity: category 'general', intensity 5
- meal: category 'general', quantity 1, confidence 0.8
- sleep: category 'sleep', quality 0.5
"""
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from wellness_engine.exceptions import ValidationError
from wellness_engine.storage.record_store import WellnessRecordStore
from wellness_engine.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


def _timestamp(entry: Mapping[str, Any]) -> datetime:
    value = entry.get("timestamp")
    if value is None:
        return now_utc()
    if isinstance(value, (int, float)):
        # Legacy entries stored epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value


def activity_to_record(entry: Mapping[str, Any], user_id: str) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "timestamp": _timestamp(entry),
        "type": "activity",
        "category": entry.get("type") or "general",
        "metrics": {
            "duration": entry.get("duration") or 0,
            "calories": entry.get("calories") or 0,
            "xp_earned": entry.get("xpEarned") or 0,
            "intensity": entry.get("intensity") or 5,
        },
        "metadata": {
            "confidence": 1.0,
            "ai_insights": [],
            "tags": entry.get("tags") or [],
        },
    }


def meal_to_record(entry: Mapping[str, Any], user_id: str) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "timestamp": _timestamp(entry),
        "type": "meal",
        "category": entry.get("mealType") or "general",
        "metrics": {
            "calories": entry.get("calories") or 0,
            "xp_earned": entry.get("xpEarned") or 0,
            "quantity": entry.get("quantity") or 1,
            "nutrition": entry.get("nutrition") or None,
        },
        "metadata": {
            "confidence": entry.get("confidence") or 0.8,
            "ai_insights": entry.get("insights") or [],
            "tags": entry.get("tags") or [],
        },
    }


def sleep_to_record(entry: Mapping[str, Any], user_id: str) -> dict[str, Any]:
    return {
        "user_id": user_id,
        "timestamp": _timestamp(entry),
        "type": "sleep",
        "category": "sleep",
        "metrics": {
            "duration": entry.get("duration") or 0,
            "xp_earned": entry.get("xpEarned") or 0,
            "quality": entry.get("quality") or 0.5,
        },
        "metadata": {
            "confidence": 1.0,
            "ai_insights": [],
            "tags": entry.get("tags") or [],
        },
    }


async def import_legacy_data(
    store: WellnessRecordStore,
    user_id: str,
    activities: Optional[Iterable[Mapping[str, Any]]] = None,
    meals: Optional[Iterable[Mapping[str, Any]]] = None,
    sleep: Optional[Iterable[Mapping[str, Any]]] = None,
) -> dict[str, int]:
    """
    Append legacy entries to the user's ledger.

    Malformed entries are skipped and counted rather than aborting the batch.

    Returns:
        {'imported': int, 'skipped': int}
    """
    converters = (
        (activities, activity_to_record),
        (meals, meal_to_record),
        (sleep, sleep_to_record),
    )

    imported = 0
    skipped = 0
    for entries, convert in converters:
        for entry in entries or []:
            try:
                await store.append(convert(entry, user_id))
                imported += 1
            except (ValidationError, ValueError, TypeError) as e:
                skipped += 1
                logger.warning(f"Skipped legacy entry for user {user_id}: {e}")

    logger.info(f"Imported {imported} legacy records for user {user_id} ({skipped} skipped)")
    return {"imported": imported, "skipped": skipped}
