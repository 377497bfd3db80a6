"""
Wellness Record Store

Append-only per-user ledger of normalized wellness events. This is the
single source of truth for every downstream statistic.

Key Features:
- Lenient schema: unknown categories and missing optional metrics are fine
- Strict core: user_id, type and timestamp are required
- Records are never edited; corrections are new records
- Queries return records ordered by event time, ties by insertion order
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from wellness_engine.exceptions import StorageError, ValidationError
from wellness_engine.models.record import VALID_RECORD_TYPES, WellnessRecord
from wellness_engine.storage.kv_store import KeyValueStore
from wellness_engine.utils.datetime_helpers import now_utc, to_utc

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    ("user_id", "userId"),
    ("type", "type"),
    ("timestamp", "timestamp"),
)

RecordInput = Union[WellnessRecord, Mapping[str, Any]]
TypeFilter = Optional[Union[str, Iterable[str]]]


def records_key(user_id: str) -> str:
    return f"records:{user_id}"


def generate_record_id() -> str:
    return f"record_{uuid4().hex}"


def validate_record(record: RecordInput) -> WellnessRecord:
    """
    Build a WellnessRecord from caller input, raising ValidationError for
    missing required fields or malformed values.
    """
    if isinstance(record, WellnessRecord):
        return record

    if not isinstance(record, Mapping):
        raise ValidationError(
            message=f"Record must be a mapping or WellnessRecord, got {type(record).__name__}",
            field="record",
        )

    for snake, camel in REQUIRED_FIELDS:
        value = record.get(snake, record.get(camel))
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(
                message=f"{snake} is required",
                field=snake,
                value=value,
                user_id=record.get("user_id", record.get("userId")),
            )

    record_type = record.get("type")
    if record_type not in VALID_RECORD_TYPES:
        raise ValidationError(
            message=(
                f"Invalid type '{record_type}'. "
                f"Must be one of: {', '.join(sorted(VALID_RECORD_TYPES))}"
            ),
            field="type",
            value=record_type,
        )

    try:
        return WellnessRecord.model_validate(dict(record))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(
            message=first.get("msg", "Malformed record"),
            field=field,
            value=first.get("input"),
            cause=e,
        )


def _normalize_types(record_type: TypeFilter) -> Optional[set[str]]:
    if record_type is None:
        return None
    if isinstance(record_type, str):
        return {record_type}
    return set(record_type)


class WellnessRecordStore:
    """
    Append-only record ledger on top of a KeyValueStore.

    Each user's ledger lives under ``records:<user_id>``. Appends are
    serialized per user; reads never take a lock.
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        logger.debug("WellnessRecordStore initialized")

    async def append(self, record: RecordInput) -> str:
        """
        Append a record to its owner's ledger.

        Args:
            record: WellnessRecord or mapping (snake_case or camelCase keys)

        Returns:
            The id assigned to the stored record

        Raises:
            ValidationError: If user_id, type or timestamp is missing/invalid
            StorageError: If the persistence layer fails
        """
        validated = validate_record(record)
        stored = validated.model_copy(update={"id": generate_record_id()})

        async with self._locks[stored.user_id]:
            try:
                await self.kv.append(records_key(stored.user_id), stored.to_storage())
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(
                    f"Failed to append record for user {stored.user_id}",
                    key=records_key(stored.user_id),
                    user_id=stored.user_id,
                    operation="append_record",
                    cause=e,
                )

        logger.info(
            f"Appended {stored.type} record for user {stored.user_id} "
            f"at {stored.timestamp.isoformat()} (id: {stored.id})"
        )
        return stored.id

    async def query(
        self,
        user_id: str,
        record_type: TypeFilter = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[WellnessRecord]:
        """
        Query a user's records.

        Args:
            user_id: Owning user
            record_type: Optional type or iterable of types to keep
            start: Inclusive lower bound on event time
            end: Exclusive upper bound on event time

        Returns:
            Records sorted by timestamp ascending; equal timestamps keep
            insertion order
        """
        types = _normalize_types(record_type)
        start = to_utc(start) if start else None
        end = to_utc(end) if end else None

        raw_records = await self.kv.get_list(records_key(user_id))

        records = []
        for raw in raw_records:
            try:
                record = WellnessRecord.model_validate(raw)
            except PydanticValidationError as e:
                logger.error(f"Skipping unreadable record for user {user_id}: {e}")
                continue
            if types is not None and record.type not in types:
                continue
            if start is not None and record.timestamp < start:
                continue
            if end is not None and record.timestamp >= end:
                continue
            records.append(record)

        # sorted() is stable, so ledger order breaks timestamp ties
        return sorted(records, key=lambda r: r.timestamp)

    async def recent(
        self,
        user_id: str,
        record_type: str,
        limit: int = 5,
        days: int = 30,
        now: Optional[datetime] = None,
    ) -> list[WellnessRecord]:
        """Newest-first records of one type from the last `days` days"""
        end = to_utc(now) if now else now_utc()
        records = await self.query(
            user_id,
            record_type=record_type,
            start=end - timedelta(days=days),
            end=end + timedelta(microseconds=1),
        )
        return list(reversed(records))[:limit]

    async def count(self, user_id: str) -> int:
        return len(await self.kv.get_list(records_key(user_id)))

    async def erase_user(self, user_id: str) -> bool:
        """
        Clear a user's entire ledger. Only the explicit erase-all-data flow
        calls this; individual records are never deleted.
        """
        async with self._locks[user_id]:
            deleted = await self.kv.delete(records_key(user_id))
        logger.warning(f"Erased record ledger for user {user_id}")
        return deleted
