"""Persistence layer: key-value backends and the append-only record ledger"""
from wellness_engine.storage.kv_store import KeyValueStore, InMemoryKeyValueStore
from wellness_engine.storage.record_store import WellnessRecordStore, validate_record

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "WellnessRecordStore",
    "validate_record",
]
