"""Pydantic models for the unified wellness record ledger"""
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

# Type alias for supported record types
RecordType = Literal[
    "activity",
    "meal",
    "sleep",
    "steps",
    "hydration",
    "workout",
]

VALID_RECORD_TYPES = {
    "activity",
    "meal",
    "sleep",
    "steps",
    "hydration",
    "workout",
}


class _CamelModel(BaseModel):
    """Accepts both snake_case and camelCase keys on input"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NutritionMetrics(_CamelModel):
    """Macronutrients in grams"""
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class SleepStages(_CamelModel):
    """Sleep stage breakdown in minutes"""
    light: float = 0
    deep: float = 0
    rem: float = 0
    interruptions: int = 0


class RecordMetrics(_CamelModel):
    """Sparse bag of numeric measurements; every field is optional"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    duration: Optional[float] = None  # minutes
    calories: Optional[float] = None  # consumed for meals, burned for activity
    xp_earned: float = 0
    intensity: Optional[float] = Field(None, ge=1, le=10)
    quantity: Optional[float] = None  # steps, ml, servings
    quality: Optional[float] = Field(None, ge=0, le=1)
    nutrition: Optional[NutritionMetrics] = None
    sleep: Optional[SleepStages] = None


class RecordMetadata(_CamelModel):
    """Provenance and AI annotations"""
    confidence: float = Field(1.0, ge=0, le=1)
    ai_insights: list[str] = Field(default_factory=list)
    tags: set[str] = Field(default_factory=set)
    correlation_id: Optional[str] = None

    @field_serializer("tags")
    def _serialize_tags(self, tags: set[str]) -> list[str]:
        return sorted(tags)


class WellnessRecord(_CamelModel):
    """
    One observed wellness event.

    Records are immutable once built; corrections are appended as new
    records rather than edits to existing ones.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: Optional[str] = None
    user_id: str
    timestamp: datetime
    type: RecordType
    category: str = "general"
    metrics: RecordMetrics = Field(default_factory=RecordMetrics)
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken to be UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("user_id")
    @classmethod
    def _non_empty_user(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("user_id cannot be empty")
        return value

    def to_storage(self) -> dict:
        """JSON-safe dict used by the key-value stores"""
        return self.model_dump(mode="json")
