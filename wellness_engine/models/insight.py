"""Insight payload and cache entry models"""
import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


class InsightPayload(BaseModel):
    """Coaching text returned to callers"""
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


@dataclass(frozen=True)
class InsightCacheKey:
    """
    Composite cache key. Encoded as a JSON array so delimiter characters
    inside user_id can never collide with another user's key.
    """
    user_id: str
    period: str

    def storage_key(self) -> str:
        return "insight:" + json.dumps([self.user_id, self.period])


class InsightCacheEntry(BaseModel):
    """Whole-entry cache record; replaced, never merged"""
    payload: dict[str, Any]
    timestamp: float  # epoch seconds when stored

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.timestamp < ttl
