"""
Completion response parsing

Completion text arrives in several shapes: bare JSON, JSON wrapped in a
markdown fence, JSON embedded in prose, a {"text": ...}/{"reply": ...}
envelope, or plain prose. Parsing produces a tagged result:

    Parsed(data)  - a JSON object was recovered
    Raw(text)     - text without a usable JSON object
    Failed(error) - the call or the parse failed outright

`to_payload` maps every variant to an InsightPayload; Raw and Failed
always map to the fallback payload.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Union

from wellness_engine.models.insight import InsightPayload

logger = logging.getLogger(__name__)

FALLBACK_INSIGHTS = [
    "Your activity levels are on track",
    "Calorie intake is within normal range",
    "Sleep patterns look consistent",
]

FALLBACK_RECOMMENDATIONS = [
    "Continue current workout routine",
    "Maintain balanced nutrition",
    "Keep sleep schedule regular",
]

MAX_ITEMS = 3

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_ENVELOPE_KEYS = ("text", "reply")


@dataclass(frozen=True)
class Parsed:
    data: dict


@dataclass(frozen=True)
class Raw:
    text: str


@dataclass(frozen=True)
class Failed:
    error: BaseException


CompletionResult = Union[Parsed, Raw, Failed]


def fallback_payload() -> InsightPayload:
    """Deterministic payload used whenever the AI path is unusable"""
    return InsightPayload(
        insights=list(FALLBACK_INSIGHTS),
        recommendations=list(FALLBACK_RECOMMENDATIONS),
    )


def _load_object(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None


def _unwrap(data: dict, depth: int = 0) -> dict:
    # {"text": "<json>"} envelopes from chat endpoints
    if depth < 2 and "insights" not in data:
        for key in _ENVELOPE_KEYS:
            inner = data.get(key)
            if isinstance(inner, str):
                result = parse_completion(inner, _depth=depth + 1)
                if isinstance(result, Parsed):
                    return result.data
            elif isinstance(inner, dict):
                return _unwrap(inner, depth + 1)
    return data


def parse_completion(text: Any, _depth: int = 0) -> CompletionResult:
    """Classify raw completion output"""
    if not isinstance(text, str):
        return Failed(TypeError(f"completion returned {type(text).__name__}, expected str"))

    stripped = text.strip()
    if not stripped:
        return Raw(text)

    candidates = [stripped]
    candidates.extend(match.strip() for match in _FENCE_RE.findall(stripped))
    first, last = stripped.find("{"), stripped.rfind("}")
    if 0 <= first < last:
        candidates.append(stripped[first:last + 1])

    for candidate in candidates:
        data = _load_object(candidate)
        if isinstance(data, dict):
            return Parsed(_unwrap(data, _depth))

    return Raw(text)


def _clean_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return items[:MAX_ITEMS]


def has_content(result: CompletionResult) -> bool:
    """True when a parsed result carries at least one usable insight or recommendation"""
    if not isinstance(result, Parsed):
        return False
    return bool(
        _clean_list(result.data.get("insights")) or _clean_list(result.data.get("recommendations"))
    )


def to_payload(result: CompletionResult) -> tuple[InsightPayload, bool]:
    """
    Convert a parse result into a payload.

    Returns:
        (payload, used_fallback). used_fallback is True when any part of
        the payload came from the fallback lists.
    """
    if isinstance(result, Parsed):
        insights = _clean_list(result.data.get("insights"))
        recommendations = _clean_list(result.data.get("recommendations"))
        used_fallback = not insights or not recommendations
        return (
            InsightPayload(
                insights=insights or list(FALLBACK_INSIGHTS),
                recommendations=recommendations or list(FALLBACK_RECOMMENDATIONS),
            ),
            used_fallback,
        )

    if isinstance(result, Raw):
        logger.warning(f"[INSIGHTS] Completion had no JSON object ({len(result.text)} chars); using fallback")
        return fallback_payload(), True

    if isinstance(result, Failed):
        logger.warning(f"[INSIGHTS] Completion failed: {type(result.error).__name__}: {result.error}")
        return fallback_payload(), True

    raise TypeError(f"Unknown completion result {result!r}")
