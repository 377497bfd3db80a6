"""AI insight generation: prompt, completion provider, parsing and cache"""

from wellness_engine.insights.cache import InsightCache
from wellness_engine.insights.parsing import (
    Failed,
    Parsed,
    Raw,
    fallback_payload,
    has_content,
    parse_completion,
    to_payload,
)
from wellness_engine.insights.providers import CompletionFn, OpenAICompletionProvider
from wellness_engine.insights.service import InsightService, UnavailableCompletion

__all__ = [
    "InsightCache",
    "InsightService",
    "UnavailableCompletion",
    "CompletionFn",
    "OpenAICompletionProvider",
    "Parsed",
    "Raw",
    "Failed",
    "parse_completion",
    "to_payload",
    "fallback_payload",
    "has_content",
]
