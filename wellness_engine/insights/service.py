"""
Insight service

Builds a prompt from the user's summary statistics, asks the completion
provider for coaching text and caches the parsed result per (user, period).
Any failure on the AI path ends in the fallback payload; only an unknown
period is raised to the caller.
"""

import asyncio
import logging
from typing import Any, Optional

from wellness_engine.config import AI_TIMEOUT_SECONDS
from wellness_engine.exceptions import UpstreamServiceError, ValidationError, wrap_external_exception
from wellness_engine.insights.cache import KNOWN_PERIODS, InsightCache
from wellness_engine.insights.parsing import (
    CompletionResult,
    Failed,
    Raw,
    has_content,
    parse_completion,
    to_payload,
)
from wellness_engine.insights.prompts import build_insight_prompt
from wellness_engine.insights.providers import CompletionFn
from wellness_engine.models.insight import InsightPayload
from wellness_engine.resilience.metrics import record_insight_fallback
from wellness_engine.services.aggregator import TimeAggregator

logger = logging.getLogger(__name__)


async def bounded_complete(complete: CompletionFn, prompt: str, timeout: float) -> CompletionResult:
    """Run one completion under a timeout and classify the outcome"""
    try:
        text = await asyncio.wait_for(complete(prompt), timeout=timeout)
    except Exception as e:
        return Failed(e)
    return parse_completion(text)


class InsightService:
    """Cache-backed insight generation for one completion provider"""

    def __init__(
        self,
        aggregator: TimeAggregator,
        cache: InsightCache,
        completion: CompletionFn,
        timeout: float = AI_TIMEOUT_SECONDS,
    ):
        self.aggregator = aggregator
        self.cache = cache
        self.completion = completion
        self.timeout = timeout

    async def _compute(self, user_id: str, period: str) -> dict[str, Any]:
        summary = await self.aggregator.get_summary_stats(user_id)
        prompt = build_insight_prompt(user_id, period, summary)

        result = await bounded_complete(self.completion, prompt, self.timeout)
        payload, used_fallback = to_payload(result)

        # Only real model output is cached; the cache serves the fallback itself
        if isinstance(result, Failed):
            error = result.error
            if isinstance(error, asyncio.TimeoutError):
                raise UpstreamServiceError(
                    f"Completion timed out after {self.timeout}s",
                    service="completion",
                    user_id=user_id,
                    operation="get_insights",
                    cause=error,
                )
            raise wrap_external_exception(error, operation="get_insights", user_id=user_id)
        if isinstance(result, Raw):
            raise UpstreamServiceError(
                "Completion returned no JSON object",
                service="completion",
                user_id=user_id,
                operation="get_insights",
            )
        if not has_content(result):
            raise UpstreamServiceError(
                "Completion JSON had no insights or recommendations",
                service="completion",
                user_id=user_id,
                operation="get_insights",
            )

        if used_fallback:
            record_insight_fallback("partial")
            logger.info(f"[INSIGHTS] Partial completion for {user_id}/{period}; filled from fallback")
        return payload.model_dump()

    async def get_insights(
        self,
        user_id: str,
        period: str = "week",
        regenerate: bool = False,
    ) -> InsightPayload:
        """
        Get insights for a user.

        Args:
            user_id: User identifier
            period: "day", "week" or "month"
            regenerate: Bypass a fresh cached entry

        Returns:
            InsightPayload, from cache, from the provider, or the fallback

        Raises:
            ValidationError: period is not one of KNOWN_PERIODS
        """
        if period not in KNOWN_PERIODS:
            raise ValidationError(
                f"Unknown insight period '{period}'; expected one of {', '.join(KNOWN_PERIODS)}",
                field="period",
                value=period,
                user_id=user_id,
                operation="get_insights",
            )

        payload = await self.cache.get_or_compute(
            user_id,
            period,
            regenerate,
            lambda: self._compute(user_id, period),
        )
        return InsightPayload.model_validate(payload)


class UnavailableCompletion:
    """Provider used when no AI backend is configured; always fails"""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or "No completion provider configured"

    async def __call__(self, prompt: str) -> str:
        raise UpstreamServiceError(self.reason, service="completion")
