"""Resilience patterns for the external completion provider

Circuit breaker, retry with backoff and Prometheus metrics that keep the
insight path responsive when the AI service is slow or down.
"""

from wellness_engine.resilience.circuit_breaker import COMPLETION_BREAKER, create_breaker
from wellness_engine.resilience.retry import retry_with_backoff, is_retryable_error
from wellness_engine.resilience.metrics import (
    record_api_call,
    record_api_failure,
    record_retry,
    record_cache_lookup,
    record_insight_fallback,
)

__all__ = [
    "COMPLETION_BREAKER",
    "create_breaker",
    "retry_with_backoff",
    "is_retryable_error",
    "record_api_call",
    "record_api_failure",
    "record_retry",
    "record_cache_lookup",
    "record_insight_fallback",
]
