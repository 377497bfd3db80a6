"""Prometheus metrics for the completion provider and the insight cache

Metrics are exposed through the default prometheus_client registry.
"""

import logging
from prometheus_client import Counter, Histogram, Enum

logger = logging.getLogger(__name__)

# Circuit breaker state
# Values: closed, open, half_open
circuit_breaker_state = Enum(
    'wellness_circuit_breaker_state',
    'Current state of circuit breaker',
    ['api'],
    states=['closed', 'open', 'half_open']
)

# Completion calls
# Labels: api, status (success/failure)
api_calls_total = Counter(
    'wellness_api_calls_total',
    'Total number of completion API calls',
    ['api', 'status']
)

api_call_duration = Histogram(
    'wellness_api_call_duration_seconds',
    'Duration of completion API calls in seconds',
    ['api'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, float('inf'))
)

# Labels: api, error_type (TimeoutError/RateLimitError/etc)
api_failures_total = Counter(
    'wellness_api_failures_total',
    'Total number of completion API failures',
    ['api', 'error_type']
)

api_retries_total = Counter(
    'wellness_api_retries_total',
    'Total number of retry attempts',
    ['api']
)

# Insight cache lookups
# Labels: outcome (hit/miss/expired/regenerate)
insight_cache_lookups_total = Counter(
    'wellness_insight_cache_lookups_total',
    'Insight cache lookups by outcome',
    ['outcome']
)

# Labels: reason (upstream_error/unparseable/serialization)
insight_fallbacks_total = Counter(
    'wellness_insight_fallbacks_total',
    'Insight requests answered from the fallback payload or left uncached',
    ['reason']
)


def record_circuit_breaker_state(api: str, state: str) -> None:
    try:
        circuit_breaker_state.labels(api=api).state(state)
        logger.debug(f"[METRICS] Circuit breaker {api} state: {state}")
    except ValueError as e:
        logger.error(f"Failed to record circuit breaker state: {e}")


def record_api_call(api: str, success: bool, duration: float) -> None:
    status = 'success' if success else 'failure'
    api_calls_total.labels(api=api, status=status).inc()
    api_call_duration.labels(api=api).observe(duration)
    logger.debug(f"[METRICS] API call {api}: {status}, duration: {duration:.2f}s")


def record_api_failure(api: str, error_type: str) -> None:
    api_failures_total.labels(api=api, error_type=error_type).inc()
    logger.debug(f"[METRICS] API failure {api}: {error_type}")


def record_retry(api: str) -> None:
    api_retries_total.labels(api=api).inc()
    logger.debug(f"[METRICS] Retry attempt for {api}")


def record_cache_lookup(outcome: str) -> None:
    insight_cache_lookups_total.labels(outcome=outcome).inc()


def record_insight_fallback(reason: str) -> None:
    insight_fallbacks_total.labels(reason=reason).inc()
    logger.debug(f"[METRICS] Insight fallback: {reason}")
