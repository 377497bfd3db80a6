"""Retry logic with exponential backoff and jitter

Only transient completion errors are retried (timeouts, rate limits,
5xx responses); everything else fails fast so the insight fallback can
take over.
"""

import asyncio
import random
import logging
from typing import Callable, Any, TypeVar

import httpx

from wellness_engine.resilience.metrics import record_retry

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Retry configuration
MAX_RETRIES = 2
BASE_DELAY = 0.5  # seconds
MAX_DELAY = 8.0  # seconds
JITTER = 0.1  # 10% random jitter

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


def is_retryable_error(exc: Exception) -> bool:
    """
    Determine if error is transient and should be retried.

    Retryable:
    - Network and asyncio timeouts
    - HTTP 429 and 5xx gateway/server errors
    - OpenAI rate limit / timeout / server errors (matched by class name)
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return True

    return exc.__class__.__name__ in {
        'RateLimitError',
        'APITimeoutError',
        'APIConnectionError',
        'InternalServerError',
    }


def calculate_backoff(attempt: int) -> float:
    """
    Exponential backoff with +/-10% jitter.

    Attempt 0: ~0.5s, attempt 1: ~1s, attempt 2: ~2s, capped at MAX_DELAY
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    jitter_amount = random.uniform(-JITTER * delay, JITTER * delay)
    return max(delay + jitter_amount, 0.0)


async def retry_with_backoff(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    api_name: str = "completion",
    **kwargs: Any
) -> T:
    """
    Retry async function with exponential backoff.

    Raises:
        Last exception if retries are exhausted or the error is not retryable
    """
    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except Exception as e:
            if attempt == max_retries:
                logger.error(f"[RETRY] All {max_retries} retries exhausted for {api_name}")
                raise

            if not is_retryable_error(e):
                logger.warning(f"[RETRY] Non-retryable error for {api_name}: {type(e).__name__}: {e}")
                raise

            backoff = calculate_backoff(attempt)
            record_retry(api_name)
            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_retries} for {api_name} "
                f"after {backoff:.2f}s (error: {type(e).__name__})"
            )
            await asyncio.sleep(backoff)

    raise RuntimeError("Retry loop exited without a result")
