"""Circuit breaker for the external completion provider

State Machine:
    CLOSED (normal) -> OPEN (failing fast) -> HALF_OPEN (testing) -> CLOSED/OPEN

While open, insight requests skip the provider entirely and are answered
from the fallback payload.
"""

import pybreaker
import logging
from typing import Any

from wellness_engine.resilience.metrics import record_api_failure, record_circuit_breaker_state

logger = logging.getLogger(__name__)


class CircuitBreakerListener(pybreaker.CircuitBreakerListener):
    """Listener to log circuit breaker state changes and emit metrics"""

    def state_change(self, cb: pybreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        logger.warning(f"[CIRCUIT_BREAKER] {cb.name}: {old_state.name} -> {new_state.name}")
        record_circuit_breaker_state(cb.name, new_state.name.lower().replace("-", "_"))

    def failure(self, cb: pybreaker.CircuitBreaker, exc: BaseException) -> None:
        logger.error(f"[CIRCUIT_BREAKER] {cb.name} recorded failure: {type(exc).__name__}: {exc}")
        record_api_failure(cb.name, type(exc).__name__)

    def success(self, cb: pybreaker.CircuitBreaker) -> None:
        logger.debug(f"[CIRCUIT_BREAKER] {cb.name} recorded success")


def create_breaker(name: str, fail_max: int = 5, reset_timeout: int = 60) -> pybreaker.CircuitBreaker:
    """5 consecutive failures open the circuit; after 60s one trial call is allowed"""
    return pybreaker.CircuitBreaker(
        fail_max=fail_max,
        reset_timeout=reset_timeout,
        name=name,
        listeners=[CircuitBreakerListener()],
    )


COMPLETION_BREAKER = create_breaker("completion_api")
