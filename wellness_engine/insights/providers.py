"""
Text-completion providers

The engine only needs `await complete(prompt) -> str`. Any async callable
with that shape can be injected; OpenAICompletionProvider is the default
production implementation.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Optional

import pybreaker
from openai import AsyncOpenAI

from wellness_engine.exceptions import UpstreamServiceError
from wellness_engine.resilience.circuit_breaker import COMPLETION_BREAKER
from wellness_engine.resilience.metrics import record_api_call
from wellness_engine.resilience.retry import retry_with_backoff

logger = logging.getLogger(__name__)

CompletionFn = Callable[[str], Awaitable[str]]

SYSTEM_PROMPT = (
    "You are a concise wellness coach. Answer with a JSON object only, "
    "no markdown and no commentary."
)


class OpenAICompletionProvider:
    """
    Chat-completions backed provider.

    Each call goes through the circuit breaker, and transient failures are
    retried with backoff before the error reaches the insight service.
    """

    api_name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_retries: int = 2,
        client: Optional[Any] = None,
        breaker: Optional[pybreaker.CircuitBreaker] = COMPLETION_BREAKER,
    ):
        self.model = model
        self.temperature = temperature
        self.max_retries = max_retries
        self.breaker = breaker
        # SDK retries are disabled; retry_with_backoff owns retrying
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

    async def _request(self, prompt: str) -> str:
        started = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except Exception:
            record_api_call(self.api_name, success=False, duration=time.monotonic() - started)
            raise

        record_api_call(self.api_name, success=True, duration=time.monotonic() - started)
        content = response.choices[0].message.content
        if content is None:
            raise UpstreamServiceError("Completion returned no content", service="OpenAI")
        return content

    async def _protected_request(self, prompt: str) -> str:
        if self.breaker is None:
            return await self._request(prompt)
        return await self.breaker.call_async(self._request, prompt)

    async def __call__(self, prompt: str) -> str:
        logger.debug(f"[COMPLETION] Requesting {self.model} ({len(prompt)} prompt chars)")
        return await retry_with_backoff(
            self._protected_request,
            prompt,
            max_retries=self.max_retries,
            api_name=self.api_name,
        )
