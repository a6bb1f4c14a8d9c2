"""
OpenAI vision provider - implements IAnalysisProvider port.

Key Features:
- Prompt + image bytes (base64 data URL) → raw model text
- Text-only prompts (recommendations, insights) use the same model
- SDK/httpx failures mapped to the engine's provider errors
- Circuit breaker (5 transient failures → 60s open, reported as transient)
- No SDK-level retries: the job scheduler owns retry and backoff
"""

from __future__ import annotations

import base64
import time
from typing import Any, Dict, List, Optional

import httpx
import structlog
from circuitbreaker import CircuitBreaker, CircuitBreakerError
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from photo_analysis.domain.jobs.ports import PhotoPayload
from photo_analysis.domain.shared.errors import (
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    TransientProviderError,
)

logger = structlog.get_logger(__name__)


def to_data_url(image: PhotoPayload) -> str:
    """Encode image bytes as a data URL accepted by the vision API."""
    encoded = base64.b64encode(image.content).decode("ascii")
    return f"data:{image.mime_type};base64,{encoded}"


def map_openai_error(exc: Exception) -> ProviderError:
    """
    Translate an OpenAI/httpx exception into the provider error taxonomy.

    Timeouts, rate limits, connection problems and 5xx are transient;
    other status errors (400, 401, 403, 404, 422) are not.
    """
    if isinstance(exc, (APITimeoutError, httpx.TimeoutException)):
        return ProviderTimeoutError("AI provider timed out")
    if isinstance(exc, RateLimitError):
        return ProviderRateLimitError("AI provider rate limit exceeded")
    if isinstance(exc, (APIConnectionError, httpx.TransportError)):
        return TransientProviderError("AI provider connection failed")
    if isinstance(exc, APIStatusError):
        code = exc.status_code
        if code >= 500:
            return TransientProviderError(f"AI provider error (status {code})")
        return ProviderError(f"AI provider rejected the request (status {code})")
    return ProviderError("AI provider call failed")


class OpenAIVisionProvider:
    """
    OpenAI GPT-4o vision adapter.

    Example:
        >>> provider = OpenAIVisionProvider(api_key="sk-...")
        >>> text = await provider.generate(prompt, PhotoPayload(content=jpeg_bytes))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 60.0,
        temperature: float = 0.2,
        max_tokens: int = 1500,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize provider.

        Args:
            api_key: OpenAI API key; provider reports unavailable without it
            model: Vision-capable chat model
            timeout: HTTP timeout in seconds
            temperature: Sampling temperature
            max_tokens: Completion budget
            client: Pre-configured AsyncOpenAI client (for testing)
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        if client is not None:
            self._client: Optional[AsyncOpenAI] = client
        elif api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        else:
            self._client = None

        # One breaker per provider instance: 5 transient failures open it for 60s
        self.breaker = CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60,
            expected_exception=TransientProviderError,
            name="analysis_provider",
        )
        self._guarded_complete = self.breaker(self._complete)

    @property
    def name(self) -> str:
        return "openai"

    def is_available(self) -> bool:
        return self._client is not None

    async def close(self) -> None:
        """Close the HTTP client; the provider is unavailable afterwards."""
        client, self._client = self._client, None
        if client is not None:
            await client.close()

    async def generate(self, prompt: str, image: Optional[PhotoPayload] = None) -> str:
        """
        Run one completion, attaching the image when given.

        Raises:
            TransientProviderError: Retryable failure (incl. open circuit)
            ProviderError: Non-retryable failure
        """
        if self._client is None:
            raise ProviderError("AI provider is not configured")

        start = time.perf_counter()
        try:
            return await self._guarded_complete(prompt, image)
        except CircuitBreakerError as exc:
            logger.warning("AI provider circuit open", error=str(exc))
            raise TransientProviderError("AI provider temporarily unavailable") from exc
        finally:
            logger.info(
                "Provider call finished",
                provider=self.name,
                model=self.model,
                elapsed_ms=int((time.perf_counter() - start) * 1000),
                image_bytes=len(image.content) if image is not None else 0,
            )

    async def _complete(self, prompt: str, image: Optional[PhotoPayload] = None) -> str:
        client = self._client
        if client is None:
            raise ProviderError("AI provider is not configured")
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        if image is not None:
            content.append({"type": "image_url", "image_url": {"url": to_data_url(image)}})
        messages: List[Dict[str, Any]] = [{"role": "user", "content": content}]

        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except (APIStatusError, APIConnectionError, httpx.HTTPError) as exc:
            raise map_openai_error(exc) from exc

        if completion.usage is not None:
            logger.debug(
                "OpenAI response received",
                model=self.model,
                total_tokens=completion.usage.total_tokens,
            )

        if not completion.choices:
            raise TransientProviderError("AI provider returned no choices")
        content = completion.choices[0].message.content
        if not content:
            raise TransientProviderError("AI provider returned empty content")
        return content
