"""Unit tests for OpenAIVisionProvider.

Tests focus on:
- Request shape (prompt + base64 image data URL)
- Error mapping to the provider error taxonomy
- Circuit breaker behaviour

The OpenAI SDK client is replaced by a MagicMock with an AsyncMock
`chat.completions.create`.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, APIStatusError, APITimeoutError, RateLimitError

from photo_analysis.domain.jobs.ports import IAnalysisProvider, PhotoPayload
from photo_analysis.domain.shared.errors import (
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    TransientProviderError,
)
from photo_analysis.infrastructure.ai.openai_provider import (
    OpenAIVisionProvider,
    map_openai_error,
    to_data_url,
)

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
IMAGE = PhotoPayload(content=b"abc", mime_type="image/png")


def _status_error(status_code: int) -> APIStatusError:
    response = httpx.Response(status_code=status_code, request=REQUEST)
    if status_code == 429:
        return RateLimitError("rate limited", response=response, body=None)
    return APIStatusError(f"status {status_code}", response=response, body=None)


def _completion(content: Any) -> MagicMock:
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    completion.usage = MagicMock(total_tokens=1234)
    return completion


@pytest.fixture
def sdk_client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion('{"foodItems": []}'))
    client.close = AsyncMock()
    return client


@pytest.fixture
def provider(sdk_client: MagicMock) -> OpenAIVisionProvider:
    return OpenAIVisionProvider(model="gpt-4o-mini", client=sdk_client)


class TestInit:
    def test_without_key_is_unavailable(self) -> None:
        provider = OpenAIVisionProvider(api_key=None)
        assert provider.is_available() is False
        assert provider.name == "openai"

    def test_with_client_is_available(self, provider: OpenAIVisionProvider) -> None:
        assert provider.is_available() is True
        assert isinstance(provider, IAnalysisProvider)

    @pytest.mark.asyncio
    async def test_unconfigured_generate_raises(self) -> None:
        with pytest.raises(ProviderError):
            await OpenAIVisionProvider().generate("prompt", IMAGE)

    @pytest.mark.asyncio
    async def test_unconfigured_completion_raises_provider_error(self) -> None:
        with pytest.raises(ProviderError, match="not configured"):
            await OpenAIVisionProvider()._complete("prompt", IMAGE)

    @pytest.mark.asyncio
    async def test_close_releases_client_once(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        await provider.close()
        await provider.close()

        sdk_client.close.assert_awaited_once()
        assert provider.is_available() is False


class TestGenerate:
    @pytest.mark.asyncio
    async def test_returns_raw_content(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        text = await provider.generate("Analyze this food image", IMAGE)

        assert text == '{"foodItems": []}'
        kwargs = sdk_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "Analyze this food image"}
        assert content[1]["image_url"]["url"] == "data:image/png;base64,YWJj"

    @pytest.mark.asyncio
    async def test_text_only_prompt_sends_no_image(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        await provider.generate("Provide nutrition recommendations")

        content = sdk_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert content == [{"type": "text", "text": "Provide nutrition recommendations"}]

    @pytest.mark.asyncio
    async def test_empty_content_is_transient(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        sdk_client.chat.completions.create.return_value = _completion(None)

        with pytest.raises(TransientProviderError):
            await provider.generate("prompt", IMAGE)

    @pytest.mark.asyncio
    async def test_sdk_error_is_mapped(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        sdk_client.chat.completions.create.side_effect = _status_error(503)

        with pytest.raises(TransientProviderError) as exc_info:
            await provider.generate("prompt", IMAGE)
        assert "503" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_bad_request_is_not_transient(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        sdk_client.chat.completions.create.side_effect = _status_error(400)

        with pytest.raises(ProviderError) as exc_info:
            await provider.generate("prompt", IMAGE)
        assert not isinstance(exc_info.value, TransientProviderError)

    @pytest.mark.asyncio
    async def test_circuit_opens_after_repeated_transient_failures(
        self, provider: OpenAIVisionProvider, sdk_client: MagicMock
    ) -> None:
        sdk_client.chat.completions.create.side_effect = _status_error(502)

        for _ in range(5):
            with pytest.raises(TransientProviderError):
                await provider.generate("prompt", IMAGE)
        assert sdk_client.chat.completions.create.await_count == 5

        with pytest.raises(TransientProviderError) as exc_info:
            await provider.generate("prompt", IMAGE)

        assert "temporarily unavailable" in str(exc_info.value)
        assert sdk_client.chat.completions.create.await_count == 5

    @pytest.mark.asyncio
    async def test_circuit_is_per_instance(self, sdk_client: MagicMock) -> None:
        sdk_client.chat.completions.create.side_effect = _status_error(502)
        broken = OpenAIVisionProvider(client=sdk_client)
        for _ in range(5):
            with pytest.raises(TransientProviderError):
                await broken.generate("prompt", IMAGE)

        healthy_client = MagicMock()
        healthy_client.chat.completions.create = AsyncMock(return_value=_completion("ok"))
        healthy = OpenAIVisionProvider(client=healthy_client)

        assert await healthy.generate("prompt", IMAGE) == "ok"


class TestErrorMapping:
    def test_timeout(self) -> None:
        assert isinstance(map_openai_error(APITimeoutError(request=REQUEST)), ProviderTimeoutError)
        assert isinstance(map_openai_error(httpx.ReadTimeout("slow")), ProviderTimeoutError)

    def test_rate_limit(self) -> None:
        assert isinstance(map_openai_error(_status_error(429)), ProviderRateLimitError)

    def test_connection_error(self) -> None:
        mapped = map_openai_error(APIConnectionError(request=REQUEST))
        assert type(mapped) is TransientProviderError

    @pytest.mark.parametrize("status_code", [500, 502, 503])
    def test_server_errors_are_transient(self, status_code: int) -> None:
        assert isinstance(map_openai_error(_status_error(status_code)), TransientProviderError)

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_client_errors_are_terminal(self, status_code: int) -> None:
        mapped = map_openai_error(_status_error(status_code))
        assert isinstance(mapped, ProviderError)
        assert not isinstance(mapped, TransientProviderError)

    def test_data_url(self) -> None:
        assert to_data_url(PhotoPayload(content=b"abc")) == "data:image/jpeg;base64,YWJj"
