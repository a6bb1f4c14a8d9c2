"""Provider factory for the analysis engine.

Environment-based provider selection:
- ANALYSIS_PROVIDER=openai: OpenAI vision (requires OPENAI_API_KEY)
- ANALYSIS_PROVIDER=stub: deterministic stub
- ANALYSIS_PROVIDER=none: no provider, submit reports unavailable

Usage:
    from photo_analysis.infrastructure.ai.factory import create_analysis_provider

    provider = create_analysis_provider(EngineSettings.from_env())
"""

from typing import Optional

import structlog

from photo_analysis.config import EngineSettings
from photo_analysis.domain.jobs.ports import IAnalysisProvider
from photo_analysis.infrastructure.ai.openai_provider import OpenAIVisionProvider
from photo_analysis.infrastructure.ai.stub_provider import StubAnalysisProvider

logger = structlog.get_logger(__name__)


def create_analysis_provider(settings: EngineSettings) -> Optional[IAnalysisProvider]:
    """Create the analysis provider selected by settings.provider.

    Returns:
        Provider instance, or None when no provider is configured. A
        missing OpenAI key is not fatal: the engine starts and reports the
        AI service as unavailable.

    Raises:
        ValueError: Unknown provider name
    """
    mode = settings.provider.strip().lower()

    if mode == "openai":
        if not settings.openai_api_key:
            logger.warning(
                "OpenAI API key not found. AI features will be disabled.",
                provider=mode,
            )
            return None
        return OpenAIVisionProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout=settings.provider_timeout_seconds,
        )

    if mode == "stub":
        return StubAnalysisProvider()

    if mode == "none":
        return None

    raise ValueError(
        f"Unknown ANALYSIS_PROVIDER {settings.provider!r}. Use openai, stub or none"
    )
