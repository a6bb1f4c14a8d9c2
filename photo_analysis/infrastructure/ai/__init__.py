"""Analysis provider adapters (OpenAI vision, stub) and factory."""

from photo_analysis.infrastructure.ai.openai_provider import OpenAIVisionProvider
from photo_analysis.infrastructure.ai.stub_provider import StubAnalysisProvider

__all__ = [
    "OpenAIVisionProvider",
    "StubAnalysisProvider",
]
