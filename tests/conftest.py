"""
Shared fixtures for engine tests.

Settings are tuned for speed: retries back off by milliseconds and the
per-attempt deadline is short.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Union

import pytest

from photo_analysis.application.engine import JobEngine
from photo_analysis.config import EngineSettings
from photo_analysis.domain.jobs.ports import PhotoPayload
from photo_analysis.infrastructure.cache.response_cache import ResponseCache
from photo_analysis.infrastructure.persistence.in_memory_job_store import InMemoryJobStore
from photo_analysis.infrastructure.photos.in_memory_photo_repository import (
    InMemoryPhotoRepository,
)
from photo_analysis.metrics.analysis_jobs import AnalysisJobMetrics
from photo_analysis.metrics.core import MetricsRegistry

MEAL_PAYLOAD: Dict[str, Any] = {
    "foodItems": ["rice", "grilled chicken"],
    "estimatedCalories": 300,
    "protein": 25,
    "carbohydrates": 30,
    "fat": 10,
    "confidence": 0.9,
    "warnings": [],
    "recommendations": ["Add vegetables"],
}

BODY_PAYLOAD: Dict[str, Any] = {
    "muscleDefinition": "medium",
    "bodyComposition": "balanced",
    "posture": "good",
    "fitnessLevel": "intermediate",
    "observations": ["Good shoulder definition"],
    "recommendations": ["Keep training"],
    "confidence": 0.85,
}


def meal_text(**overrides: Any) -> str:
    """Model-like reply wrapping a meal JSON object."""
    return "Here is the analysis: " + json.dumps({**MEAL_PAYLOAD, **overrides})


def body_text(**overrides: Any) -> str:
    return json.dumps({**BODY_PAYLOAD, **overrides})


# ═══════════════════════════════════════════════════════════
# PROVIDER DOUBLE
# ═══════════════════════════════════════════════════════════


Step = Union[str, BaseException]


class ScriptedProvider:
    """
    IAnalysisProvider test double.

    Plays `steps` in order (a str is returned, an exception is raised);
    once exhausted it keeps repeating the last step. `delay` makes every
    call sleep first, to exercise the per-attempt deadline.
    """

    def __init__(
        self,
        steps: Optional[List[Step]] = None,
        *,
        delay: float = 0.0,
        available: bool = True,
    ) -> None:
        self.steps: List[Step] = list(steps) if steps else [meal_text()]
        self.delay = delay
        self.available = available
        self.calls: List[str] = []

    @property
    def name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return self.available

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate(self, prompt: str, image: Optional[PhotoPayload] = None) -> str:
        index = min(len(self.calls), len(self.steps) - 1)
        self.calls.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        step = self.steps[index]
        if isinstance(step, BaseException):
            raise step
        return step


# ═══════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════


@pytest.fixture
def settings() -> EngineSettings:
    """Fast settings: 10 ms backoff base, 200 ms per-attempt deadline."""
    return EngineSettings(
        provider="stub",
        max_retries=3,
        retry_base_delay_ms=10,
        provider_timeout_ms=200,
    )


@pytest.fixture
def photos() -> InMemoryPhotoRepository:
    """Photo p1 owned by u1, photo p2 owned by u2."""
    repo = InMemoryPhotoRepository()
    repo.register("p1", "u1", b"\xff\xd8\xff\xe0fake-jpeg-p1")
    repo.register("p2", "u2", b"\xff\xd8\xff\xe0fake-jpeg-p2")
    return repo


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider([meal_text()])


@pytest.fixture
def metrics() -> AnalysisJobMetrics:
    """Metrics bound to a private registry."""
    return AnalysisJobMetrics(MetricsRegistry())


@pytest.fixture
def store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def cache() -> ResponseCache:
    return ResponseCache(ttl_seconds=60)


@pytest.fixture
def engine(
    settings: EngineSettings,
    provider: ScriptedProvider,
    photos: InMemoryPhotoRepository,
    store: InMemoryJobStore,
    cache: ResponseCache,
    metrics: AnalysisJobMetrics,
) -> JobEngine:
    return JobEngine(
        settings,
        provider,
        photos,
        store=store,
        cache=cache,
        metrics=metrics,
    )
