"""
Ports (interfaces) for the job engine's collaborators.

The engine depends on these protocols only; infrastructure provides
the adapters (OpenAI, stub, filesystem photos, in-memory store).

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

from photo_analysis.domain.jobs.models import Job
from photo_analysis.domain.shared.value_objects import AnalysisType


@dataclass(frozen=True, slots=True)
class PhotoPayload:
    """Image bytes handed to the provider."""

    content: bytes
    mime_type: str = "image/jpeg"


@runtime_checkable
class IAnalysisProvider(Protocol):
    """
    Port for the vision/text model.

    Implementations translate their own failures into the engine's
    provider errors (TransientProviderError for anything worth retrying).
    """

    @property
    def name(self) -> str: ...

    def is_available(self) -> bool:
        """True when the provider is configured and can take calls."""
        ...

    async def generate(self, prompt: str, image: Optional[PhotoPayload] = None) -> str:
        """
        Submit prompt (plus image for photo analysis), return the raw model text.

        Raises:
            TransientProviderError: network, timeout, rate limit, 5xx
            ProviderError: non-retryable provider failure
        """
        ...


@runtime_checkable
class IPhotoLoader(Protocol):
    """Port for the photo collaborator (owned by the outer application)."""

    async def load(self, photo_id: str, user_id: str) -> PhotoPayload:
        """
        Load image bytes for a photo owned by user_id.

        Raises:
            PhotoNotFoundError: Unknown photo, wrong owner or unreadable file
        """
        ...


JobMutator = Callable[[Job], None]


@runtime_checkable
class IJobStore(Protocol):
    """Port for job storage."""

    def add(self, job: Job) -> Job: ...

    def create(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: AnalysisType,
        *,
        cache_key: str,
        max_retries: int = ...,
    ) -> Job: ...

    def create_completed(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: AnalysisType,
        *,
        cache_key: str,
        result: Any,
        max_retries: int = ...,
    ) -> Job: ...

    def get(self, job_id: str) -> Job: ...

    def list_by_user(self, user_id: str, limit: int = 20) -> List[Job]: ...

    def update(self, job_id: str, mutator: JobMutator) -> Job: ...

    def sweep(self, retention_days: float, now: Optional[datetime] = None) -> int: ...

    def all(self) -> List[Job]: ...
