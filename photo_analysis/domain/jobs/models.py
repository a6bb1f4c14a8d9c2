"""
Analysis job domain models.

A Job tracks one asynchronous photo analysis through
pending → processing → completed | failed, with a bounded retry edge
back to pending.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from photo_analysis.domain.analysis.models import AnalysisResult
from photo_analysis.domain.shared.errors import InvalidJobTransitionError
from photo_analysis.domain.shared.value_objects import (
    AnalysisType,
    generate_job_id,
)

DEFAULT_MAX_RETRIES = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Lifecycle status of an analysis job."""

    PENDING = "pending"  # Waiting for a (re)run
    PROCESSING = "processing"  # Pipeline running
    COMPLETED = "completed"  # Result available
    FAILED = "failed"  # Terminal failure, error recorded

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Retry edges (processing/failed → pending) are additionally bounded by
# retry_count < max_retries, checked in Job.reset_for_retry.
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset(
        {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.PENDING}
    ),
    JobStatus.FAILED: frozenset({JobStatus.PENDING}),
    JobStatus.COMPLETED: frozenset(),
}


class Job(BaseModel):
    """
    Asynchronous analysis job record.

    Owned by the job store; everything outside the store works on copies.

    Example:
        >>> job = Job.create_new("p1", "u1", AnalysisType.MEAL, cache_key="ai_meal_p1_u1")
        >>> job.status
        <JobStatus.PENDING: 'pending'>
        >>> job.mark_processing()
        >>> job.status
        <JobStatus.PROCESSING: 'processing'>
    """

    model_config = ConfigDict(validate_assignment=False)

    id: str = Field(default_factory=generate_job_id)
    photo_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    analysis_type: AnalysisType
    cache_key: str
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    retry_count: int = Field(0, ge=0)
    max_retries: int = Field(DEFAULT_MAX_RETRIES, ge=0)
    cached: bool = False

    # ─── Factories ─────────────────────────────────────────

    @classmethod
    def create_new(
        cls,
        photo_id: str,
        user_id: str,
        analysis_type: AnalysisType,
        *,
        cache_key: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        now: Optional[datetime] = None,
    ) -> "Job":
        """New pending job."""
        return cls(
            photo_id=photo_id,
            user_id=user_id,
            analysis_type=analysis_type,
            cache_key=cache_key,
            max_retries=max_retries,
            created_at=now or utc_now(),
        )

    @classmethod
    def create_from_cache(
        cls,
        photo_id: str,
        user_id: str,
        analysis_type: AnalysisType,
        *,
        cache_key: str,
        result: Any,
        max_retries: int = DEFAULT_MAX_RETRIES,
        now: Optional[datetime] = None,
    ) -> "Job":
        """Job born completed from a cached result; never touches the provider."""
        at = now or utc_now()
        return cls(
            photo_id=photo_id,
            user_id=user_id,
            analysis_type=analysis_type,
            cache_key=cache_key,
            max_retries=max_retries,
            status=JobStatus.COMPLETED,
            created_at=at,
            completed_at=at,
            result=result,
            cached=True,
        )

    # ─── Transitions ───────────────────────────────────────

    def _transition(self, target: JobStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidJobTransitionError(
                f"Job {self.id}: {self.status.value} -> {target.value} not allowed"
            )
        self.status = target

    def mark_processing(self, at: Optional[datetime] = None) -> None:
        self._transition(JobStatus.PROCESSING)
        self.started_at = at or utc_now()
        self.error = None

    def mark_completed(self, result: Any, at: Optional[datetime] = None) -> None:
        self._transition(JobStatus.COMPLETED)
        self.result = result
        self.error = None
        self.completed_at = at or utc_now()

    def mark_failed(self, error: str, at: Optional[datetime] = None) -> None:
        self._transition(JobStatus.FAILED)
        self.result = None
        self.error = error
        self.completed_at = at or utc_now()

    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    def reset_for_retry(self) -> None:
        """Take the bounded retry edge back to pending."""
        if not self.can_retry():
            raise InvalidJobTransitionError(
                f"Job {self.id}: retry budget exhausted ({self.retry_count}/{self.max_retries})"
            )
        self._transition(JobStatus.PENDING)
        self.retry_count += 1
        self.error = None
        self.result = None
        self.started_at = None
        self.completed_at = None

    def check_invariants(self) -> None:
        """Raise if result/error do not match the status."""
        if (self.result is not None) != (self.status is JobStatus.COMPLETED):
            raise InvalidJobTransitionError(
                f"Job {self.id}: result must be set iff status is completed"
            )
        if (self.error is not None) != (self.status is JobStatus.FAILED):
            raise InvalidJobTransitionError(
                f"Job {self.id}: error must be set iff status is failed"
            )
        if self.retry_count > self.max_retries:
            raise InvalidJobTransitionError(
                f"Job {self.id}: retry_count exceeds max_retries"
            )

    @property
    def processing_time_ms(self) -> Optional[float]:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() * 1000


# ═══════════════════════════════════════════════════════════
# READ MODELS
# ═══════════════════════════════════════════════════════════


class _View(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class JobReceipt(_View):
    """Answer to submit."""

    job_id: str
    status: JobStatus

    @classmethod
    def from_job(cls, job: Job) -> "JobReceipt":
        return cls(job_id=job.id, status=job.status)


class JobStatusView(_View):
    """Answer to poll: result only when completed, error only when failed."""

    job_id: str
    user_id: str
    status: JobStatus
    type: AnalysisType
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    retry_count: int = 0
    cached: bool = False

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusView":
        return cls(
            job_id=job.id,
            user_id=job.user_id,
            status=job.status,
            type=job.analysis_type,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            result=job.result if job.status is JobStatus.COMPLETED else None,
            error=job.error if job.status is JobStatus.FAILED else None,
            retry_count=job.retry_count,
            cached=job.cached,
        )


class JobSummary(_View):
    """List entry: no payload."""

    job_id: str
    status: JobStatus
    type: AnalysisType
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobSummary":
        return cls(
            job_id=job.id,
            status=job.status,
            type=job.analysis_type,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )
