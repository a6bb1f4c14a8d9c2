"""
In-memory job store.

Owns every Job record, keyed by job ID and indexed by owning user.
All methods are synchronous and run on the engine's event loop, so a
mutation is never interleaved with another one. Callers always receive
deep copies; the stored records are never handed out.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

import structlog

from photo_analysis.domain.jobs.models import (
    DEFAULT_MAX_RETRIES,
    Job,
    utc_now,
)
from photo_analysis.domain.jobs.ports import JobMutator
from photo_analysis.domain.shared.errors import JobNotFoundError
from photo_analysis.domain.shared.value_objects import AnalysisType

logger = structlog.get_logger(__name__)


class InMemoryJobStore:
    """
    In-memory implementation of IJobStore.

    NOT suitable for multiple processes: jobs live only as long as the
    process and are bounded by the retention sweep.

    Example:
        >>> store = InMemoryJobStore()
        >>> job = store.create("p1", "u1", AnalysisType.MEAL, cache_key="ai_meal_p1_u1")
        >>> store.get(job.id).status
        <JobStatus.PENDING: 'pending'>
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._jobs: Dict[str, Job] = {}
        self._by_user: Dict[str, List[str]] = {}
        self._clock = clock

    # ─── Creation ──────────────────────────────────────────

    def add(self, job: Job) -> Job:
        """Store a new job; returns a snapshot."""
        job.check_invariants()
        stored = job.model_copy(deep=True)
        self._jobs[stored.id] = stored
        self._by_user.setdefault(stored.user_id, []).append(stored.id)
        logger.debug("Job stored", job_id=stored.id, status=stored.status.value)
        return stored.model_copy(deep=True)

    def create(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: AnalysisType,
        *,
        cache_key: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> Job:
        """Create a pending job with retry_count=0."""
        return self.add(
            Job.create_new(
                photo_id,
                user_id,
                analysis_type,
                cache_key=cache_key,
                max_retries=max_retries,
                now=self._clock(),
            )
        )

    def create_completed(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: AnalysisType,
        *,
        cache_key: str,
        result: Any,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> Job:
        """Create a job that is already completed with a cached result."""
        return self.add(
            Job.create_from_cache(
                photo_id,
                user_id,
                analysis_type,
                cache_key=cache_key,
                result=result,
                max_retries=max_retries,
                now=self._clock(),
            )
        )

    # ─── Queries ───────────────────────────────────────────

    def get(self, job_id: str) -> Job:
        """
        Get a job snapshot.

        Raises:
            JobNotFoundError: Unknown or swept job
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job.model_copy(deep=True)

    def exists(self, job_id: str) -> bool:
        return job_id in self._jobs

    def list_by_user(self, user_id: str, limit: int = 20) -> List[Job]:
        """Newest-first snapshots of a user's jobs."""
        if limit <= 0:
            return []
        ids = list(self._by_user.get(user_id, ()))
        jobs = [self._jobs[job_id] for job_id in ids if job_id in self._jobs]
        jobs.sort(key=lambda j: j.created_at, reverse=True)
        return [job.model_copy(deep=True) for job in jobs[:limit]]

    def all(self) -> List[Job]:
        return [job.model_copy(deep=True) for job in list(self._jobs.values())]

    def size(self) -> int:
        return len(self._jobs)

    # ─── Mutation ──────────────────────────────────────────

    def update(self, job_id: str, mutator: JobMutator) -> Job:
        """
        Apply mutator atomically.

        The mutator works on a copy; the copy replaces the stored record
        only if the mutator succeeds and invariants hold, so a failing
        mutator leaves the job untouched.

        Raises:
            JobNotFoundError: Unknown job
            InvalidJobTransitionError: Mutation breaks the state machine
        """
        current = self._jobs.get(job_id)
        if current is None:
            raise JobNotFoundError(job_id)

        working = current.model_copy(deep=True)
        mutator(working)
        working.check_invariants()
        self._jobs[job_id] = working

        if working.status is not current.status:
            logger.debug(
                "Job status changed",
                job_id=job_id,
                old_status=current.status.value,
                new_status=working.status.value,
                retry_count=working.retry_count,
            )
        return working.model_copy(deep=True)

    def sweep(self, retention_days: float, now: Optional[datetime] = None) -> int:
        """
        Delete terminal jobs that finished before now - retention_days.

        Returns:
            Number of jobs removed
        """
        cutoff = (now or self._clock()) - timedelta(days=retention_days)
        expired = [
            job_id
            for job_id, job in list(self._jobs.items())
            if job.status.is_terminal
            and job.completed_at is not None
            and job.completed_at < cutoff
        ]

        for job_id in expired:
            job = self._jobs.pop(job_id, None)
            if job is None:
                continue
            owned = self._by_user.get(job.user_id)
            if owned is not None:
                owned[:] = [jid for jid in owned if jid != job_id]
                if not owned:
                    del self._by_user[job.user_id]

        if expired:
            logger.info("Cleaned up old analysis jobs", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        """Remove all jobs (for testing)."""
        self._jobs.clear()
        self._by_user.clear()
