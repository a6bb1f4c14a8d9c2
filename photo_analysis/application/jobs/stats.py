"""Aggregate statistics over the job store."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from photo_analysis.domain.jobs.models import JobStatus
from photo_analysis.domain.jobs.ports import IJobStore


class ServiceStats(BaseModel):
    """
    Snapshot of the job population.

    averageProcessingTime is in milliseconds, over completed jobs that
    have both timestamps (cache hits never started, so they are left out).
    successRate is completed / total * 100.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_jobs: int = 0
    pending_jobs: int = 0
    processing_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    average_processing_time: float = Field(0.0, description="ms")
    success_rate: float = Field(0.0, description="percent")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class StatsReporter:
    """Computes ServiceStats on demand; nothing is cached."""

    def __init__(self, store: IJobStore) -> None:
        self.store = store

    def compute(self) -> ServiceStats:
        """
        Example:
            >>> StatsReporter(InMemoryJobStore()).compute().total_jobs
            0
        """
        jobs = self.store.all()
        counts = {status: 0 for status in JobStatus}
        durations: List[float] = []

        for job in jobs:
            counts[job.status] += 1
            if job.status is JobStatus.COMPLETED:
                elapsed = job.processing_time_ms
                if elapsed is not None:
                    durations.append(elapsed)

        total = len(jobs)
        completed = counts[JobStatus.COMPLETED]
        return ServiceStats(
            total_jobs=total,
            pending_jobs=counts[JobStatus.PENDING],
            processing_jobs=counts[JobStatus.PROCESSING],
            completed_jobs=completed,
            failed_jobs=counts[JobStatus.FAILED],
            average_processing_time=sum(durations) / len(durations) if durations else 0.0,
            success_rate=completed / total * 100 if total else 0.0,
        )
