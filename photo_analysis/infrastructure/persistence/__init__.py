"""Job persistence."""

from photo_analysis.infrastructure.persistence.in_memory_job_store import InMemoryJobStore

__all__ = ["InMemoryJobStore"]
