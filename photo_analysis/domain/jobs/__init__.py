"""Analysis job model and ports."""

from photo_analysis.domain.jobs.models import (
    Job,
    JobReceipt,
    JobStatus,
    JobStatusView,
    JobSummary,
)
from photo_analysis.domain.jobs.ports import (
    IAnalysisProvider,
    IJobStore,
    IPhotoLoader,
    PhotoPayload,
)

__all__ = [
    "IAnalysisProvider",
    "IJobStore",
    "IPhotoLoader",
    "Job",
    "JobReceipt",
    "JobStatus",
    "JobStatusView",
    "JobSummary",
    "PhotoPayload",
]
