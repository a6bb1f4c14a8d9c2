"""Job scheduling and statistics."""

from photo_analysis.application.jobs.scheduler import JobScheduler
from photo_analysis.application.jobs.stats import ServiceStats, StatsReporter

__all__ = ["JobScheduler", "ServiceStats", "StatsReporter"]
