"""
APScheduler configuration for periodic sweeps.

Two interval jobs run on the engine's event loop:
- cache sweep: drops expired response-cache entries
- job sweep: drops terminal jobs older than the retention window

Both targets are coroutines, so AsyncIOScheduler runs them on the loop
rather than in a worker thread.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = structlog.get_logger(__name__)

SweepJob = Callable[[], Awaitable[Any]]

CACHE_SWEEP_JOB_ID = "ai_cache_sweep"
JOB_SWEEP_JOB_ID = "ai_job_sweep"


class SweepScheduler:
    """
    Manages APScheduler lifecycle and sweep registration.

    Example:
        >>> sweeps = SweepScheduler()
        >>> sweeps.initialize(cache_sweep, 3600, job_sweep, 3600)
        >>> sweeps.start()  # needs a running event loop
    """

    def __init__(self) -> None:
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._jobs: Dict[str, SweepJob] = {}

    def initialize(
        self,
        cache_sweep: SweepJob,
        cache_interval_seconds: float,
        job_sweep: SweepJob,
        job_interval_seconds: float,
    ) -> None:
        """
        Create the scheduler and register both sweeps.

        Args:
            cache_sweep: Coroutine function sweeping the response cache
            cache_interval_seconds: Period of the cache sweep
            job_sweep: Coroutine function sweeping the job store
            job_interval_seconds: Period of the job sweep
        """
        if self.scheduler is not None:
            logger.warning("Sweep scheduler already initialized")
            return

        self.scheduler = AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs
                "max_instances": 1,  # One instance at a time
                "misfire_grace_time": 300,
            },
        )

        self._register(
            CACHE_SWEEP_JOB_ID, "AI response cache sweep", cache_sweep, cache_interval_seconds
        )
        self._register(
            JOB_SWEEP_JOB_ID, "AI job retention sweep", job_sweep, job_interval_seconds
        )

        logger.info("Sweep scheduler initialized")

    def _register(self, job_id: str, name: str, func: SweepJob, interval_seconds: float) -> None:
        if self.scheduler is None:
            raise RuntimeError("Scheduler not initialized")

        self._jobs[job_id] = func
        self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=interval_seconds, timezone="UTC"),
            id=job_id,
            name=name,
            replace_existing=True,
        )
        logger.info("Sweep registered", job_id=job_id, interval_seconds=interval_seconds)

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        """Start scheduler (must be called with a running event loop)."""
        if self.scheduler is None:
            raise RuntimeError("Scheduler not initialized")

        if self.scheduler.running:
            logger.warning("Sweep scheduler already running")
            return

        self.scheduler.start()
        logger.info("Sweep scheduler started")

    def shutdown(self, wait: bool = False) -> None:
        if self.scheduler is None or not self.scheduler.running:
            return

        self.scheduler.shutdown(wait=wait)
        logger.info("Sweep scheduler shutdown", wait=wait)

    def get_jobs(self) -> List[Dict[str, Any]]:
        """Registered sweeps with their next run time."""
        if self.scheduler is None:
            return []

        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": getattr(job, "next_run_time", None),
                "trigger": str(job.trigger),
            }
            for job in self.scheduler.get_jobs()
        ]

    async def trigger_now(self, job_id: str) -> Any:
        """Run a registered sweep immediately (manual/testing)."""
        func = self._jobs.get(job_id)
        if func is None:
            raise KeyError(f"Unknown sweep job: {job_id}")

        logger.info("Manually triggering sweep", job_id=job_id)
        return await func()
