"""
JobEngine - public facade of the photo analysis job engine.

Owns exactly one job store, one response cache, one job scheduler, the
advice service and the sweep timers. The host app creates one engine per
process and shares it between its request handlers.

Example:
    >>> engine = JobEngine.from_settings(EngineSettings.from_env(), photos=photo_loader)
    >>> engine.start()
    >>> receipt = await engine.submit("p1", "u1", "meal")
    >>> engine.poll(receipt.job_id).status
    'pending'
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import structlog

from photo_analysis.application.advice.service import DEFAULT_TIME_RANGE, AdviceService
from photo_analysis.application.jobs.scheduler import JobScheduler, ResultModel
from photo_analysis.application.jobs.stats import ServiceStats, StatsReporter
from photo_analysis.config import EngineSettings
from photo_analysis.domain.advice.models import (
    NutritionGoals,
    ProgressData,
    UserProfile,
    WorkoutPreferences,
)
from photo_analysis.domain.analysis.parser import AdviceOutcome
from photo_analysis.domain.jobs.models import JobReceipt, JobStatusView, JobSummary
from photo_analysis.domain.jobs.ports import IAnalysisProvider, IJobStore, IPhotoLoader
from photo_analysis.domain.shared.errors import AuthorizationError, ValidationError
from photo_analysis.domain.shared.value_objects import AnalysisType
from photo_analysis.infrastructure.ai.factory import create_analysis_provider
from photo_analysis.infrastructure.cache.response_cache import ResponseCache
from photo_analysis.infrastructure.persistence.in_memory_job_store import InMemoryJobStore
from photo_analysis.infrastructure.scheduler.sweep_scheduler import SweepScheduler
from photo_analysis.logging_config import configure_logging
from photo_analysis.metrics.analysis_jobs import AnalysisJobMetrics

logger = structlog.get_logger(__name__)

DEFAULT_LIST_LIMIT = 20

FEATURES: Dict[str, bool] = {
    "mealAnalysis": True,
    "bodyAnalysis": True,
    "nutritionRecommendations": True,
    "workoutRecommendations": True,
    "progressInsights": True,
    "asyncProcessing": True,
    "caching": True,
    "confidenceValidation": True,
}


class JobEngine:
    """Submit, poll and list analysis jobs; report stats and status."""

    def __init__(
        self,
        settings: EngineSettings,
        provider: Optional[IAnalysisProvider],
        photos: IPhotoLoader,
        store: Optional[IJobStore] = None,
        cache: Optional[ResponseCache] = None,
        metrics: Optional[AnalysisJobMetrics] = None,
        sweeps: Optional[SweepScheduler] = None,
    ) -> None:
        self.settings = settings
        self.store: IJobStore = store if store is not None else InMemoryJobStore()
        self.cache = cache if cache is not None else ResponseCache(settings.cache_ttl_seconds)
        self.metrics = metrics or AnalysisJobMetrics()
        self.scheduler = JobScheduler(
            self.store,
            self.cache,
            provider,
            photos,
            settings,
            metrics=self.metrics,
        )
        self.advice = AdviceService(self.scheduler)
        self.stats_reporter = StatsReporter(self.store)
        self.sweeps = sweeps or SweepScheduler()

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        photos: IPhotoLoader,
        provider: Optional[IAnalysisProvider] = None,
        configure_logs: bool = True,
    ) -> "JobEngine":
        """
        Build an engine, creating the provider from settings unless given.

        Also applies `log_level` / `log_json` to structlog unless
        `configure_logs` is False (host app owns logging).
        """
        if configure_logs:
            configure_logging(settings.log_level, json_output=settings.log_json)
        if provider is None:
            provider = create_analysis_provider(settings)
        engine = cls(settings, provider, photos)
        logger.info(
            "Analysis engine created",
            provider=provider.name if provider is not None else None,
            available=engine.scheduler.provider_available(),
        )
        return engine

    @property
    def provider(self) -> Optional[IAnalysisProvider]:
        return self.scheduler.provider

    # ─── Jobs ──────────────────────────────────────────────

    async def submit(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: Union[AnalysisType, str],
    ) -> JobReceipt:
        """
        Create an analysis job.

        Returns:
            JobReceipt: completed for a cache hit, pending otherwise

        Raises:
            ProviderUnavailableError: No provider configured (no job created)
            ValidationError: Unknown analysis type or empty identifier
        """
        job = await self.scheduler.submit(photo_id, user_id, analysis_type)
        return JobReceipt.from_job(job)

    def poll(self, job_id: str) -> JobStatusView:
        """
        Raises:
            JobNotFoundError: Unknown or swept job
        """
        return JobStatusView.from_job(self.store.get(job_id))

    def poll_for_user(self, job_id: str, requester_id: str) -> JobStatusView:
        """
        poll() restricted to the job's owner.

        Raises:
            JobNotFoundError: Unknown or swept job
            AuthorizationError: Job belongs to another user
        """
        job = self.store.get(job_id)
        if job.user_id != requester_id:
            logger.warning(
                "Job access denied",
                job_id=job_id,
                requester_id=requester_id,
            )
            raise AuthorizationError(f"User {requester_id} cannot access job {job_id}")
        return JobStatusView.from_job(job)

    def list_jobs(self, user_id: str, limit: int = DEFAULT_LIST_LIMIT) -> List[JobSummary]:
        """A user's jobs, newest first, without payloads."""
        return [JobSummary.from_job(job) for job in self.store.list_by_user(user_id, limit)]

    def stats(self) -> ServiceStats:
        return self.stats_reporter.compute()

    async def analyze_now(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: Union[AnalysisType, str],
        *,
        use_cache: bool = True,
    ) -> ResultModel:
        """Direct (job-less) analysis; errors propagate to the caller."""
        return await self.scheduler.analyze_now(
            photo_id, user_id, analysis_type, use_cache=use_cache
        )

    # ─── Advice ────────────────────────────────────────────

    async def nutrition_recommendations(
        self,
        profile: UserProfile,
        goals: NutritionGoals,
        *,
        use_cache: bool = True,
    ) -> AdviceOutcome:
        """Personalized nutrition plan; errors propagate to the caller."""
        return await self.advice.nutrition_recommendations(profile, goals, use_cache=use_cache)

    async def workout_recommendations(
        self,
        profile: UserProfile,
        preferences: WorkoutPreferences,
        *,
        use_cache: bool = True,
    ) -> AdviceOutcome:
        return await self.advice.workout_recommendations(
            profile, preferences, use_cache=use_cache
        )

    async def progress_insights(
        self,
        data: ProgressData,
        time_range: str = DEFAULT_TIME_RANGE,
        *,
        use_cache: bool = True,
    ) -> AdviceOutcome:
        return await self.advice.progress_insights(data, time_range, use_cache=use_cache)

    # ─── Status / configuration ────────────────────────────

    def status(self) -> Dict[str, Any]:
        """Provider availability, thresholds and cache summary."""
        provider = self.scheduler.provider
        return {
            "available": self.scheduler.provider_available(),
            "provider": provider.name if provider is not None else None,
            "model": self.settings.openai_model if self.settings.provider == "openai" else None,
            "thresholds": self.settings.thresholds.model_dump(),
            "cacheSize": self.cache.size(),
            "cacheTTL": self.settings.cache_ttl_ms,
            "maxRetries": self.settings.max_retries,
            "sweeps": self.sweeps.get_jobs(),
            "features": dict(FEATURES),
        }

    def update_thresholds(
        self,
        confidence_min: Optional[float] = None,
        confidence_warning: Optional[float] = None,
    ) -> Dict[str, float]:
        """
        Replace confidence thresholds; affects attempts that start afterwards.

        Raises:
            ValidationError: Out of range or warning below min
        """
        changes = {
            key: value
            for key, value in (
                ("confidence_min", confidence_min),
                ("confidence_warning", confidence_warning),
            )
            if value is not None
        }
        try:
            updated = self.settings.with_thresholds(**changes)
        except ValueError as exc:
            raise ValidationError(f"Invalid confidence thresholds: {exc}") from exc

        self.settings = updated
        self.scheduler.settings = updated
        thresholds = updated.thresholds.model_dump()
        logger.info("AI confidence thresholds updated", **thresholds)
        return thresholds

    # ─── Sweeps / lifecycle ────────────────────────────────

    async def sweep_cache(self) -> int:
        return self.cache.sweep()

    async def sweep_jobs(self, now: Optional[datetime] = None) -> int:
        return self.store.sweep(self.settings.job_retention_days, now=now)

    def start(self) -> None:
        """Start the periodic sweeps (needs a running event loop)."""
        if self.sweeps.scheduler is None:
            self.sweeps.initialize(
                self.sweep_cache,
                self.settings.cache_sweep_interval_ms / 1000.0,
                self.sweep_jobs,
                self.settings.job_sweep_interval_ms / 1000.0,
            )
        self.sweeps.start()

    async def drain(self) -> None:
        """Wait for every scheduled or running job, retries included."""
        await self.scheduler.drain()

    async def shutdown(self) -> None:
        """Stop sweeps, cancel outstanding job tasks and close the provider."""
        self.sweeps.shutdown(wait=False)
        await self.scheduler.shutdown()
        close = getattr(self.provider, "close", None)
        if close is not None:
            await close()
        logger.info("Analysis engine shut down")
