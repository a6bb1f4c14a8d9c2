"""
Job scheduler - drives analysis jobs through their state machine.

Flow for a cache miss:
1. submit() stores a pending job and schedules run(job_id)
2. run() loads the photo, builds the prompt, calls the provider under a
   per-attempt deadline, parses the reply and gates its confidence
3. success → cache put + completed; transient failure → back to pending
   and rescheduled after a linear backoff; anything else → failed

Everything runs on one asyncio loop. Store and cache calls are
synchronous, so the only suspension points are the photo load and the
provider call. Each job has its own asyncio.Lock, so two runs of the
same job never interleave.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional, Set, Union

import structlog

from photo_analysis.config import EngineSettings
from photo_analysis.domain.analysis.confidence import ConfidenceGate
from photo_analysis.domain.analysis.models import (
    BodyAnalysis,
    DegradedAnalysis,
    MealAnalysis,
    is_degraded,
)
from photo_analysis.domain.analysis.parser import ResponseParser
from photo_analysis.domain.analysis.prompts import build_prompt
from photo_analysis.domain.jobs.models import Job, JobStatus
from photo_analysis.domain.jobs.ports import (
    IAnalysisProvider,
    IJobStore,
    IPhotoLoader,
    PhotoPayload,
)
from photo_analysis.domain.shared.errors import (
    ContentConfidenceError,
    DomainError,
    JobNotFoundError,
    PhotoNotFoundError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    TransientProviderError,
    is_retryable,
    public_message,
)
from photo_analysis.domain.shared.value_objects import (
    AnalysisType,
    make_cache_key,
    require_identifier,
)
from photo_analysis.infrastructure.cache.response_cache import ResponseCache
from photo_analysis.metrics.analysis_jobs import AnalysisJobMetrics

logger = structlog.get_logger(__name__)

ResultModel = Union[MealAnalysis, BodyAnalysis, DegradedAnalysis]


def failure_reason(exc: BaseException) -> str:
    """Metric label for a terminal failure."""
    if isinstance(exc, ContentConfidenceError):
        return "confidence"
    if isinstance(exc, PhotoNotFoundError):
        return "photo_not_found"
    if isinstance(exc, TransientProviderError):
        return "transient_exhausted"
    if isinstance(exc, (ProviderError, ProviderUnavailableError)):
        return "provider"
    return "internal"


class JobScheduler:
    """
    Runs analysis jobs against the provider with bounded retries.

    Example:
        >>> scheduler = JobScheduler(store, cache, provider, photos, EngineSettings())
        >>> job = await scheduler.submit("p1", "u1", "meal")
        >>> await scheduler.drain()
        >>> store.get(job.id).status
        <JobStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        store: IJobStore,
        cache: ResponseCache,
        provider: Optional[IAnalysisProvider],
        photos: IPhotoLoader,
        settings: EngineSettings,
        parser: Optional[ResponseParser] = None,
        gate: Optional[ConfidenceGate] = None,
        metrics: Optional[AnalysisJobMetrics] = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.provider = provider
        self.photos = photos
        self.settings = settings
        self.parser = parser or ResponseParser()
        self.gate = gate or ConfidenceGate()
        self.metrics = metrics or AnalysisJobMetrics()

        self._locks: Dict[str, asyncio.Lock] = {}
        self._tasks: Set["asyncio.Task[None]"] = set()

    # ─── Provider state ────────────────────────────────────

    def provider_available(self) -> bool:
        return self.provider is not None and self.provider.is_available()

    def ensure_available(self) -> IAnalysisProvider:
        """
        Raises:
            ProviderUnavailableError: No usable provider configured
        """
        if self.provider is None or not self.provider.is_available():
            raise ProviderUnavailableError()
        return self.provider

    # ─── Submission ────────────────────────────────────────

    async def submit(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: Union[AnalysisType, str],
    ) -> Job:
        """
        Create a job for (photo, user, type).

        A cache hit yields a job that is already completed and never
        touches the provider. A miss yields a pending job whose run is
        scheduled on the loop. Duplicate submissions are independent jobs.

        Raises:
            ValidationError: Empty identifier or unknown analysis type
            ProviderUnavailableError: No provider configured; no job created
        """
        photo_id = require_identifier("photo_id", photo_id)
        user_id = require_identifier("user_id", user_id)
        kind = AnalysisType.parse(analysis_type)
        self.ensure_available()

        cache_key = make_cache_key(photo_id, kind, user_id)
        cached = self.cache.get(cache_key)
        if cached is not None:
            job = self.store.create_completed(
                photo_id,
                user_id,
                kind,
                cache_key=cache_key,
                result=cached,
                max_retries=self.settings.max_retries,
            )
            self.metrics.record_submission(kind.value, cache_hit=True)
            logger.info(
                "Using cached AI analysis",
                job_id=job.id,
                cache_key=cache_key,
                user_id=user_id,
            )
            return job

        job = self.store.create(
            photo_id,
            user_id,
            kind,
            cache_key=cache_key,
            max_retries=self.settings.max_retries,
        )
        self.metrics.record_submission(kind.value, cache_hit=False)
        logger.info(
            "AI analysis job created",
            job_id=job.id,
            photo_id=photo_id,
            user_id=user_id,
            analysis_type=kind.value,
        )
        self._schedule(job.id, 0.0)
        return job

    # ─── Execution ─────────────────────────────────────────

    async def run(self, job_id: str) -> None:
        """
        Execute one attempt of a job.

        No-op unless the job exists and is pending. Failures never escape:
        they end up as a rescheduled retry or a failed job.
        """
        lock = self._locks.setdefault(job_id, asyncio.Lock())
        async with lock:
            try:
                job = self.store.get(job_id)
            except JobNotFoundError:
                logger.debug("Job vanished before run", job_id=job_id)
                return

            if job.status is not JobStatus.PENDING:
                logger.debug("Skipping run", job_id=job_id, status=job.status.value)
                return

            job = self.store.update(job_id, lambda j: j.mark_processing())
            logger.info(
                "AI analysis attempt started",
                job_id=job_id,
                attempt=job.retry_count + 1,
                max_attempts=job.max_retries + 1,
            )

            try:
                result = await self._execute(job)
            except Exception as exc:
                self._handle_failure(job, exc)
            else:
                self._complete(job, result)

        if not lock.locked() and self._is_settled(job_id):
            self._locks.pop(job_id, None)

    async def _execute(self, job: Job) -> ResultModel:
        image = await self.photos.load(job.photo_id, job.user_id)
        return await self._analyze(job.analysis_type, image)

    async def _analyze(self, analysis_type: AnalysisType, image: PhotoPayload) -> ResultModel:
        """Prompt → provider → parse → confidence gate."""
        provider = self.ensure_available()
        prompt = build_prompt(analysis_type, locale=self.settings.prompt_locale)
        raw_text = await self.call_provider(provider, prompt, image)

        outcome = self.parser.parse(raw_text, analysis_type)
        self.gate.validate(
            outcome.confidence if outcome.degraded else outcome.result.confidence,
            self.settings.thresholds,
        )
        return outcome.to_result() if outcome.degraded else outcome.result

    async def call_provider(
        self,
        provider: IAnalysisProvider,
        prompt: str,
        image: Optional[PhotoPayload] = None,
    ) -> str:
        """
        One provider call under the per-attempt deadline, timed in metrics.

        Raises:
            ProviderTimeoutError: Deadline exceeded (retryable)
        """
        timeout = self.settings.provider_timeout_seconds
        with self.metrics.time_provider_call(provider.name):
            try:
                return await asyncio.wait_for(provider.generate(prompt, image), timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise ProviderTimeoutError(
                    f"AI provider did not respond within {self.settings.provider_timeout_ms} ms"
                ) from exc

    def _complete(self, job: Job, result: ResultModel) -> None:
        degraded = is_degraded(result)
        if not degraded:
            self.cache.put(job.cache_key, result)

        done = self.store.update(job.id, lambda j: j.mark_completed(result))
        self.metrics.record_finished(
            job.analysis_type.value,
            JobStatus.COMPLETED.value,
            "degraded" if degraded else "ok",
        )
        logger.info(
            "AI analysis completed",
            job_id=job.id,
            degraded=degraded,
            retry_count=done.retry_count,
            processing_time_ms=done.processing_time_ms,
        )

    def _handle_failure(self, job: Job, exc: Exception) -> None:
        if is_retryable(exc) and job.can_retry():
            pending = self.store.update(job.id, lambda j: j.reset_for_retry())
            delay = self.settings.retry_delay_seconds(pending.retry_count)
            self.metrics.record_retry(job.analysis_type.value)
            logger.warning(
                "AI analysis attempt failed, retrying",
                job_id=job.id,
                error=str(exc),
                retry_count=pending.retry_count,
                max_retries=pending.max_retries,
                delay_seconds=delay,
            )
            self._schedule(job.id, delay)
            return

        message = public_message(exc)
        if isinstance(exc, DomainError):
            logger.error(
                "AI analysis failed",
                job_id=job.id,
                error=message,
                error_type=type(exc).__name__,
                retry_count=job.retry_count,
            )
        else:
            logger.exception("Unexpected error in AI analysis job", job_id=job.id)

        self.store.update(job.id, lambda j: j.mark_failed(message))
        self.metrics.record_finished(
            job.analysis_type.value, JobStatus.FAILED.value, failure_reason(exc)
        )

    def _is_settled(self, job_id: str) -> bool:
        try:
            return self.store.get(job_id).status.is_terminal
        except JobNotFoundError:
            return True

    # ─── Direct analysis ───────────────────────────────────

    async def analyze_now(
        self,
        photo_id: str,
        user_id: str,
        analysis_type: Union[AnalysisType, str],
        *,
        use_cache: bool = True,
    ) -> ResultModel:
        """
        Analyze synchronously (no job), sharing the response cache.

        Raises:
            ValidationError, ProviderUnavailableError, PhotoNotFoundError,
            ProviderError, ContentConfidenceError: straight to the caller
        """
        photo_id = require_identifier("photo_id", photo_id)
        user_id = require_identifier("user_id", user_id)
        kind = AnalysisType.parse(analysis_type)
        self.ensure_available()

        cache_key = make_cache_key(photo_id, kind, user_id)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info("Using cached AI analysis", cache_key=cache_key)
                return cached

        image = await self.photos.load(photo_id, user_id)
        result = await self._analyze(kind, image)
        if not is_degraded(result):
            self.cache.put(cache_key, result)
        return result

    # ─── Task bookkeeping ──────────────────────────────────

    def _schedule(self, job_id: str, delay: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(delay, 0.0)
        task = loop.create_task(self._run_at(job_id, deadline), name=f"analysis:{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_at(self, job_id: str, deadline: float) -> None:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining > 0:
            await asyncio.sleep(remaining)
        await self.run(job_id)

    @property
    def in_flight(self) -> int:
        """Scheduled or running job tasks."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until no job task is scheduled or running, retries included."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel scheduled and running job tasks."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._locks.clear()
        if tasks:
            logger.info("Job scheduler stopped", cancelled=len(tasks))
