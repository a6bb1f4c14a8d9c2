"""Tests for StatsReporter."""

from datetime import datetime, timedelta, timezone

import pytest

from photo_analysis.application.jobs.stats import StatsReporter
from photo_analysis.domain.analysis.models import MealAnalysis
from photo_analysis.domain.jobs.models import Job
from photo_analysis.domain.shared.value_objects import AnalysisType
from photo_analysis.infrastructure.persistence.in_memory_job_store import InMemoryJobStore

T0 = datetime(2024, 5, 1, tzinfo=timezone.utc)
RESULT = MealAnalysis(food_items=["rice"], confidence=0.9)


def _job(store: InMemoryJobStore) -> Job:
    return store.create("p1", "u1", AnalysisType.MEAL, cache_key="ai_meal_p1_u1")


def _complete(store: InMemoryJobStore, job_id: str, duration_ms: int) -> None:
    def apply(job: Job) -> None:
        job.mark_processing(at=T0)
        job.mark_completed(RESULT, at=T0 + timedelta(milliseconds=duration_ms))

    store.update(job_id, apply)


class TestStatsReporter:
    def test_empty_store(self) -> None:
        stats = StatsReporter(InMemoryJobStore()).compute()

        assert stats.total_jobs == 0
        assert stats.average_processing_time == 0.0
        assert stats.success_rate == 0.0

    def test_counts_and_averages(self) -> None:
        store = InMemoryJobStore()
        done_fast, done_slow, failed, processing, _pending = (_job(store) for _ in range(5))

        _complete(store, done_fast.id, 1000)
        _complete(store, done_slow.id, 3000)

        def fail(job: Job) -> None:
            job.mark_processing()
            job.mark_failed("boom")

        store.update(failed.id, fail)
        store.update(processing.id, lambda j: j.mark_processing())
        store.create_completed(
            "p2", "u1", AnalysisType.MEAL, cache_key="ai_meal_p2_u1", result=RESULT
        )

        stats = StatsReporter(store).compute()

        assert stats.total_jobs == 6
        assert stats.pending_jobs == 1
        assert stats.processing_jobs == 1
        assert stats.completed_jobs == 3
        assert stats.failed_jobs == 1
        # the cached job never started, so only the two timed runs count
        assert stats.average_processing_time == pytest.approx(2000)
        assert stats.success_rate == pytest.approx(50.0)

    def test_serializes_with_camel_case_keys(self) -> None:
        store = InMemoryJobStore()
        _complete(store, _job(store).id, 500)

        data = StatsReporter(store).compute().to_dict()

        assert data == {
            "totalJobs": 1,
            "pendingJobs": 0,
            "processingJobs": 0,
            "completedJobs": 1,
            "failedJobs": 0,
            "averageProcessingTime": pytest.approx(500),
            "successRate": 100.0,
        }
