"""Tests for the Job state machine and its read models."""

from datetime import datetime, timedelta, timezone

import pytest

from photo_analysis.domain.analysis.models import MealAnalysis
from photo_analysis.domain.jobs.models import (
    Job,
    JobReceipt,
    JobStatus,
    JobStatusView,
    JobSummary,
)
from photo_analysis.domain.shared.errors import InvalidJobTransitionError
from photo_analysis.domain.shared.value_objects import AnalysisType


@pytest.fixture
def job() -> Job:
    return Job.create_new(
        "p1", "u1", AnalysisType.MEAL, cache_key="ai_meal_p1_u1", max_retries=2
    )


@pytest.fixture
def meal() -> MealAnalysis:
    return MealAnalysis(food_items=["rice"], estimated_calories=300, confidence=0.9)


class TestJobCreation:
    def test_new_job_is_pending(self, job: Job) -> None:
        assert job.status is JobStatus.PENDING
        assert job.retry_count == 0
        assert job.max_retries == 2
        assert job.id.startswith("ai_job_")
        assert job.result is None and job.error is None
        assert job.cached is False

    def test_job_ids_are_unique(self) -> None:
        ids = {
            Job.create_new("p1", "u1", AnalysisType.MEAL, cache_key="k").id for _ in range(50)
        }
        assert len(ids) == 50

    def test_cached_job_is_born_completed(self, meal: MealAnalysis) -> None:
        job = Job.create_from_cache(
            "p1", "u1", AnalysisType.MEAL, cache_key="ai_meal_p1_u1", result=meal
        )

        assert job.status is JobStatus.COMPLETED
        assert job.cached is True
        assert job.result == meal
        assert job.started_at is None
        assert job.completed_at == job.created_at
        job.check_invariants()


class TestJobTransitions:
    def test_happy_path(self, job: Job, meal: MealAnalysis) -> None:
        job.mark_processing()
        assert job.status is JobStatus.PROCESSING
        assert job.started_at is not None

        job.mark_completed(meal)
        assert job.status is JobStatus.COMPLETED
        assert job.result == meal
        assert job.completed_at is not None
        job.check_invariants()

    def test_failure_records_error(self, job: Job) -> None:
        job.mark_processing()
        job.mark_failed("AI provider timed out")

        assert job.status is JobStatus.FAILED
        assert job.error == "AI provider timed out"
        assert job.result is None
        job.check_invariants()

    def test_pending_cannot_complete(self, job: Job, meal: MealAnalysis) -> None:
        with pytest.raises(InvalidJobTransitionError):
            job.mark_completed(meal)

    def test_completed_is_final(self, job: Job, meal: MealAnalysis) -> None:
        job.mark_processing()
        job.mark_completed(meal)

        with pytest.raises(InvalidJobTransitionError):
            job.mark_processing()
        with pytest.raises(InvalidJobTransitionError):
            job.reset_for_retry()

    def test_retry_edge_is_bounded(self, job: Job) -> None:
        job.mark_processing()
        job.reset_for_retry()
        assert job.status is JobStatus.PENDING
        assert job.retry_count == 1
        assert job.started_at is None

        job.mark_processing()
        job.reset_for_retry()
        assert job.retry_count == 2

        job.mark_processing()
        assert job.can_retry() is False
        with pytest.raises(InvalidJobTransitionError):
            job.reset_for_retry()

    def test_failed_job_can_be_retried_within_budget(self, job: Job) -> None:
        job.mark_processing()
        job.mark_failed("boom")

        job.reset_for_retry()

        assert job.status is JobStatus.PENDING
        assert job.error is None
        assert job.retry_count == 1

    def test_check_invariants_detects_result_on_pending(
        self, job: Job, meal: MealAnalysis
    ) -> None:
        job.result = meal
        with pytest.raises(InvalidJobTransitionError):
            job.check_invariants()

    def test_processing_time(self, job: Job, meal: MealAnalysis) -> None:
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        job.mark_processing(at=start)
        job.mark_completed(meal, at=start + timedelta(milliseconds=1500))

        assert job.processing_time_ms == pytest.approx(1500)


class TestJobViews:
    def test_receipt(self, job: Job) -> None:
        assert JobReceipt.from_job(job).to_dict() == {"jobId": job.id, "status": "pending"}

    def test_status_view_of_completed_job(self, job: Job, meal: MealAnalysis) -> None:
        job.mark_processing()
        job.mark_completed(meal)

        data = JobStatusView.from_job(job).to_dict()

        assert data["jobId"] == job.id
        assert data["userId"] == "u1"
        assert data["status"] == "completed"
        assert data["type"] == "meal"
        assert data["result"]["estimatedCalories"] == 300
        assert data["retryCount"] == 0
        assert data["cached"] is False
        assert "error" not in data

    def test_status_view_of_failed_job(self, job: Job) -> None:
        job.mark_processing()
        job.mark_failed("Photo p1 not found")

        data = JobStatusView.from_job(job).to_dict()

        assert data["status"] == "failed"
        assert data["error"] == "Photo p1 not found"
        assert "result" not in data

    def test_summary_has_no_payload(self, job: Job, meal: MealAnalysis) -> None:
        job.mark_processing()
        job.mark_completed(meal)

        data = JobSummary.from_job(job).to_dict()

        assert set(data) == {"jobId", "status", "type", "createdAt", "completedAt"}
