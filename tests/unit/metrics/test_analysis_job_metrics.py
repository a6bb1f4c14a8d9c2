"""Tests for the metrics registry and analysis job instrumentation."""

import pytest

from photo_analysis.domain.shared.errors import ProviderError, TransientProviderError
from photo_analysis.metrics.analysis_jobs import (
    PROVIDER_CALLS,
    PROVIDER_LATENCY,
    SUBMISSIONS,
    AnalysisJobMetrics,
)
from photo_analysis.metrics.core import MetricsRegistry


@pytest.fixture
def metrics() -> AnalysisJobMetrics:
    return AnalysisJobMetrics(MetricsRegistry())


class TestMetricsRegistry:
    def test_counter_identity_by_tags(self) -> None:
        registry = MetricsRegistry()

        registry.increment("c", a="1")
        registry.increment("c", amount=2, a="1")
        registry.increment("c", a="2")

        assert registry.counter_value("c", a="1") == 3
        assert registry.counter_value("c", a="2") == 1
        assert registry.counter_value("c", a="3") == 0

    def test_latency_snapshot(self) -> None:
        registry = MetricsRegistry()
        for value in (10.0, 20.0, 30.0):
            registry.observe("h", value)

        snap = registry.snapshot()["histograms"][0]

        assert snap["count"] == 3
        assert snap["avg"] == pytest.approx(20.0)
        assert snap["min"] == 10.0
        assert snap["max"] == 30.0

    def test_reset(self) -> None:
        registry = MetricsRegistry()
        registry.increment("c")

        registry.reset()

        assert registry.snapshot()["counters"] == []


class TestAnalysisJobMetrics:
    def test_submissions_by_cache_outcome(self, metrics: AnalysisJobMetrics) -> None:
        metrics.record_submission("meal", cache_hit=True)
        metrics.record_submission("meal", cache_hit=False)
        metrics.record_submission("meal", cache_hit=False)

        assert metrics.registry.counter_value(SUBMISSIONS, type="meal", cache="hit") == 1
        assert metrics.registry.counter_value(SUBMISSIONS, type="meal", cache="miss") == 2

    def test_provider_call_outcomes(self, metrics: AnalysisJobMetrics) -> None:
        with metrics.time_provider_call("openai"):
            pass
        with pytest.raises(TransientProviderError):
            with metrics.time_provider_call("openai"):
                raise TransientProviderError("503")
        with pytest.raises(ProviderError):
            with metrics.time_provider_call("openai"):
                raise ProviderError("400")

        registry = metrics.registry
        for outcome in ("ok", "transient", "error"):
            assert registry.counter_value(PROVIDER_CALLS, provider="openai", outcome=outcome) == 1

        latency = [h for h in metrics.snapshot()["histograms"] if h["name"] == PROVIDER_LATENCY]
        assert latency[0]["count"] == 3
        assert metrics.provider_latency("openai")["count"] == 3
        assert metrics.provider_latency("stub")["count"] == 0

    def test_latency_window_is_bounded(self) -> None:
        registry = MetricsRegistry(window=3)
        for value in (1.0, 2.0, 3.0, 4.0):
            registry.observe("h", value)

        summary = registry.latency("h")

        assert summary["count"] == 3
        assert summary["min"] == 2.0
