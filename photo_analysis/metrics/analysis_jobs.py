"""Instrumentation helpers for the analysis job engine.

Metrics:
* Counter analysis_job_submissions_total{type,cache}
* Counter analysis_provider_calls_total{provider,outcome}
* Histogram analysis_provider_latency_ms{provider}
* Counter analysis_job_retries_total{type}
* Counter analysis_job_finished_total{type,status,reason}

`cache` is hit|miss. `outcome` is ok|transient|error. `reason` is the
terminal cause for failed jobs (confidence, photo_not_found, provider,
transient_exhausted, internal) and `ok` / `degraded` for completed ones.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from photo_analysis.domain.shared.errors import TransientProviderError

from .core import MetricsRegistry, registry as default_registry

SUBMISSIONS = "analysis_job_submissions_total"
PROVIDER_CALLS = "analysis_provider_calls_total"
PROVIDER_LATENCY = "analysis_provider_latency_ms"
RETRIES = "analysis_job_retries_total"
FINISHED = "analysis_job_finished_total"


class AnalysisJobMetrics:
    """Records job engine events into a MetricsRegistry (global by default)."""

    def __init__(self, registry: Optional[MetricsRegistry] = None) -> None:
        self.registry = registry if registry is not None else default_registry

    def record_submission(self, analysis_type: str, *, cache_hit: bool) -> None:
        self.registry.increment(
            SUBMISSIONS, type=analysis_type, cache="hit" if cache_hit else "miss"
        )

    def record_retry(self, analysis_type: str) -> None:
        self.registry.increment(RETRIES, type=analysis_type)

    def record_finished(self, analysis_type: str, status: str, reason: str) -> None:
        self.registry.increment(FINISHED, type=analysis_type, status=status, reason=reason)

    @contextmanager
    def time_provider_call(self, provider: str) -> Iterator[None]:
        """Count one provider call by outcome and observe its latency."""
        start = time.perf_counter()
        try:
            yield
            self.registry.increment(PROVIDER_CALLS, provider=provider, outcome="ok")
        except TransientProviderError:
            self.registry.increment(PROVIDER_CALLS, provider=provider, outcome="transient")
            raise
        except Exception:
            self.registry.increment(PROVIDER_CALLS, provider=provider, outcome="error")
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            self.registry.observe(PROVIDER_LATENCY, elapsed_ms, provider=provider)

    def provider_latency(self, provider: str) -> Dict[str, float]:
        return self.registry.latency(PROVIDER_LATENCY, provider=provider)

    def snapshot(self) -> Dict[str, Any]:
        return self.registry.snapshot()
