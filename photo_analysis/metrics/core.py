"""In-memory metric store for the job engine.

Series are identified by name plus tags. Counts are plain integers;
latency series keep a bounded window of samples and are summarized on
read. All access goes through one lock.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from threading import Lock
from typing import Any, Deque, Dict, List, Tuple

Series = Tuple[str, Tuple[Tuple[str, str], ...]]

SAMPLE_WINDOW = 1000


def _series(name: str, tags: Dict[str, str]) -> Series:
    return name, tuple(sorted(tags.items()))


def summarize(samples: List[float]) -> Dict[str, float]:
    """count / avg / p95 / min / max of a sample list (zeros when empty)."""
    if not samples:
        return {"count": 0, "avg": 0.0, "p95": 0.0, "min": 0.0, "max": 0.0}
    ordered = sorted(samples)
    count = len(ordered)
    return {
        "count": count,
        "avg": sum(ordered) / count,
        "p95": ordered[int(0.95 * (count - 1))],
        "min": ordered[0],
        "max": ordered[-1],
    }


class MetricsRegistry:
    """
    Tagged counts and latency windows.

    Example:
        >>> reg = MetricsRegistry()
        >>> reg.increment("analysis_job_retries_total", type="meal")
        >>> reg.counter_value("analysis_job_retries_total", type="meal")
        1
    """

    def __init__(self, window: int = SAMPLE_WINDOW) -> None:
        self._window = window
        self._counts: Dict[Series, int] = defaultdict(int)
        self._samples: Dict[Series, Deque[float]] = {}
        self._lock = Lock()

    def increment(self, name: str, amount: int = 1, **tags: str) -> None:
        with self._lock:
            self._counts[_series(name, tags)] += amount

    def observe(self, name: str, value: float, **tags: str) -> None:
        key = _series(name, tags)
        with self._lock:
            window = self._samples.get(key)
            if window is None:
                window = self._samples[key] = deque(maxlen=self._window)
            window.append(value)

    def counter_value(self, name: str, **tags: str) -> int:
        """Current count, 0 for a series never incremented."""
        with self._lock:
            return self._counts.get(_series(name, tags), 0)

    def latency(self, name: str, **tags: str) -> Dict[str, float]:
        with self._lock:
            samples = list(self._samples.get(_series(name, tags), ()))
        return summarize(samples)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._samples.clear()

    def snapshot(self) -> Dict[str, Any]:
        """All series as plain dicts, tags expanded."""
        with self._lock:
            counts = list(self._counts.items())
            samples = [(key, list(window)) for key, window in self._samples.items()]
        return {
            "counters": [
                {"name": name, "tags": dict(tags), "value": value}
                for (name, tags), value in counts
            ],
            "histograms": [
                {"name": name, "tags": dict(tags), **summarize(values)}
                for (name, tags), values in samples
            ],
            "generatedAt": time.time(),
        }


registry = MetricsRegistry()
