"""
Photo Analysis Job Engine.

Asynchronous AI analysis of meal and body-progress photos: requests are
de-duplicated against a TTL response cache, executed against a vision
provider with bounded retries, confidence-gated and exposed for polling.

Structure:
- domain/: Job state machine, analysis results, parser, confidence gate
- application/: Job scheduler, stats, JobEngine facade
- infrastructure/: Provider adapters, cache, job store, photos, sweeps
- metrics/: In-memory counters and histograms
"""

from photo_analysis.application.engine import JobEngine
from photo_analysis.config import EngineSettings

__version__ = "1.0.0"

__all__ = ["JobEngine", "EngineSettings", "__version__"]
