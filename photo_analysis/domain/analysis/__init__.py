"""Analysis results, prompts, response parsing and confidence gating."""

from photo_analysis.domain.analysis.confidence import (
    ConfidenceGate,
    ConfidenceThresholds,
    ConfidenceVerdict,
)
from photo_analysis.domain.analysis.models import (
    AnalysisResult,
    BodyAnalysis,
    DegradedAnalysis,
    MealAnalysis,
)
from photo_analysis.domain.analysis.parser import (
    ParseDegraded,
    ParsedAnalysis,
    ResponseParser,
)

__all__ = [
    "AnalysisResult",
    "BodyAnalysis",
    "ConfidenceGate",
    "ConfidenceThresholds",
    "ConfidenceVerdict",
    "DegradedAnalysis",
    "MealAnalysis",
    "ParseDegraded",
    "ParsedAnalysis",
    "ResponseParser",
]
