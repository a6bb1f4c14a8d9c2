"""Confidence gate for analysis results."""

from __future__ import annotations

from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator

from photo_analysis.domain.shared.errors import ContentConfidenceError

logger = structlog.get_logger(__name__)


class ConfidenceThresholds(BaseModel):
    """
    Confidence thresholds.

    Below `confidence_min` a result is rejected; between min and
    `confidence_warning` it passes with a warning.
    """

    model_config = ConfigDict(frozen=True)

    confidence_min: float = Field(0.7, ge=0.0, le=1.0)
    confidence_warning: float = Field(0.8, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def warning_not_below_min(self) -> "ConfidenceThresholds":
        if self.confidence_warning < self.confidence_min:
            raise ValueError("confidence_warning must be >= confidence_min")
        return self


class ConfidenceVerdict(str, Enum):
    UNGATED = "UNGATED"  # no confidence reported
    OK = "OK"
    WARNING = "WARNING"


class ConfidenceGate:
    """Validates a result confidence against thresholds."""

    def validate(
        self,
        confidence: Optional[float],
        thresholds: ConfidenceThresholds,
    ) -> ConfidenceVerdict:
        """
        Classify a confidence score.

        Args:
            confidence: Model-reported score in [0, 1], or None
            thresholds: Active thresholds

        Returns:
            UNGATED, OK or WARNING

        Raises:
            ContentConfidenceError: confidence < confidence_min

        Example:
            >>> ConfidenceGate().validate(0.75, ConfidenceThresholds())
            <ConfidenceVerdict.WARNING: 'WARNING'>
        """
        if confidence is None:
            return ConfidenceVerdict.UNGATED

        if confidence < thresholds.confidence_min:
            raise ContentConfidenceError(confidence, thresholds.confidence_min)

        if confidence < thresholds.confidence_warning:
            logger.warning(
                "Low AI confidence",
                confidence=confidence,
                threshold=thresholds.confidence_warning,
            )
            return ConfidenceVerdict.WARNING

        return ConfidenceVerdict.OK
