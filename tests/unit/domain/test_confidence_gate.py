"""Tests for ConfidenceGate."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from photo_analysis.domain.analysis.confidence import (
    ConfidenceGate,
    ConfidenceThresholds,
    ConfidenceVerdict,
)
from photo_analysis.domain.shared.errors import ContentConfidenceError, is_retryable


class TestConfidenceGate:
    def test_below_minimum_raises(self) -> None:
        with pytest.raises(ContentConfidenceError) as exc_info:
            ConfidenceGate().validate(0.5, ConfidenceThresholds())

        assert exc_info.value.confidence == 0.5
        assert exc_info.value.minimum == 0.7
        assert "AI confidence too low: 0.5" in str(exc_info.value)
        assert is_retryable(exc_info.value) is False

    def test_between_min_and_warning_warns(self) -> None:
        verdict = ConfidenceGate().validate(0.75, ConfidenceThresholds())
        assert verdict is ConfidenceVerdict.WARNING

    def test_minimum_itself_passes(self) -> None:
        verdict = ConfidenceGate().validate(0.7, ConfidenceThresholds())
        assert verdict is ConfidenceVerdict.WARNING

    def test_at_or_above_warning_is_ok(self) -> None:
        assert ConfidenceGate().validate(0.8, ConfidenceThresholds()) is ConfidenceVerdict.OK
        assert ConfidenceGate().validate(0.99, ConfidenceThresholds()) is ConfidenceVerdict.OK

    def test_absent_confidence_is_ungated(self) -> None:
        verdict = ConfidenceGate().validate(None, ConfidenceThresholds())
        assert verdict is ConfidenceVerdict.UNGATED

    def test_custom_thresholds(self) -> None:
        thresholds = ConfidenceThresholds(confidence_min=0.4, confidence_warning=0.6)
        assert ConfidenceGate().validate(0.5, thresholds) is ConfidenceVerdict.WARNING


class TestConfidenceThresholds:
    def test_warning_below_min_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ConfidenceThresholds(confidence_min=0.8, confidence_warning=0.7)

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            ConfidenceThresholds(confidence_min=-0.1)
