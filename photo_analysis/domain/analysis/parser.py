"""
Response parser for provider output.

The model returns prose that may embed a JSON object, sometimes after
stray braces. Parsing never raises: anything that cannot be turned into a
typed result comes back as ParseDegraded with the raw text preserved.
An object that decodes but misses the result schema still reports its
`confidence` so the caller can gate it. Text-only advice replies go
through the same extraction.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from photo_analysis.domain.advice.models import (
    ADVICE_MODELS,
    AdviceKind,
    DegradedAdvice,
    NutritionPlan,
    ProgressInsights,
    WorkoutPlan,
)
from photo_analysis.domain.analysis.models import (
    RESULT_MODELS,
    BodyAnalysis,
    DegradedAnalysis,
    MealAnalysis,
)
from photo_analysis.domain.shared.value_objects import AnalysisType

logger = structlog.get_logger(__name__)

NO_JSON_OBJECT = "NO_JSON_OBJECT"
INVALID_JSON = "INVALID_JSON"
SCHEMA_MISMATCH = "SCHEMA_MISMATCH"


@dataclass(frozen=True, slots=True)
class ParsedAnalysis:
    """Successful parse."""

    result: Union[MealAnalysis, BodyAnalysis]

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class ParseDegraded:
    """Non-fatal parse failure tag; keeps the raw provider text."""

    analysis_type: AnalysisType
    raw_text: str
    reason: str
    confidence: Optional[float] = None  # only for SCHEMA_MISMATCH

    @property
    def degraded(self) -> bool:
        return True

    def to_result(self) -> DegradedAnalysis:
        return DegradedAnalysis(
            analysis_type=self.analysis_type,
            raw_response=self.raw_text,
            parse_error=self.reason,
        )


ParseOutcome = Union[ParsedAnalysis, ParseDegraded]
AdviceOutcome = Union[NutritionPlan, WorkoutPlan, ProgressInsights, DegradedAdvice]


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index of the brace closing the object opened at `start`, or None."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def iter_json_candidates(text: str) -> Iterator[str]:
    """
    Yield every balanced {...} substring, in order of its opening brace.

    Braces inside JSON strings (including escaped quotes) are ignored.
    """
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def find_json_object(text: str) -> Optional[str]:
    """
    Return the first balanced {...} substring that decodes as JSON, or None.

    Example:
        >>> find_json_object('prose {"a": {"b": 1}} trailing }')
        '{"a": {"b": 1}}'
        >>> find_json_object('see {below}: {"a": 1}')
        '{"a": 1}'
    """
    for candidate in iter_json_candidates(text):
        try:
            json.loads(candidate)
        except json.JSONDecodeError:
            continue
        return candidate
    return None


def decode_first_object(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """
    Decode the first candidate object that is valid JSON.

    Returns:
        (data, "") on success, otherwise (None, reason) where reason is
        NO_JSON_OBJECT or "INVALID_JSON: <first decoder message>"
    """
    decode_error: Optional[str] = None
    for candidate in iter_json_candidates(text):
        try:
            return json.loads(candidate), ""
        except json.JSONDecodeError as exc:
            decode_error = decode_error or exc.msg
    if decode_error is None:
        return None, NO_JSON_OBJECT
    return None, f"{INVALID_JSON}: {decode_error}"


def _schema_reason(exc: PydanticValidationError) -> str:
    fields = ",".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
    return f"{SCHEMA_MISMATCH}: {fields}"


def _loose_confidence(data: Dict[str, Any]) -> Optional[float]:
    """Numeric `confidence` from an object that failed schema validation."""
    value = data.get("confidence")
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class ResponseParser:
    """Converts raw provider text into a typed AnalysisResult."""

    def parse(self, raw_text: Optional[str], analysis_type: AnalysisType) -> ParseOutcome:
        """
        Parse provider text for the given analysis type.

        Args:
            raw_text: Raw model output (may be None or empty)
            analysis_type: Expected result shape

        Returns:
            ParsedAnalysis on success, ParseDegraded otherwise

        Example:
            >>> outcome = ResponseParser().parse(
            ...     'Sure! {"foodItems": ["rice"], "confidence": 0.9}',
            ...     AnalysisType.MEAL,
            ... )
            >>> outcome.result.food_items
            ['rice']
        """
        text = raw_text or ""
        data, failure = decode_first_object(text)
        if data is None:
            return self._degraded(analysis_type, text, failure)

        model = RESULT_MODELS[analysis_type]
        try:
            result = model.model_validate(data)
        except PydanticValidationError as exc:
            return self._degraded(
                analysis_type,
                text,
                _schema_reason(exc),
                confidence=_loose_confidence(data),
            )

        return ParsedAnalysis(result=result)

    def _degraded(
        self,
        analysis_type: AnalysisType,
        text: str,
        reason: str,
        confidence: Optional[float] = None,
    ) -> ParseDegraded:
        logger.warning(
            "Provider response degraded",
            analysis_type=analysis_type.value,
            reason=reason,
            text_length=len(text),
        )
        return ParseDegraded(
            analysis_type=analysis_type,
            raw_text=text,
            reason=reason,
            confidence=confidence,
        )

    def parse_advice(self, raw_text: Optional[str], kind: AdviceKind) -> AdviceOutcome:
        """
        Parse a text-only advice reply.

        Same object extraction as parse(); anything unusable comes back as
        DegradedAdvice carrying the raw text.
        """
        text = raw_text or ""
        data, failure = decode_first_object(text)
        if data is not None:
            try:
                return ADVICE_MODELS[kind].model_validate(data)
            except PydanticValidationError as exc:
                failure = _schema_reason(exc)

        logger.warning(
            "Advice response degraded",
            advice_kind=kind.value,
            reason=failure,
            text_length=len(text),
        )
        return DegradedAdvice(advice_kind=kind, raw_response=text, parse_error=failure)
