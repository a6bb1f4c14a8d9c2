"""
Shared value objects.

Identifiers and the response-cache keys used across the engine.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from enum import Enum
from typing import Any, Mapping

from photo_analysis.domain.shared.errors import ValidationError

JOB_ID_PREFIX = "ai_job_"


class AnalysisType(str, Enum):
    """Kind of photo analysis requested."""

    MEAL = "meal"
    BODY = "body"

    @classmethod
    def parse(cls, value: "AnalysisType | str") -> "AnalysisType":
        """
        Coerce user input to an AnalysisType.

        Raises:
            ValidationError: If value is not 'meal' or 'body'

        Example:
            >>> AnalysisType.parse("MEAL")
            <AnalysisType.MEAL: 'meal'>
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Analysis type must be 'meal' or 'body', got {value!r}"
            ) from None


def generate_job_id() -> str:
    """
    Generate a new opaque job identifier.

    Example:
        >>> generate_job_id().startswith("ai_job_")
        True
    """
    return f"{JOB_ID_PREFIX}{uuid.uuid4().hex}"


def _key_part(value: str) -> str:
    return value.replace("%", "%25").replace("_", "%5F")


def make_cache_key(photo_id: str, analysis_type: AnalysisType, user_id: str) -> str:
    """
    Deterministic response-cache key for a (photo, type, user) triple.

    `%` and `_` inside identifiers are percent-escaped, so `_` only ever
    separates parts and distinct triples never share a key.

    Example:
        >>> make_cache_key("p1", AnalysisType.MEAL, "u1")
        'ai_meal_p1_u1'
        >>> make_cache_key("a_b", AnalysisType.MEAL, "c")
        'ai_meal_a%5Fb_c'
    """
    kind = AnalysisType.parse(analysis_type).value
    return f"ai_{kind}_{_key_part(photo_id)}_{_key_part(user_id)}"


def require_identifier(name: str, value: str) -> str:
    """Strip and validate a caller-supplied identifier."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} cannot be empty")
    return str(value).strip()


def make_advice_cache_key(kind: str, user_id: str, inputs: Mapping[str, Any]) -> str:
    """
    Response-cache key for a text-only advice request.

    The request inputs are folded into a digest, so changed profile or
    goals miss the cache while repeated identical requests hit it.

    Example:
        >>> make_advice_cache_key("nutrition", "u1", {"goal": "cut"})[:22]
        'ai_advice_nutrition_u1'
    """
    canonical = json.dumps(inputs, sort_keys=True, default=str, ensure_ascii=False)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:24]
    return f"ai_advice_{kind}_{_key_part(user_id)}_{digest}"
