"""
Analysis result models.

Structured output of the vision model, tagged by `kind`:
- meal: nutrition estimate for a food photo
- body: qualitative feedback for a body-progress photo
- degraded: provider text that could not be structure-parsed

Field names are snake_case in Python and camelCase on the wire
(`foodItems`, `estimatedCalories`, ...), matching the prompt schema.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from photo_analysis.domain.shared.value_objects import AnalysisType


class _ResultBase(BaseModel):
    """Common config: camelCase aliases, provider extras preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with wire (camelCase) field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class MealAnalysis(_ResultBase):
    """
    Nutrition estimate for a meal photo.

    Example:
        >>> result = MealAnalysis.model_validate(
        ...     {"foodItems": ["rice"], "estimatedCalories": 300, "confidence": 0.9}
        ... )
        >>> result.estimated_calories
        300.0
    """

    kind: Literal["meal"] = "meal"
    food_items: List[str] = Field(default_factory=list)
    estimated_calories: Optional[float] = Field(None, ge=0)
    protein: Optional[float] = Field(None, ge=0, description="grams")
    carbohydrates: Optional[float] = Field(None, ge=0, description="grams")
    fat: Optional[float] = Field(None, ge=0, description="grams")
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("food_items", mode="before")
    @classmethod
    def flatten_food_items(cls, v: Any) -> Any:
        """Models sometimes return objects instead of plain names."""
        if not isinstance(v, list):
            return v
        flattened = []
        for item in v:
            if isinstance(item, dict):
                name = item.get("name") or item.get("label") or item.get("item")
                flattened.append(str(name) if name is not None else str(item))
            else:
                flattened.append(item)
        return flattened


class BodyAnalysis(_ResultBase):
    """Qualitative fitness feedback for a body-progress photo."""

    kind: Literal["body"] = "body"
    muscle_definition: Optional[str] = None  # low / medium / high
    body_composition: Optional[str] = None  # lean / muscular / balanced
    posture: Optional[str] = None  # good / fair / poor
    fitness_level: Optional[str] = None  # beginner / intermediate / advanced
    observations: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)


class DegradedAnalysis(_ResultBase):
    """
    Completed analysis whose payload could not be structure-parsed.

    Carries the raw provider text so consumers can decide whether to
    trust it. Gated only when the decoded object reported a confidence.
    """

    kind: Literal["degraded"] = "degraded"
    analysis_type: AnalysisType
    raw_response: str
    parse_error: str
    degraded: Literal[True] = True

    @property
    def confidence(self) -> Optional[float]:
        return None


AnalysisResult = Annotated[
    Union[MealAnalysis, BodyAnalysis, DegradedAnalysis],
    Field(discriminator="kind"),
]

RESULT_MODELS: dict[AnalysisType, type[Union[MealAnalysis, BodyAnalysis]]] = {
    AnalysisType.MEAL: MealAnalysis,
    AnalysisType.BODY: BodyAnalysis,
}


def is_degraded(result: Any) -> bool:
    """True for results produced by the parse-degraded path."""
    return isinstance(result, DegradedAnalysis)
