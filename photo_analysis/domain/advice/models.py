"""
Text-only coaching advice: inputs the caller supplies and the typed
replies the model returns.

Three kinds share one provider, parser and cache:
- nutrition: daily calories, macros, meal timing, food suggestions
- workout: weekly plan of sessions and exercises
- progress: assessment of recent weight / training / nutrition data

No photo is involved and no confidence is reported, so advice never goes
through the confidence gate or the job store.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AdviceKind(str, Enum):
    NUTRITION = "nutrition"
    WORKOUT = "workout"
    PROGRESS = "progress"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════
# INPUTS
# ═══════════════════════════════════════════════════════════


class _InputModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class UserProfile(_InputModel):
    """Body data owned by the host app's user service."""

    user_id: str
    age: Optional[int] = Field(None, ge=0)
    current_weight_kg: Optional[float] = Field(None, gt=0)
    height_cm: Optional[float] = Field(None, gt=0)
    activity_level: Optional[str] = None


class NutritionGoals(_InputModel):
    primary_goal: str
    target_weight: Optional[float] = Field(None, gt=0, description="kg")


class WorkoutPreferences(_InputModel):
    goal: str
    experience: Optional[str] = None  # beginner / intermediate / advanced
    available_time: Optional[int] = Field(None, gt=0, description="minutes per session")
    equipment: Optional[str] = None


class ProgressData(_InputModel):
    """Recent tracking data summarized by the host app."""

    user_id: str
    weight_changes: List[Any] = Field(default_factory=list)
    workout_frequency: Optional[Union[int, str]] = None
    nutrition_adherence: Optional[float] = Field(None, ge=0, le=100, description="percent")
    goals: Optional[str] = None


# ═══════════════════════════════════════════════════════════
# REPLIES
# ═══════════════════════════════════════════════════════════


class Macros(_CamelModel):
    protein: Optional[float] = Field(None, ge=0, description="grams")
    carbs: Optional[float] = Field(None, ge=0, description="grams")
    fat: Optional[float] = Field(None, ge=0, description="grams")


class NutritionPlan(_CamelModel):
    """
    Example:
        >>> NutritionPlan.model_validate({"dailyCalories": 2000}).daily_calories
        2000.0
    """

    kind: Literal["nutrition"] = "nutrition"
    daily_calories: Optional[float] = Field(None, ge=0)
    macros: Optional[Macros] = None
    meal_timing: List[str] = Field(default_factory=list)
    food_suggestions: Dict[str, List[str]] = Field(default_factory=dict)
    supplements: List[str] = Field(default_factory=list)
    hydration: Optional[str] = None
    tips: List[str] = Field(default_factory=list)


class Exercise(_CamelModel):
    name: str
    sets: Optional[int] = Field(None, ge=0)
    reps: Optional[Union[int, str]] = None  # "8-12" or 10
    rest: Optional[str] = None


class WorkoutSession(_CamelModel):
    day: Optional[str] = None
    exercises: List[Exercise] = Field(default_factory=list)


class WorkoutPlan(_CamelModel):
    kind: Literal["workout"] = "workout"
    frequency: Optional[str] = None
    workouts: List[WorkoutSession] = Field(default_factory=list)
    progression: Optional[str] = None
    safety_tips: List[str] = Field(default_factory=list)
    estimated_duration: Optional[float] = Field(None, ge=0, description="minutes")


class ProgressInsights(_CamelModel):
    kind: Literal["progress"] = "progress"
    progress_assessment: Optional[str] = None  # positive / neutral / negative
    working_well: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    motivation: Optional[str] = None
    next_steps: List[str] = Field(default_factory=list)


class DegradedAdvice(_CamelModel):
    """Advice reply that could not be structure-parsed; raw text kept."""

    kind: Literal["degraded"] = "degraded"
    advice_kind: AdviceKind
    raw_response: str
    parse_error: str
    degraded: Literal[True] = True


AdviceResult = Annotated[
    Union[NutritionPlan, WorkoutPlan, ProgressInsights, DegradedAdvice],
    Field(discriminator="kind"),
]

ADVICE_MODELS: Dict[AdviceKind, type[Union[NutritionPlan, WorkoutPlan, ProgressInsights]]] = {
    AdviceKind.NUTRITION: NutritionPlan,
    AdviceKind.WORKOUT: WorkoutPlan,
    AdviceKind.PROGRESS: ProgressInsights,
}
