"""Text-only coaching advice: inputs, reply models and prompts."""

from photo_analysis.domain.advice.models import (
    AdviceKind,
    AdviceResult,
    DegradedAdvice,
    NutritionGoals,
    NutritionPlan,
    ProgressData,
    ProgressInsights,
    UserProfile,
    WorkoutPlan,
    WorkoutPreferences,
)

__all__ = [
    "AdviceKind",
    "AdviceResult",
    "DegradedAdvice",
    "NutritionGoals",
    "NutritionPlan",
    "ProgressData",
    "ProgressInsights",
    "UserProfile",
    "WorkoutPlan",
    "WorkoutPreferences",
]
