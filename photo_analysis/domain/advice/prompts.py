"""Prompt builders for text-only advice.

Same conventions as the photo prompts: one JSON object, camelCase keys,
answer language chosen by locale. Missing profile values render as N/A.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from photo_analysis.domain.advice.models import (
    NutritionGoals,
    ProgressData,
    UserProfile,
    WorkoutPreferences,
)
from photo_analysis.domain.analysis.prompts import DEFAULT_LOCALE, language_name


def _value(value: Optional[Any], unit: str = "") -> str:
    return "N/A" if value is None else f"{value}{unit}"


def _profile_lines(profile: UserProfile) -> str:
    return (
        f" User profile: age {_value(profile.age)};"
        f" weight {_value(profile.current_weight_kg, 'kg')};"
        f" height {_value(profile.height_cm, 'cm')};"
        f" activity level {_value(profile.activity_level)}."
    )


def nutrition_prompt(
    profile: UserProfile,
    goals: NutritionGoals,
    *,
    locale: str = DEFAULT_LOCALE,
) -> str:
    language = language_name(locale)
    return (
        f"Provide personalized nutrition recommendations in {language}"
        " for a fitness enthusiast."
        + _profile_lines(profile)
        + f" Goal: {goals.primary_goal}; target weight {_value(goals.target_weight, 'kg')}."
        " Cover: 1. daily calorie target; 2. macro breakdown (protein, carbs, fat in grams);"
        " 3. meal timing; 4. food suggestions per meal; 5. supplements if needed;"
        " 6. hydration."
        " MUST: respond with a single JSON object using exactly this structure: "
        '{"dailyCalories":2000,"macros":{"protein":150,"carbs":200,"fat":67},'
        '"mealTiming":["7:00","12:00","19:00"],'
        '"foodSuggestions":{"breakfast":["s1"],"lunch":["s1"],"dinner":["s1"],"snacks":["s1"]},'
        '"supplements":["s1"],"hydration":"2-3 liters per day","tips":["tip1"]}.'
    )


def workout_prompt(
    profile: UserProfile,
    preferences: WorkoutPreferences,
    *,
    locale: str = DEFAULT_LOCALE,
) -> str:
    language = language_name(locale)
    return (
        f"Provide personalized workout recommendations in {language}."
        + _profile_lines(profile)
        + f" Goal: {preferences.goal}; experience {_value(preferences.experience)};"
        f" available time {_value(preferences.available_time, ' minutes')};"
        f" equipment {_value(preferences.equipment)}."
        " Cover: 1. workout frequency; 2. exercise selection; 3. sets and reps;"
        " 4. rest periods; 5. progression plan; 6. safety tips."
        " MUST: respond with a single JSON object using exactly this structure: "
        '{"frequency":"3-4 times per week","workouts":[{"day":"Day 1 - Upper Body",'
        '"exercises":[{"name":"Push-ups","sets":3,"reps":"8-12","rest":"60 seconds"}]}],'
        '"progression":"Increase weight by 5% every 2 weeks",'
        '"safetyTips":["tip1"],"estimatedDuration":45}.'
    )


def progress_prompt(
    data: ProgressData,
    time_range: str,
    *,
    locale: str = DEFAULT_LOCALE,
) -> str:
    language = language_name(locale)
    return (
        f"Analyze this fitness progress data and provide insights in {language}."
        f" Data for the last {time_range}:"
        f" weight changes {json.dumps(data.weight_changes, ensure_ascii=False, default=str)};"
        f" workout frequency {_value(data.workout_frequency)};"
        f" nutrition adherence {_value(data.nutrition_adherence, '%')};"
        f" goals {_value(data.goals)}."
        " Cover: 1. progress assessment; 2. what is working well;"
        " 3. areas for improvement; 4. recommendations; 5. motivation."
        " MUST: respond with a single JSON object using exactly this structure: "
        '{"progressAssessment":"positive|neutral|negative","workingWell":["p1"],'
        '"improvements":["a1"],"recommendations":["r1"],'
        '"motivation":"encouraging message","nextSteps":["s1"]}.'
    )
