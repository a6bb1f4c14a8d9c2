"""Prompt builders for meal and body photo analysis.

The JSON schema embedded in each prompt is the contract the parser
validates against. Bump PROMPT_VERSION whenever schema or rules change.
"""

from __future__ import annotations

from photo_analysis.domain.shared.value_objects import AnalysisType

PROMPT_VERSION = 1

DEFAULT_LOCALE = "vi"

_LANGUAGE_NAMES = {
    "vi": "Vietnamese",
    "en": "English",
    "it": "Italian",
}


def language_name(locale: str) -> str:
    return _LANGUAGE_NAMES.get(locale.lower(), "English")


def meal_prompt(*, locale: str = DEFAULT_LOCALE) -> str:
    language = language_name(locale)
    return (
        f"Analyze this food image and provide detailed nutrition information in {language}."
        " Identify: 1. food items present in the image; 2. estimated calories (kcal);"
        " 3. protein (grams); 4. carbohydrates (grams); 5. fat (grams);"
        " 6. any health warnings or recommendations."
        " MUST: respond with a single JSON object using exactly this structure: "
        '{"foodItems":["item1","item2"],"estimatedCalories":300,"protein":25,'
        '"carbohydrates":30,"fat":10,"confidence":0.85,'
        '"warnings":["warning1"],"recommendations":["rec1"]}.'
        " confidence is a number between 0 and 1 describing how reliable the estimate is."
        f" Be as accurate as possible with local {language} dishes."
    )


def body_prompt(*, locale: str = DEFAULT_LOCALE) -> str:
    language = language_name(locale)
    return (
        f"Analyze this body progress photo and provide fitness insights in {language}."
        " Identify: 1. visible muscle definition; 2. body composition;"
        " 3. posture; 4. general fitness level indicators;"
        " 5. recommendations for improvement."
        " MUST: respond with a single JSON object using exactly this structure: "
        '{"muscleDefinition":"low|medium|high",'
        '"bodyComposition":"lean|muscular|balanced",'
        '"posture":"good|fair|poor",'
        '"fitnessLevel":"beginner|intermediate|advanced",'
        '"observations":["obs1"],"recommendations":["rec1"],"confidence":0.85}.'
        " confidence is a number between 0 and 1."
        " Be encouraging and constructive."
    )


def build_prompt(analysis_type: AnalysisType, *, locale: str = DEFAULT_LOCALE) -> str:
    """Prompt for the given analysis type."""
    if analysis_type is AnalysisType.MEAL:
        return meal_prompt(locale=locale)
    return body_prompt(locale=locale)
