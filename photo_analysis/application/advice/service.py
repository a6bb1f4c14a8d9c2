"""
Advice service - text-only recommendations and progress insights.

Request/response, no jobs: the call runs under the scheduler's
per-attempt deadline and provider metrics, errors go straight to the
caller (no retries). Parsed replies are cached by user and a digest of
the request inputs; degraded replies are not cached.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from photo_analysis.application.jobs.scheduler import JobScheduler
from photo_analysis.domain.advice.models import (
    AdviceKind,
    DegradedAdvice,
    NutritionGoals,
    ProgressData,
    UserProfile,
    WorkoutPreferences,
)
from photo_analysis.domain.advice.prompts import (
    nutrition_prompt,
    progress_prompt,
    workout_prompt,
)
from photo_analysis.domain.analysis.parser import AdviceOutcome, ResponseParser
from photo_analysis.domain.shared.value_objects import make_advice_cache_key, require_identifier

logger = structlog.get_logger(__name__)

DEFAULT_TIME_RANGE = "30 days"


class AdviceService:
    """
    Nutrition plans, workout plans and progress insights.

    Example:
        >>> advice = AdviceService(scheduler)
        >>> plan = await advice.nutrition_recommendations(
        ...     UserProfile(user_id="u1", current_weight_kg=70),
        ...     NutritionGoals(primary_goal="lose fat"),
        ... )
    """

    def __init__(self, scheduler: JobScheduler, parser: Optional[ResponseParser] = None) -> None:
        self.scheduler = scheduler
        self.parser = parser or scheduler.parser

    async def nutrition_recommendations(
        self,
        profile: UserProfile,
        goals: NutritionGoals,
        *,
        use_cache: bool = True,
    ) -> AdviceOutcome:
        """
        Raises:
            ValidationError: Empty user id
            ProviderUnavailableError: No provider configured
            ProviderError: Provider call failed (incl. timeout)
        """
        prompt = nutrition_prompt(profile, goals, locale=self.scheduler.settings.prompt_locale)
        inputs = {"profile": profile.model_dump(), "goals": goals.model_dump()}
        return await self._advise(AdviceKind.NUTRITION, profile.user_id, prompt, inputs, use_cache)

    async def workout_recommendations(
        self,
        profile: UserProfile,
        preferences: WorkoutPreferences,
        *,
        use_cache: bool = True,
    ) -> AdviceOutcome:
        prompt = workout_prompt(
            profile, preferences, locale=self.scheduler.settings.prompt_locale
        )
        inputs = {"profile": profile.model_dump(), "preferences": preferences.model_dump()}
        return await self._advise(AdviceKind.WORKOUT, profile.user_id, prompt, inputs, use_cache)

    async def progress_insights(
        self,
        data: ProgressData,
        time_range: str = DEFAULT_TIME_RANGE,
        *,
        use_cache: bool = True,
    ) -> AdviceOutcome:
        prompt = progress_prompt(data, time_range, locale=self.scheduler.settings.prompt_locale)
        inputs = {"data": data.model_dump(), "time_range": time_range}
        return await self._advise(AdviceKind.PROGRESS, data.user_id, prompt, inputs, use_cache)

    async def _advise(
        self,
        kind: AdviceKind,
        user_id: str,
        prompt: str,
        inputs: Dict[str, Any],
        use_cache: bool,
    ) -> AdviceOutcome:
        user_id = require_identifier("user_id", user_id)
        provider = self.scheduler.ensure_available()
        cache = self.scheduler.cache

        cache_key = make_advice_cache_key(kind.value, user_id, inputs)
        if use_cache:
            cached = cache.get(cache_key)
            if cached is not None:
                logger.info("Using cached AI advice", advice_kind=kind.value, user_id=user_id)
                return cached

        try:
            raw_text = await self.scheduler.call_provider(provider, prompt)
        except Exception as exc:
            logger.error(
                "AI advice failed",
                advice_kind=kind.value,
                user_id=user_id,
                error=str(exc),
            )
            raise

        outcome = self.parser.parse_advice(raw_text, kind)
        degraded = isinstance(outcome, DegradedAdvice)
        if not degraded:
            cache.put(cache_key, outcome)
        logger.info(
            "AI advice generated",
            advice_kind=kind.value,
            user_id=user_id,
            degraded=degraded,
        )
        return outcome
