"""Engine configuration.

All durations follow the original millisecond/day units. Values can be
overridden through environment variables (see `EngineSettings.from_env`):

    AI_CONFIDENCE_MIN=0.7
    AI_CONFIDENCE_WARNING=0.8
    AI_MAX_RETRIES=3
    AI_RETRY_BASE_DELAY_MS=5000
    AI_PROVIDER_TIMEOUT_MS=60000
    AI_CACHE_TTL_MS=86400000
    AI_CACHE_SWEEP_INTERVAL_MS=3600000
    AI_JOB_RETENTION_DAYS=7
    AI_JOB_SWEEP_INTERVAL_MS=3600000
    AI_PROMPT_LOCALE=vi
    ANALYSIS_PROVIDER=openai|stub|none
    OPENAI_API_KEY=sk-...
    OPENAI_VISION_MODEL=gpt-4o-mini
    LOG_LEVEL=INFO
    LOG_JSON=false
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from photo_analysis.domain.analysis.confidence import ConfidenceThresholds

_ENV_FIELDS: Dict[str, str] = {
    "confidence_min": "AI_CONFIDENCE_MIN",
    "confidence_warning": "AI_CONFIDENCE_WARNING",
    "max_retries": "AI_MAX_RETRIES",
    "retry_base_delay_ms": "AI_RETRY_BASE_DELAY_MS",
    "provider_timeout_ms": "AI_PROVIDER_TIMEOUT_MS",
    "cache_ttl_ms": "AI_CACHE_TTL_MS",
    "cache_sweep_interval_ms": "AI_CACHE_SWEEP_INTERVAL_MS",
    "job_retention_days": "AI_JOB_RETENTION_DAYS",
    "job_sweep_interval_ms": "AI_JOB_SWEEP_INTERVAL_MS",
    "prompt_locale": "AI_PROMPT_LOCALE",
    "provider": "ANALYSIS_PROVIDER",
    "openai_api_key": "OPENAI_API_KEY",
    "openai_model": "OPENAI_VISION_MODEL",
    "log_level": "LOG_LEVEL",
    "log_json": "LOG_JSON",
}


class EngineSettings(BaseModel):
    """
    Job engine settings.

    Example:
        >>> settings = EngineSettings(max_retries=1, retry_base_delay_ms=10)
        >>> settings.retry_delay_seconds(1)
        0.01
    """

    model_config = ConfigDict(frozen=True)

    # Confidence gate
    confidence_min: float = Field(0.7, ge=0.0, le=1.0, description="Fatal threshold")
    confidence_warning: float = Field(0.8, ge=0.0, le=1.0, description="Soft warning")

    # Retry / deadlines
    max_retries: int = Field(3, ge=0)
    retry_base_delay_ms: int = Field(5000, ge=0)
    provider_timeout_ms: int = Field(60_000, gt=0, description="Per-attempt deadline")

    # Cache
    cache_ttl_ms: int = Field(86_400_000, gt=0)
    cache_sweep_interval_ms: int = Field(3_600_000, gt=0)

    # Job retention
    job_retention_days: float = Field(7, ge=0)
    job_sweep_interval_ms: int = Field(3_600_000, gt=0)

    # Provider
    provider: str = Field("openai", description="openai | stub | none")
    openai_api_key: Optional[str] = Field(None, repr=False)
    openai_model: str = "gpt-4o-mini"
    prompt_locale: str = "vi"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @model_validator(mode="after")
    def thresholds_ordered(self) -> "EngineSettings":
        if self.confidence_warning < self.confidence_min:
            raise ValueError("confidence_warning must be >= confidence_min")
        return self

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "EngineSettings":
        """
        Build settings from environment variables.

        Unset or empty variables fall back to the defaults; keyword
        overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for field_name, var in _ENV_FIELDS.items():
            raw = env.get(var)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()
        values.update(overrides)
        return cls.model_validate(values)

    # ─── Derived values ────────────────────────────────────

    @property
    def thresholds(self) -> ConfidenceThresholds:
        return ConfidenceThresholds(
            confidence_min=self.confidence_min,
            confidence_warning=self.confidence_warning,
        )

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0

    @property
    def provider_timeout_seconds(self) -> float:
        return self.provider_timeout_ms / 1000.0

    def retry_delay_seconds(self, retry_count: int) -> float:
        """Linear backoff: retry_base_delay_ms * retry_count."""
        return self.retry_base_delay_ms * retry_count / 1000.0

    def with_thresholds(self, **changes: float) -> "EngineSettings":
        """Copy with updated confidence thresholds (validated)."""
        allowed = {"confidence_min", "confidence_warning"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown threshold(s): {', '.join(sorted(unknown))}")
        return type(self).model_validate({**self.model_dump(), **changes})
