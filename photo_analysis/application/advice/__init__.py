"""Text-only advice (nutrition, workout, progress)."""

from photo_analysis.application.advice.service import AdviceService

__all__ = ["AdviceService"]
