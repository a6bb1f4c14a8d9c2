"""Cache implementations."""

from photo_analysis.infrastructure.cache.response_cache import ResponseCache

__all__ = [
    "ResponseCache",
]
