"""
Domain exceptions.

Typed exceptions for the analysis job engine. Provider and confidence
failures stay inside the scheduler and end up as job states; not-found,
authorization and provider-availability errors reach the caller directly.
"""

from __future__ import annotations

from typing import Optional

# Upper bound for messages recorded on a failed job.
MAX_PUBLIC_MESSAGE_LENGTH = 300

GENERIC_FAILURE_MESSAGE = "Analysis failed due to an internal error"


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all engine errors.

    Messages of DomainError subclasses are written to be shown to users,
    so they never contain stack or class details.
    """

    pass


# ═══════════════════════════════════════════════════════════
# JOB / LOOKUP EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class NotFoundError(DomainError):
    """Resource not found."""

    pass


class JobNotFoundError(NotFoundError):
    """
    Analysis job not found.

    Raised when:
    - Job ID was never issued
    - Job was removed by the retention sweep

    Example:
        >>> raise JobNotFoundError("Job ai_job_abc123 not found")
    """

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class PhotoNotFoundError(NotFoundError):
    """
    Photo not found or not owned by the requesting user.

    Terminal for a job: retrying cannot make the photo appear.
    """

    def __init__(self, photo_id: str, reason: Optional[str] = None) -> None:
        message = f"Photo {photo_id} not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.photo_id = photo_id


class InvalidJobTransitionError(DomainError):
    """Job status change outside the allowed state machine."""

    pass


class ValidationError(DomainError):
    """
    Input validation failed.

    Example:
        >>> raise ValidationError("Unknown analysis type: 'face'")
    """

    pass


class AuthorizationError(DomainError):
    """
    Requester is not allowed to see a job.

    Example:
        >>> raise AuthorizationError("User u2 cannot access job ai_job_x")
    """

    pass


# ═══════════════════════════════════════════════════════════
# PROVIDER EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ProviderUnavailableError(DomainError):
    """
    AI provider not configured.

    Raised synchronously by submit; no job is created.
    """

    def __init__(self, message: str = "AI service not available") -> None:
        super().__init__(message)


class ProviderError(DomainError):
    """
    Non-transient provider failure (bad request, auth, unsupported image).

    Terminal for a job.
    """

    pass


class TransientProviderError(ProviderError):
    """
    Transient provider failure: network, 5xx, open circuit.

    The only failure family the scheduler retries.
    """

    pass


class ProviderTimeoutError(TransientProviderError):
    """Provider call exceeded the per-attempt deadline."""

    pass


class ProviderRateLimitError(TransientProviderError):
    """Provider throttled the request."""

    pass


# ═══════════════════════════════════════════════════════════
# CONTENT EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ContentConfidenceError(DomainError):
    """
    Model confidence below the configured minimum.

    Reflects the photo content, not a fault, so it is never retried.
    """

    def __init__(self, confidence: float, minimum: float) -> None:
        super().__init__(
            f"AI confidence too low: {confidence}. Minimum required: {minimum}"
        )
        self.confidence = confidence
        self.minimum = minimum


def is_retryable(exc: BaseException) -> bool:
    """True for failures worth another provider attempt."""
    return isinstance(exc, TransientProviderError)


def public_message(exc: BaseException) -> str:
    """
    Message safe to record on a failed job.

    Domain errors keep their first line (bounded); anything else is
    replaced by a generic message so internals never leak to clients.
    """
    if not isinstance(exc, DomainError):
        return GENERIC_FAILURE_MESSAGE

    text = str(exc).strip()
    if not text:
        return GENERIC_FAILURE_MESSAGE

    first_line = text.splitlines()[0]
    if len(first_line) > MAX_PUBLIC_MESSAGE_LENGTH:
        first_line = first_line[: MAX_PUBLIC_MESSAGE_LENGTH - 3] + "..."
    return first_line
