"""Error taxonomy for the resume engine.

Routers translate these into HTTP responses (see ``applytrack.main``); the
services never catch them except where a failure class is explicitly
recovered (quota during generation falls back to the deterministic resume).
"""

from __future__ import annotations


class ResumeEngineError(Exception):
    """Base class for all resume engine errors."""


class ConfigurationError(ResumeEngineError):
    """The deployment is missing something required, e.g. an AI provider."""


class ValidationError(ResumeEngineError):
    """Caller input is insufficient, e.g. an empty job description."""


class NotFoundError(ResumeEngineError):
    """Entity does not exist or does not belong to the requesting user."""


class RateLimitError(ResumeEngineError):
    """Per-user cooldown is still running for this operation class."""

    def __init__(self, operation: str, seconds_remaining: int):
        self.operation = operation
        self.seconds_remaining = seconds_remaining
        super().__init__(
            f"Please wait {seconds_remaining}s before running '{operation}' again."
        )


class GenerationError(ResumeEngineError):
    """The generative service answered but the content was unusable."""


class RenderError(ResumeEngineError):
    """The layout engine could not produce a PDF."""


class GenerativeServiceError(ResumeEngineError):
    """The generative service call failed (network, timeout, provider error)."""

    def __init__(self, message: str, provider: str = "", status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)


class QuotaExceededError(GenerativeServiceError):
    """Provider reported quota exhaustion or rate limiting (HTTP 429 class)."""


class VersionConflictError(ResumeEngineError):
    """Concurrent writers kept claiming the next version number."""
