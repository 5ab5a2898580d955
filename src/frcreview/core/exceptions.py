"""Domain exception hierarchy.

All exceptions inherit from ``FRCReviewError`` so callers can catch broadly
or narrowly as needed.  FastAPI exception handlers map these to HTTP responses.
"""

from __future__ import annotations


class FRCReviewError(Exception):
    """Base exception for all frcreview errors."""

    def __init__(self, message: str = "", *, detail: str = "") -> None:
        self.detail = detail or message
        super().__init__(message)


# ── GitHub ───────────────────────────────────────────────────────────────────


class GitHubError(FRCReviewError):
    """Error communicating with the GitHub API."""


class GitHubAuthError(GitHubError):
    """Invalid or expired GitHub token."""


class GitHubRateLimitError(GitHubError):
    """GitHub API rate limit exhausted."""

    def __init__(self, reset_at: int | None = None) -> None:
        self.reset_at = reset_at
        super().__init__("GitHub API rate limit exceeded", detail=f"Resets at {reset_at}")


class PRNotFoundError(GitHubError):
    """The requested PR does not exist or is not accessible."""


# ── LLM ──────────────────────────────────────────────────────────────────────


class LLMError(FRCReviewError):
    """Error from the LLM provider."""


class LLMRateLimitError(LLMError):
    """LLM provider rate limit hit."""


class LLMContextOverflowError(LLMError):
    """Input exceeds the model's context window."""


class LLMResponseParseError(LLMError):
    """LLM returned output that does not match the expected structure."""


# ── Pipeline ─────────────────────────────────────────────────────────────────


class PipelineError(FRCReviewError):
    """Error during review pipeline execution."""


class MissingPRNumberError(PipelineError):
    """No pull request number could be resolved from the triggering event."""


# ── Configuration ────────────────────────────────────────────────────────────


class ConfigurationError(FRCReviewError):
    """Invalid runtime configuration."""


class SkillsPathError(ConfigurationError):
    """The skills path resolves outside the trusted workspace root."""


# ── Validation ───────────────────────────────────────────────────────────────


class ValidationError(FRCReviewError):
    """Input validation failed."""


class InvalidPRURLError(ValidationError):
    """The provided PR URL could not be parsed."""
