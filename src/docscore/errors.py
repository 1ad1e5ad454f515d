"""
Exception hierarchy for DocScore.

Only ``ContentValidationError`` escapes ``Scorer.score()``; every other error
class is absorbed by the engine and surfaced as report metadata.
"""

from __future__ import annotations

from typing import List, Optional


class DocScoreError(Exception):
    """Base class for all DocScore errors."""


class ContentValidationError(DocScoreError):
    """Raised when extracted page content cannot be parsed into the content schema."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Invalid content: {', '.join(self.errors)}")


class ConfigError(DocScoreError):
    """Raised when a configuration file cannot be loaded or validated."""


class CacheError(DocScoreError):
    """Raised by cache backends; callers treat it as a miss."""


class SemanticEvaluationError(DocScoreError):
    """Base class for failures of the remote semantic capability."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SemanticAuthError(SemanticEvaluationError):
    """The API key was rejected."""


class SemanticRateLimitError(SemanticEvaluationError):
    """The remote capability is throttling requests."""


class SemanticNetworkError(SemanticEvaluationError):
    """The request never reached the remote capability or timed out."""


class SemanticResponseError(SemanticEvaluationError):
    """The response could not be parsed into the expected JSON shape."""
