# =============================================================================
# Error Taxonomy
# =============================================================================
#
# Every failure the screening core can surface is one of these classes.
# Each carries the HTTP status the API layer renders it with, so route
# handlers never need to know which layer raised.
#
#   ValidationError        400  missing/malformed input, no side effects
#   InvalidParameterError  500  misconfigured segmenter/index parameters
#   NoCorpusError          409  review attempted before anything was ingested
#   EmptyIndexError        409  search against an index with zero entries
#   ProviderError          502  embedding/LLM call failed after retries
#   PersistenceError       500  index artifact could not be written or read
#
# An unparsable model response is NOT an error: it becomes an "unscored"
# result so callers still see the raw rationale.
# =============================================================================

from __future__ import annotations


class ScreenerError(Exception):
    """Base class for all screening errors."""

    http_status: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(ScreenerError):
    """Missing or malformed input. Raised before any side effect."""

    http_status = 400


class InvalidParameterError(ScreenerError):
    """Segmenter or index parameters are inconsistent."""

    http_status = 500


class NoCorpusError(ScreenerError):
    """No index exists yet, in memory or on disk."""

    http_status = 409


class EmptyIndexError(ScreenerError):
    """The index exists but holds no chunks."""

    http_status = 409


class ProviderError(ScreenerError):
    """An embedding or language-model call failed after the retry budget."""

    http_status = 502

    def __init__(self, message: str, provider: str, attempts: int = 1) -> None:
        self.provider = provider
        self.attempts = attempts
        super().__init__(message)


class PersistenceError(ScreenerError):
    """Saving or loading the index artifact failed."""

    http_status = 500
