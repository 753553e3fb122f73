"""Exception hierarchy shared across the aggregator."""

from __future__ import annotations


class NewsAggregatorError(Exception):
    """Base class for aggregator failures."""


class FetchError(NewsAggregatorError):
    """A source could not be retrieved after all retry attempts."""

    def __init__(self, source_name: str, cause: BaseException | None = None, attempts: int = 0) -> None:
        self.source_name = source_name
        self.cause = cause
        self.attempts = attempts
        detail = str(cause) if cause is not None else "unknown error"
        super().__init__(
            f"Failed to collect from {source_name} after {attempts} attempts. Last error: {detail}"
        )


class ValidationError(NewsAggregatorError, ValueError):
    """Invalid configuration supplied by an operator or caller."""


__all__ = ["FetchError", "NewsAggregatorError", "ValidationError"]
