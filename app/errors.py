from __future__ import annotations


class QuoteFetchError(Exception):
    """Base class for failures in the directory/quote/logo pipeline."""


class NetworkError(QuoteFetchError):
    """Transport failure, timeout, or a non-200 upstream status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(QuoteFetchError):
    """Payload arrived but is structurally invalid or missing fields."""


class RetryExhausted(QuoteFetchError):
    """Bounded retry policy ran out of attempts."""

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class RetryAbandoned(QuoteFetchError):
    """Caller lost interest (e.g. selection changed) while retrying."""
