"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for cache lookups and producer failures.
"""

from __future__ import annotations


class CacheError(RuntimeError):
    """Base class for all docscache errors."""


class FetchError(CacheError):
    """Classified producer failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientFetchError(FetchError):
    """Network, timeout or 5xx-class failure; safe to retry."""


class RequestRejectedError(FetchError):
    """4xx-class or malformed request; never retried."""


class CacheMissError(CacheError):
    """Retry budget exhausted on transient failures for one key."""

    def __init__(self, key: str, *, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"Fetch for '{key}' failed after {attempts} attempt(s): {last_error}"
        )
        self.key = key
        self.attempts = attempts
        self.last_error = last_error


class CapacityError(CacheError):
    """Entry cannot be admitted within configured memory bounds."""


class FallbackExhaustedError(CacheError):
    """Every step of a fallback chain failed."""

    def __init__(self, errors: list[tuple[str, BaseException]]) -> None:
        names = ", ".join(name for name, _ in errors) or "<none>"
        super().__init__(f"All fallback steps failed: {names}")
        self.errors = errors
