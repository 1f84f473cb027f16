"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Failure classification and bounded retry with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
import re
import socket
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .contracts import RetryPolicy
from .errors import CacheMissError, FetchError, RequestRejectedError, TransientFetchError
from .utils import backoff_delay

T = TypeVar("T")

logger = logging.getLogger("docscache.retry")

SleepFn = Callable[[float], Awaitable[None]]
RetryHook = Callable[[int, BaseException, float], None]

_RETRY_PHRASES = (
    "rate limit",
    "timed out",
    "timeout",
    "temporarily",
    "service unavailable",
)
_RETRY_STATUS = re.compile(r"\b(408|425|429|50[0-9])\b")
_TERMINAL_OS_ERRORS = (
    FileNotFoundError,
    PermissionError,
    IsADirectoryError,
    NotADirectoryError,
)


def error_for_status(status_code: int, message: str) -> FetchError:
    """Map an HTTP status code onto the retryable/terminal taxonomy."""
    if status_code in (408, 425, 429) or status_code >= 500:
        return TransientFetchError(message, status_code=status_code)
    return RequestRejectedError(message, status_code=status_code)


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599:
            return value
    return None


def is_retryable(error: BaseException) -> bool:
    """
    Return True when ``error`` is worth another attempt.

    Taxonomy errors decide for themselves. Anything carrying an HTTP status
    (``urllib.error.HTTPError.code`` or a ``status_code`` attribute) is
    classified by that status. Missing files and permission problems are
    terminal; other connection and OS level failures are transient. As a
    last resort the message is matched against rate-limit/timeout phrases
    and whole-word retryable status codes.
    """
    if isinstance(error, TransientFetchError):
        return True
    if isinstance(error, FetchError):
        return False
    status = _status_of(error)
    if status is not None:
        return isinstance(error_for_status(status, str(error)), TransientFetchError)
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return True
    if isinstance(error, _TERMINAL_OS_ERRORS):
        return False
    if isinstance(error, (ConnectionError, OSError)):
        return True
    msg = str(error).lower()
    if any(phrase in msg for phrase in _RETRY_PHRASES):
        return True
    return _RETRY_STATUS.search(msg) is not None


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    key: str,
    policy: RetryPolicy,
    retries: int | None = None,
    sleep: SleepFn = asyncio.sleep,
    on_retry: RetryHook | None = None,
) -> T:
    """
    Execute ``fn`` under a bounded retry budget.

    Terminal failures are re-raised unchanged on the first attempt. Transient
    failures are retried ``retries`` times (``policy.max_retries`` when None),
    then surfaced as ``CacheMissError`` chained to the last failure.
    """
    budget = policy.max_retries if retries is None else max(0, retries)
    for attempt in range(budget + 1):
        try:
            return await fn()
        except Exception as error:
            if not is_retryable(error):
                raise
            if attempt >= budget:
                raise CacheMissError(
                    key, attempts=attempt + 1, last_error=error
                ) from error
            delay = backoff_delay(
                attempt,
                policy.backoff_base_s,
                policy.backoff_multiplier,
                policy.backoff_max_s,
                policy.backoff_jitter_s,
            )
            logger.warning(
                "Retrying '%s' in %.2fs after attempt %d/%d failed: %s",
                key,
                delay,
                attempt + 1,
                budget + 1,
                error,
            )
            if on_retry is not None:
                on_retry(attempt, error, delay)
            await sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
