from __future__ import annotations

import asyncio
import io
import urllib.error

import pytest

from docscache import (
    CacheMissError,
    RequestRejectedError,
    RetryPolicy,
    TransientFetchError,
    backoff_delay,
    call_with_retry,
    error_for_status,
    is_retryable,
)


def run_async(coro):
    return asyncio.run(coro)


def test_backoff_doubles_from_base_and_caps():
    assert [backoff_delay(n, 1.0) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]
    assert backoff_delay(10, 1.0, 2.0, max_s=30.0) == 30.0


def test_backoff_jitter_stays_in_range():
    for _ in range(20):
        delay = backoff_delay(0, 1.0, jitter_s=0.5)
        assert 1.0 <= delay <= 1.5


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (400, RequestRejectedError),
        (404, RequestRejectedError),
        (422, RequestRejectedError),
        (408, TransientFetchError),
        (429, TransientFetchError),
        (500, TransientFetchError),
        (503, TransientFetchError),
    ],
)
def test_error_for_status(status, expected):
    error = error_for_status(status, f"HTTP {status}")
    assert type(error) is expected
    assert error.status_code == status


def test_is_retryable_classification():
    assert is_retryable(TransientFetchError("x"))
    assert is_retryable(asyncio.TimeoutError())
    assert is_retryable(ConnectionResetError())
    assert is_retryable(RuntimeError("Service Unavailable"))
    assert not is_retryable(RequestRejectedError("x"))
    assert not is_retryable(ValueError("bad payload"))


def test_call_with_retry_reports_retries_to_hook():
    seen: list[tuple[int, float]] = []
    slept: list[float] = []
    attempts = 0

    async def fake_sleep(delay: float) -> None:
        slept.append(delay)

    async def flaky():
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise TimeoutError("read timed out")
        return attempts

    result = run_async(
        call_with_retry(
            flaky,
            key="k",
            policy=RetryPolicy(max_retries=3, backoff_base_s=0.25),
            sleep=fake_sleep,
            on_retry=lambda attempt, error, delay: seen.append((attempt, delay)),
        )
    )
    assert result == 3
    assert seen == [(0, 0.25), (1, 0.5)]
    assert slept == [0.25, 0.5]


def test_zero_retries_fails_on_first_transient_error():
    attempts = 0

    async def down():
        nonlocal attempts
        attempts += 1
        raise TransientFetchError("502")

    with pytest.raises(CacheMissError) as excinfo:
        run_async(call_with_retry(down, key="k", policy=RetryPolicy(), retries=0))
    assert attempts == 1
    assert excinfo.value.key == "k"


def _http_error(status: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(
        "https://www.drupal.org/api-d7/node.json", status, "status", {}, io.BytesIO(b"")
    )


def test_http_error_is_classified_by_status_code():
    assert not is_retryable(_http_error(404))
    assert not is_retryable(_http_error(403))
    assert is_retryable(_http_error(503))
    assert is_retryable(_http_error(429))


def test_missing_file_and_permission_errors_are_terminal():
    assert not is_retryable(FileNotFoundError(2, "No such file", "modules.json"))
    assert not is_retryable(PermissionError(13, "Permission denied", "modules.json"))
    assert not is_retryable(IsADirectoryError(21, "Is a directory", "data"))
    assert not is_retryable(NotADirectoryError(20, "Not a directory", "data/x"))


def test_status_codes_only_match_as_whole_words():
    assert not is_retryable(KeyError("node/14290 missing"))
    assert not is_retryable(ValueError("release 5031 not found"))
    assert is_retryable(RuntimeError("upstream answered 502 Bad Gateway"))


def test_http_not_found_fails_fast_without_backoff():
    attempts = 0
    slept: list[float] = []
    error = _http_error(404)

    async def fake_sleep(delay: float) -> None:
        slept.append(delay)

    async def not_found():
        nonlocal attempts
        attempts += 1
        raise error

    with pytest.raises(urllib.error.HTTPError) as excinfo:
        run_async(
            call_with_retry(not_found, key="k", policy=RetryPolicy(), sleep=fake_sleep)
        )
    assert excinfo.value is error
    assert attempts == 1
    assert slept == []


def test_missing_static_file_is_not_retried():
    attempts = 0

    async def read_fixture():
        nonlocal attempts
        attempts += 1
        raise FileNotFoundError(2, "No such file", "modules.json")

    with pytest.raises(FileNotFoundError):
        run_async(call_with_retry(read_fixture, key="k", policy=RetryPolicy(max_retries=3)))
    assert attempts == 1
