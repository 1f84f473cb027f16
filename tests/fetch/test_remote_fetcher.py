from __future__ import annotations

import asyncio
import io
import json
import urllib.error
import urllib.request

import pytest

from docscache import (
    CachePolicy,
    JsonHttpFetcher,
    RequestRejectedError,
    ResilientCache,
    SweepPolicy,
    TransientFetchError,
)


def run_async(coro):
    return asyncio.run(coro)


def test_cache_key_is_order_independent_and_bounded():
    fetcher = JsonHttpFetcher("https://www.drupal.org/")
    a = fetcher.cache_key("api-d7/node.json", {"type": "project_module", "title": "views"})
    b = fetcher.cache_key("/api-d7/node.json", {"title": "views", "type": "project_module"})
    assert a == b
    assert a.startswith("www.drupal.org:api-d7/node.json:")

    long_key = fetcher.cache_key("search", {"q": "x" * 1000})
    assert "sha256:" in long_key
    assert len(long_key) < 150


def test_producer_fetches_json_through_injected_getter():
    seen: list[tuple[str, dict]] = []

    def fake_get(url, headers, timeout_s):
        seen.append((url, dict(headers)))
        assert timeout_s == 5.0
        return json.dumps({"list": [{"title": "Views"}]}).encode("utf-8")

    fetcher = JsonHttpFetcher(
        "https://www.drupal.org",
        headers={"User-Agent": "tests"},
        timeout_s=5.0,
        get=fake_get,
    )
    cache = ResilientCache(
        policy=CachePolicy(default_ttl_s=60.0), sweep_policy=SweepPolicy(interval_s=0)
    )
    params = {"title": "views"}

    async def scenario():
        key = fetcher.cache_key("api-d7/node.json", params)
        first = await cache.get_or_compute(key, fetcher.producer("api-d7/node.json", params))
        second = await cache.get_or_compute(key, fetcher.producer("api-d7/node.json", params))
        return first, second

    first, second = run_async(scenario())
    assert first == {"list": [{"title": "Views"}]}
    assert second == first
    assert len(seen) == 1
    assert seen[0][0] == "https://www.drupal.org/api-d7/node.json?title=views"
    assert seen[0][1]["User-Agent"] == "tests"
    assert seen[0][1]["Accept"] == "application/json"


def test_invalid_json_is_rejected():
    fetcher = JsonHttpFetcher("https://example.test", get=lambda url, headers, timeout_s: b"<html>")
    with pytest.raises(RequestRejectedError):
        run_async(fetcher.fetch_json("page"))


@pytest.mark.parametrize(
    ("status", "expected"),
    [(404, RequestRejectedError), (503, TransientFetchError)],
)
def test_http_errors_are_classified(monkeypatch, status, expected):
    def fake_urlopen(req, timeout):
        raise urllib.error.HTTPError(
            req.full_url, status, "error", {}, io.BytesIO(b"upstream said no")
        )

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    fetcher = JsonHttpFetcher("https://api.drupal.org")

    with pytest.raises(expected) as excinfo:
        run_async(fetcher.fetch_json("api/functions"))
    assert excinfo.value.status_code == status
    assert "upstream said no" in str(excinfo.value)


def test_network_errors_are_transient(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)
    fetcher = JsonHttpFetcher("https://api.drupal.org")

    with pytest.raises(TransientFetchError):
        run_async(fetcher.fetch_json("api/functions"))
