"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

JSON-over-HTTP producer factory for remote documentation sources.
"""

from __future__ import annotations

import asyncio
import json
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import RequestRejectedError, TransientFetchError
from .retry import error_for_status
from .utils import stable_cache_key

logger = logging.getLogger("docscache.remote")

GetFn = Callable[[str, Mapping[str, str], float], bytes]


@dataclass
class JsonHttpFetcher:
    """
    Build cache keys and producers for GET requests against one base URL.

    Attributes:
        base_url: Endpoint root, e.g. ``https://www.drupal.org``.
        headers: Extra request headers.
        timeout_s: Socket timeout per request.
        name: Namespace prefix for cache keys; defaults to the URL host.
        get: Blocking ``(url, headers, timeout_s) -> bytes`` transport run in a
            worker thread; defaults to ``http_get`` (urllib).
    """

    base_url: str
    headers: dict[str, str] = field(default_factory=dict)
    timeout_s: float = 15.0
    name: str | None = None
    get: GetFn | None = None

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        if self.name is None:
            self.name = urllib.parse.urlparse(self.base_url).netloc or self.base_url

    def url_for(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        if params:
            query = urllib.parse.urlencode(
                sorted((k, str(v)) for k, v in params.items()), doseq=False
            )
            url = f"{url}?{query}"
        return url

    def cache_key(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        """Canonical key for ``path`` + ``params``; long queries are hashed."""
        return stable_cache_key(f"{self.name}:{path.strip('/')}", params)

    def producer(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> Callable[[], Awaitable[Any]]:
        """Return a zero-argument coroutine function fetching ``path``."""
        frozen = dict(params or {})

        async def _produce() -> Any:
            return await self.fetch_json(path, frozen)

        return _produce

    async def fetch_json(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        url = self.url_for(path, params)
        get_fn = self.get or self.http_get
        body = await asyncio.to_thread(get_fn, url, self._request_headers(), self.timeout_s)
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RequestRejectedError(f"Invalid JSON response from {url}") from e

    def http_get(self, url: str, headers: Mapping[str, str], timeout_s: float) -> bytes:
        req = urllib.request.Request(url, method="GET", headers=dict(headers))
        try:
            with urllib.request.urlopen(req, timeout=timeout_s) as resp:  # noqa: S310
                return resp.read()
        except urllib.error.HTTPError as e:
            body = ""
            try:
                body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001
                body = ""
            raise error_for_status(
                e.code, f"HTTP {e.code} fetching {url}: {body[:200] or e.reason}"
            ) from e
        except (urllib.error.URLError, socket.timeout, TimeoutError) as e:
            reason = getattr(e, "reason", e)
            raise TransientFetchError(f"Network error fetching {url}: {reason}") from e

    def _request_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "docscache/0.1",
            **self.headers,
        }
