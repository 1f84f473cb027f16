"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics adapters for cache observability.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

HITS = "cache_hits_total"
MISSES = "cache_misses_total"
COALESCED = "cache_coalesced_total"
EVICTIONS = "cache_evictions_total"
RETRIES = "cache_fetch_retries_total"
FAILURES = "cache_fetch_failures_total"


class CacheMetrics(Protocol):
    """Minimal metrics interface for cache instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpCacheMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


class InMemoryCacheMetrics:
    """Counter sink keyed by ``name`` plus sorted tag pairs; handy in tests."""

    def __init__(self) -> None:
        self.counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        key = (name, tuple(sorted((tags or {}).items())))
        self.counters[key] = self.counters.get(key, 0) + value

    def total(self, name: str) -> int:
        return sum(v for (n, _), v in self.counters.items() if n == name)


# name -> (help text, label names) for the counters ResilientCache emits.
KNOWN_COUNTERS: dict[str, tuple[str, tuple[str, ...]]] = {
    HITS: ("Lookups served from a live entry.", ()),
    MISSES: ("Lookups that started or joined a producer flight.", ()),
    COALESCED: ("Misses that joined an in-flight producer call.", ()),
    EVICTIONS: ("Entries removed by expiry or capacity pressure.", ("reason",)),
    RETRIES: ("Producer attempts retried after a transient failure.", ()),
    FAILURES: ("Producer flights that ended in an error.", ("kind",)),
}


class PrometheusCacheMetrics(CacheMetrics):
    """
    Prometheus-backed cache metrics adapter.

    Every counter in ``KNOWN_COUNTERS`` is registered up front so scrapes
    show zeroes before the first lookup; unknown names are created on first
    use with their tag keys as labels. Requires `prometheus_client` package.
    """

    def __init__(self, *, namespace: str = "docscache", registry=None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusCacheMetrics requires `prometheus_client` to be installed."
            ) from exc

        self._Counter = Counter
        self._namespace = namespace
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, tuple[object, tuple[str, ...]]] = {}
        for name, (documentation, label_names) in KNOWN_COUNTERS.items():
            self._declare(name, documentation, label_names)

    def incr(self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None) -> None:
        tags = tags or {}
        declared = self._counters.get(name)
        if declared is None:
            declared = self._declare(
                name, f"docscache counter {name}", tuple(sorted(tags))
            )
        counter, label_names = declared
        if label_names:
            counter.labels(*(str(tags.get(label, "")) for label in label_names)).inc(value)
        else:
            counter.inc(value)

    def _declare(
        self, name: str, documentation: str, label_names: tuple[str, ...]
    ) -> tuple[object, tuple[str, ...]]:
        counter = self._Counter(
            name=name,
            documentation=documentation,
            namespace=self._namespace,
            labelnames=label_names,
            registry=self._registry,
        )
        self._counters[name] = (counter, label_names)
        return self._counters[name]
