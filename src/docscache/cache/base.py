"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType
from typing import Any


@dataclass(slots=True)
class CacheEntry:
    """One cached producer result with staleness and eviction metadata."""

    key: str
    value: Any
    stored_at_s: float
    ttl_s: float
    size_bytes: int
    hit_count: int = 1
    sequence: int = 0
    error: BaseException | None = None
    traceback: TracebackType | None = None

    @property
    def is_negative(self) -> bool:
        """Entry memoizes a terminal failure rather than a value."""
        return self.error is not None

    def is_live(self, now_s: float) -> bool:
        return now_s - self.stored_at_s < self.ttl_s

    def eviction_rank(self) -> tuple[int, float, int]:
        """Lowest rank is evicted first: fewest hits, then oldest."""
        return (self.hit_count, self.stored_at_s, self.sequence)


@dataclass(frozen=True, slots=True)
class CacheStats:
    """
    Read-only snapshot of cache state and counters.

    Attributes:
        size: Number of stored entries.
        approx_memory_bytes: Sum of approximate entry sizes.
        hit_ratio: ``hits / (hits + misses)`` since creation, 0.0 when idle.
        top_hot_keys: Up to five ``(key, hit_count)`` pairs, hottest first.
        hits: Lookups served from a live entry.
        misses: Lookups that started or joined a fetch.
        coalesced: Misses that joined an in-flight fetch.
        evictions: Entries removed for memory or count pressure.
        expirations: Entries purged because their TTL elapsed.
        fetch_errors: Fetches that ended in a terminal failure.
        fetches: Producer flights started.
        avg_fetch_ms: Mean wall time per completed flight.
        in_flight: Flights currently running.
        max_entries: Configured entry ceiling.
        max_memory_bytes: Configured memory ceiling.
    """

    size: int = 0
    approx_memory_bytes: int = 0
    hit_ratio: float = 0.0
    top_hot_keys: list[tuple[str, int]] = field(default_factory=list)
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    evictions: int = 0
    expirations: int = 0
    fetch_errors: int = 0
    fetches: int = 0
    avg_fetch_ms: float = 0.0
    in_flight: int = 0
    max_entries: int = 0
    max_memory_bytes: int = 0

    @property
    def memory_utilization(self) -> float:
        if self.max_memory_bytes <= 0:
            return 0.0
        return self.approx_memory_bytes / self.max_memory_bytes

    @property
    def error_rate(self) -> float:
        if self.fetches <= 0:
            return 0.0
        return self.fetch_errors / self.fetches
