"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed policies for cache admission, retry and expiry.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry semantics for one producer invocation."""

    max_retries: int = 3
    backoff_base_s: float = 1.0
    backoff_multiplier: float = 2.0
    backoff_max_s: float = 30.0
    backoff_jitter_s: float = 0.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.backoff_base_s < 0 or self.backoff_jitter_s < 0:
            raise ValueError("backoff durations must be >= 0")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """Staleness and capacity bounds."""

    default_ttl_s: float = 1800.0
    max_entries: int = 1000
    max_memory_bytes: int = 50 * 1024 * 1024
    eviction_target_ratio: float = 0.8

    def __post_init__(self) -> None:
        if self.default_ttl_s <= 0:
            raise ValueError("default_ttl_s must be > 0")
        if self.max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        if self.max_memory_bytes <= 0:
            raise ValueError("max_memory_bytes must be > 0")
        if not 0.0 < self.eviction_target_ratio <= 1.0:
            raise ValueError("eviction_target_ratio must be in (0, 1]")


@dataclass(frozen=True, slots=True)
class NegativeCachePolicy:
    """Memoize terminal failures for a short TTL. Disabled when ``ttl_s`` is None."""

    ttl_s: float | None = None

    @property
    def enabled(self) -> bool:
        return self.ttl_s is not None and self.ttl_s > 0


@dataclass(frozen=True, slots=True)
class SweepPolicy:
    """Periodic expiry sweep. Disabled when ``interval_s`` is 0."""

    interval_s: float = 60.0

    @property
    def enabled(self) -> bool:
        return self.interval_s > 0
