"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .contracts import CachePolicy, NegativeCachePolicy, RetryPolicy, SweepPolicy


def _optional_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    return float(raw)


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """Explicit settings used to build a ``ResilientCache``."""

    default_ttl_s: float = 1800.0
    max_entries: int = 1000
    max_memory_bytes: int = 50 * 1024 * 1024
    eviction_target_ratio: float = 0.8

    max_retries: int = 3
    backoff_base_s: float = 1.0
    backoff_multiplier: float = 2.0
    backoff_max_s: float = 30.0
    backoff_jitter_s: float = 0.0

    negative_ttl_s: float | None = None
    sweep_interval_s: float = 60.0

    @staticmethod
    def from_env() -> "CacheSettings":
        """Load settings from environment variables."""
        return CacheSettings(
            default_ttl_s=float(os.getenv("DOCSCACHE_TTL_S", "1800")),
            max_entries=int(os.getenv("DOCSCACHE_MAX_ENTRIES", "1000")),
            max_memory_bytes=int(
                os.getenv("DOCSCACHE_MAX_MEMORY_BYTES", str(50 * 1024 * 1024))
            ),
            eviction_target_ratio=float(
                os.getenv("DOCSCACHE_EVICTION_TARGET_RATIO", "0.8")
            ),
            max_retries=int(os.getenv("DOCSCACHE_MAX_RETRIES", "3")),
            backoff_base_s=float(os.getenv("DOCSCACHE_BACKOFF_BASE_S", "1.0")),
            backoff_multiplier=float(os.getenv("DOCSCACHE_BACKOFF_MULTIPLIER", "2.0")),
            backoff_max_s=float(os.getenv("DOCSCACHE_BACKOFF_MAX_S", "30")),
            backoff_jitter_s=float(os.getenv("DOCSCACHE_BACKOFF_JITTER_S", "0")),
            negative_ttl_s=_optional_float(os.getenv("DOCSCACHE_NEGATIVE_TTL_S")),
            sweep_interval_s=float(os.getenv("DOCSCACHE_SWEEP_INTERVAL_S", "60")),
        )

    def cache_policy(self) -> CachePolicy:
        return CachePolicy(
            default_ttl_s=self.default_ttl_s,
            max_entries=self.max_entries,
            max_memory_bytes=self.max_memory_bytes,
            eviction_target_ratio=self.eviction_target_ratio,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            backoff_base_s=self.backoff_base_s,
            backoff_multiplier=self.backoff_multiplier,
            backoff_max_s=self.backoff_max_s,
            backoff_jitter_s=self.backoff_jitter_s,
        )

    def negative_policy(self) -> NegativeCachePolicy:
        return NegativeCachePolicy(ttl_s=self.negative_ttl_s)

    def sweep_policy(self) -> SweepPolicy:
        return SweepPolicy(interval_s=self.sweep_interval_s)
