"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: recommendations.py.
"""

from __future__ import annotations

from .cache import CacheStats

LOW_HIT_RATIO = 0.3
HIGH_MEMORY_UTILIZATION = 0.8
HIGH_ERROR_RATE = 0.2
SLOW_FETCH_MS = 2000.0
MIN_LOOKUPS = 20


def performance_recommendations(stats: CacheStats) -> list[str]:
    """Human-readable tuning hints derived from one stats snapshot."""
    hints: list[str] = []
    lookups = stats.hits + stats.misses

    if lookups >= MIN_LOOKUPS and stats.hit_ratio < LOW_HIT_RATIO:
        hints.append(
            f"Hit ratio is {stats.hit_ratio:.0%}; consider longer TTLs or "
            "canonicalizing cache keys so equal queries share entries."
        )
    if stats.memory_utilization >= HIGH_MEMORY_UTILIZATION:
        hints.append(
            f"Cache memory is at {stats.memory_utilization:.0%} of the "
            f"{stats.max_memory_bytes} byte ceiling; raise the ceiling or "
            "shorten TTLs for large payloads."
        )
    if stats.size >= stats.max_entries > 0:
        hints.append(
            f"Cache holds {stats.size}/{stats.max_entries} entries; raise "
            "max_entries if evictions are frequent."
        )
    if stats.fetches > 0 and stats.evictions > stats.fetches // 2:
        hints.append(
            f"{stats.evictions} evictions over {stats.fetches} fetches; the "
            "working set does not fit the configured bounds."
        )
    if stats.fetches >= 5 and stats.error_rate >= HIGH_ERROR_RATE:
        hints.append(
            f"{stats.error_rate:.0%} of fetches failed; enable negative "
            "caching or add a fallback source."
        )
    if stats.avg_fetch_ms >= SLOW_FETCH_MS:
        hints.append(
            f"Average fetch takes {stats.avg_fetch_ms:.0f} ms; warm up hot "
            "keys at startup."
        )
    return hints
