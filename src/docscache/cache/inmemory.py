"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable
from typing import Any

from ..contracts import CachePolicy
from ..errors import CapacityError
from .base import CacheEntry

logger = logging.getLogger("docscache.cache")

EvictionHook = Callable[[CacheEntry, str], None]


class InMemoryCacheStore:
    """
    Process-local entry map with TTL purge and bounded memory/count.

    Eviction runs in two stages: expired entries are purged first, then the
    lowest ranked entries (fewest hits, oldest) are dropped until the memory
    and count ceilings hold.
    """

    def __init__(
        self,
        policy: CachePolicy | None = None,
        *,
        on_remove: EvictionHook | None = None,
    ) -> None:
        self.policy = policy or CachePolicy()
        self._rows: dict[str, CacheEntry] = {}
        self._memory_bytes = 0
        self._sequence = 0
        self._on_remove = on_remove

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    @property
    def memory_bytes(self) -> int:
        return self._memory_bytes

    def keys(self) -> list[str]:
        return list(self._rows.keys())

    def peek(self, key: str) -> CacheEntry | None:
        """Return the raw row for ``key`` without expiry checks."""
        return self._rows.get(key)

    def get(self, key: str, *, now_s: float) -> CacheEntry | None:
        """Return the live entry for ``key``; expired rows are purged."""
        row = self._rows.get(key)
        if row is None:
            return None
        if not row.is_live(now_s):
            self._drop(key, reason="expired")
            return None
        return row

    def put(
        self,
        key: str,
        value: Any,
        *,
        now_s: float,
        ttl_s: float,
        size_bytes: int,
        error: BaseException | None = None,
    ) -> CacheEntry:
        """Store ``value`` under ``key`` and enforce bounds."""
        if ttl_s <= 0:
            raise ValueError("ttl_s must be > 0")
        if size_bytes > self.policy.max_memory_bytes:
            raise CapacityError(
                f"Entry '{key}' is {size_bytes} bytes, above the "
                f"{self.policy.max_memory_bytes} byte ceiling"
            )

        previous = self._rows.pop(key, None)
        if previous is not None:
            self._memory_bytes -= previous.size_bytes

        self._sequence += 1
        entry = CacheEntry(
            key=key,
            value=value,
            stored_at_s=now_s,
            ttl_s=ttl_s,
            size_bytes=size_bytes,
            hit_count=1,
            sequence=self._sequence,
            error=error,
            traceback=error.__traceback__ if error is not None else None,
        )
        self._rows[key] = entry
        self._memory_bytes += size_bytes
        self.evict(now_s=now_s)
        return entry

    def remove(self, key: str) -> bool:
        if key not in self._rows:
            return False
        self._drop(key, reason="invalidated")
        return True

    def remove_matching(self, pattern: str) -> int:
        """Remove keys matching a shell-style ``pattern``."""
        matched = [key for key in self._rows if fnmatch.fnmatchcase(key, pattern)]
        for key in matched:
            self._drop(key, reason="invalidated")
        return len(matched)

    def clear(self) -> None:
        self._rows.clear()
        self._memory_bytes = 0

    def purge_expired(self, *, now_s: float) -> int:
        expired = [key for key, row in self._rows.items() if not row.is_live(now_s)]
        for key in expired:
            self._drop(key, reason="expired")
        return len(expired)

    def evict(self, *, now_s: float) -> int:
        """Run the full eviction pass; return the number of rows removed."""
        removed = self.purge_expired(now_s=now_s)

        over_memory = self._memory_bytes > self.policy.max_memory_bytes
        over_count = len(self._rows) > self.policy.max_entries
        if not over_memory and not over_count:
            return removed

        victims = sorted(self._rows.values(), key=CacheEntry.eviction_rank)
        position = 0

        if over_memory:
            target = int(self.policy.max_memory_bytes * self.policy.eviction_target_ratio)
            while self._memory_bytes > target and position < len(victims):
                self._drop(victims[position].key, reason="memory")
                position += 1
                removed += 1

        while len(self._rows) > self.policy.max_entries and position < len(victims):
            self._drop(victims[position].key, reason="count")
            position += 1
            removed += 1

        return removed

    def hot_keys(self, limit: int = 5) -> list[tuple[str, int]]:
        rows = sorted(
            self._rows.values(),
            key=lambda row: (-row.hit_count, row.key),
        )
        return [(row.key, row.hit_count) for row in rows[:limit]]

    def _drop(self, key: str, *, reason: str) -> None:
        row = self._rows.pop(key)
        self._memory_bytes -= row.size_bytes
        logger.debug("Removed cache entry '%s' (%s)", key, reason)
        if self._on_remove is not None:
            self._on_remove(row, reason)
