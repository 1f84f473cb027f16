"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

TTL-bounded, deduplicating fetch-and-cache layer.

``ResilientCache.get_or_compute`` memoizes the result of an async producer:

- a live entry is returned without suspending;
- concurrent misses for one key share a single producer flight;
- transient producer failures are retried with exponential backoff,
  terminal ones surface immediately and unchanged;
- every insert runs a TTL purge followed by memory/count eviction.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, TypeVar

from .. import metrics as m
from ..coalescing import RequestCoalescer
from ..contracts import CachePolicy, NegativeCachePolicy, RetryPolicy, SweepPolicy
from ..errors import CacheMissError, CapacityError
from ..metrics import CacheMetrics, NoOpCacheMetrics
from ..retry import SleepFn, call_with_retry
from ..utils import approximate_size
from .base import CacheEntry, CacheStats
from .inmemory import InMemoryCacheStore

T = TypeVar("T")

logger = logging.getLogger("docscache.cache")

Producer = Callable[[], Awaitable[T]]


class ResilientCache(Generic[T]):
    """
    In-memory get-or-compute cache for remote data sources.

    Usage::

        cache = ResilientCache(policy=CachePolicy(default_ttl_s=600))
        async with cache:
            modules = await cache.get_or_compute(
                "contrib:modules:views", lambda: client.search_modules("views")
            )

    Args:
        policy: TTL and capacity bounds.
        retry_policy: Retry budget and backoff shape.
        negative_policy: Whether terminal failures are memoized.
        sweep_policy: Interval of the background expiry sweep.
        metrics: Counter sink, defaults to a no-op.
        clock: Monotonic seconds source used for staleness.
        sleep: Awaitable used for backoff delays.
        sizer: Approximate byte size of a stored value.
    """

    def __init__(
        self,
        *,
        policy: CachePolicy | None = None,
        retry_policy: RetryPolicy | None = None,
        negative_policy: NegativeCachePolicy | None = None,
        sweep_policy: SweepPolicy | None = None,
        metrics: CacheMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
        sizer: Callable[[Any], int] = approximate_size,
    ) -> None:
        self.policy = policy or CachePolicy()
        self.retry_policy = retry_policy or RetryPolicy()
        self.negative_policy = negative_policy or NegativeCachePolicy()
        self.sweep_policy = sweep_policy or SweepPolicy()
        self._metrics = metrics or NoOpCacheMetrics()
        self._clock = clock
        self._sleep = sleep
        self._sizer = sizer

        self._store = InMemoryCacheStore(self.policy, on_remove=self._on_remove)
        self._coalescer = RequestCoalescer()
        # Keys whose running flight must not be memoized (cleared/invalidated).
        self._discard: set[str] = set()
        self._sweeper: asyncio.Task[None] | None = None

        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._evictions = 0
        self._expirations = 0
        self._fetches = 0
        self._fetch_errors = 0
        self._fetch_time_s = 0.0

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        row = self._store.peek(key)
        return row is not None and row.is_live(self._clock())

    async def __aenter__(self) -> "ResilientCache[T]":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # Core contract
    # ------------------------------------------------------------------

    async def get_or_compute(
        self,
        key: str,
        producer: Producer[T],
        *,
        ttl_s: float | None = None,
        retries: int | None = None,
        negative_ttl_s: float | None = None,
    ) -> T:
        """
        Return the cached value for ``key`` or compute it with ``producer``.

        Args:
            key: Stable identifier for the logical request.
            producer: Idempotent zero-argument coroutine function.
            ttl_s: Entry lifetime; defaults to ``policy.default_ttl_s``.
            retries: Retry budget for transient failures; defaults to
                ``retry_policy.max_retries``.
            negative_ttl_s: Memoize a terminal failure for this long;
                defaults to ``negative_policy.ttl_s``.

        Raises:
            CacheMissError: Transient failures exhausted the retry budget.
            Exception: Any terminal producer failure, unchanged.
        """
        if ttl_s is not None and ttl_s <= 0:
            raise ValueError("ttl_s must be > 0")

        entry = self._lookup(key)
        if entry is not None:
            if entry.error is not None:
                raise entry.error.with_traceback(entry.traceback)
            return entry.value

        self._misses += 1
        self._metrics.incr(m.MISSES)
        if key in self._coalescer:
            self._coalesced += 1
            self._metrics.incr(m.COALESCED)
            logger.debug("Joining in-flight fetch for '%s'", key)

        return await self._coalescer.run(
            key,
            lambda: self._fetch(
                key,
                producer,
                ttl_s=ttl_s,
                retries=retries,
                negative_ttl_s=negative_ttl_s,
            ),
        )

    def invalidate(self, key: str) -> None:
        """Drop ``key`` regardless of TTL; a running fetch for it is not stored."""
        self._store.remove(key)
        if key in self._coalescer:
            self._discard.add(key)

    def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching shell-style ``pattern``; return count."""
        removed = self._store.remove_matching(pattern)
        if removed:
            logger.debug("Invalidated %d entries matching '%s'", removed, pattern)
        return removed

    def clear(self) -> None:
        """Remove all entries; running fetches complete but are not stored."""
        self._store.clear()
        self._discard.update(self._coalescer.keys())

    def purge_expired(self) -> int:
        return self._store.purge_expired(now_s=self._clock())

    def stats(self) -> CacheStats:
        """Snapshot counters and bounds; expired rows are purged first."""
        self._store.purge_expired(now_s=self._clock())
        lookups = self._hits + self._misses
        completed = self._fetches - len(self._coalescer)
        return CacheStats(
            size=len(self._store),
            approx_memory_bytes=self._store.memory_bytes,
            hit_ratio=(self._hits / lookups) if lookups else 0.0,
            top_hot_keys=self._store.hot_keys(5),
            hits=self._hits,
            misses=self._misses,
            coalesced=self._coalesced,
            evictions=self._evictions,
            expirations=self._expirations,
            fetch_errors=self._fetch_errors,
            fetches=self._fetches,
            avg_fetch_ms=(self._fetch_time_s * 1000.0 / completed) if completed > 0 else 0.0,
            in_flight=len(self._coalescer),
            max_entries=self.policy.max_entries,
            max_memory_bytes=self.policy.max_memory_bytes,
        )

    async def warmup(self, producers: Mapping[str, Producer[T]], **options: Any) -> int:
        """Populate ``producers`` concurrently; return how many succeeded."""
        keys = list(producers)
        results = await asyncio.gather(
            *(self.get_or_compute(key, producers[key], **options) for key in keys),
            return_exceptions=True,
        )
        loaded = 0
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.warning("Warmup failed for '%s': %s", key, result)
            else:
                loaded += 1
        logger.info("Cache warmup loaded %d/%d keys", loaded, len(keys))
        return loaded

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Launch the background expiry sweep if enabled and not running."""
        if not self.sweep_policy.enabled:
            return
        if self._sweeper is not None and not self._sweeper.done():
            return
        self._sweeper = asyncio.create_task(self._sweep_loop())
        logger.info("Cache sweeper started (every %.1fs)", self.sweep_policy.interval_s)

    async def shutdown(self) -> None:
        """Stop the sweeper and drop all entries."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
            logger.info("Cache sweeper stopped")
        self.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_policy.interval_s)
            purged = self.purge_expired()
            if purged:
                logger.debug("Sweeper purged %d expired entries", purged)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key, now_s=self._clock())
        if entry is None:
            return None
        entry.hit_count += 1
        self._hits += 1
        self._metrics.incr(m.HITS)
        return entry

    async def _fetch(
        self,
        key: str,
        producer: Producer[T],
        *,
        ttl_s: float | None,
        retries: int | None,
        negative_ttl_s: float | None,
    ) -> T:
        self._fetches += 1
        started = self._clock()
        try:
            value = await call_with_retry(
                producer,
                key=key,
                policy=self.retry_policy,
                retries=retries,
                sleep=self._sleep,
                on_retry=self._on_retry,
            )
        except Exception as error:
            self._fetch_errors += 1
            kind = "exhausted" if isinstance(error, CacheMissError) else "terminal"
            self._metrics.incr(m.FAILURES, tags={"kind": kind})
            negative_ttl = (
                negative_ttl_s if negative_ttl_s is not None else self.negative_policy.ttl_s
            )
            if negative_ttl is not None and negative_ttl > 0 and self._may_store(key):
                self._admit(key, None, ttl_s=negative_ttl, error=error)
            raise
        else:
            if self._may_store(key):
                self._admit(key, value, ttl_s=ttl_s or self.policy.default_ttl_s)
            return value
        finally:
            self._fetch_time_s += self._clock() - started
            # The mark belongs to this flight only, even when it was cancelled.
            self._discard.discard(key)

    def _may_store(self, key: str) -> bool:
        if key in self._discard:
            logger.debug("Skipping store for '%s' (invalidated during fetch)", key)
            return False
        return True

    def _admit(
        self,
        key: str,
        value: Any,
        *,
        ttl_s: float,
        error: BaseException | None = None,
    ) -> None:
        size = self._sizer(value if error is None else repr(error))
        try:
            self._store.put(
                key,
                value,
                now_s=self._clock(),
                ttl_s=ttl_s,
                size_bytes=size,
                error=error,
            )
        except CapacityError as exc:
            logger.debug("Not caching '%s': %s", key, exc)

    def _on_retry(self, attempt: int, error: BaseException, delay_s: float) -> None:
        _ = attempt
        _ = error
        _ = delay_s
        self._metrics.incr(m.RETRIES)

    def _on_remove(self, entry: CacheEntry, reason: str) -> None:
        if reason == "expired":
            self._expirations += 1
        elif reason in ("memory", "count"):
            self._evictions += 1
        else:
            return
        self._metrics.incr(m.EVICTIONS, tags={"reason": reason})
