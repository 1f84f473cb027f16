"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Ordered and parallel combinators over cached producers.

A data source that can be reached several ways (live endpoint, mirror,
static defaults) is described as a list of ``FallbackStep`` rows. Each step
is looked up through the same ``ResilientCache`` so a successful source is
memoized under its own key.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .cache import Producer, ResilientCache
from .errors import FallbackExhaustedError

T = TypeVar("T")

logger = logging.getLogger("docscache.fallback")

_NO_DEFAULT = object()


class RejectedResultError(ValueError):
    """Step produced a value its ``accept`` predicate refused."""


@dataclass(frozen=True, slots=True)
class FallbackStep(Generic[T]):
    """
    One source in a fallback chain.

    Attributes:
        name: Label used in logs and results.
        key: Cache key for this source's request.
        producer: Zero-argument coroutine function fetching the data.
        accept: Optional predicate; a refused value counts as a failure and
            is not cached (e.g. empty search results).
        ttl_s: Optional TTL override for this source.
    """

    name: str
    key: str
    producer: Producer[T]
    accept: Callable[[T], bool] | None = None
    ttl_s: float | None = None


@dataclass(slots=True)
class FallbackResult(Generic[T]):
    """Outcome of a chain: the value, which source produced it, and prior failures."""

    value: T
    source: str
    errors: list[tuple[str, BaseException]] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.errors)


@dataclass(slots=True)
class SourceResults(Generic[T]):
    """Per-source outcome of ``collect_sources``, in step order."""

    values: list[tuple[str, T]] = field(default_factory=list)
    errors: list[tuple[str, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.values)


async def _run_step(cache: ResilientCache[Any], step: FallbackStep[T]) -> T:
    if step.accept is None:
        return await cache.get_or_compute(step.key, step.producer, ttl_s=step.ttl_s)

    accept = step.accept

    async def _checked() -> T:
        value = await step.producer()
        if not accept(value):
            raise RejectedResultError(f"Source '{step.name}' returned no usable data")
        return value

    return await cache.get_or_compute(step.key, _checked, ttl_s=step.ttl_s)


class FallbackChain(Generic[T]):
    """
    Evaluate steps in order, returning the first accepted success.

    Args:
        cache: Cache shared by every step.
        steps: Sources in priority order.
        default: Value returned when every step fails; when omitted the chain
            raises ``FallbackExhaustedError``.
    """

    def __init__(
        self,
        cache: ResilientCache[Any],
        steps: Sequence[FallbackStep[T]],
        *,
        default: Any = _NO_DEFAULT,
    ) -> None:
        if not steps:
            raise ValueError("FallbackChain requires at least one step")
        self._cache = cache
        self._steps = list(steps)
        self._default = default

    @property
    def steps(self) -> list[FallbackStep[T]]:
        return list(self._steps)

    async def run(self) -> FallbackResult[T]:
        errors: list[tuple[str, BaseException]] = []
        for step in self._steps:
            try:
                value = await _run_step(self._cache, step)
            except Exception as error:  # noqa: BLE001
                logger.warning("Fallback step '%s' failed: %s", step.name, error)
                errors.append((step.name, error))
                continue
            return FallbackResult(value=value, source=step.name, errors=errors)

        if self._default is not _NO_DEFAULT:
            logger.warning("All %d fallback steps failed, using default", len(errors))
            return FallbackResult(value=self._default, source="default", errors=errors)
        raise FallbackExhaustedError(errors)


async def collect_sources(
    cache: ResilientCache[Any],
    steps: Sequence[FallbackStep[T]],
) -> SourceResults[T]:
    """Run every step concurrently and keep both successes and failures."""
    outcomes = await asyncio.gather(
        *(_run_step(cache, step) for step in steps),
        return_exceptions=True,
    )
    results: SourceResults[T] = SourceResults()
    for step, outcome in zip(steps, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Source '%s' failed: %s", step.name, outcome)
            results.errors.append((step.name, outcome))
        else:
            results.values.append((step.name, outcome))
    return results
