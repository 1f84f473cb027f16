"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for building caches from settings or environment variables.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .cache import ResilientCache
from .metrics import CacheMetrics
from .retry import SleepFn
from .settings import CacheSettings


def create_cache(
    settings: CacheSettings | None = None,
    *,
    metrics: CacheMetrics | None = None,
    clock: Callable[[], float] | None = None,
    sleep: SleepFn | None = None,
) -> ResilientCache[Any]:
    """
    Build a ``ResilientCache`` from explicit settings.

    The returned instance is not started; call ``start()`` (or use it as an
    async context manager) to run the expiry sweeper.
    """
    cfg = settings or CacheSettings()
    options: dict[str, Any] = {}
    if clock is not None:
        options["clock"] = clock
    if sleep is not None:
        options["sleep"] = sleep
    return ResilientCache(
        policy=cfg.cache_policy(),
        retry_policy=cfg.retry_policy(),
        negative_policy=cfg.negative_policy(),
        sweep_policy=cfg.sweep_policy(),
        metrics=metrics,
        **options,
    )


def create_cache_from_env(*, metrics: CacheMetrics | None = None) -> ResilientCache[Any]:
    """Build a cache from `DOCSCACHE_*` environment variables."""
    return create_cache(CacheSettings.from_env(), metrics=metrics)
