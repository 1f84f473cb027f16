"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Resilient TTL cache with request coalescing and fallback chains.
"""

from .cache import CacheEntry, CacheStats, InMemoryCacheStore, ResilientCache
from .coalescing import RequestCoalescer
from .contracts import CachePolicy, NegativeCachePolicy, RetryPolicy, SweepPolicy
from .errors import (
    CacheError,
    CacheMissError,
    CapacityError,
    FallbackExhaustedError,
    FetchError,
    RequestRejectedError,
    TransientFetchError,
)
from .factory import create_cache, create_cache_from_env
from .fallback import (
    FallbackChain,
    FallbackResult,
    FallbackStep,
    RejectedResultError,
    SourceResults,
    collect_sources,
)
from .remote import JsonHttpFetcher
from .metrics import (
    CacheMetrics,
    InMemoryCacheMetrics,
    NoOpCacheMetrics,
    PrometheusCacheMetrics,
)
from .recommendations import performance_recommendations
from .retry import call_with_retry, error_for_status, is_retryable
from .settings import CacheSettings
from .utils import approximate_size, backoff_delay, stable_cache_key

__all__ = [
    "CacheEntry",
    "CacheStats",
    "InMemoryCacheStore",
    "ResilientCache",
    "RequestCoalescer",
    "CachePolicy",
    "NegativeCachePolicy",
    "RetryPolicy",
    "SweepPolicy",
    "CacheError",
    "CacheMissError",
    "CapacityError",
    "FallbackExhaustedError",
    "FetchError",
    "RequestRejectedError",
    "TransientFetchError",
    "create_cache",
    "create_cache_from_env",
    "FallbackChain",
    "FallbackResult",
    "FallbackStep",
    "RejectedResultError",
    "SourceResults",
    "collect_sources",
    "JsonHttpFetcher",
    "CacheMetrics",
    "InMemoryCacheMetrics",
    "NoOpCacheMetrics",
    "PrometheusCacheMetrics",
    "performance_recommendations",
    "call_with_retry",
    "error_for_status",
    "is_retryable",
    "CacheSettings",
    "approximate_size",
    "backoff_delay",
    "stable_cache_key",
]
