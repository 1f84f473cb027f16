"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheEntry, CacheStats
from .inmemory import InMemoryCacheStore
from .resilient import Producer, ResilientCache

__all__ = [
    "CacheEntry",
    "CacheStats",
    "InMemoryCacheStore",
    "Producer",
    "ResilientCache",
]
