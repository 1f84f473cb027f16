"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Small helpers shared by the cache and its producers.
"""

from __future__ import annotations

import hashlib
import json
import random
from collections.abc import Mapping
from typing import Any

# Keys longer than this are hashed so the key map stays bounded.
MAX_PLAIN_KEY_CHARS = 200


def backoff_delay(
    attempt: int,
    base_s: float,
    multiplier: float = 2.0,
    max_s: float | None = None,
    jitter_s: float = 0.0,
) -> float:
    """Exponential delay for zero-based ``attempt``: base, base*m, base*m^2..."""
    delay = base_s * (multiplier**attempt)
    if max_s is not None:
        delay = min(delay, max_s)
    if jitter_s > 0:
        delay += random.uniform(0.0, jitter_s)
    return max(0.0, delay)


def approximate_size(value: Any) -> int:
    """Rough byte size of ``value`` by serialize-and-measure."""
    if isinstance(value, (bytes, bytearray)):
        return len(value)
    if isinstance(value, str):
        return len(value.encode("utf-8"))
    try:
        encoded = json.dumps(value, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        encoded = repr(value)
    return len(encoded.encode("utf-8"))


def stable_cache_key(namespace: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Build a deterministic key for ``namespace`` plus request params.

    Short keys stay readable (``namespace:{json}``); long ones collapse to a
    sha256 digest so equal requests always map to the same bounded key.
    """
    normalized = json.dumps(
        dict(params or {}), ensure_ascii=True, sort_keys=True, default=str
    )
    plain = f"{namespace}:{normalized}"
    if len(plain) <= MAX_PLAIN_KEY_CHARS:
        return plain
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return f"{namespace}:sha256:{digest}"
