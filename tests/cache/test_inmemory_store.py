from __future__ import annotations

import pytest

from docscache import CachePolicy, CapacityError, InMemoryCacheStore


def test_get_purges_expired_rows():
    removed: list[tuple[str, str]] = []
    store = InMemoryCacheStore(
        CachePolicy(default_ttl_s=10.0),
        on_remove=lambda row, reason: removed.append((row.key, reason)),
    )
    store.put("k", "v", now_s=100.0, ttl_s=10.0, size_bytes=3)

    assert store.get("k", now_s=109.999) is not None
    assert store.get("k", now_s=110.0) is None
    assert removed == [("k", "expired")]
    assert store.memory_bytes == 0


def test_replacing_a_key_keeps_memory_accounting_exact():
    store = InMemoryCacheStore()
    store.put("k", "old", now_s=0.0, ttl_s=10.0, size_bytes=40)
    store.put("k", "new", now_s=1.0, ttl_s=10.0, size_bytes=15)

    assert len(store) == 1
    assert store.memory_bytes == 15
    assert store.peek("k").value == "new"
    assert store.peek("k").hit_count == 1


def test_memory_eviction_stops_at_target_ratio():
    store = InMemoryCacheStore(
        CachePolicy(max_memory_bytes=100, eviction_target_ratio=0.5)
    )
    for index in range(4):
        store.put(f"k{index}", index, now_s=float(index), ttl_s=60.0, size_bytes=30)

    # 120 bytes > 100 triggers eviction down to <= 50.
    assert store.memory_bytes <= 50
    assert store.keys() == ["k3"]


def test_ties_on_hit_count_evict_oldest_first():
    store = InMemoryCacheStore(CachePolicy(max_entries=2))
    store.put("a", 1, now_s=1.0, ttl_s=60.0, size_bytes=1)
    store.put("b", 2, now_s=2.0, ttl_s=60.0, size_bytes=1)
    store.peek("a").hit_count = 5
    store.put("c", 3, now_s=3.0, ttl_s=60.0, size_bytes=1)

    assert sorted(store.keys()) == ["a", "c"]


def test_expired_rows_are_purged_before_capacity_eviction():
    removed: list[str] = []
    store = InMemoryCacheStore(
        CachePolicy(max_entries=2),
        on_remove=lambda row, reason: removed.append(reason),
    )
    store.put("short", 1, now_s=0.0, ttl_s=1.0, size_bytes=1)
    store.put("long", 2, now_s=0.0, ttl_s=60.0, size_bytes=1)
    store.put("new", 3, now_s=5.0, ttl_s=60.0, size_bytes=1)

    assert sorted(store.keys()) == ["long", "new"]
    assert removed == ["expired"]


def test_entry_above_ceiling_raises_capacity_error():
    store = InMemoryCacheStore(CachePolicy(max_memory_bytes=10))
    with pytest.raises(CapacityError):
        store.put("huge", "x", now_s=0.0, ttl_s=1.0, size_bytes=11)
    assert len(store) == 0


def test_remove_and_remove_matching():
    store = InMemoryCacheStore()
    for key in ("docs:a", "docs:b", "contrib:a"):
        store.put(key, key, now_s=0.0, ttl_s=60.0, size_bytes=1)

    assert store.remove("docs:a") is True
    assert store.remove("docs:a") is False
    assert store.remove_matching("docs:*") == 1
    assert store.keys() == ["contrib:a"]


def test_hot_keys_sorted_by_hits():
    store = InMemoryCacheStore()
    store.put("a", 1, now_s=0.0, ttl_s=60.0, size_bytes=1)
    store.put("b", 1, now_s=0.0, ttl_s=60.0, size_bytes=1)
    store.peek("b").hit_count = 7

    assert store.hot_keys(1) == [("b", 7)]


def test_policy_validation():
    with pytest.raises(ValueError):
        CachePolicy(max_entries=0)
    with pytest.raises(ValueError):
        CachePolicy(eviction_target_ratio=1.5)
    with pytest.raises(ValueError):
        CachePolicy(default_ttl_s=0)
