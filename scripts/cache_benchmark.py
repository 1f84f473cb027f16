#!/usr/bin/env python3
"""
Cache benchmark utility for hit ratio / eviction characterization.

Usage examples:
  PYTHONPATH=src python scripts/cache_benchmark.py
  PYTHONPATH=src python scripts/cache_benchmark.py --requests 2000 --keys 500 --max-entries 100
"""

from __future__ import annotations

import argparse
import asyncio
import random
import time

from docscache import (
    CachePolicy,
    ResilientCache,
    SweepPolicy,
    performance_recommendations,
)


async def run_benchmark(
    *,
    num_requests: int,
    num_keys: int,
    concurrency: int,
    latency_ms: float,
    max_entries: int,
    payload_bytes: int,
    seed: int,
) -> None:
    rng = random.Random(seed)
    cache: ResilientCache[str] = ResilientCache(
        policy=CachePolicy(default_ttl_s=300.0, max_entries=max_entries),
        sweep_policy=SweepPolicy(interval_s=0),
    )
    producer_calls = 0
    semaphore = asyncio.Semaphore(concurrency)

    def make_producer(key: str):
        async def _produce() -> str:
            nonlocal producer_calls
            producer_calls += 1
            await asyncio.sleep(latency_ms / 1000.0)
            return key.ljust(payload_bytes, ".")

        return _produce

    async def one_request() -> None:
        # Pareto skew so a few keys stay hot.
        key = f"bench:{min(int(rng.paretovariate(1.2)), num_keys)}"
        async with semaphore:
            await cache.get_or_compute(key, make_producer(key))

    started = time.time()
    await asyncio.gather(*(one_request() for _ in range(num_requests)))
    elapsed = time.time() - started
    stats = cache.stats()

    print(f"requests={num_requests}")
    print(f"keys={num_keys}")
    print(f"concurrency={concurrency}")
    print(f"elapsed_s={elapsed:.3f}")
    print(f"producer_calls={producer_calls}")
    print(f"hit_ratio={stats.hit_ratio:.3f}")
    print(f"coalesced={stats.coalesced}")
    print(f"evictions={stats.evictions}")
    print(f"size={stats.size}")
    print(f"approx_memory_bytes={stats.approx_memory_bytes}")
    print(f"top_hot_keys={stats.top_hot_keys}")
    for hint in performance_recommendations(stats):
        print(f"hint: {hint}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cache benchmark utility")
    parser.add_argument("--requests", type=int, default=1000)
    parser.add_argument("--keys", type=int, default=200)
    parser.add_argument("--concurrency", type=int, default=32)
    parser.add_argument("--latency-ms", type=float, default=5.0)
    parser.add_argument("--max-entries", type=int, default=1000)
    parser.add_argument("--payload-bytes", type=int, default=512)
    parser.add_argument("--seed", type=int, default=7)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(
        run_benchmark(
            num_requests=args.requests,
            num_keys=args.keys,
            concurrency=args.concurrency,
            latency_ms=args.latency_ms,
            max_entries=args.max_entries,
            payload_bytes=args.payload_bytes,
            seed=args.seed,
        )
    )


if __name__ == "__main__":
    main()
