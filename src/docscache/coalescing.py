"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: coalescing.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


class RequestCoalescer:
    """
    Deduplicate identical in-flight requests.

    Registry mutations happen between suspension points, so no lock is
    needed on a single event loop.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def keys(self) -> list[str]:
        return list(self._tasks.keys())

    def start(self, key: str, factory: Callable[[], Awaitable[T]]) -> asyncio.Task[T]:
        """Start and register a new flight for ``key``."""

        async def _runner() -> T:
            try:
                return await factory()
            finally:
                if self._tasks.get(key) is task:
                    del self._tasks[key]

        task: asyncio.Task[T] = asyncio.create_task(_runner())
        self._tasks[key] = task
        return task

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        existing = self._tasks.get(key)
        task = existing if existing is not None else self.start(key, factory)
        # Abandoning callers must not cancel the shared flight.
        return await asyncio.shield(task)
