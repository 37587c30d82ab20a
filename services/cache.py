"""
services/cache.py

Responsibility: A per-run async memo that runs each key's loader at most once
even under concurrent first access, and never caches failures.
Does NOT: expire entries or persist anything; an instance lives for one run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class RunCache(Generic[K, V]):
    """
    Memoize-on-first-success cache keyed by exact key match.

    Each key gets its own asyncio.Lock around the check-then-populate
    sequence, so concurrent callers for the same key wait for one loader
    instead of racing duplicate network calls.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._values: dict[K, V] = {}
        self._locks: dict[K, asyncio.Lock] = {}
        self.loads = 0

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        """
        Returns the cached value for `key`, calling `loader` on first use.

        Args:
            key: Cache key.
            loader: Zero-argument coroutine factory producing the value.

        Returns:
            The cached or freshly loaded value.

        Raises:
            Whatever `loader` raises; nothing is cached in that case.
        """
        if key in self._values:
            return self._values[key]

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if key in self._values:
                return self._values[key]
            self.loads += 1
            value = await loader()
            self._values[key] = value
            logger.debug("%s cache: stored %s -> %s", self._name, key, value)
            return value
