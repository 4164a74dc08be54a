"""In-memory TTL cache owned by a registry client instance."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    fetched_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.fetched_at < self.ttl


class TTLCache:
    """Key/value cache with per-entry TTLs and an injectable clock.

    Examples
    --------
    >>> now = [0.0]
    >>> cache = TTLCache(clock=lambda: now[0])
    >>> cache.set("registry:https://x", {"aspects": {}}, ttl=300)
    >>> cache.get("registry:https://x")
    {'aspects': {}}
    >>> now[0] = 301
    >>> cache.get("registry:https://x") is None
    True
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, data: Any, ttl: float) -> None:
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock(), ttl=ttl)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
