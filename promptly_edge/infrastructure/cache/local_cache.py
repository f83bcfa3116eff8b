"""Process-local cache tier.

One instance per process, created by the application lifespan and shared
by every in-flight request. Entries are immutable (value, expires_at)
tuples replaced wholesale under a lock, so a reader never sees a partially
written entry. No size bound: the process is recycled periodically.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any, NamedTuple


class CacheEntry(NamedTuple):
    value: Any
    expires_at: float


class LocalCache:
    """In-memory key/value store with per-entry expiry (lazy eviction on read)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the value for key, or None if absent or expired (expired entries are evicted)."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds, replacing any previous entry."""
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        entry = CacheEntry(value, self._clock() + ttl_seconds)
        with self._lock:
            self._entries[key] = entry

    def replace(self, key: str, transform: Callable[[Any], Any]) -> bool:
        """Swap the live entry for transform(value), keeping its expiry.

        Returns False (and stores nothing) when key is absent or expired.
        The whole read-transform-write runs under the lock.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.expires_at <= now:
                self._entries.pop(key, None)
                return False
            self._entries[key] = CacheEntry(transform(entry.value), entry.expires_at)
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry (equivalent to a process restart)."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
