"""
Process-wide key/value cache with per-entry TTL.

Providers depend only on the Cache protocol (read/write with ttl), so a
shared external store can replace MemoryCache without touching them.
"""

import logging
import threading
import time
from datetime import timedelta
from typing import Any, Callable, NamedTuple, Protocol

from cachetools import TLRUCache

logger = logging.getLogger(__name__)


class Cache(Protocol):
    """Minimal cache contract consumed by providers."""

    def read(self, key: str) -> Any | None: ...

    def write(self, key: str, value: Any, ttl: timedelta) -> None: ...


class _Entry(NamedTuple):
    value: Any
    ttl_seconds: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class MemoryCache:
    """
    In-memory TTL cache backed by cachetools.TLRUCache.
    
    Each entry expires after its own ttl. Access is serialised with a lock so
    one instance can be shared by threads in a worker pool.
    """
    
    def __init__(
        self,
        maxsize: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._store: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()
    
    def read(self, key: str) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
        return entry.value if entry is not None else None
    
    def write(self, key: str, value: Any, ttl: timedelta) -> None:
        seconds = ttl.total_seconds()
        if seconds <= 0:
            logger.debug(f"Ignoring cache write for {key} with non-positive ttl")
            return
        with self._lock:
            self._store[key] = _Entry(value, seconds)
    
    def delete(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)
    
    def clear(self) -> None:
        with self._lock:
            self._store.clear()
    
    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


_default_cache: MemoryCache | None = None


def get_cache() -> MemoryCache:
    """Return the process-wide default cache, creating it on first use."""
    global _default_cache
    if _default_cache is None:
        _default_cache = MemoryCache()
    return _default_cache
