"""Request-coalescing cache for track ranges.

One instance is built per process. Concurrent requests for the same range
share a single future; entries expire ``ttl_seconds`` after creation and are
replaced, never mutated.
"""

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Hashable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: Hashable
    future: Future
    created_at: float

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.created_at < ttl


class TrackSourceCache:
    """TTL-bounded map from range key to a shared in-flight or settled fetch.

    Args:
        ttl_seconds: Lifetime of an entry from its creation.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self.ttl = ttl_seconds
        self.clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: Hashable, factory: Callable[[], object]) -> Future:
        """Return the shared future for ``key``, starting ``factory`` if needed.

        The caller that registers a new entry runs ``factory`` in its own
        thread; everyone else attaches to the same future. Errors are set on
        the future and reach every waiter; nothing is retried.
        """
        with self._lock:
            now = self.clock()
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(now, self.ttl):
                logger.debug("cache hit for %s", key)
                return entry.future
            self._drop_stale(now)
            future: Future = Future()
            self._entries[key] = CacheEntry(key=key, future=future, created_at=now)

        logger.debug("cache miss for %s, fetching", key)
        future.set_running_or_notify_cancel()
        try:
            future.set_result(factory())
        except Exception as e:
            logger.warning("fetch for %s failed: %s", key, e)
            future.set_exception(e)
        return future

    def get(self, key: Hashable, factory: Callable[[], object]):
        """Blocking form of ``get_or_create``; re-raises the shared error."""
        return self.get_or_create(key, factory).result()

    def _drop_stale(self, now: float) -> None:
        for k in [k for k, e in self._entries.items() if not e.is_fresh(now, self.ttl)]:
            del self._entries[k]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
