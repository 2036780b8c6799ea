"""In-memory cache data sources with time-based expiry.

Expiry is lazy: stale entries are dropped when they are next touched (or by
an explicit ``purge_expired``), never by a background timer. All mutation of
the store happens under a single lock.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, List, Literal, Optional, Sequence, TypeVar

from ..models import PaginatedCollection
from ..utils import SystemTimeProvider, TimeProvider

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

EvictionPolicy = Literal["LAZY", "SWEEP_ON_WRITE"]


@dataclass(frozen=True)
class _Entry(Generic[V]):
    value: V
    inserted_at: int


class InMemoryCacheDataSource(Generic[K, V]):
    """Thread-safe key/value cache whose entries live for ``ttl_ms`` milliseconds.

    Args:
        key_of: extracts the key from a value on ``put``.
        ttl_ms: time-to-live of every entry, fixed for the lifetime of the cache.
        time_provider: clock used for insertion stamps and freshness checks.
        max_entries: optional bound; the oldest entry is dropped when exceeded.
        eviction: ``LAZY`` purges only what is read; ``SWEEP_ON_WRITE`` also
            purges every expired entry on each ``put``.
    """

    def __init__(
        self,
        key_of: Callable[[V], K],
        ttl_ms: int,
        time_provider: Optional[TimeProvider] = None,
        max_entries: Optional[int] = None,
        eviction: EvictionPolicy = "LAZY",
        name: Optional[str] = None,
    ) -> None:
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be >= 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.key_of = key_of
        self.ttl_ms = ttl_ms
        self.time_provider = time_provider or SystemTimeProvider()
        self.max_entries = max_entries
        self.eviction = eviction
        self.name = name or type(self).__name__
        self._store: "OrderedDict[K, _Entry[V]]" = OrderedDict()
        self._lock = threading.RLock()

    # ---- Freshness ----
    def _fresh(self, entry: _Entry[V], now: int) -> bool:
        return now - entry.inserted_at <= self.ttl_ms

    def is_valid(self, key: K) -> bool:
        """Report whether ``key`` holds a fresh entry, without mutating the store."""
        with self._lock:
            entry = self._store.get(key)
            return entry is not None and self._fresh(entry, self.time_provider.now())

    # ---- Readable ----
    def get(self, key: K) -> Optional[V]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                logger.debug("%s miss: %r", self.name, key)
                return None
            if not self._fresh(entry, self.time_provider.now()):
                del self._store[key]
                logger.debug("%s miss (expired, purged): %r", self.name, key)
                return None
            logger.debug("%s hit: %r", self.name, key)
            return entry.value

    def get_all(self) -> List[V]:
        with self._lock:
            self._purge_locked(self.time_provider.now())
            return [entry.value for entry in self._store.values()]

    # ---- Writeable ----
    def put(self, value: V) -> V:
        key = self.key_of(value)
        with self._lock:
            now = self.time_provider.now()
            if self.eviction == "SWEEP_ON_WRITE":
                self._purge_locked(now)
            self._store.pop(key, None)
            self._store[key] = _Entry(value, now)
            while self.max_entries is not None and len(self._store) > self.max_entries:
                evicted, _ = self._store.popitem(last=False)
                logger.debug("%s evicted oldest entry %r (max_entries=%d)", self.name, evicted, self.max_entries)
        return value

    def delete(self, key: K) -> None:
        with self._lock:
            self._store.pop(key, None)

    def delete_all(self) -> None:
        with self._lock:
            count = len(self._store)
            self._store.clear()
        logger.debug("%s cleared %d entries", self.name, count)

    # ---- Maintenance ----
    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            return self._purge_locked(self.time_provider.now())

    def _purge_locked(self, now: int) -> int:
        stale = [k for k, entry in self._store.items() if not self._fresh(entry, now)]
        for k in stale:
            del self._store[k]
        if stale:
            logger.debug("%s purged %d expired entries", self.name, len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: Any) -> bool:
        with self._lock:
            return key in self._store


class InMemoryPaginatedCacheDataSource(InMemoryCacheDataSource[K, V]):
    """In-memory cache that also keeps its values as one ordered, paged collection.

    Every stored item remembers its absolute index in the collection. A window
    is valid only when each index in it is held by a fresh entry; a deleted or
    expired item leaves a hole that forces the window to be fetched again.
    Storing the page at offset 0 starts the collection over.
    """

    def __init__(
        self,
        key_of: Callable[[V], K],
        ttl_ms: int,
        time_provider: Optional[TimeProvider] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(key_of, ttl_ms, time_provider=time_provider, name=name)
        self._positions: Dict[int, K] = {}
        self._index_of: Dict[K, int] = {}
        # index one past the last item, once a page has reported no more data
        self._end: Optional[int] = None

    def _forget(self, key: K) -> None:
        index = self._index_of.pop(key, None)
        if index is not None:
            self._positions.pop(index, None)

    def _window_stop(self, offset: int, limit: int) -> int:
        stop = offset + limit
        return stop if self._end is None else min(stop, self._end)

    def put_page(self, offset: int, limit: int, items: Sequence[V], has_more: bool) -> None:
        with self._lock:
            if offset == 0:
                self._store.clear()
                self._positions.clear()
                self._index_of.clear()
                self._end = None
            now = self.time_provider.now()
            for index, value in enumerate(items, start=offset):
                key = self.key_of(value)
                previous = self._positions.get(index)
                if previous is not None and self._index_of.get(previous) == index:
                    del self._index_of[previous]
                self._forget(key)
                self._positions[index] = key
                self._index_of[key] = index
                self._store[key] = _Entry(value, now)
            end = offset + len(items)
            if not has_more:
                self._end = end
            elif self._end is not None and self._end <= end:
                self._end = None

    def is_page_valid(self, offset: int, limit: int) -> bool:
        with self._lock:
            if not self._positions and self._end is None:
                return False
            now = self.time_provider.now()
            for index in range(offset, self._window_stop(offset, limit)):
                key = self._positions.get(index)
                entry = None if key is None else self._store.get(key)
                if entry is None or not self._fresh(entry, now):
                    return False
            return True

    def get_page(self, offset: int, limit: int) -> PaginatedCollection[V]:
        with self._lock:
            now = self.time_provider.now()
            window = []
            for index in range(offset, self._window_stop(offset, limit)):
                key = self._positions.get(index)
                entry = None if key is None else self._store.get(key)
                if entry is None:
                    continue
                if not self._fresh(entry, now):
                    del self._store[key]
                    self._forget(key)
                    continue
                window.append(entry.value)
            has_more = self._end is None or offset + limit < self._end
        return PaginatedCollection(items=window, offset=offset, limit=limit, has_more=has_more)

    def delete(self, key: K) -> None:
        with self._lock:
            super().delete(key)
            self._forget(key)

    def delete_all(self) -> None:
        with self._lock:
            super().delete_all()
            self._positions.clear()
            self._index_of.clear()
            self._end = None
