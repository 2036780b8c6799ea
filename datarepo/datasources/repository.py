from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Hashable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from ..errors import ConfigurationError, SourceFailure, source_name
from ..models import PaginatedCollection, ReadPolicy, WritePolicy, WriteResult
from .base import (
    CacheDataSource,
    PaginatedCacheDataSource,
    PaginatedReadableDataSource,
    ReadableDataSource,
    WriteableDataSource,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def _unique(*groups: Iterable[Any]) -> Tuple[Any, ...]:
    """Concatenate source groups, keeping the first occurrence of each object."""
    seen: set[int] = set()
    out = []
    for group in groups:
        for source in group:
            if id(source) not in seen:
                seen.add(id(source))
                out.append(source)
    return tuple(out)


def _call(source: Any, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke one source operation, classifying any error as a SourceFailure."""
    try:
        return fn(*args)
    except SourceFailure:
        raise
    except Exception as exc:  # noqa: BLE001 - any source error is a SourceFailure
        raise SourceFailure(source, operation, cause=exc) from exc


class Repository(Generic[K, V]):
    """Single get/add/delete surface over cache, readable and writeable sources.

    Each group is consulted in the order given here; that order is the
    priority and never changes. The repository holds no values itself.

    Args:
        caches: cache sources, consulted before readables and kept coherent
            with every successful fetch or write.
        readables: sources of truth for reads.
        writeables: sources of truth for writes (caches are targeted too).
        key_of: extracts a value's key; needed to merge ``get_all`` results.
            Falls back to the ``key_of`` of the first cache that has one.
        read_policy / write_policy: defaults for calls that pass no policy.
    """

    def __init__(
        self,
        caches: Sequence[CacheDataSource[K, V]] = (),
        readables: Sequence[ReadableDataSource[K, V]] = (),
        writeables: Sequence[WriteableDataSource[K, V]] = (),
        key_of: Optional[Callable[[V], K]] = None,
        read_policy: ReadPolicy = ReadPolicy.CACHE_AND_READABLE,
        write_policy: WritePolicy = WritePolicy.WRITE_ALL,
    ) -> None:
        self.caches: Tuple[CacheDataSource[K, V], ...] = tuple(caches)
        self.readables: Tuple[ReadableDataSource[K, V], ...] = tuple(readables)
        self.writeables: Tuple[WriteableDataSource[K, V], ...] = tuple(writeables)
        self.key_of = key_of or next(
            (c.key_of for c in self.caches if callable(getattr(c, "key_of", None))), None
        )
        self.read_policy = ReadPolicy(read_policy)
        self.write_policy = WritePolicy(write_policy)

    # ---- Configuration checks ----
    @staticmethod
    def _require(capability: str, *groups: Sequence[Any]) -> None:
        if not any(groups):
            err = ConfigurationError(capability)
            logger.error("%s", err.message)
            raise err

    def _check_read(self, policy: ReadPolicy) -> None:
        if policy is ReadPolicy.CACHE_ONLY:
            self._require("cache", self.caches)
        elif policy is ReadPolicy.READABLE_ONLY:
            self._require("readable", self.readables)
        else:
            self._require("cache or readable", self.caches, self.readables)

    # ---- Reads ----
    def get_by_key(self, key: K, policy: Optional[ReadPolicy] = None) -> Optional[V]:
        """Return the value for ``key`` or ``None`` when no source has it.

        Raises:
            ConfigurationError: no source serves the requested policy.
            SourceFailure: the sources that could answer failed and no
                cache served the value.
        """
        policy = ReadPolicy(policy or self.read_policy)
        self._check_read(policy)
        failures: List[SourceFailure] = []

        if policy.uses_cache:
            for cache in self.caches:
                try:
                    value = _call(cache, "get", cache.get, key)
                    if value is not None and _call(cache, "is_valid", cache.is_valid, key):
                        return value
                except SourceFailure as failure:
                    logger.warning("Cache failure treated as miss: %s", failure.message)
                    failures.append(failure)
            if not policy.uses_readable:
                if failures and len(failures) == len(self.caches):
                    raise failures[0]
                return None
            failures.clear()

        for readable in self.readables:
            try:
                value = _call(readable, "get", readable.get, key)
            except SourceFailure as failure:
                logger.warning("Readable failure: %s", failure.message)
                failures.append(failure)
                continue
            if value is not None:
                self._populate_caches([value])
                return value

        if failures:
            raise failures[0]
        return None

    def get_all(self, policy: Optional[ReadPolicy] = None) -> List[V]:
        """Return every value, cache entries first, readables filling the gaps.

        When a key is served by several sources the first source wins, caches
        ahead of readables. Values fetched from readables that the caches lacked
        are written into every cache.
        """
        policy = ReadPolicy(policy or self.read_policy)
        self._check_read(policy)
        merged: List[V] = []
        keys: set = set()
        cache_failures: List[SourceFailure] = []

        if policy.uses_cache:
            for cache in self.caches:
                try:
                    values = _call(cache, "get_all", cache.get_all)
                except SourceFailure as failure:
                    logger.warning("Cache failure treated as miss: %s", failure.message)
                    cache_failures.append(failure)
                    continue
                self._merge(merged, keys, values)
            if not policy.uses_readable:
                if cache_failures and len(cache_failures) == len(self.caches):
                    raise cache_failures[0]
                return merged

        fetched: List[V] = []
        failures: List[SourceFailure] = []
        for readable in self.readables:
            try:
                values = _call(readable, "get_all", readable.get_all)
            except SourceFailure as failure:
                logger.warning("Readable failure during get_all: %s", failure.message)
                failures.append(failure)
                continue
            fetched.extend(self._merge(merged, keys, values))

        if failures and len(failures) == len(self.readables) and not merged:
            raise failures[0]
        self._populate_caches(fetched)
        return merged

    def _merge(self, merged: List[V], keys: set, values: Iterable[V]) -> List[V]:
        """Append values whose key is not yet present; return the ones added."""
        added = []
        for value in values or ():
            if self.key_of is not None:
                key = self.key_of(value)
                if key in keys:
                    continue
                keys.add(key)
            elif value in merged:
                continue
            merged.append(value)
            added.append(value)
        return added

    def _populate_caches(self, values: Sequence[V]) -> None:
        """Write-through of fetched values; a failing cache is only logged."""
        if not values:
            return
        for cache in self.caches:
            for value in values:
                try:
                    _call(cache, "put", cache.put, value)
                except SourceFailure as failure:
                    logger.warning("Cache population failed: %s", failure.message)

    # ---- Writes ----
    def add_or_update(self, value: V, policy: Optional[WritePolicy] = None) -> WriteResult:
        """Persist ``value`` according to ``policy`` and keep caches coherent.

        Non-cache writeables are the sources of truth and are attempted first,
        in order. Once one of them accepts the value it is written into every
        cache. Without any non-cache writeable the caches themselves are the
        targets. Check ``result.ok`` or call ``result.raise_for_status()``.
        """
        if value is None:
            raise ValueError("Cannot store None: it denotes a missing value")
        policy = WritePolicy(policy or self.write_policy)
        self._require("writeable", self.writeables, self.caches)
        result = WriteResult(operation="add_or_update")
        stored = value

        primaries = self.writeables or self.caches
        for target in primaries:
            try:
                returned = _call(target, "put", target.put, value)
            except SourceFailure as failure:
                logger.warning("Write failed: %s", failure.message)
                result.failures.append(failure)
                continue
            if not result.succeeded and returned is not None:
                stored = returned
            result.succeeded.append(target)
            if policy is WritePolicy.WRITE_ONCE:
                break

        if result.ok and self.writeables:
            for cache in _unique(self.caches):
                if any(cache is t for t in result.attempted):
                    continue
                try:
                    _call(cache, "put", cache.put, stored)
                    result.succeeded.append(cache)
                except SourceFailure as failure:
                    logger.warning("Cache write-through failed: %s", failure.message)
                    result.failures.append(failure)

        if not result.ok:
            logger.error("add_or_update reached no target; failed: %s", ", ".join(result.failed_sources))
        return result

    def add_or_update_all(self, values: Iterable[V], policy: Optional[WritePolicy] = None) -> List[WriteResult]:
        """Fan out each value in turn; one result per value."""
        return [self.add_or_update(value, policy) for value in values]

    def delete_by_key(self, key: K) -> WriteResult:
        """Best-effort delete of ``key`` from every writeable and cache source."""
        targets = self._key_delete_targets()
        self._require("writeable", targets)
        return self._fan_out("delete_by_key", "delete", targets, key)

    def delete_all(self) -> WriteResult:
        """Best-effort wipe of every writeable and cache source."""
        targets = self._wipe_targets()
        self._require("writeable", targets)
        return self._fan_out("delete_all", "delete_all", targets)

    def _key_delete_targets(self) -> Tuple[Any, ...]:
        return _unique(self.writeables, self.caches)

    def _wipe_targets(self) -> Tuple[Any, ...]:
        return _unique(self.writeables, self.caches)

    def _fan_out(self, operation: str, method: str, targets: Sequence[Any], *args: Any) -> WriteResult:
        result = WriteResult(operation=operation)
        for target in targets:
            try:
                _call(target, method, getattr(target, method), *args)
                result.succeeded.append(target)
            except SourceFailure as failure:
                logger.warning("%s failed on %s: %s", operation, source_name(target), failure.message)
                result.failures.append(failure)
        return result


class PaginatedRepository(Repository[K, V]):
    """Repository with windowed reads served from a paginated cache when fresh.

    Offsets and limits are handed to the sources untouched.
    """

    def __init__(
        self,
        caches: Sequence[CacheDataSource[K, V]] = (),
        readables: Sequence[ReadableDataSource[K, V]] = (),
        writeables: Sequence[WriteableDataSource[K, V]] = (),
        paginated_caches: Sequence[PaginatedCacheDataSource[V]] = (),
        paginated_readables: Sequence[PaginatedReadableDataSource[V]] = (),
        key_of: Optional[Callable[[V], K]] = None,
        read_policy: ReadPolicy = ReadPolicy.CACHE_AND_READABLE,
        write_policy: WritePolicy = WritePolicy.WRITE_ALL,
    ) -> None:
        super().__init__(
            caches=caches,
            readables=readables,
            writeables=writeables,
            key_of=key_of,
            read_policy=read_policy,
            write_policy=write_policy,
        )
        self.paginated_caches: Tuple[PaginatedCacheDataSource[V], ...] = tuple(paginated_caches)
        self.paginated_readables: Tuple[PaginatedReadableDataSource[V], ...] = tuple(paginated_readables)

    def get_page(
        self, offset: int, limit: int, policy: Optional[ReadPolicy] = None
    ) -> Optional[PaginatedCollection[V]]:
        """Return the window ``[offset, offset + limit)``.

        A fresh window in a paginated cache is returned as is. Otherwise the
        window comes from the first paginated readable that answers and is
        stored into every paginated cache. Under CACHE_ONLY a window the cache
        cannot serve yields ``None``.
        """
        policy = ReadPolicy(policy or self.read_policy)
        if policy is ReadPolicy.CACHE_ONLY:
            self._require("paginated cache", self.paginated_caches)
        elif policy is ReadPolicy.READABLE_ONLY:
            self._require("paginated readable", self.paginated_readables)
        else:
            self._require("paginated cache or paginated readable", self.paginated_caches, self.paginated_readables)

        failures: List[SourceFailure] = []
        if policy.uses_cache:
            for cache in self.paginated_caches:
                try:
                    if _call(cache, "is_page_valid", cache.is_page_valid, offset, limit):
                        return _call(cache, "get_page", cache.get_page, offset, limit)
                except SourceFailure as failure:
                    logger.warning("Paginated cache failure treated as miss: %s", failure.message)
                    failures.append(failure)
            if not policy.uses_readable:
                if failures and len(failures) == len(self.paginated_caches):
                    raise failures[0]
                return None
            failures.clear()

        for readable in self.paginated_readables:
            try:
                page = _call(readable, "get_page", readable.get_page, offset, limit)
            except SourceFailure as failure:
                logger.warning("Paginated readable failure: %s", failure.message)
                failures.append(failure)
                continue
            for cache in self.paginated_caches:
                try:
                    _call(cache, "put_page", cache.put_page, offset, limit, page.items, page.has_more)
                except SourceFailure as cache_failure:
                    logger.warning("Paginated cache population failed: %s", cache_failure.message)
            return page

        if failures:
            raise failures[0]
        return None

    def _key_delete_targets(self) -> Tuple[Any, ...]:
        # paginated caches without a key-level delete are only cleared by delete_all
        keyed = [c for c in self.paginated_caches if callable(getattr(c, "delete", None))]
        return _unique(self.writeables, self.caches, keyed)

    def _wipe_targets(self) -> Tuple[Any, ...]:
        return _unique(self.writeables, self.caches, self.paginated_caches)
