from typing import Hashable, List, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ..models import PaginatedCollection

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@runtime_checkable
class ReadableDataSource(Protocol[K, V]):
    """Source that can fetch a single value by key or every value it holds.

    ``get`` returns ``None`` when the key is absent.
    """

    def get(self, key: K) -> Optional[V]: ...

    def get_all(self) -> List[V]: ...


@runtime_checkable
class WriteableDataSource(Protocol[K, V]):
    """Source that persists additions, updates and deletions."""

    def put(self, value: V) -> V: ...

    def delete(self, key: K) -> None: ...

    def delete_all(self) -> None: ...


@runtime_checkable
class CacheDataSource(ReadableDataSource[K, V], WriteableDataSource[K, V], Protocol[K, V]):
    """Readable and writeable source with a notion of freshness."""

    def is_valid(self, key: K) -> bool: ...


@runtime_checkable
class PaginatedReadableDataSource(Protocol[V]):
    """Source that serves ordered windows of its collection."""

    def get_page(self, offset: int, limit: int) -> PaginatedCollection[V]: ...


@runtime_checkable
class PaginatedCacheDataSource(PaginatedReadableDataSource[V], Protocol[V]):
    """Paginated cache: stores windows in order and reports their freshness."""

    def put_page(self, offset: int, limit: int, items: Sequence[V], has_more: bool) -> None: ...

    def is_page_valid(self, offset: int, limit: int) -> bool: ...

    def delete_all(self) -> None: ...
