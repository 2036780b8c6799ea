import pytest

from datarepo.datasources.memory import InMemoryPaginatedCacheDataSource
from datarepo.datasources.repository import PaginatedRepository
from datarepo.errors import ConfigurationError, SourceFailure
from datarepo.models import PaginatedCollection, ReadPolicy


class FakePagedSource:
    """Serves windows of a fixed list and counts the calls it receives."""

    def __init__(self, items, fail=False, name="paged"):
        self.items = list(items)
        self.fail = fail
        self.name = name
        self.requests = []

    def get_page(self, offset, limit):
        self.requests.append((offset, limit))
        if self.fail:
            raise TimeoutError("upstream timed out")
        window = self.items[offset:offset + limit]
        return PaginatedCollection(items=window, offset=offset, limit=limit, has_more=offset + limit < len(self.items))


@pytest.fixture
def paged_cache(clock, key_of):
    return InMemoryPaginatedCacheDataSource(key_of, ttl_ms=100, time_provider=clock)


def test_end_of_data_page_is_returned_and_cached(paged_cache, item_cls):
    items = [item_cls("a", "1"), item_cls("b", "2"), item_cls("c", "3")]
    source = FakePagedSource(items)
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])

    page = repo.get_page(0, 10)
    assert len(page) == 3
    assert page.has_more is False
    for item in items:
        assert paged_cache.get(item.key) == item


def test_fresh_window_is_served_from_cache(paged_cache, item_cls):
    source = FakePagedSource([item_cls(str(i), "x") for i in range(5)])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])

    first = repo.get_page(0, 2)
    again = repo.get_page(0, 2)
    assert source.requests == [(0, 2)]
    assert again.items == first.items
    assert again.has_more is True


def test_next_window_goes_to_readable_and_extends_cache(paged_cache, item_cls):
    source = FakePagedSource([item_cls(str(i), "x") for i in range(3)])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])

    repo.get_page(0, 2)
    second = repo.get_page(2, 2)
    assert [i.key for i in second.items] == ["2"]
    assert second.has_more is False
    assert source.requests == [(0, 2), (2, 2)]
    assert [i.key for i in paged_cache.get_page(0, 3).items] == ["0", "1", "2"]


def test_expired_window_is_refetched(paged_cache, item_cls, clock):
    source = FakePagedSource([item_cls("a", "1")])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])
    repo.get_page(0, 5)
    clock.advance(101)
    repo.get_page(0, 5)
    assert source.requests == [(0, 5), (0, 5)]


def test_readable_only_skips_cache(paged_cache, item_cls):
    source = FakePagedSource([item_cls("a", "1")])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])
    repo.get_page(0, 5)
    repo.get_page(0, 5, ReadPolicy.READABLE_ONLY)
    assert len(source.requests) == 2


def test_cache_only_miss_returns_none(paged_cache, item_cls):
    source = FakePagedSource([item_cls("a", "1")])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])
    assert repo.get_page(0, 5, ReadPolicy.CACHE_ONLY) is None
    assert source.requests == []


def test_offsets_are_passed_through_verbatim(item_cls):
    source = FakePagedSource([item_cls("a", "1")])
    repo = PaginatedRepository(paginated_readables=[source])
    page = repo.get_page(7, 3)
    assert source.requests == [(7, 3)]
    assert page.offset == 7 and page.items == []


def test_readable_failure_is_surfaced(paged_cache):
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[FakePagedSource([], fail=True)])
    with pytest.raises(SourceFailure) as exc:
        repo.get_page(0, 5)
    assert isinstance(exc.value.cause, TimeoutError)


def test_missing_paginated_sources_is_a_configuration_error(make_source):
    repo = PaginatedRepository(caches=[make_source("C1")])
    with pytest.raises(ConfigurationError):
        repo.get_page(0, 10)


def test_non_paginated_operations_unchanged(make_source, item_cls, paged_cache):
    cache = make_source("C1")
    repo = PaginatedRepository(
        caches=[cache],
        readables=[make_source("R1", data=[item_cls("k", "v")])],
        writeables=[make_source("W1")],
        paginated_caches=[paged_cache],
    )
    assert repo.get_by_key("k").payload == "v"
    assert repo.add_or_update(item_cls("n", "v")).ok
    assert "n" in cache.data


def test_delete_all_also_clears_paginated_cache(paged_cache, item_cls):
    source = FakePagedSource([item_cls("a", "1")])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])
    repo.get_page(0, 5)

    result = repo.delete_all()
    assert result.ok
    assert paged_cache.is_page_valid(0, 5) is False

    repo.get_page(0, 5)
    assert len(source.requests) == 2


def test_delete_by_key_reaches_paginated_cache(paged_cache, item_cls, make_source):
    source = FakePagedSource([item_cls("a", "1"), item_cls("b", "2")])
    repo = PaginatedRepository(writeables=[make_source("W1")], paginated_caches=[paged_cache], paginated_readables=[source])
    repo.get_page(0, 5)
    repo.delete_by_key("a")
    assert paged_cache.get("a") is None
    assert paged_cache.get("b") == item_cls("b", "2")


def test_first_fetch_at_later_offset_does_not_answer_first_page(paged_cache, item_cls):
    source = FakePagedSource([item_cls(str(i), "x") for i in range(20)])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])

    repo.get_page(10, 5)
    first = repo.get_page(0, 5)
    assert source.requests == [(10, 5), (0, 5)]
    assert [i.key for i in first.items] == ["0", "1", "2", "3", "4"]


def test_gap_between_windows_is_fetched(paged_cache, item_cls):
    source = FakePagedSource([item_cls(str(i), "x") for i in range(10)])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])

    repo.get_page(0, 2)
    repo.get_page(4, 2)
    middle = repo.get_page(2, 2)
    assert source.requests == [(0, 2), (4, 2), (2, 2)]
    assert [i.key for i in middle.items] == ["2", "3"]
    repo.get_page(4, 2)
    assert len(source.requests) == 3


def test_window_with_expired_earlier_page_is_refetched(paged_cache, item_cls, clock):
    source = FakePagedSource([item_cls(str(i), "x") for i in range(6)])
    repo = PaginatedRepository(paginated_caches=[paged_cache], paginated_readables=[source])

    repo.get_page(0, 2)
    clock.advance(50)
    repo.get_page(2, 2)
    clock.advance(70)

    page = repo.get_page(0, 2)
    assert source.requests == [(0, 2), (2, 2), (0, 2)]
    assert [i.key for i in page.items] == ["0", "1"]


def test_delete_inside_cached_window_forces_refetch(paged_cache, item_cls, make_source):
    source = FakePagedSource([item_cls(str(i), "x") for i in range(3)])
    repo = PaginatedRepository(writeables=[make_source("W1")], paginated_caches=[paged_cache], paginated_readables=[source])

    repo.get_page(0, 3)
    repo.delete_by_key("1")
    page = repo.get_page(0, 3)
    assert source.requests == [(0, 3), (0, 3)]
    assert [i.key for i in page.items] == ["0", "1", "2"]
