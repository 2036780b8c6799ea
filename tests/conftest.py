import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pytest

# Ensure predictable environment before importing the package
os.environ.setdefault("CACHE_TYPE", "MEMORY")
os.environ.setdefault("CACHE_TTL_MS", "1000")
os.environ.setdefault("DATA_SOURCE", "NONE")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datarepo.utils import ManualTimeProvider  # noqa: E402


@dataclass(frozen=True)
class Item:
    key: str
    payload: str


def item_key(item: Item) -> str:
    return item.key


class FakeSource:
    """Dict-backed source implementing every capability; records each call.

    ``fail`` names the operations that raise, ``valid=False`` makes
    ``is_valid`` report every entry stale.
    """

    def __init__(self, name: str, calls: List[Tuple[str, str]], data=None, fail=(), valid: bool = True) -> None:
        self.name = name
        self.calls = calls
        self.key_of = item_key
        self.data: Dict[str, Item] = {i.key: i for i in (data or [])}
        self.fail = set(fail)
        self.valid = valid

    def _record(self, op: str) -> None:
        self.calls.append((self.name, op))
        if op in self.fail:
            raise IOError(f"{self.name} {op} exploded")

    def get(self, key: str) -> Optional[Item]:
        self._record("get")
        return self.data.get(key)

    def get_all(self) -> List[Item]:
        self._record("get_all")
        return list(self.data.values())

    def is_valid(self, key: str) -> bool:
        self._record("is_valid")
        return self.valid and key in self.data

    def put(self, value: Item) -> Item:
        self._record("put")
        self.data[value.key] = value
        return value

    def delete(self, key: str) -> None:
        self._record("delete")
        self.data.pop(key, None)

    def delete_all(self) -> None:
        self._record("delete_all")
        self.data.clear()


@pytest.fixture
def calls() -> List[Tuple[str, str]]:
    return []


@pytest.fixture
def make_source(calls):
    def _make(name: str, data=None, fail=(), valid: bool = True) -> FakeSource:
        return FakeSource(name, calls, data=data, fail=fail, valid=valid)

    return _make


@pytest.fixture
def clock() -> ManualTimeProvider:
    return ManualTimeProvider(start=1_000)


@pytest.fixture
def item_cls():
    return Item


@pytest.fixture
def key_of():
    return item_key
