from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import AggregatedWriteFailure, SourceFailure, source_name

V = TypeVar("V")


class ReadPolicy(str, Enum):
    """Which source classes a read may consult, cache first."""

    CACHE_ONLY = "CACHE_ONLY"
    READABLE_ONLY = "READABLE_ONLY"
    CACHE_AND_READABLE = "CACHE_AND_READABLE"

    @property
    def uses_cache(self) -> bool:
        return self is not ReadPolicy.READABLE_ONLY

    @property
    def uses_readable(self) -> bool:
        return self is not ReadPolicy.CACHE_ONLY


class WritePolicy(str, Enum):
    """How many writeable targets a write must reach."""

    WRITE_ONCE = "WRITE_ONCE"
    WRITE_ALL = "WRITE_ALL"


class PaginatedCollection(BaseModel, Generic[V]):
    """One window of an ordered collection plus its paging metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    items: List[V] = Field(default_factory=list)
    offset: int = Field(ge=0)
    limit: int = Field(ge=0)
    has_more: bool = False

    @model_validator(mode="after")
    def _check_window(self):
        if len(self.items) > self.limit:
            raise ValueError(f"page holds {len(self.items)} items but limit is {self.limit}")
        return self

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class WriteResult:
    """Aggregated outcome of a write fanned out to several sources."""

    operation: str
    succeeded: List[Any] = field(default_factory=list)
    failures: List[SourceFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when at least one target accepted the write."""
        return bool(self.succeeded)

    @property
    def all_ok(self) -> bool:
        return bool(self.succeeded) and not self.failures

    @property
    def attempted(self) -> List[Any]:
        return list(self.succeeded) + [f.source for f in self.failures]

    @property
    def succeeded_sources(self) -> List[str]:
        return [source_name(s) for s in self.succeeded]

    @property
    def failed_sources(self) -> List[str]:
        return [f.source_name for f in self.failures]

    def raise_for_status(self, require_all: bool = False) -> "WriteResult":
        """Raise AggregatedWriteFailure when the write did not land.

        By default a single successful target is enough; ``require_all``
        demands that no target failed.
        """
        if not self.ok or (require_all and self.failures):
            raise AggregatedWriteFailure(self)
        return self

    def __bool__(self) -> bool:
        return self.ok
