"""Data layer package: source capability protocols, concrete sources, and repositories.

Public exports:
- ReadableDataSource, WriteableDataSource, CacheDataSource protocols (+ paginated variants)
- InMemoryCacheDataSource, InMemoryPaginatedCacheDataSource
- FlaskCacheDataSource, RestDataSource, SqlDataSource, FrameDataSource
- Repository, PaginatedRepository
"""
from .base import (
    CacheDataSource,
    PaginatedCacheDataSource,
    PaginatedReadableDataSource,
    ReadableDataSource,
    WriteableDataSource,
)
from .memory import InMemoryCacheDataSource, InMemoryPaginatedCacheDataSource
from .cache import FlaskCacheDataSource
from .rest import RestDataSource
from .sql import SqlDataSource
from .frame import FrameDataSource
from .repository import Repository, PaginatedRepository

__all__ = [
    "ReadableDataSource",
    "WriteableDataSource",
    "CacheDataSource",
    "PaginatedReadableDataSource",
    "PaginatedCacheDataSource",
    "InMemoryCacheDataSource",
    "InMemoryPaginatedCacheDataSource",
    "FlaskCacheDataSource",
    "RestDataSource",
    "SqlDataSource",
    "FrameDataSource",
    "Repository",
    "PaginatedRepository",
]
