from .errors import AggregatedWriteFailure, ConfigurationError, RepositoryError, SourceFailure
from .models import PaginatedCollection, ReadPolicy, WritePolicy, WriteResult
from .utils import ManualTimeProvider, SystemTimeProvider, TimeProvider
from .datasources import (
    CacheDataSource,
    FlaskCacheDataSource,
    FrameDataSource,
    InMemoryCacheDataSource,
    InMemoryPaginatedCacheDataSource,
    PaginatedCacheDataSource,
    PaginatedReadableDataSource,
    PaginatedRepository,
    ReadableDataSource,
    Repository,
    RestDataSource,
    SqlDataSource,
    WriteableDataSource,
)
from .config import Settings, get_settings
from .factory import RepositoryFactory, create_repository
from .logging_config import configure_logging

__all__ = [
    "AggregatedWriteFailure",
    "ConfigurationError",
    "RepositoryError",
    "SourceFailure",
    "PaginatedCollection",
    "ReadPolicy",
    "WritePolicy",
    "WriteResult",
    "TimeProvider",
    "SystemTimeProvider",
    "ManualTimeProvider",
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
    "Settings",
    "get_settings",
    "RepositoryFactory",
    "create_repository",
    "configure_logging",
]
