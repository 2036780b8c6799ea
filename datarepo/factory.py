import math
from typing import Any, Callable, Hashable, List, Optional

from flask import Flask
from flask_caching import Cache

from .config import Settings, get_settings
from .datasources.cache import FlaskCacheDataSource
from .datasources.memory import InMemoryCacheDataSource, InMemoryPaginatedCacheDataSource
from .datasources.repository import PaginatedRepository
from .datasources.rest import RestDataSource
from .datasources.sql import SqlDataSource
from .errors import ConfigurationError
from .utils import SystemTimeProvider, TimeProvider


class RepositoryFactory:
    """Class-based composition root: builds sources and a repository from Settings."""

    def __init__(self, settings: Optional[Settings] = None, time_provider: Optional[TimeProvider] = None) -> None:
        # Initialize settings once, defaulting to .env + env vars
        self.settings = settings or get_settings()
        self.time_provider = time_provider or SystemTimeProvider()

    # ---- Caches ----
    def create_flask_cache(self, server: Optional[Flask] = None) -> Cache:
        server = server or Flask(__name__)
        return Cache(server, config={
            "CACHE_TYPE": self.settings.cache_type,
            "CACHE_DEFAULT_TIMEOUT": max(1, math.ceil(self.settings.cache_ttl_ms / 1000)),
            **({"CACHE_REDIS_URL": self.settings.redis_url} if self.settings.cache_type == "RedisCache" else {})
        })

    def create_cache(self, key_of: Callable[[Any], Hashable], server: Optional[Flask] = None):
        if self.settings.cache_type == "MEMORY":
            return InMemoryCacheDataSource(
                key_of,
                ttl_ms=self.settings.cache_ttl_ms,
                time_provider=self.time_provider,
                max_entries=self.settings.cache_max_entries,
                eviction=self.settings.cache_eviction,
            )
        return FlaskCacheDataSource(self.create_flask_cache(server), key_of, ttl_ms=self.settings.cache_ttl_ms)

    def create_paginated_cache(self, key_of: Callable[[Any], Hashable]) -> InMemoryPaginatedCacheDataSource:
        return InMemoryPaginatedCacheDataSource(key_of, ttl_ms=self.settings.cache_ttl_ms, time_provider=self.time_provider)

    # ---- Sources of truth ----
    def create_source(self, key_of: Callable[[Any], Hashable]):
        src = self.settings.data_source
        if src == "REST":
            if not self.settings.api_base_url:
                raise ConfigurationError("readable", "DATA_SOURCE=REST requires API_BASE_URL")
            return RestDataSource(
                self.settings.api_base_url,
                resource=self.settings.api_resource,
                key_of=key_of,
                timeout_seconds=self.settings.api_timeout_seconds,
            )
        if src == "SQL":
            if not self.settings.db_url:
                raise ConfigurationError("readable", "DATA_SOURCE=SQL requires DB_URL")
            return SqlDataSource(self.settings.db_url, key_of, table=self.settings.db_table)
        return None

    def create_repository(self, key_of: Callable[[Any], Hashable], server: Optional[Flask] = None) -> PaginatedRepository:
        cache = self.create_cache(key_of, server)
        paginated_cache = self.create_paginated_cache(key_of)
        source = self.create_source(key_of)
        sources: List[Any] = [source] if source is not None else []
        return PaginatedRepository(
            caches=[cache],
            readables=sources,
            writeables=sources,
            paginated_caches=[paginated_cache],
            paginated_readables=sources,
            key_of=key_of,
            read_policy=self.settings.read_policy,
            write_policy=self.settings.write_policy,
        )


# Module-level function wrapper using a shared factory instance
_factory: Optional[RepositoryFactory] = None


def create_repository(key_of: Callable[[Any], Hashable]) -> PaginatedRepository:
    global _factory
    if _factory is None:
        _factory = RepositoryFactory()
    return _factory.create_repository(key_of)
