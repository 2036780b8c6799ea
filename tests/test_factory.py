import pytest

from datarepo.config import Settings
from datarepo.datasources.cache import FlaskCacheDataSource
from datarepo.datasources.memory import InMemoryCacheDataSource
from datarepo.datasources.rest import RestDataSource
from datarepo.datasources.sql import SqlDataSource
from datarepo.errors import ConfigurationError
from datarepo.factory import RepositoryFactory
from datarepo.models import ReadPolicy


def dict_key(value):
    return value["id"]


def test_memory_only_repository(clock):
    s = Settings(cache_type="MEMORY", data_source="NONE", cache_ttl_ms=50, cache_max_entries=10)
    repo = RepositoryFactory(s, time_provider=clock).create_repository(dict_key)

    cache = repo.caches[0]
    assert isinstance(cache, InMemoryCacheDataSource)
    assert cache.ttl_ms == 50 and cache.max_entries == 10
    assert repo.readables == () and repo.writeables == ()

    assert repo.add_or_update({"id": 1}).ok
    assert repo.get_by_key(1) == {"id": 1}
    clock.advance(51)
    assert repo.get_by_key(1) is None


def test_simple_cache_backend():
    s = Settings(cache_type="SimpleCache", data_source="NONE", cache_ttl_ms=5_000)
    repo = RepositoryFactory(s).create_repository(dict_key)
    assert isinstance(repo.caches[0], FlaskCacheDataSource)
    assert repo.caches[0].timeout_seconds == 5


def test_sql_source_wiring():
    s = Settings(data_source="SQL", db_url="sqlite://", read_policy="READABLE_ONLY")
    repo = RepositoryFactory(s).create_repository(dict_key)
    assert isinstance(repo.readables[0], SqlDataSource)
    assert repo.readables[0] is repo.writeables[0] is repo.paginated_readables[0]
    assert repo.read_policy is ReadPolicy.READABLE_ONLY


def test_rest_source_wiring():
    s = Settings(data_source="REST", api_base_url="https://api.example.com", api_resource="things")
    repo = RepositoryFactory(s).create_repository(dict_key)
    src = repo.readables[0]
    assert isinstance(src, RestDataSource)
    assert src.collection_url == "https://api.example.com/things"


@pytest.mark.parametrize("kwargs", [
    {"data_source": "REST", "api_base_url": ""},
    {"data_source": "SQL", "db_url": ""},
])
def test_incomplete_source_settings_are_configuration_errors(kwargs):
    with pytest.raises(ConfigurationError):
        RepositoryFactory(Settings(**kwargs)).create_repository(dict_key)


def test_flask_cache_timeouts_round_up_consistently():
    s = Settings(cache_type="SimpleCache", data_source="NONE", cache_ttl_ms=1_500)
    factory = RepositoryFactory(s)
    flask_cache = factory.create_flask_cache()
    source = factory.create_cache(dict_key)
    assert flask_cache.config["CACHE_DEFAULT_TIMEOUT"] == 2
    assert source.timeout_seconds == 2
