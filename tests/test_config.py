from datarepo.config import Settings, get_settings
from datarepo.models import ReadPolicy, WritePolicy


def test_settings_env_var_precedence(monkeypatch):
    """Test that environment variables take precedence over .env file."""
    monkeypatch.setenv("CACHE_TTL_MS", "2500")
    s = Settings()
    assert s.cache_ttl_ms == 2500


def test_settings_aliases_env(monkeypatch):
    monkeypatch.setenv("DATA_SOURCE", "rest")
    monkeypatch.setenv("READ_POLICY", "cache_only")
    monkeypatch.setenv("WRITE_POLICY", "write_once")
    monkeypatch.setenv("CACHE_EVICTION", "sweep_on_write")
    monkeypatch.setenv("LOG_LEVEL", " warning ")
    s = Settings()
    assert s.data_source == "REST"
    assert s.read_policy is ReadPolicy.CACHE_ONLY
    assert s.write_policy is WritePolicy.WRITE_ONCE
    assert s.cache_eviction == "SWEEP_ON_WRITE"
    assert s.log_level == "WARNING"


def test_direct_instantiation_defaults(monkeypatch):
    monkeypatch.delenv("READ_POLICY", raising=False)
    monkeypatch.delenv("WRITE_POLICY", raising=False)
    s = Settings()
    assert s.cache_type in ("MEMORY", "SimpleCache", "RedisCache")
    assert s.read_policy is ReadPolicy.CACHE_AND_READABLE
    assert s.write_policy is WritePolicy.WRITE_ALL
    assert s.cache_max_entries is None


def test_field_names_accepted_as_keywords():
    s = Settings(cache_ttl_ms=5, data_source="sql", db_url="sqlite://")
    assert s.cache_ttl_ms == 5
    assert s.data_source == "SQL"


def test_get_settings_is_a_singleton():
    assert get_settings() is get_settings()
