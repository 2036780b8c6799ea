from pathlib import Path
from typing import Optional, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ReadPolicy, WritePolicy

# =========================
# Configuration (ENV-DRIVEN via Pydantic)
# =========================


class Settings(BaseSettings):
    """Repository settings read from environment and validated by Pydantic.

    Only a single `.env` file at the project root is read. Real environment
    variables always take precedence over `.env` values.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        env_file=str(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    # Cache
    cache_type: Literal["MEMORY", "SimpleCache", "RedisCache"] = Field(default="MEMORY", alias="CACHE_TYPE")
    cache_ttl_ms: int = Field(default=60_000, ge=0, alias="CACHE_TTL_MS")
    cache_max_entries: Optional[int] = Field(default=None, ge=1, alias="CACHE_MAX_ENTRIES")
    cache_eviction: Literal["LAZY", "SWEEP_ON_WRITE"] = Field(default="LAZY", alias="CACHE_EVICTION")
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")

    # Data source
    data_source: Literal["NONE", "REST", "SQL"] = Field(default="NONE", alias="DATA_SOURCE")
    api_base_url: str = Field(default="", alias="API_BASE_URL")
    api_resource: str = Field(default="items", alias="API_RESOURCE")
    api_timeout_seconds: float = Field(default=30.0, gt=0, alias="API_TIMEOUT_SECONDS")
    db_url: str = Field(default="", alias="DB_URL")
    db_table: str = Field(default="items", alias="DB_TABLE")

    # Policies
    read_policy: ReadPolicy = Field(default=ReadPolicy.CACHE_AND_READABLE, alias="READ_POLICY")
    write_policy: WritePolicy = Field(default=WritePolicy.WRITE_ALL, alias="WRITE_POLICY")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["text", "json"] = Field(default="text", alias="LOG_FORMAT")

    @field_validator("data_source", "cache_eviction", "read_policy", "write_policy", mode="before")
    @classmethod
    def _upper(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


# Singleton accessor to avoid repeated disk reads/parsing
_settings_singleton: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the singleton Settings instance, initializing it on first call."""
    global _settings_singleton
    if _settings_singleton is None:
        _settings_singleton = Settings()
    return _settings_singleton
