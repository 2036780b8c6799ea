from __future__ import annotations

import logging
import math
import threading
from typing import Any, Callable, Hashable, List, Optional

from flask_caching import Cache

logger = logging.getLogger(__name__)


class FlaskCacheDataSource:
    """Cache data source backed by Flask-Caching (SimpleCache, RedisCache, ...).

    Expiry is delegated to the backend. Flask-Caching cannot enumerate its
    keys, so the keys written through this source are tracked locally to
    serve ``get_all`` and ``delete_all``.
    """

    def __init__(
        self,
        cache: Cache,
        key_of: Callable[[Any], Hashable],
        ttl_ms: int,
        prefix: str = "datarepo",
        name: Optional[str] = None,
    ) -> None:
        self.cache = cache
        self.key_of = key_of
        # Flask-Caching counts in whole seconds and treats 0 as "never expires"
        self.timeout_seconds = max(1, math.ceil(ttl_ms / 1000))
        self.prefix = prefix
        self.name = name or type(self).__name__
        self._keys: dict[str, Hashable] = {}
        self._lock = threading.Lock()

    def _cache_key(self, key: Hashable) -> str:
        return f"{self.prefix}:{key}"

    def is_valid(self, key: Hashable) -> bool:
        return bool(self.cache.has(self._cache_key(key)))

    def get(self, key: Hashable) -> Optional[Any]:
        value = self.cache.get(self._cache_key(key))
        if value is None:
            with self._lock:
                self._keys.pop(self._cache_key(key), None)
        return value

    def get_all(self) -> List[Any]:
        with self._lock:
            cache_keys = list(self._keys)
        if not cache_keys:
            return []
        values = self.cache.get_many(*cache_keys)
        out = []
        with self._lock:
            for cache_key, value in zip(cache_keys, values):
                if value is None:
                    self._keys.pop(cache_key, None)
                else:
                    out.append(value)
        return out

    def put(self, value: Any) -> Any:
        key = self.key_of(value)
        cache_key = self._cache_key(key)
        if not self.cache.set(cache_key, value, timeout=self.timeout_seconds):
            raise RuntimeError(f"cache backend refused key {cache_key!r}")
        with self._lock:
            self._keys[cache_key] = key
        return value

    def delete(self, key: Hashable) -> None:
        cache_key = self._cache_key(key)
        self.cache.delete(cache_key)
        with self._lock:
            self._keys.pop(cache_key, None)

    def delete_all(self) -> None:
        with self._lock:
            cache_keys = list(self._keys)
            self._keys.clear()
        if cache_keys:
            self.cache.delete_many(*cache_keys)
        logger.debug("%s cleared %d keys", self.name, len(cache_keys))
