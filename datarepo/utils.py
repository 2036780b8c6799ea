import threading
import time
from typing import Protocol


class TimeProvider(Protocol):
    """Supplies the current time in milliseconds for cache expiry."""

    def now(self) -> int: ...


class SystemTimeProvider:
    """Wall-clock milliseconds since the epoch."""

    def now(self) -> int:
        return time.time_ns() // 1_000_000


class ManualTimeProvider:
    """A clock that only moves when told to; used to make expiry deterministic."""

    def __init__(self, start: int = 0) -> None:
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def advance(self, millis: int) -> int:
        with self._lock:
            self._now += millis
            return self._now

    def set(self, millis: int) -> None:
        with self._lock:
            self._now = millis
