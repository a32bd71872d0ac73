"""In-memory TTL cache for upstream responses."""

from __future__ import annotations

import time
from threading import Lock
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

_MISSING = object()


class ResponseCache:
    """Thread-safe map of request key -> parsed response, expiring after ``ttl_seconds``.

    Entries are only an optimization; callers must behave the same on a miss.
    """

    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = Lock()

    @staticmethod
    def make_key(path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        items = tuple(sorted((str(k), str(v)) for k, v in (params or {}).items()))
        return path, items

    def get(self, key: Hashable, default: Any = None) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            value, expires_at = entry
            if expires_at <= now:
                del self._entries[key]
                return default
            return value

    def set(self, key: Hashable, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (value, expires_at)

    def lookup(self, key: Hashable) -> Tuple[bool, Any]:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            return False, None
        return True, value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
