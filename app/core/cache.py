from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional


class TTLMap:
    """In-memory TTL map for small caches.

    - get(key) -> Optional[Any]
    - set(key, value, ttl_seconds)
    - delete(*keys)

    `clock` defaults to `time.monotonic`; tests pass a fake one.
    """

    def __init__(self, maxsize: int = 4096, *, clock: Optional[Callable[[], float]] = None):
        self.maxsize = maxsize
        self._clock = clock or time.monotonic
        self._data: Dict[str, Any] = {}
        self._exp: Dict[str, float] = {}

    def get(self, key: str) -> Optional[Any]:
        exp = self._exp.get(key)
        if exp is None:
            return None
        if self._clock() >= exp:
            self._data.pop(key, None)
            self._exp.pop(key, None)
            return None
        return self._data.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if key not in self._data and len(self._data) >= self.maxsize:
            try:
                old_key = next(iter(self._data))
                del self._data[old_key]
                self._exp.pop(old_key, None)
            except StopIteration:
                pass
        self._data[key] = value
        self._exp[key] = self._clock() + ttl_seconds

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._data.pop(key, None) is not None:
                removed += 1
            self._exp.pop(key, None)
        return removed

    def clear(self) -> None:
        self._data.clear()
        self._exp.clear()

    def __len__(self) -> int:
        return len(self._data)
