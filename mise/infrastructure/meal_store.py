# mise/infrastructure/meal_store.py
from __future__ import annotations

import threading
import time
from typing import Dict, Generic, Optional, Tuple, TypeVar

from mise.domain.repositories import KeyValueStore

T = TypeVar("T")


class InMemoryStore(KeyValueStore[T], Generic[T]):
    """
    Process-local store. Values live as long as the process unless
    ``ttl_seconds`` is set, in which case entries untouched for that long
    are dropped on the next access.
    """

    def __init__(self, ttl_seconds: int = 0) -> None:
        self.ttl_seconds = ttl_seconds
        self._data: Dict[str, Tuple[float, T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            self._gc()
            hit = self._data.get(key)
            if hit is None:
                return None
            self._data[key] = (time.time(), hit[1])
            return hit[1]

    def put(self, key: str, value: T) -> None:
        with self._lock:
            self._data[key] = (time.time(), value)

    def exists(self, key: str) -> bool:
        with self._lock:
            self._gc()
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            self._gc()
            return len(self._data)

    def _gc(self) -> None:
        if not self.ttl_seconds:
            return
        now = time.time()
        expired = [k for k, (ts, _) in self._data.items() if now - ts > self.ttl_seconds]
        for k in expired:
            self._data.pop(k, None)
