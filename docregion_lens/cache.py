"""A small bounded least-recently-used cache."""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class LruCache(Generic[K, V]):
    """Map with a fixed capacity that evicts the least recently used entry.

    Both `get()` and `set()` count as a use. Operations are guarded by a lock,
    so the cache can be shared between worker threads.
    """

    def __init__(self, capacity: int = 10):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._values: OrderedDict[K, V] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: K) -> V | None:
        with self._lock:
            if key not in self._values:
                return None
            self._values.move_to_end(key)
            return self._values[key]

    def has(self, key: K) -> bool:
        with self._lock:
            return key in self._values

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._values[key] = value
            self._values.move_to_end(key)
            while len(self._values) > self.capacity:
                self._values.popitem(last=False)

    def delete(self, key: K) -> bool:
        with self._lock:
            if key not in self._values:
                return False
            del self._values[key]
            return True

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
