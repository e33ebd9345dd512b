"""Bounded LRU cache for embedding vectors."""

import threading
from collections import OrderedDict
from typing import Optional

import numpy as np


class EmbeddingCache:
    """Thread-safe least-recently-used cache from text fingerprint to vector.

    Reads promote an entry to most-recently-used; inserting a new key into a
    full cache evicts exactly one entry, the least recently used.
    """

    def __init__(self, capacity: int = 1000):
        if capacity < 1:
            raise ValueError("Cache capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, np.ndarray] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[np.ndarray]:
        with self._lock:
            value = self._entries.get(key)
            if value is not None:
                self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: np.ndarray) -> None:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self.capacity:
                self._entries.popitem(last=False)
            self._entries[key] = value

    def has(self, key: str) -> bool:
        """Membership test; does not change recency."""
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)
