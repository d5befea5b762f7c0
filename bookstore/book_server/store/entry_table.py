"""
Striped identifier table: thread-safe map with per-stripe locks.

Each key maps to a stripe via hash(key) & (num_stripes - 1). Structural
operations (insert, lookup, compare-and-remove) lock only that stripe, so
operations on different identifiers rarely contend.

The stripe locks guard the table's structure only, never the values stored
in it. Callers synchronise on the values themselves.
"""

from __future__ import annotations

import threading
from typing import Dict, Generic, List, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class EntryTable(Generic[K, V]):
    """Thread-safe hash map with striped locks.

    Args:
        num_stripes: Number of lock stripes (default 16, must be power of 2).
    """

    def __init__(self, num_stripes: int = 16) -> None:
        if num_stripes <= 0 or (num_stripes & (num_stripes - 1)) != 0:
            raise ValueError("num_stripes must be a positive power of 2")
        self._num_stripes = num_stripes
        self._stripes: List[Dict[K, V]] = [{} for _ in range(num_stripes)]
        self._locks = [threading.Lock() for _ in range(num_stripes)]
        self._mask = num_stripes - 1

    def get(self, key: K) -> Optional[V]:
        idx = self._stripe_index(key)
        with self._locks[idx]:
            return self._stripes[idx].get(key)

    def put_if_absent(self, key: K, value: V) -> Optional[V]:
        """Insert unless the key is present.

        Returns:
            The value already mapped to key, or None if value was inserted
        """
        idx = self._stripe_index(key)
        with self._locks[idx]:
            existing = self._stripes[idx].get(key)
            if existing is None:
                self._stripes[idx][key] = value
            return existing

    def remove_if_same(self, key: K, value: V) -> bool:
        """Remove key only while it still maps to this exact object.

        A replacement installed under the same key by another thread is
        left in place.
        """
        idx = self._stripe_index(key)
        with self._locks[idx]:
            if self._stripes[idx].get(key) is value:
                del self._stripes[idx][key]
                return True
            return False

    def values(self) -> List[V]:
        """Snapshot of all values.

        Stripes are copied one after another, so this is not a point-in-time
        view. Inserts and removals that race with the walk may or may not be
        included.
        """
        result: List[V] = []
        for i in range(self._num_stripes):
            with self._locks[i]:
                result.extend(self._stripes[i].values())
        return result

    def __len__(self) -> int:
        total = 0
        for i in range(self._num_stripes):
            with self._locks[i]:
                total += len(self._stripes[i])
        return total

    def __contains__(self, key: object) -> bool:
        idx = self._stripe_index(key)  # type: ignore[arg-type]
        with self._locks[idx]:
            return key in self._stripes[idx]

    def _stripe_index(self, key: K) -> int:
        return hash(key) & self._mask
