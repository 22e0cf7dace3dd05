"""Bounded set of inbound event keys already applied."""

from collections import OrderedDict
from typing import Hashable

from ..types import MAX_PROCESSED_KEYS


class ProcessedKeySet:
    """Insertion-ordered set that forgets its oldest keys beyond capacity."""

    def __init__(self, capacity: int = MAX_PROCESSED_KEYS) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._keys: OrderedDict[Hashable, None] = OrderedDict()
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, key: Hashable) -> bool:
        """Insert a key. Returns False if it was already present."""
        if key in self._keys:
            return False

        self._keys[key] = None
        while len(self._keys) > self._capacity:
            self._keys.popitem(last=False)
        return True

    def clear(self) -> None:
        self._keys.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
