"""Cache of open remote strokes with TTL and capacity expiration."""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from ..messages import StrokeBegin


@dataclass
class StrokeEntry:
    """An open stroke: its begin event and the last replayed pixel point."""
    begin: StrokeBegin
    last_point: Tuple[float, float]
    expires_at: datetime


# Default TTL: 5 minutes
DEFAULT_TTL = timedelta(minutes=5)
DEFAULT_CAPACITY = 256


class StrokeBeginCache:
    """In-memory cache of StrokeBegin events keyed by stroke id.

    Entries are removed on StrokeEnd. When a StrokeEnd is lost, the entry
    expires after `ttl` or is evicted oldest-first once `capacity` is reached.
    """

    def __init__(self, ttl: timedelta = DEFAULT_TTL, capacity: int = DEFAULT_CAPACITY) -> None:
        """Creates a new stroke cache with the given TTL (default: 5 minutes)."""
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._cache: OrderedDict[str, StrokeEntry] = OrderedDict()
        self._ttl = ttl
        self._capacity = capacity

    def store(self, begin: StrokeBegin, last_point: Tuple[float, float]) -> StrokeEntry:
        """Store a begin event, replacing any entry with the same id."""
        self.prune_expired()
        self._cache.pop(begin.id, None)
        entry = StrokeEntry(
            begin=begin,
            last_point=last_point,
            expires_at=datetime.now() + self._ttl,
        )
        self._cache[begin.id] = entry

        while len(self._cache) > self._capacity:
            self._cache.popitem(last=False)
        return entry

    def retrieve(self, stroke_id: str) -> Optional[StrokeEntry]:
        """Retrieve the entry for a stroke (returns None if absent or expired)."""
        entry = self._cache.get(stroke_id)
        if entry is None:
            return None

        if entry.expires_at <= datetime.now():
            del self._cache[stroke_id]
            return None

        return entry

    def touch(self, stroke_id: str, last_point: Tuple[float, float]) -> None:
        """Advance a stroke's cursor and extend its lifetime."""
        entry = self._cache.get(stroke_id)
        if entry is not None:
            entry.last_point = last_point
            entry.expires_at = datetime.now() + self._ttl

    def invalidate(self, stroke_id: str) -> None:
        """Remove the entry for a stroke."""
        self._cache.pop(stroke_id, None)

    def clear(self) -> None:
        """Clear all entries."""
        self._cache.clear()

    def prune_expired(self) -> None:
        """Remove all expired entries."""
        now = datetime.now()
        expired = [sid for sid, entry in self._cache.items() if entry.expires_at <= now]
        for sid in expired:
            del self._cache[sid]

    def __contains__(self, stroke_id: str) -> bool:
        return self.retrieve(stroke_id) is not None

    def __len__(self) -> int:
        return len(self._cache)
