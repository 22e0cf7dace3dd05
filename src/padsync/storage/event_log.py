"""Bounded, append-only log of locally generated drawing events."""

from collections import deque
from typing import Iterator

from ..messages import DrawEvent
from ..types import MAX_EVENTS


class EventLog:
    """Append-only event log with FIFO eviction once capacity is reached."""

    def __init__(self, capacity: int = MAX_EVENTS) -> None:
        """Creates an empty log holding at most `capacity` events."""
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._events: deque[DrawEvent] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        """Maximum number of events retained."""
        return self._events.maxlen

    def append(self, event: DrawEvent) -> None:
        """Append an event, evicting the oldest one when full."""
        self._events.append(event)

    def snapshot(self) -> list[DrawEvent]:
        """Returns the retained events, oldest first."""
        return list(self._events)

    def clear(self) -> None:
        """Remove all events."""
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[DrawEvent]:
        return iter(list(self._events))
