"""
Event log and replication.

The Replicator keeps the local event log, builds and applies snapshots, and
replays remote events idempotently through the Renderer. It never touches the
network; the Session decides when something is sent.
"""

import logging
import time
import uuid
from datetime import timedelta
from typing import Optional, Tuple

from .messages import (
    Brush,
    Clear,
    DrawEvent,
    Point,
    Snapshot,
    StrokeBegin,
    StrokeEnd,
    StrokePoint,
    UnknownEvent,
)
from .render import Renderer
from .storage import EventLog, ProcessedKeySet, StrokeBeginCache
from .types import MAX_EVENTS, MAX_PROCESSED_KEYS

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def generate_event_id() -> str:
    """Generate a stroke id of the form "<ms>_<9 hex chars>"."""
    return f"{now_ms()}_{uuid.uuid4().hex[:9]}"


class Replicator:
    """Owns the event log, dedup set and open-stroke cache for one client."""

    def __init__(
        self,
        renderer: Renderer,
        max_events: int = MAX_EVENTS,
        max_processed: int = MAX_PROCESSED_KEYS,
        stroke_ttl: timedelta = timedelta(minutes=5),
        stroke_capacity: int = 256,
    ) -> None:
        self.renderer = renderer
        self.log = EventLog(max_events)
        self.processed = ProcessedKeySet(max_processed)
        self.strokes = StrokeBeginCache(ttl=stroke_ttl, capacity=stroke_capacity)

    # MARK: - Local events

    def record(self, event: DrawEvent) -> None:
        """Append a locally generated event to the log."""
        self.log.append(event)

    def build_snapshot(self) -> Snapshot:
        """Snapshot of the full log plus current canvas metadata."""
        return Snapshot(events=tuple(self.log.snapshot()), canvas=self.renderer.canvas_info())

    # MARK: - Remote events

    def apply_snapshot(self, snapshot: Snapshot) -> int:
        """
        Bring the local surface to the host's state.

        Clears the surface and the remote dedup state, applies canvas
        metadata, then replays every event through the same dedup path as
        live events.

        Returns:
            Number of events actually applied
        """
        self.renderer.clear_surface()
        self.reset_remote_state()
        self.renderer.apply_canvas(snapshot.canvas)

        applied = 0
        for event in snapshot.events:
            if self.receive_remote(event):
                applied += 1

        logger.info("Canvas synchronized: %d of %d snapshot events applied",
                    applied, len(snapshot.events))
        return applied

    def receive_remote(self, event: DrawEvent) -> bool:
        """
        Apply a remote event unless it was already applied.

        Returns:
            True if the event was replayed, False if it was a duplicate
        """
        if not self.processed.add(event.dedup_key):
            logger.debug("Dropping duplicate event %s", event.dedup_key)
            return False

        self.replay(event)
        return True

    def replay(self, event: DrawEvent) -> None:
        """Dispatch one event to the renderer."""
        if isinstance(event, StrokeBegin):
            point = self._denormalize(event.p)
            self.strokes.store(event, point)

        elif isinstance(event, StrokePoint):
            entry = self.strokes.retrieve(event.id)
            if entry is None:
                logger.warning("No stroke_begin cached for stroke %s; dropping point", event.id)
                return

            point = self._denormalize(event.p)
            self.renderer.draw_segment(entry.last_point, point, entry.begin.brush, event.p.pressure or 1.0)
            self.strokes.touch(event.id, point)

        elif isinstance(event, StrokeEnd):
            self.strokes.invalidate(event.id)
            self.renderer.persist_checkpoint()

        elif isinstance(event, Clear):
            self.renderer.clear_surface()
            self.renderer.persist_checkpoint()

        elif isinstance(event, UnknownEvent):
            logger.warning("Ignoring unknown draw event type %r", event.type)

    def reset_remote_state(self) -> None:
        """Forget dedup keys and open strokes (called when a session ends)."""
        self.processed.clear()
        self.strokes.clear()

    def _denormalize(self, point: Point) -> Tuple[float, float]:
        width, height = self.renderer.size()
        return (point.x * width, point.y * height)


class StrokeBuilder:
    """Turns local pixel input into normalized draw events.

    Timestamps are strictly increasing so that (id, t) stays unique for
    events generated within the same millisecond.
    """

    def __init__(self, renderer: Renderer) -> None:
        self.renderer = renderer
        self.current_stroke_id: Optional[str] = None
        self._last_t = 0

    def begin(self, x: float, y: float, pressure: float, brush: Brush) -> StrokeBegin:
        """Start a new stroke at pixel (x, y)."""
        event = StrokeBegin(
            id=generate_event_id(),
            t=self._next_t(),
            brush=brush,
            p=self._normalize(x, y, pressure),
        )
        self.current_stroke_id = event.id
        return event

    def point(self, x: float, y: float, pressure: float = 1.0) -> Optional[StrokePoint]:
        """Continue the current stroke. Returns None when no stroke is open."""
        if self.current_stroke_id is None:
            return None
        return StrokePoint(
            id=self.current_stroke_id,
            t=self._next_t(),
            p=self._normalize(x, y, pressure),
        )

    def end(self) -> Optional[StrokeEnd]:
        """Finish the current stroke. Returns None when no stroke is open."""
        if self.current_stroke_id is None:
            return None
        event = StrokeEnd(id=self.current_stroke_id, t=self._next_t())
        self.current_stroke_id = None
        return event

    def clear(self) -> Clear:
        """Build a clear event."""
        return Clear(t=self._next_t())

    def _next_t(self) -> int:
        self._last_t = max(now_ms(), self._last_t + 1)
        return self._last_t

    def _normalize(self, x: float, y: float, pressure: float) -> Point:
        width, height = self.renderer.size()
        nx = min(max(x / width, 0.0), 1.0) if width else 0.0
        ny = min(max(y / height, 0.0), 1.0) if height else 0.0
        return Point(x=nx, y=ny, pressure=pressure)
