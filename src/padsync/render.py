"""
Rendering collaborator interface.

The protocol never touches pixels itself. It hands replayed strokes to a
Renderer, which owns the drawing surface, the remote cursor overlay, and the
local persistence checkpoint.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .messages import BACKGROUND_WHITE, Brush, CanvasInfo


class Renderer(ABC):
    """Abstract base class for the local drawing surface."""

    @abstractmethod
    def size(self) -> Tuple[float, float]:
        """Current surface size in pixels as (width, height)."""
        pass

    @abstractmethod
    def canvas_info(self) -> CanvasInfo:
        """Canvas metadata to send with a snapshot."""
        pass

    @abstractmethod
    def draw_segment(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        brush: Brush,
        pressure: float,
    ) -> None:
        """Draw one stroke segment in pixel coordinates."""
        pass

    @abstractmethod
    def clear_surface(self) -> None:
        """Blank the drawing surface."""
        pass

    @abstractmethod
    def persist_checkpoint(self) -> None:
        """Save the current surface to local storage."""
        pass

    @abstractmethod
    def apply_canvas(self, canvas: CanvasInfo) -> None:
        """Apply canvas metadata received from the host."""
        pass

    def show_remote_cursor(self, x: float, y: float, name: Optional[str]) -> None:
        """Draw the peer's pointer at pixel coordinates."""

    def hide_remote_cursor(self) -> None:
        """Remove the peer's pointer from the overlay."""


@dataclass
class SegmentCall:
    """A recorded draw_segment call."""
    start: Tuple[float, float]
    end: Tuple[float, float]
    brush: Brush
    pressure: float


@dataclass
class InMemoryRenderer(Renderer):
    """Renderer that records calls instead of drawing."""

    width: float = 800.0
    height: float = 600.0
    background: str = BACKGROUND_WHITE
    segments: list = field(default_factory=list)
    clears: int = 0
    checkpoints: int = 0
    cursor: Optional[Tuple[float, float, Optional[str]]] = None

    def size(self) -> Tuple[float, float]:
        return (self.width, self.height)

    def canvas_info(self) -> CanvasInfo:
        return CanvasInfo(w=self.width, h=self.height, bg=self.background)

    def draw_segment(self, start, end, brush, pressure) -> None:
        self.segments.append(SegmentCall(start=start, end=end, brush=brush, pressure=pressure))

    def clear_surface(self) -> None:
        self.segments.clear()
        self.clears += 1

    def persist_checkpoint(self) -> None:
        self.checkpoints += 1

    def apply_canvas(self, canvas: CanvasInfo) -> None:
        self.background = canvas.bg

    def show_remote_cursor(self, x: float, y: float, name: Optional[str]) -> None:
        self.cursor = (x, y, name)

    def hide_remote_cursor(self) -> None:
        self.cursor = None

    def is_blank(self) -> bool:
        """Whether nothing has been drawn since the last clear."""
        return not self.segments
