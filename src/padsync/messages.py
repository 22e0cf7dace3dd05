"""Messages and drawing events carried inside encrypted envelopes."""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

from .types import MessageFormatError

# Message kinds
KIND_HELLO = "hello"
KIND_HELLO_ACK = "hello_ack"
KIND_SNAPSHOT = "snapshot"
KIND_DRAW_EVENT = "draw_event"
KIND_CURSOR = "cursor"

# Draw event types
STROKE_BEGIN = "stroke_begin"
STROKE_POINT = "stroke_point"
STROKE_END = "stroke_end"
CLEAR = "clear"

# Brush textures understood by the renderer
TEXTURES = ("ink", "pencil", "marker", "spray", "charcoal")

BACKGROUND_WHITE = "white"
BACKGROUND_PAPER = "paper"


@dataclass(frozen=True)
class Point:
    """A point normalized to the unit square."""
    x: float
    y: float
    pressure: float = 1.0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "pressure": self.pressure}


@dataclass(frozen=True)
class Brush:
    """Brush parameters carried by a stroke's begin event."""
    color: str
    size: float
    texture: str = "ink"
    erase: bool = False

    def to_dict(self) -> dict:
        return {
            "color": self.color,
            "size": self.size,
            "texture": self.texture,
            "erase": self.erase,
        }


@dataclass(frozen=True)
class CanvasInfo:
    """Canvas metadata sent with a snapshot."""
    w: float
    h: float
    bg: str = BACKGROUND_WHITE

    def to_dict(self) -> dict:
        return {"w": self.w, "h": self.h, "bg": self.bg}


# ============================================================================
# Draw events
# ============================================================================


@dataclass(frozen=True)
class StrokeBegin:
    """First event of a stroke; carries the brush and starting point."""
    id: str
    t: int
    brush: Brush
    p: Point

    @property
    def dedup_key(self) -> Tuple[Optional[str], int]:
        return (self.id, self.t)

    def to_dict(self) -> dict:
        return {
            "kind": KIND_DRAW_EVENT,
            "type": STROKE_BEGIN,
            "id": self.id,
            "t": self.t,
            "brush": self.brush.to_dict(),
            "p": self.p.to_dict(),
        }


@dataclass(frozen=True)
class StrokePoint:
    """A subsequent point of a stroke."""
    id: str
    t: int
    p: Point

    @property
    def dedup_key(self) -> Tuple[Optional[str], int]:
        return (self.id, self.t)

    def to_dict(self) -> dict:
        return {
            "kind": KIND_DRAW_EVENT,
            "type": STROKE_POINT,
            "id": self.id,
            "t": self.t,
            "p": self.p.to_dict(),
        }


@dataclass(frozen=True)
class StrokeEnd:
    """Last event of a stroke."""
    id: str
    t: int

    @property
    def dedup_key(self) -> Tuple[Optional[str], int]:
        return (self.id, self.t)

    def to_dict(self) -> dict:
        return {"kind": KIND_DRAW_EVENT, "type": STROKE_END, "id": self.id, "t": self.t}


@dataclass(frozen=True)
class Clear:
    """Blank the whole surface."""
    t: int

    @property
    def dedup_key(self) -> Tuple[Optional[str], int]:
        return (None, self.t)

    def to_dict(self) -> dict:
        return {"kind": KIND_DRAW_EVENT, "type": CLEAR, "t": self.t}


@dataclass(frozen=True)
class UnknownEvent:
    """A draw event with a type this version does not understand."""
    type: Any
    raw: dict = field(compare=False)

    @property
    def dedup_key(self) -> Tuple[Optional[str], int]:
        return (self.raw.get("id"), self.raw.get("t"))

    def to_dict(self) -> dict:
        return dict(self.raw)


DrawEvent = Union[StrokeBegin, StrokePoint, StrokeEnd, Clear, UnknownEvent]


# ============================================================================
# Messages
# ============================================================================


@dataclass(frozen=True)
class Hello:
    """Handshake opener sent by the host."""
    nonce: str
    time: int
    name: Optional[str] = None

    def to_dict(self) -> dict:
        obj = {"kind": KIND_HELLO, "nonce": self.nonce, "time": self.time}
        if self.name is not None:
            obj["name"] = self.name
        return obj


@dataclass(frozen=True)
class HelloAck:
    """Handshake reply echoing the hello nonce."""
    nonce: str
    name: Optional[str] = None

    def to_dict(self) -> dict:
        obj = {"kind": KIND_HELLO_ACK, "nonce": self.nonce}
        if self.name is not None:
            obj["name"] = self.name
        return obj


@dataclass(frozen=True)
class Snapshot:
    """Full event log plus canvas metadata for a peer joining mid-session."""
    events: Tuple[DrawEvent, ...]
    canvas: CanvasInfo

    def to_dict(self) -> dict:
        return {
            "kind": KIND_SNAPSHOT,
            "events": [event.to_dict() for event in self.events],
            "canvas": self.canvas.to_dict(),
        }


@dataclass(frozen=True)
class DrawEventMessage:
    """A single live drawing event."""
    event: DrawEvent

    def to_dict(self) -> dict:
        return self.event.to_dict()


@dataclass(frozen=True)
class Cursor:
    """Remote pointer position, normalized."""
    x: float
    y: float
    t: int

    def to_dict(self) -> dict:
        return {"kind": KIND_CURSOR, "x": self.x, "y": self.y, "t": self.t}


@dataclass(frozen=True)
class UnknownMessage:
    """A message with a kind this version does not understand."""
    kind: Any
    raw: dict = field(compare=False)

    def to_dict(self) -> dict:
        return dict(self.raw)


Message = Union[Hello, HelloAck, Snapshot, DrawEventMessage, Cursor, UnknownMessage]


# ============================================================================
# Encoding
# ============================================================================


def encode_message(message: Message) -> bytes:
    """Encode a message as compact UTF-8 JSON."""
    return json.dumps(message.to_dict(), separators=(",", ":")).encode("utf-8")


def decode_message(data: bytes) -> Message:
    """
    Decode a decrypted payload into a message.

    Unknown kinds and unknown draw event types decode to UnknownMessage /
    UnknownEvent rather than raising.

    Args:
        data: Decrypted payload bytes

    Returns:
        The decoded message

    Raises:
        MessageFormatError: If the payload is not a well-formed message
    """
    try:
        obj = json.loads(data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MessageFormatError("Payload is not valid JSON") from e

    if not isinstance(obj, dict):
        raise MessageFormatError("Payload must be a JSON object")

    kind = obj.get("kind")

    if kind == KIND_HELLO:
        return Hello(
            nonce=_require_str(obj, "nonce"),
            time=_require_int(obj, "time"),
            name=_optional_str(obj, "name"),
        )
    if kind == KIND_HELLO_ACK:
        return HelloAck(
            nonce=_require_str(obj, "nonce"),
            name=_optional_str(obj, "name"),
        )
    if kind == KIND_SNAPSHOT:
        return _decode_snapshot(obj)
    if kind == KIND_DRAW_EVENT:
        return DrawEventMessage(event=decode_event(obj))
    if kind == KIND_CURSOR:
        return Cursor(
            x=_require_number(obj, "x"),
            y=_require_number(obj, "y"),
            t=_require_int(obj, "t"),
        )

    return UnknownMessage(kind=kind, raw=obj)


def decode_event(obj: Any) -> DrawEvent:
    """
    Decode a single draw event dictionary.

    Raises:
        MessageFormatError: If a known event type is missing fields
    """
    if not isinstance(obj, dict):
        raise MessageFormatError("Draw event must be a JSON object")

    event_type = obj.get("type")

    if event_type == STROKE_BEGIN:
        return StrokeBegin(
            id=_require_id(obj),
            t=_require_int(obj, "t"),
            brush=_decode_brush(obj.get("brush")),
            p=_decode_point(obj.get("p")),
        )
    if event_type == STROKE_POINT:
        return StrokePoint(
            id=_require_id(obj),
            t=_require_int(obj, "t"),
            p=_decode_point(obj.get("p")),
        )
    if event_type == STROKE_END:
        return StrokeEnd(id=_require_id(obj), t=_require_int(obj, "t"))
    if event_type == CLEAR:
        return Clear(t=_require_int(obj, "t"))

    event_id = obj.get("id")
    if event_id is not None and (isinstance(event_id, bool) or not isinstance(event_id, (str, int))):
        raise MessageFormatError("Draw event id must be a string or number")
    t = obj.get("t")
    if t is not None and not _is_number(t):
        raise MessageFormatError("Field 't' must be a number")

    return UnknownEvent(type=event_type, raw=obj)


def _decode_snapshot(obj: dict) -> Snapshot:
    events = obj.get("events")
    if not isinstance(events, list):
        raise MessageFormatError("Snapshot events must be a list")

    canvas = obj.get("canvas")
    if not isinstance(canvas, dict):
        raise MessageFormatError("Snapshot canvas must be an object")

    bg = canvas.get("bg", BACKGROUND_WHITE)
    if not isinstance(bg, str):
        raise MessageFormatError("Snapshot background must be a string")

    return Snapshot(
        events=tuple(decode_event(event) for event in events),
        canvas=CanvasInfo(
            w=_require_number(canvas, "w"),
            h=_require_number(canvas, "h"),
            bg=bg,
        ),
    )


def _decode_brush(obj: Any) -> Brush:
    if not isinstance(obj, dict):
        raise MessageFormatError("stroke_begin requires a brush")

    erase = obj.get("erase", False)
    if not isinstance(erase, bool):
        raise MessageFormatError("Brush erase flag must be a boolean")

    texture = obj.get("texture", "ink")
    if not isinstance(texture, str):
        raise MessageFormatError("Brush texture must be a string")

    return Brush(
        color=_require_str(obj, "color"),
        size=_require_number(obj, "size"),
        texture=texture,
        erase=erase,
    )


def _decode_point(obj: Any) -> Point:
    if not isinstance(obj, dict):
        raise MessageFormatError("Draw event requires a point")

    pressure = obj.get("pressure")
    if pressure is None:
        pressure = 1.0
    elif not _is_number(pressure):
        raise MessageFormatError("Point pressure must be a number")

    return Point(
        x=_require_number(obj, "x"),
        y=_require_number(obj, "y"),
        pressure=float(pressure),
    )


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _require_number(obj: dict, key: str) -> float:
    value = obj.get(key)
    if not _is_number(value):
        raise MessageFormatError(f"Field {key!r} must be a number")
    return float(value)


def _require_int(obj: dict, key: str) -> int:
    value = obj.get(key)
    if not _is_number(value):
        raise MessageFormatError(f"Field {key!r} must be a number")
    return int(value)


def _require_str(obj: dict, key: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise MessageFormatError(f"Field {key!r} must be a string")
    return value


def _optional_str(obj: dict, key: str) -> Optional[str]:
    value = obj.get(key)
    return value if isinstance(value, str) else None


def _require_id(obj: dict) -> str:
    value = obj.get("id")
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise MessageFormatError("Draw event requires an id")
    return str(value)
