"""Tests for message and draw event encoding."""

import json

import pytest
from padsync.messages import (
    Brush,
    CanvasInfo,
    Clear,
    Cursor,
    DrawEventMessage,
    Hello,
    HelloAck,
    Point,
    Snapshot,
    StrokeBegin,
    StrokeEnd,
    StrokePoint,
    UnknownEvent,
    UnknownMessage,
    decode_event,
    decode_message,
    encode_message,
)
from padsync.types import MessageFormatError


def _decode(obj) -> object:
    return decode_message(json.dumps(obj).encode("utf-8"))


class TestDecodeMessage:
    """Test decoding each message kind."""

    def test_hello(self) -> None:
        """hello carries nonce, time and an optional name."""
        message = _decode({"kind": "hello", "nonce": "abc", "time": 1700000000000, "name": "Blue Fox"})
        assert message == Hello(nonce="abc", time=1700000000000, name="Blue Fox")

    def test_hello_without_name(self) -> None:
        """The name is optional."""
        assert _decode({"kind": "hello", "nonce": "abc", "time": 1}).name is None

    def test_hello_ack(self) -> None:
        """hello_ack echoes the nonce."""
        assert _decode({"kind": "hello_ack", "nonce": "abc"}) == HelloAck(nonce="abc")

    def test_cursor(self) -> None:
        """cursor carries normalized coordinates."""
        assert _decode({"kind": "cursor", "x": 0.25, "y": 0.75, "t": 5}) == Cursor(x=0.25, y=0.75, t=5)

    def test_stroke_begin(self) -> None:
        """stroke_begin decodes brush and point."""
        message = _decode({
            "kind": "draw_event",
            "type": "stroke_begin",
            "id": "1700000000000_abc123def",
            "t": 1700000000000,
            "brush": {"color": "#ff0000", "size": 6, "texture": "pencil", "erase": False},
            "p": {"x": 0.1, "y": 0.2, "pressure": 0.5},
        })

        assert isinstance(message, DrawEventMessage)
        assert message.event == StrokeBegin(
            id="1700000000000_abc123def",
            t=1700000000000,
            brush=Brush(color="#ff0000", size=6.0, texture="pencil"),
            p=Point(x=0.1, y=0.2, pressure=0.5),
        )

    def test_pressure_defaults_to_one(self) -> None:
        """A point without pressure has pressure 1.0."""
        event = decode_event({"type": "stroke_point", "id": "s1", "t": 2, "p": {"x": 0.5, "y": 0.5}})
        assert event.p.pressure == 1.0

    def test_numeric_id_converted(self) -> None:
        """Numeric stroke ids are accepted as strings."""
        assert decode_event({"type": "stroke_end", "id": 42, "t": 3}) == StrokeEnd(id="42", t=3)

    def test_clear(self) -> None:
        """clear carries only a timestamp."""
        event = decode_event({"type": "clear", "t": 9})
        assert event == Clear(t=9)
        assert event.dedup_key == (None, 9)

    def test_snapshot(self) -> None:
        """snapshot decodes its events and canvas metadata."""
        message = _decode({
            "kind": "snapshot",
            "events": [
                {"kind": "draw_event", "type": "stroke_end", "id": "s1", "t": 3},
                {"kind": "draw_event", "type": "clear", "t": 4},
            ],
            "canvas": {"w": 800, "h": 600, "bg": "paper"},
        })

        assert message == Snapshot(
            events=(StrokeEnd(id="s1", t=3), Clear(t=4)),
            canvas=CanvasInfo(w=800.0, h=600.0, bg="paper"),
        )


class TestUnknownVariants:
    """Unknown kinds and types decode to explicit variants."""

    def test_unknown_kind(self) -> None:
        """An unrecognized kind is an UnknownMessage, not an error."""
        message = _decode({"kind": "ping", "seq": 1})
        assert isinstance(message, UnknownMessage)
        assert message.kind == "ping"
        assert message.raw["seq"] == 1

    def test_missing_kind(self) -> None:
        """A message without a kind is an UnknownMessage."""
        assert isinstance(_decode({"nonce": "abc"}), UnknownMessage)

    def test_unknown_event_type(self) -> None:
        """An unrecognized draw event type is an UnknownEvent."""
        message = _decode({"kind": "draw_event", "type": "fill", "id": "f1", "t": 7})
        assert isinstance(message.event, UnknownEvent)
        assert message.event.type == "fill"
        assert message.event.dedup_key == ("f1", 7)

    def test_unknown_event_without_id(self) -> None:
        """Unknown events may omit id and t."""
        event = decode_event({"type": "fill"})
        assert isinstance(event, UnknownEvent)
        assert event.dedup_key == (None, None)

    def test_large_integer_timestamp(self) -> None:
        """Integer timestamps beyond float range are still numbers."""
        assert decode_event({"type": "clear", "t": 10 ** 400}) == Clear(t=10 ** 400)


class TestMalformedMessages:
    """Structurally broken payloads raise MessageFormatError."""

    @pytest.mark.parametrize(
        "data",
        [
            b"not json",
            b"\xff\xfe",
            b'"just a string"',
            b'{"kind": "hello", "time": 1}',
            b'{"kind": "hello_ack"}',
            b'{"kind": "cursor", "x": "left", "y": 0.5, "t": 1}',
            b'{"kind": "draw_event", "type": "stroke_begin", "id": "s", "t": 1, "p": {"x": 0, "y": 0}}',
            b'{"kind": "draw_event", "type": "stroke_point", "id": "s", "t": 1}',
            b'{"kind": "draw_event", "type": "stroke_end", "id": true, "t": 1}',
            b'{"kind": "draw_event", "type": "clear"}',
            b'{"kind": "snapshot", "events": {}, "canvas": {"w": 1, "h": 1}}',
            b'{"kind": "snapshot", "events": [], "canvas": null}',
            b'{"kind": "draw_event", "type": "clear", "t": Infinity}',
            b'{"kind": "draw_event", "type": "stroke_end", "id": "s", "t": NaN}',
            b'{"kind": "cursor", "x": -Infinity, "y": 0.5, "t": 1}',
            b'{"kind": "draw_event", "type": "stroke_point", "id": "s", "t": 1, "p": {"x": 0, "y": 0, "pressure": NaN}}',
            b'{"kind": "draw_event", "type": "fill", "id": "f", "t": [1]}',
            b'{"kind": "draw_event", "type": "fill", "id": ["f"], "t": 1}',
            b'{"kind": "draw_event", "type": "fill", "id": true, "t": 1}',
        ],
    )
    def test_rejects(self, data) -> None:
        """Each malformed payload is rejected."""
        with pytest.raises(MessageFormatError):
            decode_message(data)


class TestEncodeMessage:
    """Test the compact JSON encoding."""

    def test_draw_event_wire_format(self) -> None:
        """Draw events are flat objects tagged with kind and type."""
        event = StrokePoint(id="s1", t=10, p=Point(x=0.5, y=0.25))
        obj = json.loads(encode_message(DrawEventMessage(event=event)))

        assert obj == {
            "kind": "draw_event",
            "type": "stroke_point",
            "id": "s1",
            "t": 10,
            "p": {"x": 0.5, "y": 0.25, "pressure": 1.0},
        }

    def test_hello_omits_missing_name(self) -> None:
        """A hello without a name has no name field."""
        obj = json.loads(encode_message(Hello(nonce="n", time=1)))
        assert "name" not in obj

    def test_snapshot_decodes_to_equal_value(self) -> None:
        """A snapshot survives encoding unchanged."""
        snapshot = Snapshot(
            events=(
                StrokeBegin(id="s1", t=1, brush=Brush(color="#000000", size=4.0), p=Point(0.1, 0.1)),
                StrokePoint(id="s1", t=2, p=Point(0.2, 0.2, 0.7)),
                StrokeEnd(id="s1", t=3),
            ),
            canvas=CanvasInfo(w=1024.0, h=768.0),
        )
        assert decode_message(encode_message(snapshot)) == snapshot

    def test_unknown_message_keeps_raw_fields(self) -> None:
        """Unknown messages re-encode their original fields."""
        message = UnknownMessage(kind="ping", raw={"kind": "ping", "seq": 3})
        assert json.loads(encode_message(message)) == {"kind": "ping", "seq": 3}
