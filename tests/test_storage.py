"""Tests for the bounded event log, processed key set and stroke cache."""

import time
from datetime import timedelta

import pytest
from padsync.messages import Brush, Clear, Point, StrokeBegin
from padsync.storage import EventLog, ProcessedKeySet, StrokeBeginCache
from padsync.types import MAX_EVENTS


def _begin(stroke_id: str, t: int = 1) -> StrokeBegin:
    return StrokeBegin(id=stroke_id, t=t, brush=Brush(color="#000000", size=4.0), p=Point(0.5, 0.5))


class TestEventLog:
    """Test the append-only event log."""

    def test_append_in_order(self) -> None:
        """Events are kept oldest first."""
        log = EventLog()
        for t in range(5):
            log.append(Clear(t=t))

        assert [event.t for event in log.snapshot()] == [0, 1, 2, 3, 4]

    def test_bounded_to_most_recent(self) -> None:
        """After 1001 appends the log holds the most recent 1000 in order."""
        log = EventLog()
        for t in range(MAX_EVENTS + 1):
            log.append(Clear(t=t))

        events = log.snapshot()
        assert len(events) == MAX_EVENTS
        assert events[0].t == 1
        assert events[-1].t == MAX_EVENTS

    def test_custom_capacity(self) -> None:
        """A smaller capacity evicts sooner."""
        log = EventLog(capacity=3)
        for t in range(10):
            log.append(Clear(t=t))

        assert log.capacity == 3
        assert [event.t for event in log] == [7, 8, 9]

    def test_snapshot_is_a_copy(self) -> None:
        """Mutating a snapshot does not change the log."""
        log = EventLog()
        log.append(Clear(t=1))
        log.snapshot().clear()
        assert len(log) == 1

    def test_clear(self) -> None:
        """clear empties the log."""
        log = EventLog()
        log.append(Clear(t=1))
        log.clear()
        assert len(log) == 0

    def test_rejects_zero_capacity(self) -> None:
        """Capacity must be positive."""
        with pytest.raises(ValueError):
            EventLog(capacity=0)


class TestProcessedKeySet:
    """Test the bounded dedup set."""

    def test_add_reports_new_keys(self) -> None:
        """add returns True once, then False for the same key."""
        keys = ProcessedKeySet()
        assert keys.add(("s1", 1))
        assert not keys.add(("s1", 1))
        assert ("s1", 1) in keys

    def test_evicts_oldest(self) -> None:
        """Beyond capacity the oldest key is forgotten."""
        keys = ProcessedKeySet(capacity=2)
        keys.add("a")
        keys.add("b")
        keys.add("c")

        assert len(keys) == 2
        assert "a" not in keys
        assert "b" in keys and "c" in keys

    def test_duplicate_does_not_refresh(self) -> None:
        """Re-adding a key does not move it to the back."""
        keys = ProcessedKeySet(capacity=2)
        keys.add("a")
        keys.add("b")
        keys.add("a")
        keys.add("c")

        assert "a" not in keys

    def test_clear(self) -> None:
        """clear forgets every key."""
        keys = ProcessedKeySet()
        keys.add("a")
        keys.clear()
        assert "a" not in keys
        assert len(keys) == 0


class TestStrokeBeginCache:
    """Test the open-stroke cache."""

    def test_store_and_retrieve(self) -> None:
        """A stored begin is retrievable with its cursor."""
        cache = StrokeBeginCache()
        begin = _begin("s1")
        cache.store(begin, (10.0, 20.0))

        entry = cache.retrieve("s1")
        assert entry is not None
        assert entry.begin == begin
        assert entry.last_point == (10.0, 20.0)

    def test_retrieve_missing(self) -> None:
        """Unknown ids return None."""
        assert StrokeBeginCache().retrieve("nope") is None

    def test_touch_moves_cursor(self) -> None:
        """touch updates the last replayed point."""
        cache = StrokeBeginCache()
        cache.store(_begin("s1"), (0.0, 0.0))
        cache.touch("s1", (5.0, 5.0))
        assert cache.retrieve("s1").last_point == (5.0, 5.0)

    def test_invalidate(self) -> None:
        """invalidate removes the entry."""
        cache = StrokeBeginCache()
        cache.store(_begin("s1"), (0.0, 0.0))
        cache.invalidate("s1")
        assert "s1" not in cache

    def test_ttl_expiry(self) -> None:
        """Entries past their TTL are not returned."""
        cache = StrokeBeginCache(ttl=timedelta(0))
        cache.store(_begin("s1"), (0.0, 0.0))

        assert cache.retrieve("s1") is None
        assert len(cache) == 0

    def test_prune_expired(self) -> None:
        """prune_expired drops every expired entry."""
        cache = StrokeBeginCache(ttl=timedelta(0))
        cache.store(_begin("s1"), (0.0, 0.0))
        cache.store(_begin("s2"), (0.0, 0.0))
        cache.prune_expired()
        assert len(cache) == 0

    def test_store_prunes_expired(self) -> None:
        """Storing a stroke drops every open stroke past its TTL."""
        cache = StrokeBeginCache(ttl=timedelta(milliseconds=10))
        for i in range(50):
            cache.store(_begin(f"lost{i}"), (0.0, 0.0))
        time.sleep(0.05)

        cache.store(_begin("fresh"), (0.0, 0.0))

        assert len(cache) == 1
        assert "fresh" in cache

    def test_capacity_evicts_oldest(self) -> None:
        """Beyond capacity the oldest open stroke is dropped."""
        cache = StrokeBeginCache(capacity=2)
        for stroke_id in ("s1", "s2", "s3"):
            cache.store(_begin(stroke_id), (0.0, 0.0))

        assert len(cache) == 2
        assert "s1" not in cache
        assert "s3" in cache

    def test_store_replaces_same_id(self) -> None:
        """Storing the same id again keeps one entry."""
        cache = StrokeBeginCache()
        cache.store(_begin("s1", t=1), (0.0, 0.0))
        cache.store(_begin("s1", t=2), (1.0, 1.0))

        assert len(cache) == 1
        assert cache.retrieve("s1").begin.t == 2
