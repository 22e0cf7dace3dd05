"""padsync storage module."""

from .event_log import EventLog
from .processed_keys import ProcessedKeySet
from .stroke_cache import StrokeBeginCache, StrokeEntry

__all__ = [
    "EventLog",
    "ProcessedKeySet",
    "StrokeBeginCache",
    "StrokeEntry",
]
