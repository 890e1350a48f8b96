"""RSVP speed reading: word segmentation, ORP focus points and WPM pacing."""

from .errors import (
    EmptySequenceError,
    ExtractionError,
    InvalidRateError,
    NoSequenceLoaded,
    SpeedReadError,
)
from .pacer import AsyncioScheduler, Mode, Pacer, Snapshot, ThreadingScheduler
from .preferences import JsonFilePreferences, MemoryPreferences
from .segmenter import WordUnit, segment
from .session import ReaderSession

__all__ = [
    "AsyncioScheduler",
    "EmptySequenceError",
    "ExtractionError",
    "InvalidRateError",
    "JsonFilePreferences",
    "MemoryPreferences",
    "Mode",
    "NoSequenceLoaded",
    "Pacer",
    "ReaderSession",
    "Snapshot",
    "SpeedReadError",
    "ThreadingScheduler",
    "WordUnit",
    "segment",
]

__version__ = "0.1.0"
