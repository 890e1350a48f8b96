"""
errors.py

Error kinds raised by the speed reader core. Every one is a local,
recoverable condition reported synchronously to the caller; the reader
state is left untouched when one is raised.
"""

from __future__ import annotations


class SpeedReadError(Exception):
    """Base class for all speed reader errors."""


class EmptySequenceError(SpeedReadError, ValueError):
    def __init__(self, message: str = "Nothing to read: the text has no words.") -> None:
        super().__init__(message)


class NoSequenceLoaded(SpeedReadError):
    def __init__(self, message: str = "No text loaded. Submit some text first.") -> None:
        super().__init__(message)


class InvalidRateError(SpeedReadError, ValueError):
    def __init__(self, rate: object) -> None:
        self.rate = rate
        super().__init__(f"WPM must be a positive integer, got {rate!r}")


class ExtractionError(SpeedReadError, RuntimeError):
    """Raised when a PDF/EPUB upload cannot be turned into text."""
