"""
session.py

One reading session: text in, word units out, paced at the saved WPM.
Glues the segmenter, the pacer and the preference store together the way
the reader page uses them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .errors import EmptySequenceError
from .pacer import Mode, Pacer, Snapshot
from .preferences import load_rate, save_rate
from .segmenter import estimated_minutes, segment, validate_rate, word_count

logger = logging.getLogger(__name__)


class ReaderSession:
    def __init__(
        self,
        preferences: Any,
        scheduler: Any,
        on_change: Optional[Callable[[Snapshot], None]] = None,
    ) -> None:
        self.preferences = preferences
        self.text = ""
        self.pacer = Pacer(scheduler, rate=load_rate(preferences), on_change=on_change)
        logger.info("Reader session opened at %d WPM", self.pacer.rate)

    @property
    def rate(self) -> int:
        return self.pacer.rate

    @property
    def has_text(self) -> bool:
        return bool(self.pacer.sequence)

    def submit(self, text: str, autostart: bool = True) -> Snapshot:
        if not text or not text.strip():
            raise EmptySequenceError()
        words = segment(text)
        self.pacer.load(words)
        self.text = text
        logger.info("Loaded %d words", len(words))
        if autostart:
            self.pacer.start()
        return self.pacer.snapshot()

    def start(self) -> Snapshot:
        self.pacer.start()
        return self.pacer.snapshot()

    def pause(self) -> Snapshot:
        self.pacer.pause()
        return self.pacer.snapshot()

    def toggle(self) -> Snapshot:
        if self.pacer.mode is Mode.RUNNING:
            self.pacer.pause()
        else:
            self.pacer.start()
        return self.pacer.snapshot()

    def reset(self) -> Snapshot:
        self.pacer.reset()
        return self.pacer.snapshot()

    def set_rate(self, rate: int) -> Snapshot:
        rate = validate_rate(rate)
        self.pacer.set_rate(rate)
        save_rate(self.preferences, rate)
        logger.info("Rate set to %d WPM", rate)
        return self.pacer.snapshot()

    def clear(self) -> Snapshot:
        """Drop the loaded text and go back to input mode."""
        self.pacer.unload()
        self.text = ""
        return self.pacer.snapshot()

    def snapshot(self) -> Snapshot:
        return self.pacer.snapshot()

    def stats(self) -> Dict[str, int]:
        return {
            "word_count": word_count(self.text),
            "estimated_minutes": estimated_minutes(self.text, self.pacer.rate),
            "rate": self.pacer.rate,
        }

    def close(self) -> None:
        self.pacer.close()
        logger.info("Reader session closed")

    def __enter__(self) -> "ReaderSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
