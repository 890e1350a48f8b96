"""
pacer.py

Play/pause/resume/reset state machine that advances through a sequence of
word units at a words-per-minute rate.

The pacer never sleeps or loops on its own. It hands a single callback at a
time to a scheduler (threading.Timer, an asyncio loop, or a fake in tests)
and recomputes the next delay from the displayed word every time it
schedules. At most one advance is ever pending.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

from .config import DEFAULT_WPM
from .errors import EmptySequenceError, NoSequenceLoaded
from .segmenter import WordUnit, validate_rate

logger = logging.getLogger(__name__)


class Mode(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class Snapshot:
    """What a presentation layer needs to draw the reader."""

    current_word: Optional[WordUnit]
    position: Optional[int]
    total: int
    progress_percent: float
    mode: Mode
    rate: int

    @property
    def action_label(self) -> str:
        if self.mode is Mode.RUNNING:
            return "Pause"
        if self.mode is Mode.PAUSED:
            return "Resume"
        return "Start"

    def to_dict(self) -> dict:
        word = None
        if self.current_word is not None:
            word = {
                "text": self.current_word.text,
                "focus_index": self.current_word.focus_index,
                "ends_sentence_or_clause": self.current_word.ends_sentence_or_clause,
            }
        return {
            "current_word": word,
            "position": self.position,
            "total": self.total,
            "progress_percent": self.progress_percent,
            "mode": self.mode.value,
            "rate": self.rate,
            "action_label": self.action_label,
        }


# -------------------------------
# Schedulers
# -------------------------------

class ThreadingScheduler:
    """Runs each advance on a daemon threading.Timer."""

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Runs each advance through ``loop.call_later`` on an event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(delay_ms / 1000.0, callback)


# -------------------------------
# Pacer
# -------------------------------

class Pacer:
    def __init__(
        self,
        scheduler: Any,
        rate: int = DEFAULT_WPM,
        on_change: Optional[Callable[[Snapshot], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._rate = validate_rate(rate)
        self._on_change = on_change
        self._sequence: Tuple[WordUnit, ...] = ()
        self._position = 0
        self._mode = Mode.IDLE
        self._pending: Any = None
        # Bumped whenever the pending advance is dropped, so a timer that
        # already fired on another thread cannot advance the new state.
        self._generation = 0
        self._lock = threading.RLock()

    # Read-only views

    @property
    def sequence(self) -> Tuple[WordUnit, ...]:
        return self._sequence

    @property
    def position(self) -> Optional[int]:
        return self._position if self._sequence else None

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def rate(self) -> int:
        return self._rate

    @property
    def has_pending_timer(self) -> bool:
        return self._pending is not None

    @property
    def current_word(self) -> Optional[WordUnit]:
        if not self._sequence:
            return None
        return self._sequence[self._position]

    @property
    def progress_percent(self) -> float:
        if not self._sequence:
            return 0.0
        return ((self._position + 1) / len(self._sequence)) * 100

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                current_word=self.current_word,
                position=self.position,
                total=len(self._sequence),
                progress_percent=self.progress_percent,
                mode=self._mode,
                rate=self._rate,
            )

    def delay_ms(self) -> float:
        base = 60000 / self._rate
        word = self.current_word
        if word is not None and word.ends_sentence_or_clause:
            return base * 2
        return base

    # Transitions

    def load(self, sequence: Iterable[WordUnit]) -> None:
        words = tuple(sequence)
        if not words:
            raise EmptySequenceError()
        with self._lock:
            self._cancel_pending()
            self._sequence = words
            self._position = 0
            self._mode = Mode.IDLE
            logger.debug("Loaded %d words", len(words))
            self._emit()

    def start(self) -> None:
        with self._lock:
            if not self._sequence:
                raise NoSequenceLoaded()
            if self._mode is Mode.RUNNING:
                return
            if self._mode is Mode.FINISHED:
                self._position = 0
            self._mode = Mode.RUNNING
            self._schedule_next()
            logger.debug("Started at word %d", self._position)
            self._emit()

    def pause(self) -> None:
        with self._lock:
            if self._mode is not Mode.RUNNING:
                return
            self._cancel_pending()
            self._mode = Mode.PAUSED
            logger.debug("Paused at word %d", self._position)
            self._emit()

    def reset(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._position = 0
            self._mode = Mode.IDLE
            logger.debug("Reset")
            self._emit()

    def tick(self) -> None:
        with self._lock:
            if self._mode is not Mode.RUNNING:
                return
            self._cancel_pending()
            next_position = self._position + 1
            if next_position >= len(self._sequence):
                self._position = len(self._sequence) - 1
                self._mode = Mode.FINISHED
                logger.debug("Finished after %d words", len(self._sequence))
            else:
                self._position = next_position
                self._schedule_next()
            self._emit()

    def unload(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._sequence = ()
            self._position = 0
            self._mode = Mode.IDLE
            self._emit()

    def set_rate(self, rate: int) -> None:
        rate = validate_rate(rate)
        with self._lock:
            self._rate = rate
            self._emit()

    def close(self) -> None:
        with self._lock:
            self._cancel_pending()
            if self._mode is Mode.RUNNING:
                self._mode = Mode.IDLE

    def __enter__(self) -> "Pacer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Timer plumbing

    def _schedule_next(self) -> None:
        self._cancel_pending()
        generation = self._generation
        self._pending = self._scheduler.schedule(
            self.delay_ms(), lambda: self._fire(generation)
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Ignoring stale advance")
                return
            # The handle that just fired is spent; nothing to cancel.
            self._pending = None
            self.tick()

    def _emit(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())
