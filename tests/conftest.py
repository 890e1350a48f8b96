"""Shared fixtures: a fake scheduler that records every advance the pacer
asks for, so tests can fire timers by hand and count outstanding ones."""

import io
import zipfile
from typing import Callable, List

import pytest

from speedread.pacer import Pacer
from speedread.preferences import MemoryPreferences
from speedread.session import ReaderSession


class FakeHandle:
    def __init__(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    def __init__(self) -> None:
        self.handles: List[FakeHandle] = []

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(delay_ms, callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    @property
    def delays(self) -> List[float]:
        return [h.delay_ms for h in self.handles]

    def fire(self) -> None:
        """Fire the one outstanding timer."""
        active = self.active
        assert len(active) == 1, f"expected one pending timer, found {len(active)}"
        handle = active[0]
        handle.fired = True
        handle.callback()

    def run_until_idle(self, limit: int = 10000) -> int:
        fired = 0
        while self.active:
            self.fire()
            fired += 1
            assert fired < limit
        return fired



@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def pacer(scheduler):
    return Pacer(scheduler, rate=300)


@pytest.fixture
def prefs():
    return MemoryPreferences()


@pytest.fixture
def session(prefs, scheduler):
    with ReaderSession(prefs, scheduler) as s:
        yield s


@pytest.fixture
def epub_bytes():
    """A bare zip of XHTML chapters, no OPF container."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip")
        zf.writestr(
            "OEBPS/ch1.xhtml",
            "<html><head><script>alert('x')</script></head>"
            "<body><h1>Chapter One</h1><p>It was a dark and stormy night.</p></body></html>",
        )
        zf.writestr("OEBPS/ch2.xhtml", "<html><body><p>The end.</p></body></html>")
    return buf.getvalue()
