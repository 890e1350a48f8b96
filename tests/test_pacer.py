import asyncio
import random
import threading
from unittest.mock import MagicMock

import pytest

from speedread.errors import EmptySequenceError, InvalidRateError, NoSequenceLoaded
from speedread.pacer import AsyncioScheduler, Mode, Pacer, ThreadingScheduler
from speedread.segmenter import segment

SAMPLE_TEXT = "Go fast, win big."


def test_new_pacer_has_nothing_loaded(pacer):
    assert pacer.mode is Mode.IDLE
    assert pacer.position is None
    assert pacer.current_word is None
    assert pacer.progress_percent == 0


def test_load_rejects_empty_sequence_without_touching_state(pacer, scheduler):
    pacer.load(segment("one two"))
    pacer.start()
    with pytest.raises(EmptySequenceError):
        pacer.load([])
    assert pacer.mode is Mode.RUNNING
    assert len(pacer.sequence) == 2
    assert len(scheduler.active) == 1


def test_start_without_sequence(pacer, scheduler):
    with pytest.raises(NoSequenceLoaded):
        pacer.start()
    assert pacer.mode is Mode.IDLE
    assert scheduler.handles == []


def test_end_to_end_scenario(scheduler):
    pacer = Pacer(scheduler, rate=600)
    words = segment(SAMPLE_TEXT)
    assert [w.text for w in words] == ["Go", "fast,", "win", "big."]

    pacer.load(words)
    pacer.start()
    assert scheduler.delays == [100]

    scheduler.fire()
    assert pacer.current_word.text == "fast,"
    assert scheduler.delays == [100, 200]

    scheduler.run_until_idle()
    assert pacer.mode is Mode.FINISHED
    assert pacer.current_word.text == "big."
    assert pacer.progress_percent == 100
    assert scheduler.delays == [100, 200, 100, 200]


@pytest.mark.parametrize("text,expected", [("plain", 200), ("stop.", 400), ("pause,", 400)])
def test_delay_doubles_on_clause_end(pacer, scheduler, text, expected):
    pacer.load(segment(text))
    assert pacer.delay_ms() == expected
    pacer.start()
    assert scheduler.delays == [expected]


def test_progress_never_goes_backwards(pacer, scheduler):
    pacer.load(segment("one two three four five six seven"))
    pacer.start()
    seen = [pacer.progress_percent]
    while pacer.mode is Mode.RUNNING:
        scheduler.fire()
        seen.append(pacer.progress_percent)
    assert seen == sorted(seen)
    assert seen[-1] == 100
    assert pacer.mode is Mode.FINISHED


def test_single_word_finishes_after_one_tick(pacer, scheduler):
    pacer.load(segment("Hi"))
    assert pacer.progress_percent == 100
    pacer.start()
    scheduler.fire()
    assert pacer.mode is Mode.FINISHED
    assert pacer.position == 0
    assert scheduler.active == []


def test_restart_on_replay(pacer, scheduler):
    pacer.load(segment("a b c"))
    pacer.start()
    scheduler.run_until_idle()
    assert pacer.position == 2

    pacer.start()
    assert pacer.mode is Mode.RUNNING
    assert pacer.position == 0
    scheduler.fire()
    assert pacer.position == 1


def test_pause_and_resume(pacer, scheduler):
    pacer.load(segment("a b c d"))
    pacer.start()
    scheduler.fire()
    pacer.pause()
    assert pacer.mode is Mode.PAUSED
    assert pacer.position == 1
    assert scheduler.active == []

    pacer.start()
    assert pacer.position == 1
    assert len(scheduler.active) == 1


def test_pause_is_noop_unless_running(pacer, scheduler):
    pacer.pause()
    pacer.load(segment("a b"))
    pacer.pause()
    assert pacer.mode is Mode.IDLE


def test_start_while_running_keeps_single_timer(pacer, scheduler):
    pacer.load(segment("a b c"))
    pacer.start()
    pacer.start()
    assert len(scheduler.handles) == 1


def test_reset_keeps_sequence(pacer, scheduler):
    pacer.load(segment("a b c"))
    pacer.start()
    scheduler.fire()
    pacer.reset()
    assert pacer.mode is Mode.IDLE
    assert pacer.position == 0
    assert len(pacer.sequence) == 3
    assert scheduler.active == []


def test_load_cancels_pending_advance(pacer, scheduler):
    pacer.load(segment("a b c"))
    pacer.start()
    stale = scheduler.active[0]
    pacer.load(segment("x y"))
    assert stale.cancelled
    assert pacer.mode is Mode.IDLE
    assert pacer.current_word.text == "x"


def test_stale_timer_callback_is_ignored(pacer, scheduler):
    # threading.Timer.cancel() cannot stop a callback that already started.
    pacer.load(segment("a b c"))
    pacer.start()
    stale = scheduler.active[0]
    pacer.pause()
    stale.callback()
    assert pacer.position == 0
    assert pacer.mode is Mode.PAUSED


def test_tick_outside_running_does_nothing(pacer):
    pacer.load(segment("a b"))
    pacer.tick()
    assert pacer.position == 0
    assert pacer.mode is Mode.IDLE


def test_rate_change_applies_to_next_delay_only(pacer, scheduler):
    pacer.load(segment("a b c"))
    pacer.start()
    pacer.set_rate(600)
    assert scheduler.delays == [200]
    scheduler.fire()
    assert scheduler.delays == [200, 100]


@pytest.mark.parametrize("rate", [0, -1, 1.5, "fast", None, False])
def test_invalid_rate_rejected(pacer, rate):
    with pytest.raises(InvalidRateError):
        pacer.set_rate(rate)
    assert pacer.rate == 300


def test_invalid_initial_rate(scheduler):
    with pytest.raises(InvalidRateError):
        Pacer(scheduler, rate=0)


def test_at_most_one_pending_timer(pacer, scheduler):
    rng = random.Random(7)
    pacer.load(segment("lorem ipsum, dolor sit amet. consectetur adipiscing elit!"))
    ops = ["start", "pause", "reset", "tick", "fire", "rate"]
    for _ in range(500):
        op = rng.choice(ops)
        if op == "fire":
            if scheduler.active:
                scheduler.fire()
        elif op == "rate":
            pacer.set_rate(rng.randint(100, 1000))
        else:
            getattr(pacer, op)()
        assert len(scheduler.active) <= 1
        assert len(scheduler.active) == (1 if pacer.mode is Mode.RUNNING else 0)


def test_render_sink_gets_every_transition(scheduler):
    sink = MagicMock()
    pacer = Pacer(scheduler, rate=300, on_change=sink)
    pacer.load(segment("a b"))
    pacer.start()
    scheduler.fire()
    scheduler.fire()

    modes = [c.args[0].mode for c in sink.call_args_list]
    assert modes == [Mode.IDLE, Mode.RUNNING, Mode.RUNNING, Mode.FINISHED]
    last = sink.call_args_list[-1].args[0]
    assert last.current_word.text == "b"
    assert last.progress_percent == 100


def test_snapshot_action_label(pacer, scheduler):
    pacer.load(segment("a b"))
    assert pacer.snapshot().action_label == "Start"
    pacer.start()
    assert pacer.snapshot().action_label == "Pause"
    pacer.pause()
    assert pacer.snapshot().action_label == "Resume"


def test_snapshot_to_dict(pacer):
    pacer.load(segment("hello world."))
    data = pacer.snapshot().to_dict()
    assert data["current_word"] == {"text": "hello", "focus_index": 1, "ends_sentence_or_clause": False}
    assert data["mode"] == "idle"
    assert data["progress_percent"] == 50
    assert data["total"] == 2


def test_unload_discards_sequence(pacer, scheduler):
    pacer.load(segment("a b"))
    pacer.start()
    pacer.unload()
    assert pacer.sequence == ()
    assert pacer.current_word is None
    assert scheduler.active == []
    with pytest.raises(NoSequenceLoaded):
        pacer.start()


def test_close_cancels_pending_timer(scheduler):
    with Pacer(scheduler) as pacer:
        pacer.load(segment("a b c"))
        pacer.start()
    assert scheduler.active == []
    assert pacer.mode is Mode.IDLE
    pacer.close()


def test_threading_scheduler_runs_to_the_end():
    done = threading.Event()

    def on_change(snap):
        if snap.mode is Mode.FINISHED:
            done.set()

    pacer = Pacer(ThreadingScheduler(), rate=60000, on_change=on_change)
    try:
        pacer.load(segment("one two three, four."))
        pacer.start()
        assert done.wait(timeout=5)
        assert pacer.position == 3
    finally:
        pacer.close()


def test_asyncio_scheduler_runs_to_the_end():
    async def read():
        pacer = Pacer(AsyncioScheduler(), rate=60000)
        pacer.load(segment("one two three"))
        pacer.start()
        for _ in range(500):
            if pacer.mode is Mode.FINISHED:
                break
            await asyncio.sleep(0.005)
        return pacer

    pacer = asyncio.run(read())
    assert pacer.mode is Mode.FINISHED
    assert pacer.progress_percent == 100


def test_snapshot_position_matches_pacer_when_empty(pacer):
    assert pacer.snapshot().position is None
    assert pacer.snapshot().to_dict()["position"] is None
    pacer.load(segment("a b"))
    assert pacer.snapshot().position == pacer.position == 0
