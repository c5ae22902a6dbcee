"""
Tests for the playback controller and schedulers.

Tests cover:
- State machine transitions (play, pause, step, reset, finish)
- Pause and reset cancel the pending tick
- At most one pending tick
- Replaying after reset shows the identical steps
- Threading and Tk scheduler adapters
"""

import threading
import time

import pytest

from playback import (
    MAX_DELAY_MS, MIN_DELAY_MS, ManualScheduler, PlaybackController, PlaybackState,
    ThreadingScheduler, TkScheduler, clamp_delay, delay_from_speed,
)
from structures import EmptyStructureError, build_array
from tracers import bubble_sort


# =============================================================================
# Delays
# =============================================================================

def test_delay_is_clamped():
    assert clamp_delay(5) == MIN_DELAY_MS
    assert clamp_delay(5000) == MAX_DELAY_MS
    assert clamp_delay(450) == 450
    assert delay_from_speed(1000) == 100
    assert delay_from_speed(500) == 600
    assert delay_from_speed(50) == 1000


# =============================================================================
# State machine
# =============================================================================

def test_new_controller_is_idle(scheduler):
    ctl = PlaybackController(scheduler)
    assert ctl.state is PlaybackState.IDLE
    assert ctl.current is None
    with pytest.raises(EmptyStructureError):
        ctl.play()
    with pytest.raises(EmptyStructureError):
        ctl.step()


def test_load_trace_is_ready(controller):
    assert controller.state is PlaybackState.READY
    assert controller.cursor == 0
    assert controller.current is None
    assert not controller.has_pending_tick


def test_play_advances_one_step_per_tick(controller, scheduler):
    controller.play()
    assert controller.state is PlaybackState.PLAYING
    assert controller.cursor == 0

    scheduler.advance(100)
    assert controller.cursor == 1
    assert controller.current is controller.steps[0]
    scheduler.advance(300)
    assert controller.cursor == 4


def test_play_runs_to_finished(controller, scheduler):
    controller.play()
    scheduler.advance(100 * controller.step_count)

    assert controller.state is PlaybackState.FINISHED
    assert controller.cursor == controller.step_count
    assert controller.current.action == "done"
    assert not controller.has_pending_tick
    assert scheduler.pending == 0


def test_pause_stops_ticks(controller, scheduler):
    controller.play()
    scheduler.advance(300)
    controller.pause()

    assert controller.state is PlaybackState.PAUSED
    assert scheduler.pending == 0
    scheduler.advance(5000)
    assert controller.cursor == 3


def test_resume_after_pause(controller, scheduler):
    controller.play()
    scheduler.advance(200)
    controller.pause()
    controller.play()
    scheduler.advance(100)
    assert controller.cursor == 3
    assert controller.state is PlaybackState.PLAYING


def test_reset_cancels_and_rewinds(controller, scheduler):
    controller.play()
    scheduler.advance(500)
    controller.reset()

    assert controller.state is PlaybackState.READY
    assert controller.cursor == 0
    scheduler.advance(5000)
    assert controller.cursor == 0


def test_at_most_one_pending_tick(controller, scheduler):
    controller.play()
    controller.play()
    controller.toggle()
    controller.toggle()
    assert scheduler.pending == 1


def test_stale_tick_is_ignored(controller, scheduler):
    class LeakyScheduler(ManualScheduler):
        def cancel(self, handle):
            pass                                    # never cancels

    leaky = LeakyScheduler()
    ctl = PlaybackController(leaky, delay_ms=100)
    ctl.load_trace(controller.steps)
    ctl.play()
    ctl.pause()
    leaky.advance(1000)
    assert ctl.cursor == 0
    assert ctl.state is PlaybackState.PAUSED


def test_step_is_ignored_while_playing(controller):
    controller.play()
    assert controller.step() is False
    assert controller.cursor == 0


def test_manual_stepping(controller):
    assert controller.step() is True
    assert controller.state is PlaybackState.PAUSED
    assert controller.cursor == 1

    while controller.step():
        pass
    assert controller.state is PlaybackState.FINISHED
    assert controller.step() is False


def test_previous_and_seek(controller, scheduler):
    controller.play()
    scheduler.advance(300)
    assert controller.previous() is True
    assert controller.cursor == 2
    assert controller.state is PlaybackState.PAUSED
    assert scheduler.pending == 0

    controller.seek(999)
    assert controller.state is PlaybackState.FINISHED
    controller.seek(0)
    assert controller.state is PlaybackState.READY
    assert controller.previous() is False


def test_play_when_finished_stays_finished(controller, scheduler):
    controller.go_end()
    controller.play()
    assert controller.state is PlaybackState.FINISHED
    assert scheduler.pending == 0


def test_empty_trace_finishes_immediately(scheduler):
    ctl = PlaybackController(scheduler)
    ctl.load_trace([])
    ctl.play()
    assert ctl.state is PlaybackState.FINISHED
    assert scheduler.pending == 0


def test_reset_replays_identical_steps(controller, scheduler):
    seen = []
    controller.subscribe(lambda cursor, step: seen.append(step))

    controller.play()
    scheduler.advance(100 * controller.step_count)
    first = [s for s in seen if s is not None]

    seen.clear()
    controller.reset()
    controller.play()
    scheduler.advance(100 * controller.step_count)
    second = [s for s in seen if s is not None]

    assert first == second == list(controller.steps)


def test_counters_follow_cursor(controller):
    controller.go_end()
    total = controller.comparisons
    controller.seek(1)
    assert controller.comparisons == 1
    assert total == sum(1 for s in controller.steps if s.action == "compare")


def test_delay_change_applies_to_next_tick(controller, scheduler):
    controller.play()
    controller.delay_ms = 400
    scheduler.advance(100)
    assert controller.cursor == 1
    scheduler.advance(300)
    assert controller.cursor == 1
    scheduler.advance(100)
    assert controller.cursor == 2


def test_trace_factory_used_lazily(scheduler, small_array):
    calls = []

    def factory():
        calls.append(1)
        return bubble_sort(small_array)

    ctl = PlaybackController(scheduler, trace_factory=factory)
    assert ctl.step() is True
    assert ctl.step() is True
    assert len(calls) == 1

    ctl.invalidate()
    assert ctl.state is PlaybackState.IDLE
    ctl.reset()
    assert ctl.state is PlaybackState.IDLE
    ctl.play()
    assert len(calls) == 2


# =============================================================================
# Scheduler adapters
# =============================================================================

def test_threading_scheduler_pause_is_final():
    ctl = PlaybackController(ThreadingScheduler(), delay_ms=100)
    ctl.load_trace(bubble_sort(build_array([9, 8, 7, 6, 5, 4, 3, 2, 1])))
    ctl.play()
    time.sleep(0.35)
    ctl.pause()
    frozen = ctl.cursor

    time.sleep(0.3)
    assert ctl.cursor == frozen
    assert ctl.state is PlaybackState.PAUSED


def test_threading_scheduler_finishes():
    done = threading.Event()
    ctl = PlaybackController(ThreadingScheduler(), delay_ms=100)
    ctl.load_trace(bubble_sort(build_array([2, 1])))
    ctl.subscribe(lambda cursor, step: ctl.state is PlaybackState.FINISHED and done.set())
    ctl.play()

    assert done.wait(5)
    assert ctl.cursor == ctl.step_count


class FakeWidget:
    """Stands in for a tkinter widget's after/after_cancel."""

    def __init__(self):
        self.calls = {}
        self._next = 0

    def after(self, ms, callback):
        self._next += 1
        handle = f"after#{self._next}"
        self.calls[handle] = (ms, callback)
        return handle

    def after_cancel(self, handle):
        self.calls.pop(handle, None)

    def fire(self):
        handle, (_ms, callback) = next(iter(self.calls.items()))
        del self.calls[handle]
        callback()


def test_tk_scheduler_uses_after():
    widget = FakeWidget()
    ctl = PlaybackController(TkScheduler(widget), delay_ms=250)
    ctl.load_trace(bubble_sort(build_array([3, 1, 2])))

    ctl.play()
    assert [ms for ms, _cb in widget.calls.values()] == [250]
    widget.fire()
    assert ctl.cursor == 1
    assert len(widget.calls) == 1

    ctl.pause()
    assert widget.calls == {}
