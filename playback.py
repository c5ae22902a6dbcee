"""
╔══════════════════════════════════════════════════════════════════╗
║                 Playback: cursor over a recorded trace           ║
║                                                                  ║
║  State machine                                                   ║
║  ─────────────                                                   ║
║     IDLE ──load_trace──► READY ──play──► PLAYING ──tick…──┐      ║
║                           ▲  │             │  ▲           ▼      ║
║                      reset│  └──step──►  pause│play    FINISHED  ║
║                           │                ▼  │                  ║
║                           └───────────── PAUSED                  ║
║                                                                  ║
║  Auto-play loop (one pending tick at most):                      ║
║    play() → call_later(delay, tick)                              ║
║      tick → cursor += 1 → call_later(delay, tick) → …            ║
║        → cursor == step_count → FINISHED                         ║
║                                                                  ║
║  pause()/reset()/load_trace() cancel the pending tick; a tick    ║
║  that fires anyway carries a stale generation number and is      ║
║  ignored.                                                        ║
╚══════════════════════════════════════════════════════════════════╝
"""

import enum
import itertools
import logging
import threading

from structures import EmptyStructureError

logger = logging.getLogger(__name__)

MIN_DELAY_MS     = 100
MAX_DELAY_MS     = 1000
DEFAULT_DELAY_MS = 600


def clamp_delay(delay_ms):
    return max(MIN_DELAY_MS, min(MAX_DELAY_MS, int(delay_ms)))


def delay_from_speed(speed):
    """Map a speed slider value (50..1000, faster is higher) to a tick delay."""
    return clamp_delay(1100 - speed)


# ═════════════════════════════════════════════════════════════════
#  SCHEDULERS
#
#  A scheduler is a cancellable one-shot delayed call:
#      handle = call_later(delay_ms, callback)
#      cancel(handle)
# ═════════════════════════════════════════════════════════════════
class Scheduler:

    def call_later(self, delay_ms, callback):
        raise NotImplementedError

    def cancel(self, handle):
        raise NotImplementedError


class TkScheduler(Scheduler):
    """Delegates to a tkinter widget's ``after`` / ``after_cancel``."""

    def __init__(self, widget):
        self.widget = widget

    def call_later(self, delay_ms, callback):
        return self.widget.after(int(delay_ms), callback)

    def cancel(self, handle):
        self.widget.after_cancel(handle)


class ThreadingScheduler(Scheduler):
    """
    ``threading.Timer`` based scheduler for headless playback.

    Callbacks run on the timer thread; ``PlaybackController`` guards
    its state with a lock, so this is safe to use with it.
    """

    def call_later(self, delay_ms, callback):
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle):
        handle.cancel()


class ManualScheduler(Scheduler):
    """
    Virtual clock: nothing runs until ``advance()`` is called.

    Attributes:
        now (int): Current virtual time in milliseconds.
    """

    def __init__(self):
        self.now      = 0
        self._ids     = itertools.count(1)
        self._pending = {}          # handle → (due, callback)

    def call_later(self, delay_ms, callback):
        handle = next(self._ids)
        self._pending[handle] = (self.now + delay_ms, callback)
        return handle

    def cancel(self, handle):
        self._pending.pop(handle, None)

    @property
    def pending(self):
        return len(self._pending)

    def advance(self, ms):
        """Move the clock forward, firing due callbacks in due order."""
        target = self.now + ms
        while True:
            due = [(when, handle) for handle, (when, _cb) in self._pending.items()
                   if when <= target]
            if not due:
                break
            when, handle = min(due)
            _when, callback = self._pending.pop(handle)
            self.now = when
            callback()
        self.now = target


# ═════════════════════════════════════════════════════════════════
#  PLAYBACK CONTROLLER
# ═════════════════════════════════════════════════════════════════
class PlaybackState(enum.Enum):
    IDLE     = "idle"
    READY    = "ready"
    PLAYING  = "playing"
    PAUSED   = "paused"
    FINISHED = "finished"


class PlaybackController:
    """
    Owns one recorded trace and the cursor that walks it.

    The cursor counts consumed steps: it lives in ``[0, step_count]``,
    ``current`` is ``steps[cursor - 1]`` (``None`` at 0) and
    ``cursor == step_count`` means finished.

    Args:
        scheduler     (Scheduler)      : Delayed-call primitive.
        delay_ms      (int)            : Tick delay, clamped to 100..1000.
        trace_factory (callable|None)  : Called by ``play``/``step`` when
                                         no trace is loaded.
    """

    def __init__(self, scheduler, delay_ms=DEFAULT_DELAY_MS, trace_factory=None):
        self.scheduler     = scheduler
        self.trace_factory = trace_factory
        self._delay_ms     = clamp_delay(delay_ms)
        self._steps        = None
        self._cursor       = 0
        self._state        = PlaybackState.IDLE
        self._after_id     = None
        self._generation   = 0
        self._listeners    = []
        self._lock         = threading.RLock()

    # ── Read-only views ─────────────────────────────────────────
    @property
    def state(self):
        return self._state

    @property
    def cursor(self):
        return self._cursor

    @property
    def steps(self):
        return self._steps

    @property
    def step_count(self):
        return len(self._steps) if self._steps is not None else 0

    @property
    def current(self):
        """The step shown at the current cursor, or None before the first."""
        if self._steps is None or self._cursor == 0:
            return None
        return self._steps[self._cursor - 1]

    @property
    def has_pending_tick(self):
        return self._after_id is not None

    @property
    def delay_ms(self):
        return self._delay_ms

    @delay_ms.setter
    def delay_ms(self, value):
        # Read by the next tick; a running playback picks it up.
        self._delay_ms = clamp_delay(value)

    @property
    def comparisons(self):
        return self._count_consumed("compare")

    @property
    def swaps(self):
        return self._count_consumed("swap")

    def _count_consumed(self, action):
        if self._steps is None:
            return 0
        return sum(1 for s in self._steps[:self._cursor] if s.action == action)

    # ── Observers ───────────────────────────────────────────────
    def subscribe(self, callback):
        """Register ``callback(cursor, step)``; called on every cursor change."""
        self._listeners.append(callback)
        return callback

    def unsubscribe(self, callback):
        self._listeners.remove(callback)

    def _notify(self):
        step = self.current
        for cb in list(self._listeners):
            cb(self._cursor, step)

    # ── Trace lifecycle ─────────────────────────────────────────
    def load_trace(self, steps):
        """Any state → READY with the cursor at 0."""
        with self._lock:
            self._cancel_tick()
            self._steps  = tuple(steps)
            self._cursor = 0
            self._set_state(PlaybackState.READY)
            self._notify()

    def invalidate(self):
        """Forget the trace (new structure or parameters) → IDLE."""
        with self._lock:
            self._cancel_tick()
            self._steps  = None
            self._cursor = 0
            self._set_state(PlaybackState.IDLE)
            self._notify()

    def _ensure_trace(self):
        if self._steps is not None:
            return
        if self.trace_factory is None:
            raise EmptyStructureError("Nothing to play: no trace has been generated")
        self.load_trace(self.trace_factory())

    # ── Controls ────────────────────────────────────────────────
    def play(self):
        """
        READY/PAUSED → PLAYING.

        An empty trace, or a cursor already at the end, goes straight
        to FINISHED without scheduling anything.
        """
        with self._lock:
            if self._state is PlaybackState.PLAYING:
                return
            self._ensure_trace()
            if self._cursor >= self.step_count:
                self._set_state(PlaybackState.FINISHED)
                return
            self._set_state(PlaybackState.PLAYING)
            self._schedule_tick()

    def pause(self):
        """PLAYING → PAUSED; no-op in any other state."""
        with self._lock:
            if self._state is not PlaybackState.PLAYING:
                return
            self._cancel_tick()
            self._set_state(PlaybackState.PAUSED)

    def toggle(self):
        with self._lock:
            if self._state is PlaybackState.PLAYING:
                self.pause()
            else:
                self.play()

    def step(self):
        """
        Advance exactly one step (not while PLAYING).

        Returns:
            bool: True if the cursor moved.
        """
        with self._lock:
            if self._state is PlaybackState.PLAYING:
                return False
            self._ensure_trace()
            if self._cursor >= self.step_count:
                self._set_state(PlaybackState.FINISHED)
                return False
            self._move_to(self._cursor + 1)
            return True

    def previous(self):
        """Step back one position; stops auto-play."""
        with self._lock:
            if self._steps is None or self._cursor == 0:
                return False
            self._cancel_tick()
            self._move_to(self._cursor - 1)
            return True

    def seek(self, index):
        """Jump to ``index`` (clamped); stops auto-play."""
        with self._lock:
            if self._steps is None:
                return
            self._cancel_tick()
            self._move_to(max(0, min(self.step_count, int(index))))

    def go_end(self):
        with self._lock:
            self.seek(self.step_count)

    def reset(self):
        """Any state → READY with cursor 0 (IDLE stays IDLE)."""
        with self._lock:
            self._cancel_tick()
            self._cursor = 0
            if self._steps is not None:
                self._set_state(PlaybackState.READY)
            self._notify()

    # ── Internals ───────────────────────────────────────────────
    def _move_to(self, cursor):
        self._cursor = cursor
        if cursor >= self.step_count:
            self._set_state(PlaybackState.FINISHED)
        elif cursor == 0:
            self._set_state(PlaybackState.READY)
        else:
            self._set_state(PlaybackState.PAUSED)
        self._notify()

    def _set_state(self, state):
        if state is not self._state:
            logger.debug("Playback %s → %s (cursor %d/%d)",
                         self._state.value, state.value, self._cursor, self.step_count)
            self._state = state

    def _schedule_tick(self):
        self._cancel_tick()
        generation = self._generation
        self._after_id = self.scheduler.call_later(
            self._delay_ms, lambda: self._tick(generation))

    def _cancel_tick(self):
        self._generation += 1
        if self._after_id is not None:
            self.scheduler.cancel(self._after_id)
            self._after_id = None

    def _tick(self, generation):
        with self._lock:
            if generation != self._generation or self._state is not PlaybackState.PLAYING:
                return                              # stale tick
            self._after_id = None
            self._cursor += 1
            if self._cursor >= self.step_count:
                self._set_state(PlaybackState.FINISHED)
            else:
                self._schedule_tick()
            self._notify()
