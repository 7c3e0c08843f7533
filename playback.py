"""
╔══════════════════════════════════════════════════════════════════╗
║           Search Structure Simulator  v1.0  —  PLAYBACK          ║
║                                                                  ║
║  Headless cursor over a recorded trace with auto-play driven by  ║
║  a cooperative scheduler.  Any object exposing                   ║
║                                                                  ║
║      after(ms, callback) -> handle      after_cancel(handle)     ║
║                                                                  ║
║  works (a tkinter widget does); ``TimerScheduler`` provides one  ║
║  on top of threading.Timer.                                      ║
║                                                                  ║
║  State machine:                                                  ║
║    ┌──────────┐  play()  ┌──────────┐                            ║
║    │ STOPPED  │ ───────► │ PLAYING  │ ── last step ──► STOPPED   ║
║    └──────────┘ ◄─────── └──────────┘                            ║
║             pause() / reset() / go_end() / cancel()              ║
║                                                                  ║
║  The player only moves a cursor; the engine that produced the    ║
║  trace was already fully mutated, so cancelling never leaves it  ║
║  half-updated.                                                   ║
║                                                                  ║
║  License: MIT                                                    ║
╚══════════════════════════════════════════════════════════════════╝
"""

import threading

from recorder import fill_states
from settings import get_logger

_log = get_logger("playback")


class TimerScheduler:
    """after()/after_cancel() backed by threading.Timer."""

    def __init__(self):
        self._timers = set()
        self._lock = threading.Lock()

    def after(self, ms, callback):
        def _fire():
            with self._lock:
                self._timers.discard(timer)
            callback()
        timer = threading.Timer(ms / 1000.0, _fire)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()
        return timer

    def after_cancel(self, handle):
        handle.cancel()
        with self._lock:
            self._timers.discard(handle)

    def pending(self):
        with self._lock:
            return len(self._timers)


class TracePlayer:
    """
    Step cursor with play / pause / cancel.

    Args:
        steps     (list)           : Step dicts (from OpResult.steps or
                                     several concatenated traces).
        scheduler (object)         : Provides after()/after_cancel().
        speed     (int)            : Milliseconds per step.
        on_step   (callable|None)  : Called with (index, step) after
                                     every cursor move.
        settings  (Settings|None)  : If given, speed = settings.anim_speed.
    """

    def __init__(self, steps, scheduler, speed=600, on_step=None,
                 settings=None):
        self.steps        = fill_states(steps)
        self.scheduler    = scheduler
        self.speed        = settings.anim_speed if settings else speed
        self.on_step      = on_step
        self.current_step = 0
        self.playing      = False
        self.after_id     = None
        self._lock        = threading.RLock()

    @property
    def step(self):
        return self.steps[self.current_step] if self.steps else None

    @property
    def at_end(self):
        return not self.steps or self.current_step == len(self.steps) - 1

    def _show(self):
        if self.on_step and self.steps:
            self.on_step(self.current_step, self.step)

    def _stop_timer(self):
        with self._lock:
            self.playing = False
            if self.after_id is not None:
                self.scheduler.after_cancel(self.after_id)
                self.after_id = None

    # ── Manual navigation ───────────────────────────────────────
    def next(self):
        """Advance one step.  No-op at the end."""
        if self.steps and self.current_step < len(self.steps) - 1:
            self.current_step += 1
            self._show()
            return True
        return False

    def prev(self):
        if self.current_step > 0:
            self.current_step -= 1
            self._show()
            return True
        return False

    def reset(self):
        """Stop auto-play and jump to step 0."""
        self._stop_timer()
        self.current_step = 0
        self._show()

    def go_end(self):
        self._stop_timer()
        if self.steps:
            self.current_step = len(self.steps) - 1
        self._show()

    def seek(self, index):
        if 0 <= index < len(self.steps) and index != self.current_step:
            self.current_step = index
            self._show()

    def seek_op(self, op_id):
        """Jump to the first step of operation ``op_id``."""
        for i, st in enumerate(self.steps):
            if st.get("op_id") == op_id:
                self.seek(i)
                return True
        return False

    # ── Auto-play ───────────────────────────────────────────────
    def play(self):
        with self._lock:
            if self.playing or not self.steps:
                return
            self.playing = True
            self._auto_step()

    def pause(self):
        self._stop_timer()

    def toggle(self):
        if self.playing:
            self.pause()
        else:
            self.play()

    def cancel(self):
        """Abandon playback; pending callbacks are withdrawn."""
        if self.playing:
            _log.debug("playback cancelled at step %d", self.current_step)
        self._stop_timer()

    def _auto_step(self):
        """Advance one step, then schedule the next via after()."""
        with self._lock:
            self.after_id = None
            if not self.playing:
                return
            if self.next() and self.playing:
                self.after_id = self.scheduler.after(self.speed,
                                                     self._auto_step)
            else:
                self.playing = False
