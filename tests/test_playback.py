"""
Tests for step playback and the recorder helpers
"""

import threading

import pytest

from digital import DigitalTree
from hashing import HashTable
from playback import TimerScheduler, TracePlayer
from recorder import fill_states
from settings import Settings


class ManualScheduler:
    """Collects callbacks instead of running them; run() fires the next."""

    def __init__(self):
        self.queue = []
        self._seq = 0

    def after(self, ms, callback):
        self._seq += 1
        self.queue.append((self._seq, ms, callback))
        return self._seq

    def after_cancel(self, handle):
        self.queue = [e for e in self.queue if e[0] != handle]

    def run(self):
        _, _, callback = self.queue.pop(0)
        callback()

    def run_all(self):
        while self.queue:
            self.run()


@pytest.fixture
def steps():
    table = HashTable(5, 1, "modulo", "linear")
    table.insert("2")
    return table.insert("7").steps


class TestFillStates:
    def test_table_steps_are_sparse(self, steps):
        assert any(s["state"] is None for s in steps)

    def test_every_step_gets_a_state(self, steps):
        filled = fill_states(steps)
        assert len(filled) == len(steps)
        assert all(s["state"] is not None for s in filled)
        assert filled[-1]["state"] == steps[-1]["state"]

    def test_input_left_untouched(self, steps):
        fill_states(steps)
        assert any(s["state"] is None for s in steps)


class TestManualNavigation:
    def test_next_prev_bounds(self, steps):
        player = TracePlayer(steps, ManualScheduler())
        assert player.prev() is False
        while player.next():
            pass
        assert player.at_end
        assert player.next() is False
        assert player.prev() is True
        assert player.current_step == len(steps) - 2

    def test_reset_and_go_end(self, steps):
        seen = []
        player = TracePlayer(steps, ManualScheduler(),
                             on_step=lambda i, st: seen.append(i))
        player.go_end()
        player.reset()
        assert seen == [len(steps) - 1, 0]

    def test_seek_op(self):
        tree = DigitalTree()
        first = tree.insert("C").steps
        second = tree.insert("A").steps
        player = TracePlayer(first + second, ManualScheduler())
        assert player.seek_op(second[0]["op_id"]) is True
        assert player.current_step == len(first)
        assert player.step["action"] == "start"
        assert player.seek_op(999) is False

    def test_speed_from_settings(self, steps, tmp_path):
        settings = Settings(str(tmp_path / "s.json"))
        settings.anim_speed = 150
        player = TracePlayer(steps, ManualScheduler(), settings=settings)
        assert player.speed == 150


class TestAutoPlay:
    def test_plays_to_the_end(self, steps):
        sched = ManualScheduler()
        player = TracePlayer(steps, sched, speed=10)
        player.play()
        assert player.playing
        sched.run_all()
        assert player.at_end
        assert not player.playing
        assert player.after_id is None

    def test_cancel_withdraws_pending(self, steps):
        table = HashTable(5, 1, "modulo", "linear")
        table.insert("2")
        before = table.snapshot()
        sched = ManualScheduler()
        player = TracePlayer(table.search("2").steps, sched)
        player.play()
        assert sched.queue
        player.cancel()
        assert sched.queue == []
        assert not player.playing
        assert table.snapshot() == before

    def test_toggle(self, steps):
        sched = ManualScheduler()
        player = TracePlayer(steps, sched)
        player.toggle()
        assert player.playing
        player.toggle()
        assert not player.playing
        assert sched.queue == []

    def test_cancel_during_step_stops_at_once(self, steps):
        sched = ManualScheduler()
        player = TracePlayer(steps, sched)
        player.on_step = lambda i, st: player.cancel() if i == 2 else None
        player.play()
        sched.run()
        assert player.current_step == 2
        assert not player.playing
        assert sched.queue == []
        assert player.after_id is None

    def test_late_timer_callback_is_ignored(self, steps):
        sched = ManualScheduler()
        player = TracePlayer(steps, sched)
        player.play()
        _, _, callback = sched.queue[0]
        player.cancel()
        callback()
        assert player.current_step == 1
        assert sched.queue == []

    def test_empty_trace(self):
        player = TracePlayer([], ManualScheduler())
        player.play()
        assert not player.playing
        assert player.step is None


class TestTimerScheduler:
    def test_callback_fires(self):
        sched = TimerScheduler()
        fired = threading.Event()
        sched.after(10, fired.set)
        assert fired.wait(2.0)

    def test_cancelled_timer_does_not_fire(self):
        sched = TimerScheduler()
        fired = threading.Event()
        handle = sched.after(200, fired.set)
        assert sched.pending() == 1
        sched.after_cancel(handle)
        assert sched.pending() == 0
        assert not fired.wait(0.4)
