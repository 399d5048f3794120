"""
Tests for RepeatingTimer using short real intervals.
"""

import threading
import time

import pytest

from tripnode.network.timers import RepeatingTimer


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


class TestRepeatingTimer:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            RepeatingTimer(0, lambda: None)

    def test_ticks_repeatedly(self):
        ticks = []
        timer = RepeatingTimer(0.01, lambda: ticks.append(1), name="tick")
        timer.start()
        try:
            assert wait_for(lambda: len(ticks) >= 3)
            assert timer.is_running
        finally:
            timer.stop()

    def test_no_tick_after_stop_returns(self):
        ticks = []
        timer = RepeatingTimer(0.01, lambda: ticks.append(1))
        timer.start()
        assert wait_for(lambda: ticks)

        timer.stop()
        count = len(ticks)
        time.sleep(0.05)

        assert len(ticks) == count
        assert timer.is_running is False

    def test_stop_is_idempotent_and_safe_before_start(self):
        timer = RepeatingTimer(0.01, lambda: None)
        timer.stop()
        timer.stop()
        assert timer.is_running is False

    def test_cannot_start_twice(self):
        timer = RepeatingTimer(0.01, lambda: None)
        timer.start()
        try:
            with pytest.raises(RuntimeError):
                timer.start()
        finally:
            timer.stop()

    def test_stop_from_inside_callback(self):
        done = threading.Event()
        holder = {}

        def callback():
            holder["timer"].stop()
            done.set()

        timer = RepeatingTimer(0.01, callback)
        holder["timer"] = timer
        timer.start()

        assert done.wait(2.0)
        assert wait_for(lambda: not timer._thread.is_alive())

    def test_failing_tick_does_not_kill_timer(self):
        ticks = []

        def callback():
            ticks.append(1)
            raise RuntimeError("tick failed")

        timer = RepeatingTimer(0.01, callback)
        timer.start()
        try:
            assert wait_for(lambda: len(ticks) >= 2)
        finally:
            timer.stop()
