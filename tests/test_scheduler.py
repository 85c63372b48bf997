"""
Tests for the Tick Scheduler

Run with: pytest tests/test_scheduler.py -v
"""

import time

import pytest
from core.settings import PressSettings
from core.validators import InvariantViolation
from engine import PressSimulator, TickScheduler


def wait_for(condition, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


class TestTickScheduler:
    """Test the background tick loop."""

    def setup_method(self):
        """Set up test fixtures."""
        self.sim = PressSimulator(random_seed=5)
        self.scheduler = TickScheduler(self.sim, interval_s=0.01)

    def teardown_method(self):
        self.scheduler.stop()

    def test_ticks_in_background(self):
        self.scheduler.start()
        assert self.scheduler.is_alive
        assert wait_for(lambda: self.sim.tick_count >= 3)

    def test_stop(self):
        self.scheduler.start()
        wait_for(lambda: self.sim.tick_count >= 1)
        self.scheduler.stop()
        assert not self.scheduler.is_alive
        count = self.sim.tick_count
        time.sleep(0.05)
        assert self.sim.tick_count == count

    def test_paused_press_not_ticked(self):
        self.sim.set_running(False)
        self.scheduler.start()
        time.sleep(0.1)
        assert self.sim.tick_count == 0
        assert self.scheduler.is_alive

    def test_interval_follows_settings(self):
        sim = PressSimulator(PressSettings(tick_interval_s=0.5), random_seed=1)
        scheduler = TickScheduler(sim)
        assert scheduler.interval_s == 0.5
        sim.configure({"tick_interval_s": 0.25})
        assert scheduler.interval_s == 0.25

    def test_start_twice_is_harmless(self):
        self.scheduler.start()
        self.scheduler.start()
        assert self.scheduler.is_alive

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_invariant_violation_halts(self):
        def broken_tick():
            raise InvariantViolation("pressure outside bounds after clamp")

        self.sim.tick = broken_tick
        self.scheduler.start()
        assert wait_for(lambda: not self.scheduler.is_alive)
        assert isinstance(self.scheduler.last_error, InvariantViolation)

    @pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
    def test_unexpected_error_recorded(self):
        def broken_tick():
            raise RuntimeError("clock source unavailable")

        self.sim.tick = broken_tick
        self.scheduler.start()
        assert wait_for(lambda: not self.scheduler.is_alive)
        assert isinstance(self.scheduler.last_error, RuntimeError)
