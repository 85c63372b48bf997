"""
Tick Scheduler

Background thread that calls PressSimulator.tick() at the configured
interval (tick_interval_s, 1 s by default). While the press is paused
the scheduler keeps waiting but does not tick, so no ticks pile up.

An InvariantViolation raised by a tick is a bug in the engine: it is
logged at CRITICAL level, kept on the scheduler as last_error, and the
scheduler stops. Any other exception from a tick also stops the scheduler
and is kept as last_error, so /health reports the failure.
"""

import logging
import threading
from typing import Optional

from core.validators import InvariantViolation

from .simulator import PressSimulator

logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Fixed-period driver for a simulator.

    Example:
        scheduler = TickScheduler(PressSimulator())
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(self, simulator: PressSimulator, interval_s: Optional[float] = None):
        """
        Args:
            simulator: Engine to drive
            interval_s: Fixed period; follows simulator settings if None
        """
        self.simulator = simulator
        self._interval_s = interval_s
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_error: Optional[BaseException] = None

    @property
    def interval_s(self) -> float:
        if self._interval_s is not None:
            return self._interval_s
        return self.simulator.settings.tick_interval_s

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return
        self._stop.clear()
        self.last_error = None
        self._thread = threading.Thread(
            target=self._run, name="press-tick-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(f"Tick scheduler started (interval {self.interval_s}s)")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Tick scheduler stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval_s):
            if not self.simulator.running:
                continue
            try:
                self.simulator.tick()
            except InvariantViolation as exc:
                self.last_error = exc
                logger.critical(f"Engine invariant violated, scheduler halted: {exc}")
                self._stop.set()
                raise
            except Exception as exc:
                self.last_error = exc
                logger.exception(f"Tick failed, scheduler halted: {exc}")
                self._stop.set()
                raise
