"""
Press Cycle - Phase State Machine

A compression-molding press repeats a fixed sequence of phases:

    IDLE → CLOSING → HEATING → PRESSING → COOLING → OPENING → IDLE

Each phase lasts a configured number of ticks. Transitions are purely
duration based: the machine does not wait for the mold to reach its
setpoint before leaving HEATING.
"""

import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from .settings import DEFAULT_PHASE_DURATIONS

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Phases of the press cycle, in cycle order."""
    IDLE = "Idle"
    CLOSING = "Mold Closing"
    HEATING = "Heating (Vulcanization)"
    PRESSING = "High Pressure Hold"
    COOLING = "Cooling"
    OPENING = "Mold Opening"

    @property
    def label(self) -> str:
        return self.value

    @property
    def next(self) -> "Phase":
        """The phase that follows this one in the cycle."""
        order = list(Phase)
        return order[(order.index(self) + 1) % len(order)]

    @property
    def is_vulcanizing(self) -> bool:
        """HEATING and PRESSING hold the mold at the vulcanization setpoint."""
        return self in (Phase.HEATING, Phase.PRESSING)


class PhaseStateMachine:
    """
    Duration-driven cyclic controller.

    Example:
        machine = PhaseStateMachine()
        phase, elapsed, completed = machine.advance()
        print(phase.label, elapsed, completed)  # Idle 1 False
    """

    def __init__(self, durations: Optional[Dict[str, int]] = None):
        """
        Args:
            durations: Ticks per phase keyed by phase name. Missing phases
                       fall back to the default durations.
        """
        self.durations: Dict[Phase, int] = {}
        self.set_durations(durations or DEFAULT_PHASE_DURATIONS)
        self.phase = Phase.IDLE
        self.phase_elapsed = 0

    def set_durations(self, durations: Dict[str, int]) -> None:
        """Replace phase durations. Takes effect from the next advance."""
        merged = dict(DEFAULT_PHASE_DURATIONS)
        merged.update(durations)
        self.durations = {phase: int(merged[phase.name]) for phase in Phase}

    @property
    def cycle_length(self) -> int:
        """Ticks in one complete cycle."""
        return sum(self.durations.values())

    def duration_of(self, phase: Phase) -> int:
        return self.durations[phase]

    def reset(self) -> None:
        self.phase = Phase.IDLE
        self.phase_elapsed = 0

    def advance(self, tick_count: int = 1) -> Tuple[Phase, int, bool]:
        """
        Advance the machine by one or more ticks.

        Args:
            tick_count: Number of ticks to advance

        Returns:
            Tuple of (active phase, ticks elapsed in that phase,
            whether a cycle completed during this advance)
        """
        if tick_count < 1:
            raise ValueError(f"tick_count must be >= 1, got {tick_count}")

        cycle_completed = False
        for _ in range(tick_count):
            self.phase_elapsed += 1
            if self.phase_elapsed >= self.durations[self.phase]:
                previous = self.phase
                self.phase = previous.next
                self.phase_elapsed = 0
                logger.debug(f"Phase transition {previous.name} -> {self.phase.name}")
                if previous is Phase.OPENING:
                    cycle_completed = True

        return self.phase, self.phase_elapsed, cycle_completed
