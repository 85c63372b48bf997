"""
Process Model - Synthetic Press Readings

Produces temperature, pressure and vibration readings for each tick by
integrating the first-order models in core.physics and injecting noise.

Features:
- Thermal relaxation toward the phase setpoint (±0.4°C sensor noise)
- Hydraulic flow balance with relief valve (±0.3 bar noise)
- Baseline vibration 2-4 mm/s with stochastic faults during PRESSING
- Scrap generation when critical excursions fire
- Injectable random source for reproducible trajectories

The model is the only writer of ProcessState.
"""

import logging
import random
from typing import Iterable, Optional, Tuple

from core.alerts import AlertCause, vibration_tier
from core.cycle import Phase
from core.physics import PhysicsCalculator, ProcessState
from core.settings import PressSettings
from core.telemetry import VibrationTier
from core.validators import InvariantViolation

logger = logging.getLogger(__name__)


# Probability that a critical excursion of this cause scraps the part
SCRAP_PROBABILITY = {
    AlertCause.TEMPERATURE_LOW: 0.2,
    AlertCause.PRESSURE_LOSS: 0.3,
    AlertCause.VIBRATION_CRITICAL: 0.4,
}

TEMP_NOISE_SPAN = 0.8          # °C, noise is uniform in ±0.4
PRESSURE_NOISE_SPAN = 0.6      # bar, noise is uniform in ±0.3


class ProcessModel:
    """
    Stateful simulator of the press physics.

    Example:
        model = ProcessModel(random_seed=42)
        temp, predicted, pressure, vibration = model.step(Phase.HEATING)
    """

    def __init__(
        self,
        settings: Optional[PressSettings] = None,
        rng: Optional[random.Random] = None,
        physics: Optional[PhysicsCalculator] = None,
        random_seed: Optional[int] = None
    ):
        """
        Args:
            settings: Setpoints and fault probabilities (defaults if None)
            rng: Random source; anything exposing random() -> float in [0, 1)
            physics: Physics calculator (defaults if None)
            random_seed: Seed for a private random.Random when rng is None
        """
        self.settings = settings or PressSettings()
        self.rng = rng or random.Random(random_seed)
        self.physics = physics or PhysicsCalculator()
        self.state = ProcessState(
            total_cycles=self.settings.initial_total_cycles,
            reject_count=self.settings.initial_reject_count,
            last_cycle_time=self.settings.initial_last_cycle_time,
        )

    def _uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.rng.random()

    # =========================================
    # Per-tick integration
    # =========================================

    def step(self, phase: Phase) -> Tuple[float, float, float, float]:
        """
        Integrate one tick for the given phase.

        Returns:
            Tuple of (temperature, predicted_temperature, pressure, vibration)

        Raises:
            InvariantViolation: if a clamped value is still out of bounds
        """
        self.state.phase = phase

        temperature, predicted = self._step_temperature(phase)
        pressure = self._step_pressure(phase)
        vibration, tier = self._step_vibration(phase)

        self._check_bounds(temperature, pressure)

        self.state.temperature = temperature
        self.state.pressure = pressure
        self.state.vibration = vibration
        self.state.vibration_tier = tier

        return temperature, predicted, pressure, vibration

    def _step_temperature(self, phase: Phase) -> Tuple[float, float]:
        target = self.physics.temperature_target(phase, self.settings.target_temp)
        predicted = self.physics.thermal_step(self.state.temperature, target, phase)
        noise = (self.rng.random() - 0.5) * TEMP_NOISE_SPAN
        return self.physics.clamp_temperature(predicted + noise), predicted

    def _step_pressure(self, phase: Phase) -> float:
        c = self.physics.constants
        leak_flow = c.LEAK_FLOW_MIN + self.rng.random() * c.LEAK_FLOW_SPAN
        stepped = self.physics.hydraulic_step(self.state.pressure, phase, leak_flow)
        noise = (self.rng.random() - 0.5) * PRESSURE_NOISE_SPAN
        return self.physics.clamp_pressure(stepped + noise)

    def _step_vibration(self, phase: Phase) -> Tuple[float, VibrationTier]:
        """
        Baseline vibration plus fault injection.

        During PRESSING a critical excursion (6-10 mm/s) fires with
        vibration_critical_probability; failing that, a warning excursion
        (4.5-5.5 mm/s) fires with vibration_warning_probability.
        """
        s = self.settings
        vibration = self._uniform(2.0, 4.0)
        injected = VibrationTier.NONE

        if phase is Phase.PRESSING:
            if self.rng.random() < s.vibration_critical_probability:
                vibration = self._uniform(6.0, 10.0)
                injected = VibrationTier.CRITICAL
            elif self.rng.random() < s.vibration_warning_probability:
                vibration = self._uniform(4.5, 5.5)
                injected = VibrationTier.WARNING

        return vibration, vibration_tier(vibration, injected, s)

    def _check_bounds(self, temperature: float, pressure: float) -> None:
        c = self.physics.constants
        if not c.TEMP_MIN <= temperature <= c.TEMP_MAX:
            raise InvariantViolation(
                f"Temperature {temperature!r} outside [{c.TEMP_MIN}, {c.TEMP_MAX}] after clamp"
            )
        if not c.PRESSURE_MIN <= pressure <= c.PRESSURE_MAX:
            raise InvariantViolation(
                f"Pressure {pressure!r} outside [{c.PRESSURE_MIN}, {c.PRESSURE_MAX}] after clamp"
            )

    # =========================================
    # Counters
    # =========================================

    def track_phase(self, phase: Phase, phase_elapsed: int) -> None:
        self.state.phase = phase
        self.state.phase_elapsed = phase_elapsed
        self.state.cycle_elapsed += 1

    def complete_cycle(self, cycle_length: int, measured_s: Optional[float] = None) -> None:
        """
        Count a finished cycle.

        Args:
            cycle_length: Nominal cycle length in ticks; recorded ±1 tick
            measured_s: Wall-clock duration of the cycle, if the caller
                        timed it. Stored in whole seconds, at least 1.
        """
        self.state.total_cycles += 1
        self.state.last_cycle_time = cycle_length + self._uniform(-1.0, 1.0)
        if measured_s is not None:
            self.state.measured_cycle_time = max(1, round(measured_s))
        self.state.cycle_elapsed = 0
        logger.info(
            f"Cycle {self.state.total_cycles} complete "
            f"({self.state.last_cycle_time:.1f} ticks, {self.state.reject_count} rejects total)"
        )

    def register_scrap(self, causes: Iterable[AlertCause]) -> int:
        """
        Roll for scrapped parts after critical excursions.

        Only causes with a scrap probability can add rejects; warnings
        never do.

        Returns:
            Number of rejects added
        """
        added = 0
        for cause in causes:
            probability = SCRAP_PROBABILITY.get(cause)
            if probability and self.rng.random() < probability:
                added += 1
        if added:
            self.state.reject_count += added
            logger.info(f"{added} part(s) scrapped, reject count now {self.state.reject_count}")
        return added

    def reset(self) -> None:
        self.state = ProcessState(
            total_cycles=self.settings.initial_total_cycles,
            reject_count=self.settings.initial_reject_count,
            last_cycle_time=self.settings.initial_last_cycle_time,
        )
