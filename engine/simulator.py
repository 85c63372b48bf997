"""
Press Simulator - Tick Pipeline

Owns every piece of mutable engine state and runs one tick as a strict
sequence:

    phase machine → process model → health metrics → alerts → ring store

The whole tick runs under one lock, so readers between ticks always see
a consistent picture. Read methods return immutable copies.

Usage:
    simulator = PressSimulator(random_seed=7)
    for _ in range(45):
        simulator.tick()
    print(simulator.current_phase(), simulator.current_metrics().health_index)
"""

import logging
import random
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from core.alerts import Alert, AlertManager
from core.cycle import Phase, PhaseStateMachine
from core.health_score import HealthScoreEngine, HealthSnapshot, MachineStatus
from core.physics import ProcessState
from core.settings import PressSettings
from core.telemetry import TelemetryRingStore, TelemetrySample
from core.validators import ConfigurationError, ensure_valid

from .process_model import ProcessModel

logger = logging.getLogger(__name__)

# Keys accepted by configure() that map straight onto PressSettings fields
CONFIGURABLE_KEYS = (
    "target_temp",
    "target_pressure",
    "tolerance_pct",
    "vibration_safe",
    "vibration_warning",
    "vibration_critical",
    "phase_durations",
    "vibration_critical_probability",
    "vibration_warning_probability",
    "dedup_window_s",
    "tick_interval_s",
)


class PressSimulator:
    """
    Single-writer simulation and monitoring engine for one press.

    Example:
        sim = PressSimulator(PressSettings(target_temp=170), random_seed=1)
        sample = sim.tick()
        print(sample.phase, sample.temperature)
    """

    def __init__(
        self,
        settings: Optional[PressSettings] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        random_seed: Optional[int] = None
    ):
        """
        Args:
            settings: Initial settings (validated; defaults if None)
            rng: Shared random source for all noise injection
            clock: Wall-clock source for timestamps (datetime.now if None)
            random_seed: Seed for a private random.Random when rng is None
        """
        self.settings = ensure_valid(settings or PressSettings())
        self.rng = rng or random.Random(random_seed)
        self.clock = clock or datetime.now

        self.machine = PhaseStateMachine(self.settings.phase_durations)
        self.model = ProcessModel(self.settings, rng=self.rng)
        self.health_engine = HealthScoreEngine(self.settings, rng=self.rng)
        self.alert_manager = AlertManager(self.settings)
        self.store = TelemetryRingStore(self.settings.history_capacity)

        self._lock = threading.RLock()
        self._running = True
        self._tick_count = 0
        self._cycle_started_at = self.clock()
        self._metrics = self.health_engine.evaluate(self.model.state, running=True)

    # =========================================
    # Tick pipeline
    # =========================================

    def tick(self) -> Optional[TelemetrySample]:
        """
        Run one tick of the pipeline.

        Returns:
            The recorded sample, or None if the press is paused
        """
        with self._lock:
            if not self._running:
                return None

            now = self.clock()

            # 1. Phase state machine
            phase, phase_elapsed, cycle_completed = self.machine.advance()
            self.model.track_phase(phase, phase_elapsed)
            if cycle_completed:
                measured = (now - self._cycle_started_at).total_seconds()
                self._cycle_started_at = now
                self.model.complete_cycle(self.machine.cycle_length, measured)

            # 2. Process model
            temperature, predicted, pressure, vibration = self.model.step(phase)
            state = self.model.state

            # 3. Metrics
            metrics = self.health_engine.evaluate(state, running=True)

            # 4. Alerts
            fired = self.alert_manager.process(state, metrics, now)
            self.model.register_scrap(alert.cause for alert in fired)

            # 5. Ring store
            sample = TelemetrySample(
                timestamp=now,
                temperature=temperature,
                predicted_temperature=predicted,
                pressure=pressure,
                vibration=vibration,
                phase=phase,
                temp_deviation=metrics.temp_deviation,
                pressure_deviation=metrics.pressure_deviation,
                vibration_tier=state.vibration_tier,
            )
            self.store.push(sample)

            self._metrics = metrics
            self._tick_count += 1
            return sample

    # =========================================
    # Read API
    # =========================================

    @property
    def running(self) -> bool:
        return self._running

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def current_phase(self) -> Phase:
        with self._lock:
            return self.machine.phase

    def current_metrics(self) -> HealthSnapshot:
        with self._lock:
            return self._metrics

    def recent_alerts(self) -> Tuple[Alert, ...]:
        with self._lock:
            return self.alert_manager.alerts()

    def telemetry_history(self) -> Tuple[TelemetrySample, ...]:
        with self._lock:
            return self.store.snapshot()

    def process_state(self) -> ProcessState:
        """Copy of the live process state."""
        with self._lock:
            return replace(self.model.state)

    def current_status(self) -> MachineStatus:
        with self._lock:
            return self.health_engine.machine_status(
                self._metrics, self.model.state, self._running
            )

    def status_report(self) -> Dict[str, Any]:
        """Everything a status display needs, read under one lock."""
        with self._lock:
            state = self.model.state
            return {
                "running": self._running,
                "status": self.current_status().value,
                "phase": state.phase.name,
                "phase_label": state.phase.label,
                "phase_elapsed": state.phase_elapsed,
                "phase_duration": self.machine.duration_of(state.phase),
                "cycle_elapsed": state.cycle_elapsed,
                "total_cycles": state.total_cycles,
                "reject_count": state.reject_count,
                "last_cycle_time": round(state.last_cycle_time, 1),
                "measured_cycle_time": state.measured_cycle_time,
                "temperature": round(state.temperature, 1),
                "pressure": round(state.pressure, 1),
                "vibration": round(state.vibration, 2),
                "tick_count": self._tick_count,
            }

    # =========================================
    # Control API
    # =========================================

    def set_running(self, running: bool) -> None:
        """
        Pause or resume the press.

        While paused tick() does nothing; no ticks are queued or replayed.
        Availability in the OEE follows the running flag immediately.
        """
        with self._lock:
            if running == self._running:
                return
            self._running = running
            m = self._metrics
            state = self.model.state
            self._metrics = replace(
                m,
                availability=self.health_engine.oee_factors(
                    m.temp_deviation, m.pressure_deviation,
                    state.reject_count, state.total_cycles, running,
                )["availability"],
                oee=self.health_engine.calculate_oee(
                    m.temp_deviation, m.pressure_deviation,
                    state.reject_count, state.total_cycles, running,
                ),
            )
            logger.info("Press resumed" if running else "Press paused")

    def configure(self, targets: Dict[str, Any]) -> PressSettings:
        """
        Apply new setpoints and thresholds.

        Args:
            targets: Subset of target_temp, target_pressure, tolerance_pct,
                     vibration_safe, vibration_warning, vibration_critical,
                     phase_durations, fault probabilities, dedup_window_s,
                     tick_interval_s

        Returns:
            The settings now in force

        Raises:
            ConfigurationError: if the result is invalid; the previous
                settings stay in force
            KeyError: for keys that cannot be changed at runtime
        """
        unknown = set(targets) - set(CONFIGURABLE_KEYS)
        if unknown:
            raise KeyError(f"Unknown or read-only settings: {', '.join(sorted(unknown))}")

        with self._lock:
            candidate = self.settings.updated(**targets)
            try:
                ensure_valid(candidate)
            except ConfigurationError:
                logger.warning(f"Rejected configuration {targets}")
                raise

            self.settings = candidate
            self.machine.set_durations(candidate.phase_durations)
            self.model.settings = candidate
            self.health_engine.settings = candidate
            self.alert_manager.settings = candidate
            logger.info(f"Configuration updated: {targets}")
            return candidate

    def reset(self) -> None:
        """Return the press to IDLE with fresh counters and empty history."""
        with self._lock:
            self.machine.reset()
            self.model.reset()
            self.alert_manager.clear()
            self.store.clear()
            self._tick_count = 0
            self._cycle_started_at = self.clock()
            self._metrics = self.health_engine.evaluate(self.model.state, self._running)
            logger.info("Press simulator reset")
