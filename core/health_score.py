"""
Health Score Engine for the Compression-Molding Press

This module derives the per-tick health picture of the press:
- Deviation of mold temperature and hydraulic pressure from setpoint
- A weighted predictive-maintenance health index (5-100)
- OEE (Overall Equipment Effectiveness) = availability × performance × quality
- A status classification used by operator displays

Philosophy:
- Score 100 = Perfect health
- Temperature is weighted most heavily: it decides vulcanization quality
- Fully explainable (every penalty is reported alongside the score)

Health formula:
    health = 100 - (0.4 × temp_penalty
                    + 0.3 × pressure_penalty
                    + 0.2 × reject_penalty
                    + 0.1 × vibration_penalty)

    temp_penalty      = min(|temp_dev| × 2, 100)
    pressure_penalty  = min(|pressure_dev| × 2, 100)
    reject_penalty    = min(reject_rate × 150, 100)
    vibration_penalty = 5 / 20 / 40 / 80 (safe / >safe / >warning / >critical)

A ±0.5 jitter is added for realism and the result is clamped to [5, 100].
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from .cycle import Phase
from .physics import ProcessState, deviation_pct
from .settings import PressSettings


HEALTH_FLOOR = 5.0
HEALTH_CEILING = 100.0
OEE_FLOOR = 50.0
OEE_CEILING = 100.0


class MachineStatus(Enum):
    """Operator-facing status of the press."""
    STOPPED = "Stopped"
    IDLE = "Idle"
    CRITICAL = "Critical"
    WARNING = "Warning"
    DEGRADED = "Degraded"
    HEATING = "Heating Phase"
    HEALTHY = "Healthy"


@dataclass(frozen=True)
class HealthSnapshot:
    """
    Derived health picture for one tick.

    Not stored long-term; recomputed every tick from the process state.
    """
    health_index: float          # 5-100
    oee: float                   # % , 50-100
    temp_deviation: float        # %
    pressure_deviation: float    # %
    vibration_penalty: float     # 5 / 20 / 40 / 80
    availability: float
    performance: float
    quality: float

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "health_index": round(self.health_index, 1),
            "oee": round(self.oee, 1),
            "temp_deviation": round(self.temp_deviation, 1),
            "pressure_deviation": round(self.pressure_deviation, 1),
            "vibration_penalty": self.vibration_penalty,
            "availability": round(self.availability, 3),
            "performance": round(self.performance, 3),
            "quality": round(self.quality, 3),
        }


class HealthScoreEngine:
    """
    Engine for calculating deviations, health index and OEE.

    Default Weights:
    - Temperature deviation (0.40): decides cure quality
    - Pressure deviation (0.30): decides part density / flash
    - Reject rate (0.20): lagging quality indicator
    - Vibration (0.10): leading mechanical indicator

    Example:
        engine = HealthScoreEngine(PressSettings(), rng=random.Random(7))
        snapshot = engine.evaluate(state, running=True)
        print(f"Health: {snapshot.health_index:.0f}  OEE: {snapshot.oee:.1f}%")
    """

    def __init__(
        self,
        settings: Optional[PressSettings] = None,
        rng: Optional[random.Random] = None,
        weights: Optional[Dict[str, float]] = None
    ):
        """
        Args:
            settings: Setpoints and thresholds (defaults if None)
            rng: Random source for the health jitter; anything with random()
            weights: Custom penalty weights. If None, uses the defaults.
        """
        self.settings = settings or PressSettings()
        self.rng = rng or random.Random()
        self.weights = weights or {
            "temperature": 0.4,
            "pressure": 0.3,
            "rejects": 0.2,
            "vibration": 0.1,
        }

    # =========================================
    # Deviations
    # =========================================

    def temperature_deviation(self, phase: Phase, temperature: float) -> float:
        """Deviation from target (%), only meaningful while vulcanizing."""
        if not phase.is_vulcanizing:
            return 0.0
        return deviation_pct(temperature, self.settings.target_temp)

    def pressure_deviation(self, phase: Phase, pressure: float) -> float:
        """Deviation from target (%), only meaningful during the pressure hold."""
        if phase is not Phase.PRESSING:
            return 0.0
        return deviation_pct(pressure, self.settings.target_pressure)

    # =========================================
    # Penalties
    # =========================================

    def vibration_penalty(self, vibration: float) -> float:
        s = self.settings
        if vibration > s.vibration_critical:
            return 80.0
        elif vibration > s.vibration_warning:
            return 40.0
        elif vibration > s.vibration_safe:
            return 20.0
        return 5.0

    def calculate_health(
        self,
        temp_deviation: float,
        pressure_deviation: float,
        reject_count: int,
        total_cycles: int,
        vibration: float,
        jitter: bool = True
    ) -> float:
        """
        Weighted health index, clamped to [5, 100].

        Args:
            jitter: Add the ±0.5 realism fluctuation
        """
        temp_penalty = min(abs(temp_deviation) * 2, 100.0)
        pressure_penalty = min(abs(pressure_deviation) * 2, 100.0)
        reject_rate = reject_count / max(1, total_cycles)
        reject_penalty = min(reject_rate * 150, 100.0)
        vib_penalty = self.vibration_penalty(vibration)

        w = self.weights
        health = 100.0 - (
            w["temperature"] * temp_penalty
            + w["pressure"] * pressure_penalty
            + w["rejects"] * reject_penalty
            + w["vibration"] * vib_penalty
        )

        if jitter:
            health += (self.rng.random() - 0.5) * 1.0

        return max(HEALTH_FLOOR, min(HEALTH_CEILING, health))

    # =========================================
    # OEE
    # =========================================

    def oee_factors(
        self,
        temp_deviation: float,
        pressure_deviation: float,
        reject_count: int,
        total_cycles: int,
        running: bool
    ) -> Dict[str, float]:
        """Availability, performance and quality ratios."""
        availability = 0.98 if running else 0.70
        performance = max(
            0.60,
            0.95 - abs(temp_deviation) / 1000 - abs(pressure_deviation) / 1000,
        )
        quality = max(0.55, 1 - reject_count / max(1, total_cycles))
        return {
            "availability": availability,
            "performance": performance,
            "quality": quality,
        }

    def calculate_oee(
        self,
        temp_deviation: float,
        pressure_deviation: float,
        reject_count: int,
        total_cycles: int,
        running: bool
    ) -> float:
        """OEE in percent, clamped to [50, 100] for display stability."""
        f = self.oee_factors(
            temp_deviation, pressure_deviation, reject_count, total_cycles, running
        )
        oee = f["availability"] * f["performance"] * f["quality"] * 100
        return max(OEE_FLOOR, min(OEE_CEILING, oee))

    # =========================================
    # Snapshot
    # =========================================

    def evaluate(self, state: ProcessState, running: bool = True) -> HealthSnapshot:
        """
        Derive the health snapshot for the current process state.

        Args:
            state: Process state after this tick's model step
            running: Whether the press is running (drives availability)

        Returns:
            HealthSnapshot
        """
        temp_dev = self.temperature_deviation(state.phase, state.temperature)
        pressure_dev = self.pressure_deviation(state.phase, state.pressure)

        health = self.calculate_health(
            temp_dev,
            pressure_dev,
            state.reject_count,
            state.total_cycles,
            state.vibration,
        )
        factors = self.oee_factors(
            temp_dev, pressure_dev, state.reject_count, state.total_cycles, running
        )
        oee = self.calculate_oee(
            temp_dev, pressure_dev, state.reject_count, state.total_cycles, running
        )

        return HealthSnapshot(
            health_index=health,
            oee=oee,
            temp_deviation=temp_dev,
            pressure_deviation=pressure_dev,
            vibration_penalty=self.vibration_penalty(state.vibration),
            availability=factors["availability"],
            performance=factors["performance"],
            quality=factors["quality"],
        )

    # =========================================
    # Status classification
    # =========================================

    def classify_health(
        self,
        health_index: float,
        temp_deviation: float,
        pressure_deviation: float
    ) -> MachineStatus:
        """
        Classify health into Critical / Warning / Degraded / Healthy.

        Critical: health < 60 or any |deviation| > 2 × tolerance
        Warning:  health < 75 or any |deviation| > 1.5 × tolerance
        Degraded: health < 85 or any |deviation| > tolerance
        """
        tol = self.settings.tolerance_pct
        worst = max(abs(temp_deviation), abs(pressure_deviation))

        if health_index < 60 or worst > tol * 2:
            return MachineStatus.CRITICAL
        if health_index < 75 or worst > tol * 1.5:
            return MachineStatus.WARNING
        if health_index < 85 or worst > tol:
            return MachineStatus.DEGRADED
        return MachineStatus.HEALTHY

    def machine_status(
        self,
        snapshot: HealthSnapshot,
        state: ProcessState,
        running: bool
    ) -> MachineStatus:
        """
        Operator-facing status.

        A stopped or idle press reports that directly. A healthy press
        still below 85% of the setpoint during HEATING reports the
        heating phase instead of Healthy.
        """
        if not running:
            return MachineStatus.STOPPED
        if state.phase is Phase.IDLE:
            return MachineStatus.IDLE

        status = self.classify_health(
            snapshot.health_index, snapshot.temp_deviation, snapshot.pressure_deviation
        )
        if (
            status is MachineStatus.HEALTHY
            and state.phase is Phase.HEATING
            and state.temperature < self.settings.temp_warning_threshold
        ):
            return MachineStatus.HEATING
        return status
