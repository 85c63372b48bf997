"""
Physics Calculations for the Compression-Molding Press

This module contains the first-order models that drive the press twin.
They are deliberately simple approximations: one lumped thermal mass
relaxing toward a heater setpoint, and one hydraulic volume balancing
pump inflow against leakage, relief and piston displacement.

Key Models:
- Thermal relaxation: mold temperature vs. heater setpoint
- Hydraulic balance: cylinder pressure from flow continuity
- Clamping: physical bounds of the mold and the hydraulic circuit

All functions are pure. Noise is added by the process model, not here.
"""

from dataclasses import dataclass
from typing import Optional

from .cycle import Phase
from .telemetry import VibrationTier


@dataclass
class PhysicsConstants:
    """
    Physical constants used in press calculations.

    Flows are in bar·(compliance unit) per tick; only their ratios to
    COMPLIANCE matter for the first-order balance.
    """

    # Physical bounds
    TEMP_MIN: float = 25.0                # °C - ambient, mold never colder
    TEMP_MAX: float = 220.0               # °C - heater cut-out
    PRESSURE_MIN: float = 0.0             # bar
    PRESSURE_MAX: float = 260.0           # bar - hydraulic circuit rating

    # Thermal time constants (ticks)
    TAU_VULCANIZING: float = 26.0         # HEATING / PRESSING
    TAU_DEFAULT: float = 18.0

    # Phase temperature targets for non-vulcanizing phases (°C)
    TEMP_TARGET_IDLE: float = 35.0
    TEMP_TARGET_CLOSING: float = 90.0
    TEMP_TARGET_COOLING: float = 80.0
    TEMP_TARGET_OPENING: float = 45.0

    # Hydraulics
    PUMP_FLOW: float = 3.4
    LEAK_FLOW_MIN: float = 0.9
    LEAK_FLOW_SPAN: float = 0.2
    PISTON_AREA: float = 1.1
    MOLD_VELOCITY_OPENING: float = 1.1
    MOLD_VELOCITY_DEFAULT: float = 0.25
    COMPLIANCE: float = 0.18
    RELIEF_THRESHOLD: float = 235.0       # bar - relief valve cracking pressure
    RELIEF_GAIN: float = 0.05


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


class PhysicsCalculator:
    """
    Calculator for press physics.

    Example:
        calc = PhysicsCalculator()
        predicted = calc.thermal_step(current=25.0, target=165.0, phase=Phase.HEATING)
        pressure = calc.hydraulic_step(current=0.0, phase=Phase.PRESSING, leak_flow=1.0)
    """

    def __init__(self, constants: Optional[PhysicsConstants] = None):
        """
        Initialize the physics calculator.

        Args:
            constants: Custom physical constants. If None, uses defaults.
        """
        self.constants = constants or PhysicsConstants()

    def temperature_target(self, phase: Phase, vulcanization_temp: float) -> float:
        """
        Heater setpoint for a phase.

        HEATING and PRESSING hold the vulcanization setpoint; the other
        phases let the mold drift toward lower holding temperatures.
        """
        c = self.constants
        if phase.is_vulcanizing:
            return vulcanization_temp
        return {
            Phase.IDLE: c.TEMP_TARGET_IDLE,
            Phase.CLOSING: c.TEMP_TARGET_CLOSING,
            Phase.COOLING: c.TEMP_TARGET_COOLING,
            Phase.OPENING: c.TEMP_TARGET_OPENING,
        }.get(phase, c.TEMP_TARGET_IDLE)

    def time_constant(self, phase: Phase) -> float:
        """Thermal time constant in ticks for a phase."""
        if phase.is_vulcanizing:
            return self.constants.TAU_VULCANIZING
        return self.constants.TAU_DEFAULT

    def thermal_step(
        self,
        current: float,
        target: float,
        phase: Phase,
        dt: float = 1.0
    ) -> float:
        """
        Advance mold temperature by one step of first-order relaxation.

        Formula:
            dT/dt = (T_target - T) / τ
            T_next = clamp(T + dT/dt × dt)

        Returns:
            Noise-free temperature after the step (°C), clamped
        """
        tau = self.time_constant(phase)
        d_temp = (target - current) / tau
        return self.clamp_temperature(current + d_temp * dt)

    def pump_flow(self, phase: Phase) -> float:
        """The pump runs while the mold closes and while it is held shut."""
        if phase in (Phase.CLOSING, Phase.HEATING, Phase.PRESSING):
            return self.constants.PUMP_FLOW
        return 0.0

    def relief_flow(self, pressure: float) -> float:
        """Relief valve bleeds proportionally above its cracking pressure."""
        c = self.constants
        return max(0.0, (pressure - c.RELIEF_THRESHOLD) * c.RELIEF_GAIN)

    def piston_flow(self, phase: Phase) -> float:
        """Volume swept by the platen piston; fastest while the mold opens."""
        c = self.constants
        velocity = c.MOLD_VELOCITY_OPENING if phase is Phase.OPENING else c.MOLD_VELOCITY_DEFAULT
        return c.PISTON_AREA * velocity

    def pressure_derivative(
        self,
        current: float,
        phase: Phase,
        leak_flow: float
    ) -> float:
        """
        Hydraulic flow balance.

        Formula:
            dP/dt = (Q_pump - Q_leak - Q_relief - Q_piston) / C

        Where C is the hydraulic compliance of the circuit.
        """
        net_flow = (
            self.pump_flow(phase)
            - leak_flow
            - self.relief_flow(current)
            - self.piston_flow(phase)
        )
        return net_flow / self.constants.COMPLIANCE

    def hydraulic_step(
        self,
        current: float,
        phase: Phase,
        leak_flow: float,
        dt: float = 1.0
    ) -> float:
        """Pressure after one step (bar), before noise and clamping."""
        return current + self.pressure_derivative(current, phase, leak_flow) * dt

    def clamp_temperature(self, value: float) -> float:
        return clamp(value, self.constants.TEMP_MIN, self.constants.TEMP_MAX)

    def clamp_pressure(self, value: float) -> float:
        return clamp(value, self.constants.PRESSURE_MIN, self.constants.PRESSURE_MAX)


def deviation_pct(value: float, target: float) -> float:
    """
    Percentage deviation of a value from its setpoint.

    Formula:
        deviation = (value - target) / target × 100
    """
    if target == 0:
        return 0.0
    return (value - target) / target * 100.0


@dataclass
class ProcessState:
    """
    Live physical state of the press.

    Mutated only by the process model (engine.process_model); everything
    else reads it. Temperature and pressure stay inside the clamp bounds
    of PhysicsConstants after every step.
    """
    phase: Phase = Phase.IDLE
    temperature: float = 25.0       # °C
    pressure: float = 0.0           # bar
    vibration: float = 0.0          # mm/s
    vibration_tier: VibrationTier = VibrationTier.NONE
    phase_elapsed: int = 0          # ticks in current phase
    cycle_elapsed: int = 0          # ticks in current cycle
    total_cycles: int = 0
    reject_count: int = 0
    last_cycle_time: float = 0.0    # ticks, with jitter
    measured_cycle_time: int = 0    # s, wall clock, 0 until a cycle completes

    @property
    def reject_rate(self) -> float:
        """Rejects per completed cycle (0 when no rejects)."""
        return self.reject_count / max(1, self.total_cycles)
