"""
Press Settings

All tunable setpoints and thresholds of the press twin live here so that
nothing in the engine is hard-coded. Defaults reproduce a rubber
compression-molding press vulcanizing at 165°C / 180 bar.

Settings can be overridden from the environment (PRESS_* variables), the
same way the API reads LOG_LEVEL, API_HOST and friends.
"""

import os
from dataclasses import dataclass, field, asdict, replace
from typing import Dict, Any, Optional


DEFAULT_PHASE_DURATIONS: Dict[str, int] = {
    "IDLE": 5,
    "CLOSING": 3,
    "HEATING": 15,
    "PRESSING": 10,
    "COOLING": 8,
    "OPENING": 4,
}


@dataclass(frozen=True)
class PressSettings:
    """
    Operating setpoints and alarm thresholds for one press.

    Attributes are grouped as:
    - Setpoints: target_temp (°C), target_pressure (bar)
    - Tolerance band: tolerance_pct (± % around the setpoint)
    - Vibration limits (mm/s): safe < warning < critical
    - Cycle: per-phase durations in ticks
    - Fault injection probabilities (per tick, PRESSING only)
    - Bookkeeping: history/alert capacity, dedup window, seed counters
    """

    # Setpoints
    target_temp: float = 165.0
    target_pressure: float = 180.0

    # Tolerance band (%)
    tolerance_pct: float = 10.0

    # Vibration thresholds (mm/s)
    vibration_safe: float = 4.0
    vibration_warning: float = 5.0
    vibration_critical: float = 8.0

    # Cycle
    phase_durations: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_PHASE_DURATIONS)
    )

    # Fault injection
    vibration_critical_probability: float = 0.08
    vibration_warning_probability: float = 0.12

    # Bookkeeping
    history_capacity: int = 60
    alert_capacity: int = 10
    dedup_window_s: float = 5.0
    tick_interval_s: float = 1.0

    # Counters the press starts with (seed values of the shop-floor demo)
    initial_total_cycles: int = 124
    initial_reject_count: int = 3
    initial_last_cycle_time: float = 45.2

    @property
    def temp_warning_threshold(self) -> float:
        """Temperature below which a deviation is considered critical (85% of target)."""
        return self.target_temp * 0.85

    @property
    def pressure_loss_threshold(self) -> float:
        """Pressure below which a PRESSING deviation is a pressure loss (90% of target)."""
        return self.target_pressure * 0.9

    def updated(self, **changes: Any) -> "PressSettings":
        """Return a copy with the given fields replaced."""
        if "phase_durations" in changes:
            merged = dict(self.phase_durations)
            merged.update(changes["phase_durations"] or {})
            changes["phase_durations"] = merged
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "PressSettings":
        """
        Build settings from PRESS_* environment variables.

        Unset variables keep their defaults. Phase durations are read from
        PRESS_DURATION_<PHASE> (e.g. PRESS_DURATION_HEATING=20).

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            PressSettings instance (not yet validated)
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _float(name: str, default: float) -> float:
            raw = env.get(name)
            return float(raw) if raw not in (None, "") else default

        def _int(name: str, default: int) -> int:
            raw = env.get(name)
            return int(raw) if raw not in (None, "") else default

        durations = {
            phase: _int(f"PRESS_DURATION_{phase}", ticks)
            for phase, ticks in defaults.phase_durations.items()
        }

        return cls(
            target_temp=_float("PRESS_TARGET_TEMP", defaults.target_temp),
            target_pressure=_float("PRESS_TARGET_PRESSURE", defaults.target_pressure),
            tolerance_pct=_float("PRESS_TOLERANCE_PCT", defaults.tolerance_pct),
            vibration_safe=_float("PRESS_VIBRATION_SAFE", defaults.vibration_safe),
            vibration_warning=_float("PRESS_VIBRATION_WARNING", defaults.vibration_warning),
            vibration_critical=_float("PRESS_VIBRATION_CRITICAL", defaults.vibration_critical),
            phase_durations=durations,
            vibration_critical_probability=_float(
                "PRESS_VIBRATION_CRITICAL_PROBABILITY",
                defaults.vibration_critical_probability,
            ),
            vibration_warning_probability=_float(
                "PRESS_VIBRATION_WARNING_PROBABILITY",
                defaults.vibration_warning_probability,
            ),
            history_capacity=_int("PRESS_HISTORY_CAPACITY", defaults.history_capacity),
            alert_capacity=_int("PRESS_ALERT_CAPACITY", defaults.alert_capacity),
            dedup_window_s=_float("PRESS_DEDUP_WINDOW_S", defaults.dedup_window_s),
            tick_interval_s=_float("PRESS_TICK_INTERVAL_S", defaults.tick_interval_s),
            initial_total_cycles=_int("PRESS_INITIAL_TOTAL_CYCLES", defaults.initial_total_cycles),
            initial_reject_count=_int("PRESS_INITIAL_REJECT_COUNT", defaults.initial_reject_count),
            initial_last_cycle_time=_float(
                "PRESS_INITIAL_LAST_CYCLE_TIME", defaults.initial_last_cycle_time
            ),
        )
