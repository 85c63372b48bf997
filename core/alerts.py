"""
Alert Manager

Turns threshold excursions into operator alerts.

Rules (checked every tick):

    | Condition                                                   | Severity |
    |-------------------------------------------------------------|----------|
    | |temp_dev| > tolerance and temperature < 85% of target      | critical |
    | |temp_dev| > tolerance, temperature >= 85% of target        | warning  |
    | PRESSING, |pressure_dev| > tolerance, pressure < 90% target | critical |
    | vibration in critical band                                  | critical |
    | vibration in warning band                                   | warning  |

Retention:
- Ordered by severity (critical > warning > info), then most recent first
- Only the top N (default 10) are kept after each insertion
- A candidate whose message equals the most recently accepted alert and
  arrives within the dedup window (default 5 s) is suppressed. Only the
  single most recent alert is compared, not the whole list.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .cycle import Phase
from .health_score import HealthSnapshot
from .physics import ProcessState
from .settings import PressSettings
from .telemetry import VibrationTier

logger = logging.getLogger(__name__)


class AlertSeverity(Enum):
    """Alert severity levels."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"critical": 3, "warning": 2, "info": 1}[self.value]


class AlertCause(Enum):
    """Which rule raised an alert."""
    TEMPERATURE_LOW = "temperature_low"
    TEMPERATURE_DEVIATION = "temperature_deviation"
    PRESSURE_LOSS = "pressure_loss"
    VIBRATION_CRITICAL = "vibration_critical"
    VIBRATION_WARNING = "vibration_warning"


@dataclass(frozen=True)
class Alert:
    """A single operator alert."""
    message: str
    severity: AlertSeverity
    timestamp: datetime
    cause: Optional[AlertCause] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.value if self.cause else None,
        }


def vibration_tier(
    vibration: float,
    injected: VibrationTier,
    settings: PressSettings
) -> VibrationTier:
    """
    Effective vibration tier.

    The process model tags injected faults with a tier; a reading above
    the configured warning/critical thresholds escalates it further.
    """
    if injected is VibrationTier.CRITICAL or vibration > settings.vibration_critical:
        return VibrationTier.CRITICAL
    if injected is VibrationTier.WARNING or vibration > settings.vibration_warning:
        return VibrationTier.WARNING
    return VibrationTier.NONE


class AlertManager:
    """
    Prioritized, deduplicated, bounded alert list.

    Example:
        manager = AlertManager(PressSettings())
        manager.offer(Alert("High Vibration: 9.00 mm/s (Critical)",
                            AlertSeverity.CRITICAL, datetime.now()))
        for alert in manager.alerts():
            print(alert.severity.value, alert.message)
    """

    def __init__(self, settings: Optional[PressSettings] = None):
        self.settings = settings or PressSettings()
        self._alerts: List[Alert] = []
        self._last_accepted: Optional[Alert] = None

    @property
    def capacity(self) -> int:
        return self.settings.alert_capacity

    @property
    def last_accepted(self) -> Optional[Alert]:
        return self._last_accepted

    def alerts(self) -> Tuple[Alert, ...]:
        """Retained alerts, severity descending then most recent first."""
        return tuple(self._alerts)

    def clear(self) -> None:
        self._alerts = []
        self._last_accepted = None

    def is_duplicate(self, candidate: Alert) -> bool:
        last = self._last_accepted
        if last is None or last.message != candidate.message:
            return False
        window = timedelta(seconds=self.settings.dedup_window_s)
        return candidate.timestamp - last.timestamp < window

    def offer(self, candidate: Alert) -> bool:
        """
        Offer a candidate alert.

        Returns:
            True if accepted, False if suppressed as a duplicate. An accepted
            alert may still fall outside the retained top N when the list is
            full of higher-priority entries.
        """
        if self.is_duplicate(candidate):
            logger.debug(f"Suppressed duplicate alert: {candidate.message}")
            return False

        self._last_accepted = candidate
        self._alerts = sorted(
            [candidate] + self._alerts,
            key=lambda a: (a.severity.rank, a.timestamp),
            reverse=True,
        )[: self.capacity]

        level = logging.WARNING if candidate.severity is AlertSeverity.CRITICAL else logging.INFO
        logger.log(level, f"Alert [{candidate.severity.value}] {candidate.message}")
        return True

    # =========================================
    # Threshold rules
    # =========================================

    def evaluate(
        self,
        state: ProcessState,
        snapshot: HealthSnapshot,
        timestamp: datetime
    ) -> List[Alert]:
        """
        Apply the threshold rules to this tick's state and metrics.

        Reads the state, never mutates it.

        Returns:
            Candidate alerts, in rule order
        """
        s = self.settings
        candidates: List[Alert] = []

        temp_dev = snapshot.temp_deviation
        if abs(temp_dev) > s.tolerance_pct:
            if state.temperature < s.temp_warning_threshold:
                candidates.append(Alert(
                    message=f"Temperature Low: {state.temperature:.1f}°C (Dev: {temp_dev:.1f}%)",
                    severity=AlertSeverity.CRITICAL,
                    timestamp=timestamp,
                    cause=AlertCause.TEMPERATURE_LOW,
                ))
            else:
                candidates.append(Alert(
                    message=f"Temperature Deviation: {temp_dev:.1f}% (Set: {s.target_temp:g}°C)",
                    severity=AlertSeverity.WARNING,
                    timestamp=timestamp,
                    cause=AlertCause.TEMPERATURE_DEVIATION,
                ))

        pressure_dev = snapshot.pressure_deviation
        if (
            state.phase is Phase.PRESSING
            and abs(pressure_dev) > s.tolerance_pct
            and state.pressure < s.pressure_loss_threshold
        ):
            candidates.append(Alert(
                message=f"Pressure Loss: {state.pressure:.1f} Bar (Dev: {pressure_dev:.1f}%)",
                severity=AlertSeverity.CRITICAL,
                timestamp=timestamp,
                cause=AlertCause.PRESSURE_LOSS,
            ))

        tier = vibration_tier(state.vibration, state.vibration_tier, s)
        if tier is VibrationTier.CRITICAL:
            candidates.append(Alert(
                message=f"High Vibration: {state.vibration:.2f} mm/s (Critical)",
                severity=AlertSeverity.CRITICAL,
                timestamp=timestamp,
                cause=AlertCause.VIBRATION_CRITICAL,
            ))
        elif tier is VibrationTier.WARNING:
            candidates.append(Alert(
                message=f"Vibration Warning: {state.vibration:.2f} mm/s (Safe: <{s.vibration_safe:g} mm/s)",
                severity=AlertSeverity.WARNING,
                timestamp=timestamp,
                cause=AlertCause.VIBRATION_WARNING,
            ))

        return candidates

    def process(
        self,
        state: ProcessState,
        snapshot: HealthSnapshot,
        timestamp: datetime
    ) -> List[Alert]:
        """
        Evaluate the rules and offer every candidate.

        Returns:
            All candidates that fired this tick (accepted or suppressed)
        """
        candidates = self.evaluate(state, snapshot, timestamp)
        for candidate in candidates:
            self.offer(candidate)
        return candidates
