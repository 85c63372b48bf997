"""
Telemetry Samples and Ring Store

One TelemetrySample is recorded per tick. The ring store keeps the last
N samples (60 by default, one minute at one tick per second) and hands
out chronological copies for charting and trend displays.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .cycle import Phase
from .validators import InvariantViolation


class VibrationTier(Enum):
    """Vibration alarm tier attached to a sample."""
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class TelemetrySample:
    """Immutable per-tick snapshot of the press."""
    timestamp: datetime
    temperature: float              # °C, sensor value (with noise)
    predicted_temperature: float    # °C, noise-free model value
    pressure: float                 # bar
    vibration: float                # mm/s
    phase: Phase
    temp_deviation: float           # % from target (0 outside HEATING/PRESSING)
    pressure_deviation: float       # % from target (0 outside PRESSING)
    vibration_tier: VibrationTier = VibrationTier.NONE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "temperature": round(self.temperature, 1),
            "predicted_temperature": round(self.predicted_temperature, 1),
            "pressure": round(self.pressure, 1),
            "vibration": round(self.vibration, 1),
            "phase": self.phase.name,
            "temp_deviation": round(self.temp_deviation, 1),
            "pressure_deviation": round(self.pressure_deviation, 1),
            "vibration_tier": self.vibration_tier.value,
        }


class TelemetryRingStore:
    """
    Fixed-capacity circular buffer of telemetry samples.

    Pushing is O(1); once full, the oldest sample is overwritten.
    snapshot() always returns samples oldest first, independent of
    where the write position currently sits.
    """

    def __init__(self, capacity: int = 60):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._buffer: List[Optional[TelemetrySample]] = [None] * capacity
        self._index = 0     # next write position
        self._length = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._length

    def push(self, sample: TelemetrySample) -> None:
        self._buffer[self._index] = sample
        self._index = (self._index + 1) % self._capacity
        self._length = min(self._length + 1, self._capacity)

    def snapshot(self) -> Tuple[TelemetrySample, ...]:
        """Return an immutable copy of the stored samples, oldest first."""
        if not 0 <= self._length <= self._capacity:
            raise InvariantViolation(
                f"Ring store holds {self._length} samples, capacity is {self._capacity}"
            )
        start = (self._index - self._length) % self._capacity
        return tuple(
            self._buffer[(start + i) % self._capacity] for i in range(self._length)
        )

    def latest(self) -> Optional[TelemetrySample]:
        """Most recently pushed sample, or None if empty."""
        if self._length == 0:
            return None
        return self._buffer[(self._index - 1) % self._capacity]

    def clear(self) -> None:
        self._buffer = [None] * self._capacity
        self._index = 0
        self._length = 0
