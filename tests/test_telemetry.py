"""
Tests for the Telemetry Ring Store

Run with: pytest tests/test_telemetry.py -v
"""

from datetime import datetime, timedelta

import pytest
from core.cycle import Phase
from core.telemetry import TelemetryRingStore, TelemetrySample, VibrationTier
from core.validators import InvariantViolation

BASE = datetime(2024, 1, 1, 8, 0, 0)


def make_sample(i: int) -> TelemetrySample:
    return TelemetrySample(
        timestamp=BASE + timedelta(seconds=i),
        temperature=25.0 + i,
        predicted_temperature=25.0 + i,
        pressure=float(i),
        vibration=3.0,
        phase=Phase.IDLE,
        temp_deviation=0.0,
        pressure_deviation=0.0,
    )


class TestTelemetryRingStore:
    """Test capacity and ordering of the ring store."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = TelemetryRingStore()

    def test_default_capacity(self):
        assert self.store.capacity == 60
        assert len(self.store) == 0
        assert self.store.snapshot() == ()
        assert self.store.latest() is None

    def test_partial_fill_is_chronological(self):
        samples = [make_sample(i) for i in range(5)]
        for s in samples:
            self.store.push(s)
        assert self.store.snapshot() == tuple(samples)

    def test_exactly_full(self):
        for i in range(60):
            self.store.push(make_sample(i))
        snapshot = self.store.snapshot()
        assert len(snapshot) == 60
        assert snapshot[0].timestamp == BASE

    def test_wraparound_drops_oldest(self):
        """After 61 pushes the first sample is gone."""
        for i in range(61):
            self.store.push(make_sample(i))
        snapshot = self.store.snapshot()
        assert len(snapshot) == 60
        assert snapshot[0] == make_sample(1)
        assert snapshot[-1] == make_sample(60)

    def test_oldest_is_sample_from_capacity_pushes_ago(self):
        total = 137
        for i in range(total):
            self.store.push(make_sample(i))
        snapshot = self.store.snapshot()
        assert snapshot[0] == make_sample(total - 60)

    def test_chronological_after_many_wraps(self):
        for i in range(250):
            self.store.push(make_sample(i))
        timestamps = [s.timestamp for s in self.store.snapshot()]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:]))

    def test_latest(self):
        for i in range(75):
            self.store.push(make_sample(i))
        assert self.store.latest() == make_sample(74)

    def test_snapshot_is_detached(self):
        self.store.push(make_sample(0))
        snapshot = self.store.snapshot()
        self.store.push(make_sample(1))
        assert len(snapshot) == 1
        assert isinstance(snapshot, tuple)

    def test_clear(self):
        for i in range(10):
            self.store.push(make_sample(i))
        self.store.clear()
        assert len(self.store) == 0
        assert self.store.snapshot() == ()

    @pytest.mark.parametrize("capacity", [0, -5])
    def test_rejects_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            TelemetryRingStore(capacity)


class TestTelemetrySample:
    """Test sample serialization."""

    def test_to_dict_rounds_values(self):
        sample = TelemetrySample(
            timestamp=BASE,
            temperature=164.94,
            predicted_temperature=165.02,
            pressure=179.66,
            vibration=3.14,
            phase=Phase.PRESSING,
            temp_deviation=-0.0364,
            pressure_deviation=-0.189,
            vibration_tier=VibrationTier.WARNING,
        )
        d = sample.to_dict()
        assert d["temperature"] == 164.9
        assert d["pressure"] == 179.7
        assert d["phase"] == "PRESSING"
        assert d["vibration_tier"] == "warning"
        assert d["timestamp"] == "2024-01-01T08:00:00"

    def test_sample_is_immutable(self):
        sample = make_sample(0)
        with pytest.raises(AttributeError):
            sample.temperature = 99.0


class TestRingStoreInvariant:
    """A corrupted length is reported, never silently truncated."""

    def test_overfull_length_raises(self):
        store = TelemetryRingStore(capacity=3)
        for i in range(3):
            store.push(make_sample(i))
        store._length = 4
        with pytest.raises(InvariantViolation):
            store.snapshot()

    def test_negative_length_raises(self):
        store = TelemetryRingStore(capacity=3)
        store._length = -1
        with pytest.raises(InvariantViolation):
            store.snapshot()
