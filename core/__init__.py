"""
Core Module - Press Digital Twin

This module contains the core business logic of the press twin:
- Press cycle phases and the duration-driven state machine
- Physics calculations (thermal relaxation, hydraulic balance)
- Health scoring engine (deviations, health index, OEE, status)
- Alert manager (threshold rules, priority, deduplication)
- Telemetry ring store
- Settings and their validation layer

These components are framework-agnostic and can be used by both
the simulator and the API.
"""

from .settings import PressSettings
from .validators import (
    ConfigurationError,
    InvariantViolation,
    SettingsValidator,
    ValidationResult,
    validate_settings,
)
from .cycle import Phase, PhaseStateMachine
from .telemetry import TelemetryRingStore, TelemetrySample, VibrationTier
from .physics import PhysicsCalculator, ProcessState
from .health_score import HealthScoreEngine, HealthSnapshot, MachineStatus
from .alerts import Alert, AlertManager, AlertSeverity

__all__ = [
    # Settings & validation
    "PressSettings",
    "ConfigurationError",
    "InvariantViolation",
    "SettingsValidator",
    "ValidationResult",
    "validate_settings",

    # Cycle
    "Phase",
    "PhaseStateMachine",

    # Telemetry
    "TelemetryRingStore",
    "TelemetrySample",
    "VibrationTier",

    # Physics
    "PhysicsCalculator",
    "ProcessState",

    # Health scoring
    "HealthScoreEngine",
    "HealthSnapshot",
    "MachineStatus",

    # Alerts
    "Alert",
    "AlertManager",
    "AlertSeverity",
]

__version__ = "0.1.0"
