"""
Pydantic Models for API Request/Response Validation

This module defines all the data models used by the API for:
- Request body validation
- Response serialization
- Documentation generation (OpenAPI/Swagger)

All models use Pydantic v2 syntax for validation and serialization.
"""

from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum
from pydantic import BaseModel, Field, model_validator


# =========================================
# Enums
# =========================================

class PhaseName(str, Enum):
    """Press cycle phases."""
    IDLE = "IDLE"
    CLOSING = "CLOSING"
    HEATING = "HEATING"
    PRESSING = "PRESSING"
    COOLING = "COOLING"
    OPENING = "OPENING"


class AlertSeverity(str, Enum):
    """Alert severity levels."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class VibrationTier(str, Enum):
    """Vibration alarm tier of a sample."""
    NONE = "none"
    WARNING = "warning"
    CRITICAL = "critical"


# =========================================
# Status & Metrics
# =========================================

class StatusResponse(BaseModel):
    """Current machine status."""
    running: bool = Field(..., description="Whether the press is ticking")
    status: str = Field(..., description="Stopped, Idle, Critical, Warning, Degraded, Heating Phase or Healthy")
    phase: PhaseName = Field(..., description="Active cycle phase")
    phase_label: str = Field(..., description="Human-readable phase name")
    phase_elapsed: int = Field(..., description="Ticks spent in the active phase")
    phase_duration: int = Field(..., description="Configured ticks for the active phase")
    cycle_elapsed: int = Field(..., description="Ticks since the current cycle started")
    total_cycles: int = Field(..., description="Completed cycles")
    reject_count: int = Field(..., description="Scrapped parts")
    last_cycle_time: float = Field(..., description="Duration of the last cycle (ticks)")
    measured_cycle_time: int = Field(..., description="Wall-clock duration of the last cycle (s), 0 before the first")
    temperature: float = Field(..., description="Mold temperature (°C)")
    pressure: float = Field(..., description="Hydraulic pressure (bar)")
    vibration: float = Field(..., description="Vibration velocity (mm/s)")
    tick_count: int = Field(..., description="Ticks since start or reset")


class MetricsResponse(BaseModel):
    """Health snapshot of the latest tick."""
    health_index: float = Field(..., ge=5, le=100, description="Predictive maintenance health index")
    oee: float = Field(..., ge=50, le=100, description="Overall Equipment Effectiveness (%)")
    temp_deviation: float = Field(..., description="Temperature deviation from setpoint (%)")
    pressure_deviation: float = Field(..., description="Pressure deviation from setpoint (%)")
    vibration_penalty: float = Field(..., description="Vibration penalty used in the health index")
    availability: float = Field(..., description="OEE availability factor")
    performance: float = Field(..., description="OEE performance factor")
    quality: float = Field(..., description="OEE quality factor")

    class Config:
        json_schema_extra = {
            "example": {
                "health_index": 91.8,
                "oee": 90.4,
                "temp_deviation": -3.2,
                "pressure_deviation": 0.0,
                "vibration_penalty": 5.0,
                "availability": 0.98,
                "performance": 0.947,
                "quality": 0.976,
            }
        }


# =========================================
# Alerts & Telemetry
# =========================================

class AlertResponse(BaseModel):
    """A single alert."""
    message: str
    severity: AlertSeverity
    timestamp: datetime
    cause: Optional[str] = None


class AlertListResponse(BaseModel):
    """Retained alerts, severity descending then most recent first."""
    count: int
    alerts: List[AlertResponse] = Field(default_factory=list)


class TelemetrySampleResponse(BaseModel):
    """One telemetry sample."""
    timestamp: datetime
    temperature: float = Field(..., description="Mold temperature (°C)")
    predicted_temperature: float = Field(..., description="Noise-free model temperature (°C)")
    pressure: float = Field(..., description="Hydraulic pressure (bar)")
    vibration: float = Field(..., description="Vibration velocity (mm/s)")
    phase: PhaseName
    temp_deviation: float
    pressure_deviation: float
    vibration_tier: VibrationTier


class TelemetryResponse(BaseModel):
    """Rolling telemetry history, oldest first."""
    count: int
    capacity: int
    samples: List[TelemetrySampleResponse] = Field(default_factory=list)


# =========================================
# Control
# =========================================

class RunningRequest(BaseModel):
    """Pause or resume the press."""
    running: bool = Field(..., description="True to resume, False to pause")


class ConfigUpdate(BaseModel):
    """
    Partial settings update.

    Only the fields that are set are applied. Cross-field rules such as
    vibration threshold ordering are checked by the engine.
    """
    target_temp: Optional[float] = Field(None, gt=0, allow_inf_nan=False, description="Vulcanization setpoint (°C)")
    target_pressure: Optional[float] = Field(None, gt=0, allow_inf_nan=False, description="Pressure hold setpoint (bar)")
    tolerance_pct: Optional[float] = Field(None, allow_inf_nan=False, description="Deviation tolerance (%)")
    vibration_safe: Optional[float] = Field(None, allow_inf_nan=False, description="Safe vibration limit (mm/s)")
    vibration_warning: Optional[float] = Field(None, allow_inf_nan=False, description="Warning vibration limit (mm/s)")
    vibration_critical: Optional[float] = Field(None, allow_inf_nan=False, description="Critical vibration limit (mm/s)")
    phase_durations: Optional[Dict[PhaseName, int]] = Field(
        None, description="Ticks per phase, e.g. {\"HEATING\": 20}"
    )
    vibration_critical_probability: Optional[float] = Field(None, ge=0, le=1, allow_inf_nan=False)
    vibration_warning_probability: Optional[float] = Field(None, ge=0, le=1, allow_inf_nan=False)
    dedup_window_s: Optional[float] = Field(None, allow_inf_nan=False, description="Alert dedup window (s)")
    tick_interval_s: Optional[float] = Field(None, allow_inf_nan=False, description="Scheduler period (s)")

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one setting must be provided")
        return self

    def to_targets(self) -> Dict:
        """Settings changes in the shape PressSimulator.configure expects."""
        targets = self.model_dump(exclude_none=True)
        if "phase_durations" in targets:
            targets["phase_durations"] = {
                PhaseName(k).value: v for k, v in targets["phase_durations"].items()
            }
        return targets

    class Config:
        json_schema_extra = {
            "example": {
                "target_temp": 170.0,
                "tolerance_pct": 8.0,
                "phase_durations": {"HEATING": 18},
            }
        }


class ConfigResponse(BaseModel):
    """Settings in force after an update."""
    target_temp: float
    target_pressure: float
    tolerance_pct: float
    vibration_safe: float
    vibration_warning: float
    vibration_critical: float
    phase_durations: Dict[str, int]
    vibration_critical_probability: float
    vibration_warning_probability: float
    dedup_window_s: float
    tick_interval_s: float


# =========================================
# System
# =========================================

class SystemHealth(BaseModel):
    """System health check response."""
    status: str = Field(..., description="ok, degraded, or error")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server time")
    scheduler: str = Field(..., description="Tick scheduler status")
    components: Dict[str, str] = Field(
        default_factory=dict,
        description="Status of system components"
    )


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: bool = True
    message: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)
