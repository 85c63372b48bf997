"""
Monitoring Endpoints

Read-only view of the press twin for dashboards and other consumers:
- Current machine status and cycle counters
- Health snapshot (health index, OEE, deviations)
- Retained alerts (at most 10, severity then recency)
- Rolling telemetry history (at most 60 samples, oldest first)

Every response is built from one locked read of the simulator, so a
consumer never sees a half-updated tick.
"""

import logging

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_simulator
from api.models import (
    AlertListResponse,
    AlertResponse,
    MetricsResponse,
    StatusResponse,
    TelemetryResponse,
    TelemetrySampleResponse,
)
from engine import PressSimulator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Monitoring"])


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Get machine status",
    description="""
    Current phase, cycle counters, live readings and the operator status.

    **Status values:**
    - Stopped: press paused
    - Idle: press in IDLE phase
    - Critical: health < 60 or deviation > 2 × tolerance
    - Warning: health < 75 or deviation > 1.5 × tolerance
    - Degraded: health < 85 or deviation > tolerance
    - Heating Phase: healthy, mold still below 85% of setpoint
    - Healthy
    """
)
async def get_status(simulator: PressSimulator = Depends(get_simulator)):
    """Get current machine status."""
    return StatusResponse(**simulator.status_report())


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    summary="Get health metrics",
    description="""
    Health snapshot of the latest tick.

    Health index (5-100):
    - **Temperature deviation** (40%)
    - **Pressure deviation** (30%)
    - **Reject rate** (20%)
    - **Vibration** (10%)

    OEE (50-100%) = availability × performance × quality.
    """
)
async def get_metrics(simulator: PressSimulator = Depends(get_simulator)):
    """Get current health metrics."""
    return MetricsResponse(**simulator.current_metrics().to_dict())


@router.get(
    "/alerts",
    response_model=AlertListResponse,
    summary="Get recent alerts",
)
async def get_alerts(simulator: PressSimulator = Depends(get_simulator)):
    """Get retained alerts, most important first."""
    alerts = [AlertResponse(**a.to_dict()) for a in simulator.recent_alerts()]
    return AlertListResponse(count=len(alerts), alerts=alerts)


@router.get(
    "/telemetry",
    response_model=TelemetryResponse,
    summary="Get telemetry history",
    description="Rolling telemetry history in chronological order (oldest first)."
)
async def get_telemetry(
    limit: int = Query(default=60, ge=1, le=3600, description="Most recent samples to return"),
    simulator: PressSimulator = Depends(get_simulator)
):
    """Get the most recent telemetry samples, oldest first."""
    history = simulator.telemetry_history()[-limit:]
    samples = [TelemetrySampleResponse(**s.to_dict()) for s in history]
    return TelemetryResponse(
        count=len(samples),
        capacity=simulator.store.capacity,
        samples=samples,
    )
