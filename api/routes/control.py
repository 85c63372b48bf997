"""
Control Endpoints

Operator controls for the press twin:
- Pause / resume ticking
- Change setpoints and thresholds at runtime
- Step the engine by hand (useful when the scheduler is disabled)
- Reset counters and history

Rejected configurations return 400 with the validation issues; the
previous configuration stays in force.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_simulator
from api.models import ConfigResponse, ConfigUpdate, RunningRequest, StatusResponse
from core.validators import ConfigurationError
from engine import PressSimulator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/control", tags=["Control"])


@router.post(
    "/running",
    response_model=StatusResponse,
    summary="Pause or resume the press",
    description="While paused no ticks run and none are queued for later."
)
async def set_running(
    request: RunningRequest,
    simulator: PressSimulator = Depends(get_simulator)
):
    """Pause or resume ticking."""
    simulator.set_running(request.running)
    return StatusResponse(**simulator.status_report())


@router.get(
    "/config",
    response_model=ConfigResponse,
    summary="Get settings in force",
)
async def get_config(simulator: PressSimulator = Depends(get_simulator)):
    """Get current settings."""
    return ConfigResponse(**simulator.settings.to_dict())


@router.put(
    "/config",
    response_model=ConfigResponse,
    summary="Update settings",
    description="""
    Apply a partial settings update.

    **Rejected when:**
    - tolerance or a setpoint is not positive
    - a phase duration is not a positive number of ticks
    - vibration thresholds are not ordered safe < warning < critical
    """
)
async def update_config(
    update: ConfigUpdate,
    simulator: PressSimulator = Depends(get_simulator)
):
    """Update settings."""
    try:
        settings = simulator.configure(update.to_targets())
    except ConfigurationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(exc),
                "validation": exc.result.to_dict(),
            }
        )
    return ConfigResponse(**settings.to_dict())


@router.post(
    "/tick",
    response_model=StatusResponse,
    summary="Advance the engine by hand",
)
async def manual_tick(
    count: int = Query(default=1, ge=1, le=3600, description="Ticks to run"),
    simulator: PressSimulator = Depends(get_simulator)
):
    """Run one or more ticks immediately. Does nothing while paused."""
    if not simulator.running:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Press is paused"
        )
    for _ in range(count):
        simulator.tick()
    return StatusResponse(**simulator.status_report())


@router.post(
    "/reset",
    response_model=StatusResponse,
    summary="Reset counters and history",
)
async def reset(simulator: PressSimulator = Depends(get_simulator)):
    """Reset the press to IDLE with fresh counters."""
    simulator.reset()
    return StatusResponse(**simulator.status_report())
