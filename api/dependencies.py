"""
Shared FastAPI dependencies.

The simulator and its scheduler are created in the application lifespan
and kept on app.state; routes reach them through these functions.
"""

from typing import Optional

from fastapi import HTTPException, Request, status

from engine import PressSimulator, TickScheduler


def get_simulator(request: Request) -> PressSimulator:
    simulator = getattr(request.app.state, "simulator", None)
    if simulator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Press simulator not initialized"
        )
    return simulator


def get_scheduler(request: Request) -> Optional[TickScheduler]:
    return getattr(request.app.state, "scheduler", None)
