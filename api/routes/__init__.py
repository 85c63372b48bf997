"""
API Routes Module

This module contains all API endpoint implementations organized by function:
- monitoring.py: Status, metrics, alerts and telemetry (read API)
- control.py: Pause/resume, configuration and manual ticks (control API)

All routers are combined in main.py to create the complete API.
"""

from .monitoring import router as monitoring_router
from .control import router as control_router

__all__ = [
    "monitoring_router",
    "control_router",
]
