"""
API Module - FastAPI Backend

This module provides the REST API for the Press Digital Twin.
It exposes the simulator's read and control interface over HTTP.

Key Components:
- main.py: FastAPI application factory, lifespan and system endpoints
- models.py: Pydantic schemas for request/response validation
- dependencies.py: Access to the simulator kept on app.state
- routes/: API endpoint implementations

Endpoints:
- GET /api/v1/status: Machine status and cycle counters
- GET /api/v1/metrics: Health index, OEE, deviations
- GET /api/v1/alerts: Retained alerts
- GET /api/v1/telemetry: Rolling telemetry history
- POST /api/v1/control/running: Pause or resume
- PUT /api/v1/control/config: Change setpoints and thresholds
"""

__version__ = "0.1.0"
