"""
Press Digital Twin - FastAPI Application

This is the main entry point for the FastAPI backend.
It wires the press simulator and its tick scheduler into an HTTP API.

Features:
- Live machine status, health index and OEE
- Prioritized, deduplicated alerts
- Rolling telemetry history for charting
- Runtime control (pause/resume, setpoints, thresholds)
- Interactive API documentation (Swagger/OpenAPI)

Access Points:
- API Root: http://localhost:8000
- Swagger Docs: http://localhost:8000/docs
- ReDoc: http://localhost:8000/redoc
"""

import os
import logging
from datetime import datetime
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.dependencies import get_scheduler
from api.models import SystemHealth
from api.routes import monitoring_router, control_router
from core.settings import PressSettings
from engine import PressSimulator, TickScheduler

# =========================================
# Logging Configuration
# =========================================

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO")),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(
    simulator: Optional[PressSimulator] = None,
    start_scheduler: Optional[bool] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        simulator: Engine to serve. If None, one is built from PRESS_*
                   environment variables at startup.
        start_scheduler: Run the background tick scheduler. Defaults to
                         the PRESS_SCHEDULER_ENABLED variable (true).

    Returns:
        Configured FastAPI app
    """
    if start_scheduler is None:
        start_scheduler = os.getenv("PRESS_SCHEDULER_ENABLED", "true").lower() == "true"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Creates the simulator on startup and stops the scheduler on shutdown.
        """
        logger.info("Starting Press Digital Twin API...")

        engine = simulator
        if engine is None:
            seed = os.getenv("PRESS_RANDOM_SEED")
            engine = PressSimulator(
                PressSettings.from_env(),
                random_seed=int(seed) if seed else None,
            )
        app.state.simulator = engine

        scheduler = TickScheduler(engine) if start_scheduler else None
        app.state.scheduler = scheduler
        if scheduler is not None:
            scheduler.start()
        else:
            logger.info("Tick scheduler disabled - advance the engine via /api/v1/control/tick")

        logger.info("Press Digital Twin API started successfully")

        yield  # Application runs here

        logger.info("Shutting down Press Digital Twin API...")
        if scheduler is not None:
            scheduler.stop()

    app = FastAPI(
        title="Press Digital Twin API",
        description="""
## Compression-Molding Press Twin

Simulates a cyclic compression-molding press and raises operational alerts
from derived health metrics.

### Cycle
IDLE → CLOSING → HEATING → PRESSING → COOLING → OPENING → IDLE

### Health Index (5-100)
- **Temperature deviation** (40%)
- **Pressure deviation** (30%)
- **Reject rate** (20%)
- **Vibration** (10%)

### Quick Start
1. **Check status**: `GET /api/v1/status`
2. **Watch alerts**: `GET /api/v1/alerts`
3. **Chart history**: `GET /api/v1/telemetry`
4. **Change setpoints**: `PUT /api/v1/control/config`
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # =========================================
    # CORS Middleware
    # =========================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================
    # Exception Handlers
    # =========================================

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": exc.detail,
                "status_code": exc.status_code,
                "timestamp": datetime.now().isoformat()
            }
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors without echoing rejected input (may be NaN)."""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Request validation failed",
                "detail": [
                    {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
                    for e in exc.errors()
                ],
                "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
                "timestamp": datetime.now().isoformat()
            }
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred",
                "detail": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else None,
                "timestamp": datetime.now().isoformat()
            }
        )

    # =========================================
    # Include Routers
    # =========================================

    app.include_router(monitoring_router, prefix="/api/v1")
    app.include_router(control_router, prefix="/api/v1")

    # =========================================
    # Root Endpoints
    # =========================================

    @app.get("/", tags=["System"], summary="API Root")
    async def root():
        """API root endpoint."""
        return {
            "name": "Press Digital Twin API",
            "version": __version__,
            "description": "Simulation and monitoring of a compression-molding press",
            "documentation": "/docs",
            "health_check": "/health",
            "api_base": "/api/v1"
        }

    @app.get(
        "/health",
        response_model=SystemHealth,
        tags=["System"],
        summary="System Health Check",
    )
    async def health_check(request: Request):
        """System health check endpoint."""
        scheduler = get_scheduler(request)
        if scheduler is None:
            scheduler_status = "disabled"
        elif scheduler.last_error is not None:
            scheduler_status = "failed"
        elif scheduler.is_alive:
            scheduler_status = "ok"
        else:
            scheduler_status = "stopped"

        simulator_ready = getattr(request.app.state, "simulator", None) is not None
        overall_status = "ok" if simulator_ready and scheduler_status in ("ok", "disabled") else "degraded"

        return SystemHealth(
            status=overall_status,
            version=__version__,
            timestamp=datetime.now(),
            scheduler=scheduler_status,
            components={
                "api": "ok",
                "simulator": "ok" if simulator_ready else "missing",
                "scheduler": scheduler_status,
            }
        )

    @app.get("/live", tags=["System"], summary="Liveness Check")
    async def liveness_check():
        """Kubernetes-style liveness check."""
        return {"alive": True}

    return app


app = create_app()


# =========================================
# Run with Uvicorn (for development)
# =========================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", 8000)),
        reload=os.getenv("API_RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
