"""
Test Suite for the Press Digital Twin

This module contains tests for:
- Phase state machine (test_cycle.py)
- Telemetry ring store (test_telemetry.py)
- Physics calculations (test_physics.py)
- Process model (test_process_model.py)
- Health scoring and OEE (test_health_score.py)
- Alert manager (test_alerts.py)
- Settings validation (test_validators.py)
- Simulator pipeline and scheduler (test_simulator.py, test_scheduler.py)
- API endpoints (test_api.py)

Run tests with:
    pytest tests/ -v
    pytest tests/ --cov=core --cov=engine --cov=api
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
