"""
Engine Module - Press Simulation Runtime

This module runs the press twin: it owns the mutable state, integrates
the physics each tick and drives the tick loop.

Key Components:
- ProcessModel: Synthetic temperature, pressure and vibration readings
- PressSimulator: The single-writer tick pipeline and read/control API
- TickScheduler: Background thread ticking at a fixed interval

Usage:
    from engine import PressSimulator, TickScheduler

    simulator = PressSimulator(random_seed=42)
    scheduler = TickScheduler(simulator)
    scheduler.start()

    print(simulator.current_status().value)
    for alert in simulator.recent_alerts():
        print(alert.severity.value, alert.message)
"""

from .process_model import ProcessModel
from .simulator import PressSimulator
from .scheduler import TickScheduler

__all__ = [
    "ProcessModel",
    "PressSimulator",
    "TickScheduler",
]

__version__ = "0.1.0"
