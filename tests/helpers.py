"""
Deterministic stand-ins for the engine's random source and wall clock.
"""

from datetime import datetime, timedelta
from typing import List, Sequence, Union


class FixedRandom:
    """
    Random source returning a fixed sequence of values, cycling forever.

    FixedRandom(0.5) always returns 0.5, which zeroes every symmetric
    noise term in the engine.
    """

    def __init__(self, values: Union[float, Sequence[float]]):
        if isinstance(values, (int, float)):
            values = [values]
        self.values: List[float] = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class FakeClock:
    """Clock that advances by a fixed step every time it is read."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 8, 0, 0), step_s: float = 1.0):
        self.current = start
        self.step = timedelta(seconds=step_s)

    def __call__(self) -> datetime:
        now = self.current
        self.current += self.step
        return now
