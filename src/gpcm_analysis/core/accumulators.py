"""
Streaming summary statistics.

Item models push their parameter values into these accumulators when
linking statistics are aggregated across an item pool.
"""

import math
from typing import Protocol


class Accumulator(Protocol):
    def increment(self, value: float) -> None: ...


class RunningMean:
    """Arithmetic mean of the values seen so far."""

    def __init__(self) -> None:
        self.n = 0
        self._mean = 0.0

    def increment(self, value: float) -> None:
        self.n += 1
        self._mean += (value - self._mean) / self.n

    @property
    def result(self) -> float:
        """Mean, or NaN before any value is added."""
        if self.n == 0:
            return math.nan
        return self._mean


class RunningStandardDeviation:
    """
    Sample standard deviation (n - 1 denominator) via Welford's algorithm.
    """

    def __init__(self) -> None:
        self.n = 0
        self._mean = 0.0
        self._m2 = 0.0

    def increment(self, value: float) -> None:
        self.n += 1
        delta = value - self._mean
        self._mean += delta / self.n
        self._m2 += delta * (value - self._mean)

    @property
    def result(self) -> float:
        """Standard deviation, or NaN with fewer than two values."""
        if self.n < 2:
            return math.nan
        return math.sqrt(self._m2 / (self.n - 1))
