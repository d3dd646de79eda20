"""
Core shared types and utilities.

Foundational components used across the IRT modules: random number
generation, streaming accumulators, and exceptions.
"""

from gpcm_analysis.core.accumulators import (
    Accumulator,
    RunningMean,
    RunningStandardDeviation,
)
from gpcm_analysis.core.exceptions import (
    InvalidParameterShapeError,
    UnsupportedParameterError,
)
from gpcm_analysis.core.utils import get_rng

__all__ = [
    "Accumulator",
    "InvalidParameterShapeError",
    "RunningMean",
    "RunningStandardDeviation",
    "UnsupportedParameterError",
    "get_rng",
]
