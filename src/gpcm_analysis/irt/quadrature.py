"""
Gauss-Hermite quadrature over a normal ability distribution.

Characteristic curve linking integrates squared curve differences over the
ability distribution of a form; these points and weights discretize it.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from gpcm_analysis.irt.config import QuadratureConfig


@dataclass(frozen=True)
class GaussHermiteQuadrature:
    """
    Quadrature points and weights for N(mean, std^2).

    Attributes:
        points: Ability values, shape (n_points,).
        weights: Probability weights summing to 1, shape (n_points,).
    """

    points: NDArray[np.float64]
    weights: NDArray[np.float64]

    @property
    def n_points(self) -> int:
        return len(self.points)

    def expectation(self, values: NDArray[np.float64]) -> float:
        """Weighted sum of values evaluated at the quadrature points."""
        return float(np.dot(self.weights, values))


def get_quadrature(config: QuadratureConfig) -> GaussHermiteQuadrature:
    """
    Build quadrature points and weights for the configured distribution.

    numpy's hermgauss integrates against exp(-x^2); rescaling the nodes by
    sqrt(2) gives the standard normal, which is then shifted and scaled to
    N(mean, std^2). Weights are renormalized to sum to exactly 1.

    Args:
        config: Number of points, mean, and standard deviation.

    Returns:
        GaussHermiteQuadrature for the distribution.
    """
    if config.n_points < 1:
        raise ValueError(f"n_points must be >= 1, got {config.n_points}")
    if config.std <= 0:
        raise ValueError(f"std must be > 0, got {config.std}")

    nodes, raw_weights = np.polynomial.hermite.hermgauss(config.n_points)
    points = config.mean + config.std * np.sqrt(2.0) * nodes
    weights = raw_weights / raw_weights.sum()

    return GaussHermiteQuadrature(
        points=points.astype(np.float64),
        weights=weights.astype(np.float64),
    )
