"""
Configuration dataclasses for GPCM items and IRT linking.

This module defines:
- Model defaults (scaling constant, log-domain probabilities)
- Quadrature settings (Gauss-Hermite integration)
- Linking settings for characteristic curve methods
"""

from dataclasses import dataclass, field

from gpcm_analysis.irt.enums import LinkingCriterion, LinkingMethod

# Logistic-to-normal metric constant. Use 1.0 for the logistic metric.
DEFAULT_SCALING_CONSTANT = 1.7

# Shift cumulative logits by their maximum before exponentiating.
# Set to False for the raw exponential form, which can overflow.
DEFAULT_LOG_DOMAIN = True

# Default quadrature settings
DEFAULT_QUADRATURE_POINTS = 41

# Default linking settings
DEFAULT_LINKING_METHOD = LinkingMethod.STOCKING_LORD
DEFAULT_LINKING_CRITERION = LinkingCriterion.SYMMETRIC
DEFAULT_INTERCEPT_BOUNDS = (-10.0, 10.0)
DEFAULT_SLOPE_BOUNDS = (0.01, 10.0)
DEFAULT_MAX_OPTIMIZER_ITERATIONS = 200
DEFAULT_OPTIMIZER_TOLERANCE = 1e-10


@dataclass(frozen=True)
class QuadratureConfig:
    """
    Configuration for Gauss-Hermite quadrature.

    Attributes:
        n_points: Number of quadrature points. Standard in IRT software
            (IRTPRO, flexMIRT) is 41 points.
        mean: Mean of the ability distribution (typically 0).
        std: Standard deviation of the ability distribution (typically 1).
    """

    n_points: int = DEFAULT_QUADRATURE_POINTS
    mean: float = 0.0
    std: float = 1.0


@dataclass(frozen=True)
class LinkingConfig:
    """
    Configuration for IRT scale linking.

    Attributes:
        method: Linking method.
        criterion: Direction of the characteristic curve criterion.
            Backward compares on the old form scale (new form transformed with
            the tStar transform), forward compares on the new form scale
            (old form transformed with the tSharp transform), symmetric sums
            both. Ignored by the moment methods.
        quadrature: Ability grid and weights used by the criterion.
        intercept_bounds: (min, max) bounds for the intercept coefficient.
        slope_bounds: (min, max) bounds for the slope coefficient.
        max_iterations: Maximum iterations for L-BFGS-B.
        tolerance: Convergence tolerance for L-BFGS-B.
    """

    method: LinkingMethod = DEFAULT_LINKING_METHOD
    criterion: LinkingCriterion = DEFAULT_LINKING_CRITERION
    quadrature: QuadratureConfig = field(default_factory=QuadratureConfig)
    intercept_bounds: tuple[float, float] = DEFAULT_INTERCEPT_BOUNDS
    slope_bounds: tuple[float, float] = DEFAULT_SLOPE_BOUNDS
    max_iterations: int = DEFAULT_MAX_OPTIMIZER_ITERATIONS
    tolerance: float = DEFAULT_OPTIMIZER_TOLERANCE


def default_config() -> LinkingConfig:
    """Create a default linking configuration."""
    return LinkingConfig()
