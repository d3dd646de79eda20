"""
Prior distributions for item parameters.

Priors are consulted only when penalizing the log-likelihood gradient during
Bayesian (MAP) estimation. Any object with a ``log_density_deriv1`` method
can be registered on an item; the classes below cover the distributions
commonly placed on discrimination and step parameters.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
from scipy import stats


@runtime_checkable
class ItemParamPrior(Protocol):
    def log_density(self, x: float) -> float: ...
    def log_density_deriv1(self, x: float) -> float: ...


@dataclass(frozen=True)
class NormalPrior:
    """
    Normal prior N(mean, sd²).

    Attributes:
        mean: Prior mean.
        sd: Prior standard deviation. Must be > 0.
    """

    mean: float = 0.0
    sd: float = 1.0

    def __post_init__(self) -> None:
        if self.sd <= 0:
            raise ValueError(f"sd must be > 0, got {self.sd}")

    def log_density(self, x: float) -> float:
        return float(stats.norm.logpdf(x, loc=self.mean, scale=self.sd))

    def log_density_deriv1(self, x: float) -> float:
        return -(x - self.mean) / (self.sd * self.sd)


@dataclass(frozen=True)
class LogNormalPrior:
    """
    Lognormal prior, where log(x) ~ N(mean, sd²).

    Used for discrimination parameters, which must be positive. The density
    is zero for x <= 0; its log-density derivative is reported as 0 there.

    Attributes:
        mean: Mean of log(x).
        sd: Standard deviation of log(x). Must be > 0.
    """

    mean: float = 0.0
    sd: float = 1.0

    def __post_init__(self) -> None:
        if self.sd <= 0:
            raise ValueError(f"sd must be > 0, got {self.sd}")

    def log_density(self, x: float) -> float:
        if x <= 0:
            return -np.inf
        return float(
            stats.lognorm.logpdf(x, s=self.sd, scale=np.exp(self.mean))
        )

    def log_density_deriv1(self, x: float) -> float:
        if x <= 0:
            return 0.0
        return -(1.0 + (np.log(x) - self.mean) / (self.sd * self.sd)) / x


@dataclass(frozen=True)
class BetaPrior:
    """
    Four-parameter beta prior on [lower, upper].

    Attributes:
        alpha: First shape parameter. Must be > 0.
        beta: Second shape parameter. Must be > 0.
        lower: Lower bound of the support.
        upper: Upper bound of the support.
    """

    alpha: float = 2.0
    beta: float = 2.0
    lower: float = 0.0
    upper: float = 1.0

    def __post_init__(self) -> None:
        if self.alpha <= 0 or self.beta <= 0:
            raise ValueError(
                f"shape parameters must be > 0, got {self.alpha}, {self.beta}"
            )
        if self.upper <= self.lower:
            raise ValueError(
                f"upper must exceed lower, got [{self.lower}, {self.upper}]"
            )

    def log_density(self, x: float) -> float:
        return float(
            stats.beta.logpdf(
                x,
                self.alpha,
                self.beta,
                loc=self.lower,
                scale=self.upper - self.lower,
            )
        )

    def log_density_deriv1(self, x: float) -> float:
        if x <= self.lower or x >= self.upper:
            return 0.0
        return (self.alpha - 1.0) / (x - self.lower) - (self.beta - 1.0) / (
            self.upper - x
        )
