"""
GPCM item parameter representation.

The Generalized Partial Credit Model (Muraki, 1992) in the cumulative step
parameterization used by ICL and jMetrik:
    Z_k = Σ_{v=0}^{k} D * a * (θ - b_v)
    P(Y=k | θ) = exp(Z_k) / Σ_c exp(Z_c)

For an item with m categories there are m step parameters. The first step
b_0 is fixed to zero: it adds the same D * a * θ to every Z_k and is never
estimated or rescaled.

Flattened layout shared with estimation and linking code:
    [a, b_0 = 0, b_1, ..., b_{m-1}]   (length m + 1)
"""

from collections.abc import Sequence
from typing import Self

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

from gpcm_analysis.core.exceptions import InvalidParameterShapeError
from gpcm_analysis.irt.config import (
    DEFAULT_LOG_DOMAIN,
    DEFAULT_SCALING_CONSTANT,
)
from gpcm_analysis.irt.gpcm.kernels import gpcm_probability_matrix


class GPCMParameters(BaseModel):
    """
    Parameters for one item under the GPCM.

    Attributes:
        discrimination: Slope parameter (a).
        steps: Step parameters (b_0, ..., b_{m-1}). b_0 must be 0.
    """

    model_config = ConfigDict(frozen=True)

    discrimination: float
    steps: tuple[float, ...]

    @model_validator(mode="after")
    def _validate_num_categories(self) -> "GPCMParameters":
        if len(self.steps) < 2:
            raise ValueError(
                f"Must have at least 2 categories, got {len(self.steps)}"
            )
        return self

    @model_validator(mode="after")
    def _validate_first_step_is_zero(self) -> "GPCMParameters":
        if self.steps[0] != 0.0:
            raise ValueError(
                f"First step parameter is fixed to 0, got {self.steps[0]}"
            )
        return self

    @property
    def n_categories(self) -> int:
        """Number of response categories."""
        return len(self.steps)

    @property
    def n_parameters(self) -> int:
        """Length of the flattened parameter vector."""
        return len(self.steps) + 1

    def to_array(self) -> NDArray[np.float64]:
        """
        Flatten to [a, b_0, b_1, ..., b_{m-1}].

        Returns:
            1D array of shape (n_categories + 1,).
        """
        return np.array((self.discrimination,) + self.steps, dtype=np.float64)

    @classmethod
    def from_array(cls, arr: Sequence[float] | NDArray[np.float64]) -> Self:
        """
        Reconstruct parameters from a flattened vector.

        Args:
            arr: Vector [a, b_0, b_1, ..., b_{m-1}] with b_0 = 0.

        Returns:
            GPCMParameters instance.

        Raises:
            InvalidParameterShapeError: If the vector describes fewer than
                2 categories.
        """
        values = np.asarray(arr, dtype=np.float64)
        if values.ndim != 1 or len(values) < 3:
            raise InvalidParameterShapeError(
                f"Parameter vector must be 1D with at least 3 values, "
                f"got shape {values.shape}"
            )
        return cls(
            discrimination=float(values[0]),
            steps=tuple(float(b) for b in values[1:]),
        )

    @classmethod
    def from_free_steps(
        cls, discrimination: float, free_steps: Sequence[float]
    ) -> Self:
        """
        Create parameters from the estimated steps b_1, ..., b_{m-1}.

        The fixed first step is prepended.
        """
        return cls(
            discrimination=discrimination,
            steps=(0.0,) + tuple(float(b) for b in free_steps),
        )

    def compute_probabilities(
        self,
        theta: NDArray[np.float64],
        scaling_constant: float = DEFAULT_SCALING_CONSTANT,
        log_domain: bool = DEFAULT_LOG_DOMAIN,
    ) -> NDArray[np.float64]:
        """
        Compute GPCM probabilities for all categories at given theta values.

        Args:
            theta: Ability values, shape (n_theta,).
            scaling_constant: Scaling constant D.
            log_domain: Shift logits by their maximum before exponentiating.

        Returns:
            Probabilities, shape (n_theta, n_categories).
        """
        theta = np.atleast_1d(np.asarray(theta, dtype=np.float64))
        probs: NDArray[np.float64] = gpcm_probability_matrix(
            theta, self.to_array(), scaling_constant, log_domain
        )
        return probs
