"""
Generalized Partial Credit Model item.

GPCMItemModel holds the current parameters of one item, a staged proposal
written by an estimation driver, standard errors, and optional priors. All
probability, gradient, and information queries go through the compiled
kernels in ``gpcm_analysis.irt.gpcm.kernels``. Methods taking an explicit
parameter vector use the flattened layout

    iparam[0] = discrimination
    iparam[1] = step 0 (always 0)
    iparam[2] = step 1
    ...
    iparam[m] = step m-1

and never read the stored parameters.

Instances are not synchronized. A driver running items in parallel must give
each item to at most one thread at a time.
"""

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray

from gpcm_analysis.core.accumulators import Accumulator
from gpcm_analysis.core.exceptions import InvalidParameterShapeError
from gpcm_analysis.irt.config import (
    DEFAULT_LOG_DOMAIN,
    DEFAULT_SCALING_CONSTANT,
)
from gpcm_analysis.irt.enums import IrmType, ParameterName
from gpcm_analysis.irt.gpcm.kernels import (
    gpcm_deriv_theta,
    gpcm_gradient,
    gpcm_information,
    gpcm_probabilities,
    gpcm_probability,
    gpcm_probability_matrix,
)
from gpcm_analysis.irt.gpcm.parameters import GPCMParameters
from gpcm_analysis.irt.item_model import ItemResponseModel
from gpcm_analysis.irt.priors import ItemParamPrior

logger = logging.getLogger(__name__)


def _checked_iparam(
    iparam: Sequence[float] | NDArray[np.float64], category: int
) -> NDArray[np.float64]:
    # The compiled kernels index categories without bounds checks
    values = np.asarray(iparam, dtype=np.float64)
    n_categories = len(values) - 1
    if not 0 <= category < n_categories:
        raise IndexError(
            f"Category must be in [0, {n_categories}), got {category}"
        )
    return values


class GPCMItemModel(ItemResponseModel):
    """
    GPCM item with a discrimination and m step parameters.

    P(Y=k | θ) = exp(Z_k) / Σ_c exp(Z_c)
    Z_k = Σ_{v=0}^{k} D * a * (θ - b_v)

    The first step is fixed to 0 and is never estimated or rescaled.
    """

    model_type = IrmType.GPCM
    supported_parameters = frozenset(
        {ParameterName.DISCRIMINATION, ParameterName.STEPS}
    )

    def __init__(
        self,
        discrimination: float,
        steps: Sequence[float],
        scaling_constant: float = DEFAULT_SCALING_CONSTANT,
        name: str = "",
        fixed: bool = False,
        log_domain: bool = DEFAULT_LOG_DOMAIN,
    ):
        """
        Create an item from initial estimates.

        Args:
            discrimination: Discrimination parameter (a).
            steps: All m step parameters, starting with the fixed 0.
            scaling_constant: Scaling constant D, usually 1.0 or 1.7.
            name: Display name.
            fixed: Hold parameters fixed during estimation.
            log_domain: Shift logits by their maximum before exponentiating.
                False reproduces the raw exponential form, which overflows
                for extreme θ or parameters.
        """
        initial = GPCMParameters(
            discrimination=discrimination, steps=tuple(steps)
        )
        super().__init__(initial.n_categories, name=name, fixed=fixed)

        self._scaling_constant = float(scaling_constant)
        self.log_domain = log_domain

        self._discrimination = initial.discrimination
        self._steps = np.array(initial.steps, dtype=np.float64)
        self._discrimination_std_error = 0.0
        self._step_std_error = np.zeros(self.n_categories, dtype=np.float64)

        self._proposal_discrimination = self._discrimination
        self._proposal_steps = self._steps.copy()

        self._discrimination_prior: ItemParamPrior | None = None
        self._step_priors: list[ItemParamPrior | None] = [
            None
        ] * self.n_categories

    @classmethod
    def from_parameters(
        cls,
        params: GPCMParameters,
        scaling_constant: float = DEFAULT_SCALING_CONSTANT,
        **kwargs: Any,
    ) -> "GPCMItemModel":
        """Create an item from a GPCMParameters struct."""
        return cls(
            params.discrimination, params.steps, scaling_constant, **kwargs
        )

    # =========================================================================
    # Parameter state
    # =========================================================================

    @property
    def n_parameters(self) -> int:
        return self.n_categories + 1

    @property
    def scaling_constant(self) -> float:
        """Scaling constant D."""
        return self._scaling_constant

    @property
    def discrimination(self) -> float:
        return self._discrimination

    @property
    def steps(self) -> NDArray[np.float64]:
        """Copy of the step parameters, including the fixed first step."""
        return self._steps.copy()

    @property
    def discrimination_std_error(self) -> float:
        return self._discrimination_std_error

    @property
    def step_std_error(self) -> NDArray[np.float64]:
        return self._step_std_error.copy()

    @property
    def parameters(self) -> GPCMParameters:
        """Current parameters as an immutable struct."""
        return GPCMParameters(
            discrimination=self._discrimination,
            steps=tuple(float(b) for b in self._steps),
        )

    @property
    def proposal(self) -> GPCMParameters:
        """Staged parameters that the next commit would adopt."""
        return GPCMParameters(
            discrimination=self._proposal_discrimination,
            steps=tuple(float(b) for b in self._proposal_steps),
        )

    def get_item_parameter_array(self) -> NDArray[np.float64]:
        """Current parameters as [a, b_0, ..., b_{m-1}]."""
        return np.concatenate(([self._discrimination], self._steps))

    @staticmethod
    def _check_step_array(
        steps: Sequence[float], expected: int
    ) -> NDArray[np.float64]:
        values = np.asarray(steps, dtype=np.float64)
        if values.ndim != 1:
            raise InvalidParameterShapeError(
                f"Step parameter array must be 1D, got shape {values.shape}"
            )
        if len(values) > expected:
            raise InvalidParameterShapeError(
                f"Step parameter array is too large: expected {expected} "
                f"values, got {len(values)}"
            )
        if len(values) < expected:
            raise InvalidParameterShapeError(
                f"Step parameter array is too small: expected {expected} "
                f"values, got {len(values)}"
            )
        return values

    def _check_all_steps(self, steps: Sequence[float]) -> NDArray[np.float64]:
        values = self._check_step_array(steps, self.n_categories)
        if values[0] != 0.0:
            raise InvalidParameterShapeError(
                f"First step parameter is fixed to 0, got {values[0]}"
            )
        return values

    def set_discrimination(self, discrimination: float) -> None:
        """Set the discrimination. The staged value follows it."""
        self._discrimination = float(discrimination)
        self._proposal_discrimination = self._discrimination

    def set_step_parameters(self, free_steps: Sequence[float]) -> None:
        """
        Replace the estimated steps b_1, ..., b_{m-1}.

        The staged steps follow the new values, so a later commit without
        staging keeps them.

        Args:
            free_steps: m - 1 step values. The fixed first step is kept.

        Raises:
            InvalidParameterShapeError: If the array is not 1D with m - 1
                values.
        """
        values = self._check_step_array(free_steps, self.n_categories - 1)
        self._steps[1:] = values
        self._proposal_steps[1:] = values

    def set_standard_errors(self, std_errors: Sequence[float]) -> None:
        """
        Set all standard errors from a flattened [a, b_0, ..., b_{m-1}] vector.
        """
        values = np.asarray(std_errors, dtype=np.float64)
        if values.shape != (self.n_parameters,):
            raise InvalidParameterShapeError(
                f"Expected {self.n_parameters} standard errors, "
                f"got shape {values.shape}"
            )
        self._discrimination_std_error = float(values[0])
        self._step_std_error = values[1:].copy()

    def set_discrimination_std_error(self, std_error: float) -> None:
        self._discrimination_std_error = float(std_error)

    def set_step_std_error(self, std_errors: Sequence[float]) -> None:
        values = np.asarray(std_errors, dtype=np.float64)
        if values.shape != (self.n_categories,):
            raise InvalidParameterShapeError(
                f"Expected {self.n_categories} step standard errors, "
                f"got shape {values.shape}"
            )
        self._step_std_error = values.copy()

    # =========================================================================
    # Proposal / commit
    # =========================================================================

    def set_proposal_discrimination(self, discrimination: float) -> None:
        self._proposal_discrimination = float(discrimination)

    def set_proposal_step_parameters(self, steps: Sequence[float]) -> None:
        """
        Stage all m step parameters, starting with the fixed 0.

        Raises:
            InvalidParameterShapeError: If the array is not 1D with m values
                or the first step is not 0.
        """
        self._proposal_steps = self._check_all_steps(steps).copy()

    def stage(self, params: GPCMParameters) -> None:
        """Stage a full set of proposed parameters."""
        if params.n_categories != self.n_categories:
            raise InvalidParameterShapeError(
                f"Expected {self.n_categories} categories, "
                f"got {params.n_categories}"
            )
        self._proposal_discrimination = params.discrimination
        self._proposal_steps = np.array(params.steps, dtype=np.float64)

    def discard_proposal(self) -> None:
        """Reset the staged values to the current parameters."""
        self._proposal_discrimination = self._discrimination
        self._proposal_steps = self._steps.copy()

    def accept_all_proposal_values(self) -> float:
        """
        Adopt the staged parameters.

        Returns:
            max(|a - a'|, max_m |b_m - b'_m|), the per-item convergence
            signal for the estimation driver. Fixed items return 0 and keep
            their current values.
        """
        if self.fixed:
            return 0.0

        max_change = max(
            abs(self._discrimination - self._proposal_discrimination),
            float(np.max(np.abs(self._steps - self._proposal_steps))),
        )
        self._discrimination = self._proposal_discrimination
        self._steps = self._proposal_steps.copy()
        logger.debug(f"Item {self.name!r}: max parameter change {max_change}")
        return max_change

    def commit(self) -> float:
        """Alias of accept_all_proposal_values."""
        return self.accept_all_proposal_values()

    # =========================================================================
    # Probability engine
    # =========================================================================

    def probability_at(
        self,
        theta: float,
        iparam: Sequence[float] | NDArray[np.float64],
        category: int,
        scaling_constant: float,
    ) -> float:
        """
        Probability of a response using the given parameter vector.

        Args:
            theta: Ability value.
            iparam: Flattened parameters [a, b_0 = 0, b_1, ..., b_{m-1}].
            category: Zero-based category index.
            scaling_constant: Scaling constant D.

        Returns:
            P(Y=category | θ).

        Raises:
            IndexError: If category is outside 0, ..., len(iparam) - 2.
        """
        values = _checked_iparam(iparam, category)
        return float(
            gpcm_probability(
                float(theta),
                values,
                int(category),
                float(scaling_constant),
                self.log_domain,
            )
        )

    def probability(self, theta: float, category: int) -> float:
        return self.probability_at(
            theta,
            self.get_item_parameter_array(),
            category,
            self._scaling_constant,
        )

    def probabilities(self, theta: float) -> NDArray[np.float64]:
        """Probabilities of every category at θ, shape (n_categories,)."""
        probs: NDArray[np.float64] = gpcm_probabilities(
            float(theta),
            self.get_item_parameter_array(),
            self._scaling_constant,
            self.log_domain,
        )
        return probs

    def probability_matrix(
        self, theta: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Probabilities at many θ values, shape (n_theta, n_categories)."""
        probs: NDArray[np.float64] = gpcm_probability_matrix(
            np.atleast_1d(np.asarray(theta, dtype=np.float64)),
            self.get_item_parameter_array(),
            self._scaling_constant,
            self.log_domain,
        )
        return probs

    def expected_value(self, theta: float) -> float:
        return float(np.dot(self._score_weights, self.probabilities(theta)))

    # =========================================================================
    # Gradient engine
    # =========================================================================

    def gradient_at(
        self,
        theta: float,
        iparam: Sequence[float] | NDArray[np.float64],
        category: int,
        scaling_constant: float,
    ) -> NDArray[np.float64]:
        """
        Gradient of P(Y=category | θ) using the given parameter vector.

        Returns:
            Array of shape (len(iparam),): index 0 is the discrimination,
            index j + 1 is step j.

        Raises:
            IndexError: If category is outside 0, ..., len(iparam) - 2.
        """
        values = _checked_iparam(iparam, category)
        grad: NDArray[np.float64] = gpcm_gradient(
            float(theta),
            values,
            int(category),
            float(scaling_constant),
            self.log_domain,
        )
        return grad

    def gradient(self, theta: float, category: int) -> NDArray[np.float64]:
        return self.gradient_at(
            theta,
            self.get_item_parameter_array(),
            category,
            self._scaling_constant,
        )

    # =========================================================================
    # Derivative / information engine
    # =========================================================================

    def deriv_theta(self, theta: float) -> float:
        return float(
            gpcm_deriv_theta(
                float(theta),
                self.get_item_parameter_array(),
                self._score_weights,
                self._scaling_constant,
                self.log_domain,
            )
        )

    def item_information_at(self, theta: float) -> float:
        return float(
            gpcm_information(
                float(theta),
                self.get_item_parameter_array(),
                self._score_weights,
                self._scaling_constant,
                self.log_domain,
            )
        )

    def item_information(
        self, theta: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Item information at many θ values, shape (n_theta,)."""
        theta = np.atleast_1d(np.asarray(theta, dtype=np.float64))
        return np.array(
            [self.item_information_at(t) for t in theta], dtype=np.float64
        )

    # =========================================================================
    # Priors
    # =========================================================================

    def add_discrimination_prior(self, prior: ItemParamPrior) -> None:
        self._discrimination_prior = prior

    def add_step_prior_at(self, prior: ItemParamPrior, k: int) -> None:
        """Register a prior for step k (0 <= k < n_categories)."""
        if not 0 <= k < self.n_categories:
            raise IndexError(
                f"Step index must be in [0, {self.n_categories}), got {k}"
            )
        self._step_priors[k] = prior

    def add_priors_to_log_likelihood(
        self, ll: float, iparam: Sequence[float] | NDArray[np.float64]
    ) -> float:
        """
        Log-likelihood penalty hook. Returns ll unchanged.

        Only the gradient is penalized by the registered priors.
        """
        return ll

    def add_priors_to_log_likelihood_gradient(
        self,
        loglikegrad: NDArray[np.float64],
        iparam: Sequence[float] | NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """
        Subtract prior log-density derivatives from a gradient vector.

        Args:
            loglikegrad: Gradient in the flattened layout. Modified in place.
            iparam: Parameter values at which the priors are evaluated.

        Returns:
            The same gradient array.
        """
        n_categories = len(iparam) - 1
        if self._discrimination_prior is not None:
            loglikegrad[0] -= self._discrimination_prior.log_density_deriv1(
                iparam[0]
            )
        for k in range(n_categories):
            prior = self._step_priors[k]
            if prior is not None:
                loglikegrad[k + 1] -= prior.log_density_deriv1(iparam[k + 1])
        return loglikegrad

    # =========================================================================
    # Linking and equating
    # =========================================================================

    def increment_mean_sigma(self, mean: Accumulator, sd: Accumulator) -> None:
        """Add steps b_1, ..., b_{m-1} to mean/sigma accumulators."""
        for b in self._steps[1:]:
            mean.increment(float(b))
            sd.increment(float(b))

    def increment_mean_mean(
        self, mean_discrimination: Accumulator, mean_difficulty: Accumulator
    ) -> None:
        """Add the discrimination and free steps to accumulators."""
        mean_discrimination.increment(self._discrimination)
        for b in self._steps[1:]:
            mean_difficulty.increment(float(b))

    def scale(self, intercept: float, slope: float) -> None:
        """
        Linearly transform the item parameters in place.

        a <- a / slope and b_k <- b_k * slope + intercept for k >= 1. Step
        standard errors are multiplied by slope. The first step stays 0. Staged
        values are reset to the rescaled parameters.
        """
        self._discrimination /= slope
        self._steps[1:] = self._steps[1:] * slope + intercept
        self._step_std_error[1:] = self._step_std_error[1:] * slope
        self.discard_proposal()
        logger.debug(
            f"Item {self.name!r} rescaled with intercept={intercept}, "
            f"slope={slope}"
        )

    def t_star_parameters(
        self, intercept: float, slope: float
    ) -> NDArray[np.float64]:
        """
        Parameter vector on the old form scale (new to old, backward).

        a* = a / slope, b*_k = b_k * slope + intercept for k >= 1, b*_0 = 0.
        """
        iparam = self.get_item_parameter_array()
        iparam[0] = self._discrimination / slope
        iparam[2:] = self._steps[1:] * slope + intercept
        return iparam

    def t_sharp_parameters(
        self, intercept: float, slope: float
    ) -> NDArray[np.float64]:
        """
        Parameter vector on the new form scale (old to new, forward).

        a# = a * slope, b#_k = (b_k - intercept) / slope for k >= 1, b#_0 = 0.
        """
        iparam = self.get_item_parameter_array()
        iparam[0] = self._discrimination * slope
        iparam[2:] = (self._steps[1:] - intercept) / slope
        return iparam

    def _in_category_range(self, category: int) -> bool:
        return self.min_category <= category <= self.max_category

    def t_star_probability(
        self, theta: float, category: int, intercept: float, slope: float
    ) -> float:
        """
        Probability under the backward (new form to old form) transformation
        of Kim and Kolen. Returns 0 for categories outside the item's range.
        """
        if not self._in_category_range(category):
            return 0.0
        return self.probability_at(
            theta,
            self.t_star_parameters(intercept, slope),
            category,
            self._scaling_constant,
        )

    def t_sharp_probability(
        self, theta: float, category: int, intercept: float, slope: float
    ) -> float:
        """
        Probability under the forward (old form to new form) transformation
        of Kim and Kolen. Returns 0 for categories outside the item's range.
        """
        if not self._in_category_range(category):
            return 0.0
        return self.probability_at(
            theta,
            self.t_sharp_parameters(intercept, slope),
            category,
            self._scaling_constant,
        )

    def t_star_expected_value(
        self, theta: float, intercept: float, slope: float
    ) -> float:
        ev = 0.0
        for k in range(self.n_categories):
            ev += self._score_weights[k] * self.t_star_probability(
                theta, k, intercept, slope
            )
        return ev

    def t_sharp_expected_value(
        self, theta: float, intercept: float, slope: float
    ) -> float:
        ev = 0.0
        for k in range(self.n_categories):
            ev += self._score_weights[k] * self.t_sharp_probability(
                theta, k, intercept, slope
            )
        return ev

    # =========================================================================
    # Generic parameter access
    # =========================================================================

    def _get_parameter(self, parameter: ParameterName) -> Any:
        if parameter == ParameterName.DISCRIMINATION:
            return self._discrimination
        return self.steps

    def _set_parameter(self, parameter: ParameterName, value: Any) -> None:
        # Generic step access uses all m steps, matching _get_parameter
        if parameter == ParameterName.DISCRIMINATION:
            self.set_discrimination(value)
        else:
            self.set_step_parameters(self._check_all_steps(value)[1:])

    def _set_proposal_parameter(
        self, parameter: ParameterName, value: Any
    ) -> None:
        if parameter == ParameterName.DISCRIMINATION:
            self.set_proposal_discrimination(value)
        else:
            self.set_proposal_step_parameters(value)

    def _get_std_error(self, parameter: ParameterName) -> Any:
        if parameter == ParameterName.DISCRIMINATION:
            return self._discrimination_std_error
        return self.step_std_error

    def __str__(self) -> str:
        """Parameter values on one line, standard errors on the next."""
        values = ", ".join(
            f"{v: .6f}" for v in (self._discrimination, *self._steps[1:])
        )
        std_errors = (
            self._discrimination_std_error,
            *self._step_std_error[1:],
        )
        errors = ", ".join(f"{v: .6f}" for v in std_errors)
        return f"{self.name:>10}: [{values}]\n{'':>12}({errors})"

    def __repr__(self) -> str:
        return (
            f"GPCMItemModel(name={self.name!r}, "
            f"discrimination={self._discrimination}, "
            f"steps={self._steps.tolist()}, "
            f"scaling_constant={self._scaling_constant})"
        )
