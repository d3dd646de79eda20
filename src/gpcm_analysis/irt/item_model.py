"""
Shared contract for item response models.

Every item model family carries a name, a fixed category count, score
weights, and a fixed/free flag, and answers the same probability and
information queries. Parameter families differ between models: a GPCM item
has a discrimination and steps, a 3PL item has difficulty and guessing.
Typed accessors exist only on the family that has the parameter; the generic
``get_parameter``/``set_parameter`` entry points raise
``UnsupportedParameterError`` for anything outside ``supported_parameters``.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

import numpy as np
from numpy.typing import NDArray

from gpcm_analysis.core.exceptions import (
    InvalidParameterShapeError,
    UnsupportedParameterError,
)
from gpcm_analysis.irt.enums import IrmType, ParameterName


class ItemResponseModel(ABC):
    """Abstract base class for item response models."""

    model_type: ClassVar[IrmType]
    supported_parameters: ClassVar[frozenset[ParameterName]]

    def __init__(self, n_categories: int, name: str = "", fixed: bool = False):
        """
        Initialize shared item fields.

        Args:
            n_categories: Number of response categories. Fixed for the
                lifetime of the item.
            name: Display name of the item.
            fixed: Whether the item's parameters are held fixed during
                estimation.
        """
        self._n_categories = n_categories
        self.name = name
        self.fixed = fixed
        self._score_weights = np.arange(n_categories, dtype=np.float64)

    @property
    def n_categories(self) -> int:
        """Number of response categories."""
        return self._n_categories

    @property
    def min_category(self) -> int:
        """Lowest valid category index."""
        return 0

    @property
    def max_category(self) -> int:
        """Highest valid category index."""
        return self._n_categories - 1

    @property
    def score_weights(self) -> NDArray[np.float64]:
        """Score assigned to each category. Defaults to 0, 1, ..., m-1."""
        return self._score_weights.copy()

    @score_weights.setter
    def score_weights(self, weights: Sequence[float]) -> None:
        values = np.asarray(weights, dtype=np.float64)
        if values.shape != (self._n_categories,):
            raise InvalidParameterShapeError(
                f"Expected {self._n_categories} score weights, "
                f"got shape {values.shape}"
            )
        self._score_weights = values

    def _check_supported(self, parameter: ParameterName) -> None:
        if parameter not in self.supported_parameters:
            raise UnsupportedParameterError(
                self.model_type.value, parameter.value
            )

    def get_parameter(self, parameter: ParameterName) -> Any:
        """Current value of a named parameter."""
        self._check_supported(parameter)
        return self._get_parameter(parameter)

    def set_parameter(self, parameter: ParameterName, value: Any) -> None:
        """Set the current value of a named parameter."""
        self._check_supported(parameter)
        self._set_parameter(parameter, value)

    def set_proposal_parameter(
        self, parameter: ParameterName, value: Any
    ) -> None:
        """Stage a proposed value for a named parameter."""
        self._check_supported(parameter)
        self._set_proposal_parameter(parameter, value)

    def get_std_error(self, parameter: ParameterName) -> Any:
        """Standard error of a named parameter."""
        self._check_supported(parameter)
        return self._get_std_error(parameter)

    @property
    @abstractmethod
    def n_parameters(self) -> int:
        """Length of the flattened parameter vector."""
        ...

    @abstractmethod
    def probability(self, theta: float, category: int) -> float:
        """
        Probability of responding in a category.

        Args:
            theta: Ability value.
            category: Zero-based category index.

        Returns:
            P(Y=category | θ).
        """
        ...

    def expected_value(self, theta: float) -> float:
        """Expected item score at θ under the score weights."""
        ev = 0.0
        for k in range(self._n_categories):
            ev += self._score_weights[k] * self.probability(theta, k)
        return ev

    @abstractmethod
    def gradient(self, theta: float, category: int) -> NDArray[np.float64]:
        """Gradient of the category probability wrt the item parameters."""
        ...

    @abstractmethod
    def deriv_theta(self, theta: float) -> float:
        """First derivative of the expected score wrt θ."""
        ...

    @abstractmethod
    def item_information_at(self, theta: float) -> float:
        """Item information at θ."""
        ...

    @abstractmethod
    def scale(self, intercept: float, slope: float) -> None:
        """Apply a linear transformation to the item parameters in place."""
        ...

    @abstractmethod
    def accept_all_proposal_values(self) -> float:
        """
        Commit staged parameter values.

        Returns:
            Largest absolute change across parameters. 0 for fixed items.
        """
        ...

    @abstractmethod
    def _get_parameter(self, parameter: ParameterName) -> Any: ...

    @abstractmethod
    def _set_parameter(self, parameter: ParameterName, value: Any) -> None: ...

    @abstractmethod
    def _set_proposal_parameter(
        self, parameter: ParameterName, value: Any
    ) -> None: ...

    @abstractmethod
    def _get_std_error(self, parameter: ParameterName) -> Any: ...
