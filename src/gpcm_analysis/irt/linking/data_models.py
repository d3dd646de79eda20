from pydantic import BaseModel, ConfigDict

from gpcm_analysis.irt.enums import LinkingCriterion, LinkingMethod


class LinkingCoefficients(BaseModel):
    """
    Linear transformation placing the new form on the old form scale.

    Applied as b_old = slope * b_new + intercept, a_old = a_new / slope.

    Attributes:
        intercept: Location coefficient (B).
        slope: Scale coefficient (A).
    """

    model_config = ConfigDict(frozen=True)

    intercept: float
    slope: float


class LinkingResult(BaseModel):
    """
    Result of linking a new form to an old form.

    Attributes:
        coefficients: Estimated transformation coefficients.
        method: Linking method used.
        criterion: Criterion direction for characteristic curve methods,
            None for moment methods.
        criterion_value: Criterion value at the solution, None for moment
            methods.
        n_iterations: Optimizer iterations, 0 for moment methods.
        converged: Whether the optimizer reported success.
    """

    model_config = ConfigDict(frozen=True)

    coefficients: LinkingCoefficients
    method: LinkingMethod
    criterion: LinkingCriterion | None = None
    criterion_value: float | None = None
    n_iterations: int = 0
    converged: bool = True
