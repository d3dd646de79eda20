"""
Compiled kernels for the Generalized Partial Credit Model.

All kernels take the flattened item parameter vector

    iparam = [a, b_0, b_1, ..., b_{m-1}]

where a is the discrimination and b_v are the step parameters (b_0 = 0).
The number of categories is len(iparam) - 1. For category k:

    Z_k = Σ_{v=0}^{k} D * a * (θ - b_v)
    P(Y=k | θ) = exp(Z_k) / Σ_c exp(Z_c)

With log_domain=True every exp(Z_k) is replaced by exp(Z_k - max_c Z_c).
Probabilities, gradients, and the θ-derivative are ratios in which this
common factor cancels, so both forms agree wherever the raw form does not
overflow.
"""

import numpy as np
from numba import njit  # type: ignore
from numpy.typing import NDArray


@njit  # type: ignore
def cumulative_logits(
    theta: float,
    iparam: NDArray[np.float64],
    scaling_constant: float,
) -> NDArray[np.float64]:
    """
    Compute Z_k for every category.

    Args:
        theta: Ability value.
        iparam: Flattened item parameters [a, b_0, ..., b_{m-1}].
        scaling_constant: Scaling constant D.

    Returns:
        Cumulative logits, shape (n_categories,).
    """
    n_categories = iparam.shape[0] - 1
    a = iparam[0]
    z = np.empty(n_categories, dtype=np.float64)
    total = 0.0
    for k in range(n_categories):
        total += scaling_constant * a * (theta - iparam[k + 1])
        z[k] = total
    return z


@njit  # type: ignore
def _log_shift(z: NDArray[np.float64], log_domain: bool) -> float:
    if log_domain:
        return float(np.max(z))
    return 0.0


@njit  # type: ignore
def gpcm_numerators(
    theta: float,
    iparam: NDArray[np.float64],
    scaling_constant: float,
    log_domain: bool,
) -> NDArray[np.float64]:
    """
    Compute the unnormalized category weights exp(Z_k).

    Args:
        theta: Ability value.
        iparam: Flattened item parameters [a, b_0, ..., b_{m-1}].
        scaling_constant: Scaling constant D.
        log_domain: Shift logits by their maximum before exponentiating.

    Returns:
        Category weights, shape (n_categories,).
    """
    z = cumulative_logits(theta, iparam, scaling_constant)
    return np.exp(z - _log_shift(z, log_domain))


@njit  # type: ignore
def gpcm_probabilities(
    theta: float,
    iparam: NDArray[np.float64],
    scaling_constant: float,
    log_domain: bool,
) -> NDArray[np.float64]:
    """
    Compute P(Y=k | θ) for all categories.

    Returns:
        Probabilities, shape (n_categories,), summing to 1.
    """
    numerators = gpcm_numerators(theta, iparam, scaling_constant, log_domain)
    return numerators / np.sum(numerators)


@njit  # type: ignore
def gpcm_probability(
    theta: float,
    iparam: NDArray[np.float64],
    category: int,
    scaling_constant: float,
    log_domain: bool,
) -> float:
    """Compute P(Y=category | θ)."""
    numerators = gpcm_numerators(theta, iparam, scaling_constant, log_domain)
    return float(numerators[category] / np.sum(numerators))


@njit  # type: ignore
def gpcm_probability_matrix(
    theta: NDArray[np.float64],
    iparam: NDArray[np.float64],
    scaling_constant: float,
    log_domain: bool,
) -> NDArray[np.float64]:
    """
    Compute probabilities for a vector of ability values.

    Args:
        theta: Ability values, shape (n_theta,).

    Returns:
        Probabilities, shape (n_theta, n_categories).
    """
    n_theta = theta.shape[0]
    n_categories = iparam.shape[0] - 1
    probs = np.empty((n_theta, n_categories), dtype=np.float64)
    for i in range(n_theta):
        probs[i] = gpcm_probabilities(
            theta[i], iparam, scaling_constant, log_domain
        )
    return probs


@njit  # type: ignore
def gpcm_gradient(
    theta: float,
    iparam: NDArray[np.float64],
    category: int,
    scaling_constant: float,
    log_domain: bool,
) -> NDArray[np.float64]:
    """
    Gradient of P(Y=category | θ) with respect to the item parameters.

    Let f_k = exp(Z_k) and g = Σ_k f_k. The derivatives of f_kk are

        ∂f_kk/∂a   = f_kk * D * ((kk+1)θ - Σ_{j<=kk} b_j)
        ∂f_kk/∂b_i = -D * a * f_kk    for i <= kk, else 0

    and each component follows from the quotient rule
    (g * ∂f_k - ∂g * f_k) / g². Since b_i enters f_kk for every kk >= i,
    ∂g/∂b_i = Σ_{kk>=i} ∂f_kk/∂b. Scanning i from the last step down to the
    first keeps that sum as a running total.

    Args:
        theta: Ability value.
        iparam: Flattened item parameters [a, b_0, ..., b_{m-1}].
        category: Zero-based response category.
        scaling_constant: Scaling constant D.
        log_domain: Shift logits by their maximum before exponentiating.

    Returns:
        Gradient, shape (n_categories + 1,). Index 0 is the discrimination,
        index j + 1 is step j.
    """
    n_par = iparam.shape[0]
    n_categories = n_par - 1
    a = iparam[0]
    D = scaling_constant

    z = cumulative_logits(theta, iparam, D)
    shift = _log_shift(z, log_domain)
    fk = np.exp(z - shift)
    g = np.sum(fk)
    g2 = g * g

    # Derivatives of each numerator wrt discrimination (da) and steps (db)
    da = np.empty(n_categories, dtype=np.float64)
    db = np.empty(n_categories, dtype=np.float64)
    bsum = 0.0
    for kk in range(n_categories):
        bsum += iparam[kk + 1]
        dif = (kk + 1) * theta - bsum
        exp_p1 = np.exp(D * a * dif - shift)
        da[kk] = exp_p1 * D * dif
        db[kk] = -D * a * exp_p1

    grad = np.empty(n_par, dtype=np.float64)
    grad[0] = (g * da[category] - np.sum(da) * fk[category]) / g2

    g_prime_bk_sum = 0.0
    for i in range(n_categories - 1, -1, -1):
        g_prime_bk_sum += db[i]
        pd = 0.0
        if i <= category:
            pd = db[category]
        grad[i + 1] = (g * pd - g_prime_bk_sum * fk[category]) / g2

    return grad


@njit  # type: ignore
def gpcm_deriv_theta(
    theta: float,
    iparam: NDArray[np.float64],
    score_weights: NDArray[np.float64],
    scaling_constant: float,
    log_domain: bool,
) -> float:
    """
    First derivative of the expected score with respect to θ.

    The denominator derivative uses the coefficient (k+1) * a for category k,
    without the scaling constant. The result is the exact derivative when
    D = 1.

    Args:
        theta: Ability value.
        iparam: Flattened item parameters [a, b_0, ..., b_{m-1}].
        score_weights: Score weight for each category.
        scaling_constant: Scaling constant D.
        log_domain: Shift logits by their maximum before exponentiating.

    Returns:
        dE[score]/dθ.
    """
    n_categories = iparam.shape[0] - 1
    a = iparam[0]
    numerators = gpcm_numerators(theta, iparam, scaling_constant, log_domain)
    denom = np.sum(numerators)
    denom2 = denom * denom

    denom_deriv = 0.0
    for k in range(n_categories):
        denom_deriv += numerators[k] * (1.0 + k) * a

    deriv = 0.0
    for k in range(n_categories):
        p1 = (scaling_constant * numerators[k] * (1.0 + k) * a) / denom
        p2 = (numerators[k] * denom_deriv) / denom2
        deriv += score_weights[k] * (p1 - p2)
    return deriv


@njit  # type: ignore
def gpcm_information(
    theta: float,
    iparam: NDArray[np.float64],
    score_weights: NDArray[np.float64],
    scaling_constant: float,
    log_domain: bool,
) -> float:
    """
    Item information at θ.

    D² a² times the variance of the score weights under the category
    probabilities at θ.
    """
    a = iparam[0]
    probs = gpcm_probabilities(theta, iparam, scaling_constant, log_domain)
    sum1 = 0.0
    sum2 = 0.0
    for k in range(probs.shape[0]):
        t = score_weights[k]
        sum1 += t * t * probs[k]
        sum2 += t * probs[k]
    return scaling_constant * scaling_constant * a * a * (sum1 - sum2 * sum2)
