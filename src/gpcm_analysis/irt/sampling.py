"""
Response sampling for GPCM items.

Draws category responses given abilities and items, for simulation studies
and for checking estimation and linking code against known parameters.
"""

from collections.abc import Sequence

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from gpcm_analysis.core.utils import get_rng
from gpcm_analysis.irt.gpcm.model import GPCMItemModel


def sample_response(
    ability: float,
    item: GPCMItemModel,
    rng: Generator | None = None,
) -> int:
    """
    Sample a single response given ability and an item.

    Args:
        ability: Candidate's latent ability.
        item: GPCM item.
        rng: Random number generator.

    Returns:
        Sampled category index (0-based).
    """
    if rng is None:
        rng = get_rng()

    probs = item.probabilities(ability)
    return int(rng.choice(item.n_categories, p=probs))


def sample_responses_batch(
    abilities: NDArray[np.float64],
    items: Sequence[GPCMItemModel],
    rng: Generator | None = None,
) -> NDArray[np.int8]:
    """
    Sample responses for all candidates and items.

    Args:
        abilities: Array of shape (n_candidates,) with ability values.
        items: GPCM items.
        rng: Random number generator.

    Returns:
        Array of shape (n_candidates, n_items) with category indices.
    """
    if rng is None:
        rng = get_rng()

    n_candidates = len(abilities)
    responses = np.empty((n_candidates, len(items)), dtype=np.int8)

    for j, item in enumerate(items):
        probs = item.probability_matrix(abilities)

        # Inverse CDF: count cumulative probabilities below a uniform draw
        cumprobs = np.cumsum(probs, axis=1)
        u = rng.random(n_candidates)
        responses[:, j] = np.minimum(
            (cumprobs < u[:, np.newaxis]).sum(axis=1), item.n_categories - 1
        )

    return responses
