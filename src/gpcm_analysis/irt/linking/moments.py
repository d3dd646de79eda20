"""
Moment methods for linking GPCM forms through common (anchor) items.

Mean/sigma matches the mean and standard deviation of the anchor step
parameters. Mean/mean matches the mean discrimination and the mean step.
Only the estimated steps b_1, ..., b_{m-1} enter the statistics; the fixed
first step does not.
"""

import math
from collections.abc import Sequence

from gpcm_analysis.core.accumulators import (
    RunningMean,
    RunningStandardDeviation,
)
from gpcm_analysis.irt.gpcm.model import GPCMItemModel
from gpcm_analysis.irt.linking.data_models import LinkingCoefficients


def check_anchor_items(
    old_items: Sequence[GPCMItemModel],
    new_items: Sequence[GPCMItemModel],
) -> None:
    """
    Validate that anchor items pair up.

    Raises:
        ValueError: If the lists are empty, differ in length, or a pair
            differs in category count.
    """
    if len(old_items) == 0:
        raise ValueError("At least one anchor item is required")
    if len(old_items) != len(new_items):
        raise ValueError(
            f"Anchor lists must have same length, "
            f"got {len(old_items)} and {len(new_items)}"
        )
    for old, new in zip(old_items, new_items, strict=True):
        if old.n_categories != new.n_categories:
            raise ValueError(
                f"Anchor items {old.name!r} and {new.name!r} have "
                f"{old.n_categories} and {new.n_categories} categories"
            )


def mean_sigma(
    old_items: Sequence[GPCMItemModel],
    new_items: Sequence[GPCMItemModel],
) -> LinkingCoefficients:
    """
    Mean/sigma linking coefficients.

        slope = sd(b_old) / sd(b_new)
        intercept = mean(b_old) - slope * mean(b_new)

    Args:
        old_items: Anchor items calibrated on the old form.
        new_items: The same anchor items calibrated on the new form.

    Returns:
        LinkingCoefficients placing the new form on the old scale.
    """
    check_anchor_items(old_items, new_items)

    mean_old, sd_old = RunningMean(), RunningStandardDeviation()
    mean_new, sd_new = RunningMean(), RunningStandardDeviation()
    for item in old_items:
        item.increment_mean_sigma(mean_old, sd_old)
    for item in new_items:
        item.increment_mean_sigma(mean_new, sd_new)

    if math.isnan(sd_new.result) or sd_new.result == 0.0:
        raise ValueError(
            "Mean/sigma needs at least two distinct anchor step parameters"
        )

    slope = sd_old.result / sd_new.result
    intercept = mean_old.result - slope * mean_new.result
    return LinkingCoefficients(intercept=intercept, slope=slope)


def mean_mean(
    old_items: Sequence[GPCMItemModel],
    new_items: Sequence[GPCMItemModel],
) -> LinkingCoefficients:
    """
    Mean/mean linking coefficients.

        slope = mean(a_new) / mean(a_old)
        intercept = mean(b_old) - slope * mean(b_new)

    Args:
        old_items: Anchor items calibrated on the old form.
        new_items: The same anchor items calibrated on the new form.

    Returns:
        LinkingCoefficients placing the new form on the old scale.
    """
    check_anchor_items(old_items, new_items)

    a_old, b_old = RunningMean(), RunningMean()
    a_new, b_new = RunningMean(), RunningMean()
    for item in old_items:
        item.increment_mean_mean(a_old, b_old)
    for item in new_items:
        item.increment_mean_mean(a_new, b_new)

    if a_old.result == 0.0:
        raise ValueError("Mean anchor discrimination on the old form is 0")

    slope = a_new.result / a_old.result
    intercept = b_old.result - slope * b_new.result
    return LinkingCoefficients(intercept=intercept, slope=slope)
