"""
Entry points for linking two forms and rescaling items.
"""

import logging
from collections.abc import Iterable, Sequence

from gpcm_analysis.irt.config import LinkingConfig
from gpcm_analysis.irt.enums import LinkingMethod
from gpcm_analysis.irt.gpcm.model import GPCMItemModel
from gpcm_analysis.irt.linking.characteristic_curve import (
    characteristic_curve_linking,
)
from gpcm_analysis.irt.linking.data_models import (
    LinkingCoefficients,
    LinkingResult,
)
from gpcm_analysis.irt.linking.moments import mean_mean, mean_sigma

logger = logging.getLogger(__name__)


def link_forms(
    old_items: Sequence[GPCMItemModel],
    new_items: Sequence[GPCMItemModel],
    config: LinkingConfig | None = None,
) -> LinkingResult:
    """
    Estimate the transformation from the new form scale to the old.

    Args:
        old_items: Anchor items calibrated on the old form.
        new_items: The same anchor items, in the same order, calibrated on
            the new form.
        config: Linking configuration. Uses defaults if None.

    Returns:
        LinkingResult with coefficients for GPCMItemModel.scale.
    """
    if config is None:
        config = LinkingConfig()

    if config.method == LinkingMethod.MEAN_SIGMA:
        coefficients = mean_sigma(old_items, new_items)
    elif config.method == LinkingMethod.MEAN_MEAN:
        coefficients = mean_mean(old_items, new_items)
    else:
        return characteristic_curve_linking(old_items, new_items, config)

    logger.info(
        f"{config.method.value} linking: "
        f"intercept={coefficients.intercept:.6f}, "
        f"slope={coefficients.slope:.6f}"
    )
    return LinkingResult(coefficients=coefficients, method=config.method)


def transform_items(
    items: Iterable[GPCMItemModel], coefficients: LinkingCoefficients
) -> None:
    """Rescale every item in place onto the old form scale."""
    for item in items:
        item.scale(coefficients.intercept, coefficients.slope)
