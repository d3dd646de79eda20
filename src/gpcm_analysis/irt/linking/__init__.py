"""
IRT scale linking for GPCM forms.

Estimates the linear transformation that places a new form's item
parameters on an old form's scale from common (anchor) items, by moment
methods (mean/mean, mean/sigma) or characteristic curve methods (Haebara,
Stocking-Lord).
"""

from gpcm_analysis.irt.linking.characteristic_curve import (
    CharacteristicCurveCriterion,
    characteristic_curve_linking,
    haebara,
    stocking_lord,
)
from gpcm_analysis.irt.linking.data_models import (
    LinkingCoefficients,
    LinkingResult,
)
from gpcm_analysis.irt.linking.linker import link_forms, transform_items
from gpcm_analysis.irt.linking.moments import mean_mean, mean_sigma

__all__ = [
    "CharacteristicCurveCriterion",
    "LinkingCoefficients",
    "LinkingResult",
    "characteristic_curve_linking",
    "haebara",
    "link_forms",
    "mean_mean",
    "mean_sigma",
    "stocking_lord",
    "transform_items",
]
