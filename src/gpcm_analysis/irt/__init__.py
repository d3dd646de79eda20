"""
IRT (Item Response Theory) module.

This module provides:
- The Generalized Partial Credit Model item (probabilities, parameter
  gradients, information, proposal/commit state)
- Prior distributions for penalized estimation
- Linking and equating transforms between test forms
- Item bank loading and response sampling
"""

from gpcm_analysis.irt.bank import load_item_bank
from gpcm_analysis.irt.enums import (
    IrmType,
    LinkingCriterion,
    LinkingMethod,
    ParameterName,
)
from gpcm_analysis.irt.gpcm import GPCMItemModel, GPCMParameters
from gpcm_analysis.irt.item_model import ItemResponseModel
from gpcm_analysis.irt.linking import (
    LinkingCoefficients,
    LinkingResult,
    link_forms,
    transform_items,
)
from gpcm_analysis.irt.priors import (
    BetaPrior,
    ItemParamPrior,
    LogNormalPrior,
    NormalPrior,
)
from gpcm_analysis.irt.sampling import (
    sample_response,
    sample_responses_batch,
)

__all__ = [
    "BetaPrior",
    "GPCMItemModel",
    "GPCMParameters",
    "IrmType",
    "ItemParamPrior",
    "ItemResponseModel",
    "LinkingCoefficients",
    "LinkingCriterion",
    "LinkingMethod",
    "LinkingResult",
    "LogNormalPrior",
    "NormalPrior",
    "ParameterName",
    "link_forms",
    "load_item_bank",
    "sample_response",
    "sample_responses_batch",
    "transform_items",
]
