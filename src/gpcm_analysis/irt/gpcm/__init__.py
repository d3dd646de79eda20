"""
Generalized Partial Credit Model.
"""

from gpcm_analysis.irt.gpcm.model import GPCMItemModel
from gpcm_analysis.irt.gpcm.parameters import GPCMParameters

__all__ = [
    "GPCMItemModel",
    "GPCMParameters",
]
