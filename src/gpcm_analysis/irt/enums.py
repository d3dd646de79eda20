from enum import Enum


class IrmType(str, Enum):
    GPCM = "gpcm"
    PL3 = "3pl"
    GRM = "grm"


class ParameterName(str, Enum):
    DISCRIMINATION = "discrimination"
    DIFFICULTY = "difficulty"
    GUESSING = "guessing"
    SLIPPING = "slipping"
    STEPS = "steps"
    THRESHOLDS = "thresholds"


class LinkingMethod(str, Enum):
    MEAN_MEAN = "mean_mean"
    MEAN_SIGMA = "mean_sigma"
    HAEBARA = "haebara"
    STOCKING_LORD = "stocking_lord"


class LinkingCriterion(str, Enum):
    BACKWARD = "backward"
    FORWARD = "forward"
    SYMMETRIC = "symmetric"
