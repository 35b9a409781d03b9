"""
Reference comparator.

Re-fits each model with an established library (statsmodels, lifelines,
delicatessen) and compares the hand-rolled estimates and standard errors.
"""

from handmle.reference._common import ReferenceFit
from handmle.reference._statsmodels import reference_glm
from handmle.reference._lifelines import aft_to_ph, reference_coxph, reference_weibull
from handmle.reference._delicatessen import reference_mestimator
from handmle.reference.compare import Comparison, compare

__all__ = [
    "ReferenceFit",
    "reference_glm",
    "reference_coxph",
    "reference_weibull",
    "reference_mestimator",
    "aft_to_ph",
    "Comparison",
    "compare",
]
