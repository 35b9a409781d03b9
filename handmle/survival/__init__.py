"""
Hand-rolled survival models.

Weibull proportional hazards by full likelihood; Cox proportional hazards
(optionally stratified) by partial likelihood with Efron or Breslow ties.
"""

from handmle.survival.design import SurvivalDesign
from handmle.survival._weibull import WeibullObjective
from handmle.survival._cox import CoxObjective
from handmle.survival.solution import CoxSolution, WeibullSolution
from handmle.survival.solvers import coxph, weibull

__all__ = [
    "SurvivalDesign",
    "WeibullObjective",
    "CoxObjective",
    "WeibullSolution",
    "CoxSolution",
    "weibull",
    "coxph",
]
