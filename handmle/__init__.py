"""
handmle: hand-rolled maximum likelihood and M-estimation.

Each model writes its own log-likelihood (or estimating equations) and
analytic gradient, is fitted by a multi-algorithm optimizer driver, and is
checked against an established reference library.

Submodules:
    mle: Generic fit of any Objective (fit_mle)
    regression: Logistic, Poisson and log-binomial GLMs
    survival: Weibull PH, Cox and stratified Cox
    mestimation: Estimating equations with sandwich variance
    inference: Wald intervals, delta method, working-scale transforms
    reference: statsmodels / lifelines / delicatessen comparator
    montecarlo: Wald interval coverage simulation
    datasets: Teaching datasets
    output: matplotlib figures
"""

__version__ = "0.1.0"
__author__ = "Hai-Shuo"
__email__ = "contact@sgcx.org"

from handmle import inference
from handmle import mle
from handmle import regression
from handmle import survival
from handmle import mestimation
from handmle.mle import fit_mle

__all__ = [
    "__version__",
    "fit_mle",
    "inference",
    "mle",
    "regression",
    "survival",
    "mestimation",
]
