"""
Monte Carlo coverage of 95% Wald intervals for the logistic and Weibull models.
"""

from functools import partial

import numpy as np

from handmle.montecarlo import simulate_logistic, simulate_weibull, wald_coverage
from handmle.regression import logistic
from handmle.survival import weibull

beta = np.array([-0.5, 1.0, -0.75])
sol = wald_coverage(
    partial(simulate_logistic, n=500, beta=beta),
    lambda data: logistic(*data),
    beta,
    n_sim=500,
    seed=1,
    verbose=True,
)
print(sol.summary())

beta = np.array([0.0, 0.5])
shape = 1.5
sol = wald_coverage(
    partial(simulate_weibull, n=300, beta=beta, shape=shape, censor_time=2.0),
    lambda data: weibull(*data),
    np.append(beta, np.log(shape)),
    n_sim=300,
    seed=2,
)
print()
print(sol.summary())
