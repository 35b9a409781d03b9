"""
M-estimation with the empirical sandwich variance.

1. Mean and variance of a skewed outcome.
2. Logistic regression on the Spector data; the sandwich SEs match
   statsmodels' HC0 robust covariance.
"""

import numpy as np

from handmle import datasets
from handmle.mestimation import MEstimator, ee_mean_variance, ee_regression
from handmle.reference import compare, reference_glm, reference_mestimator
from handmle.regression import Design

rng = np.random.default_rng(7)
y = rng.gamma(shape=2.0, scale=1.5, size=500)


def psi_mean_variance(theta):
    return ee_mean_variance(theta, y)


sol = MEstimator(psi_mean_variance, init=[0.0, 1.0], names=["mu", "sigma2"]).estimate()
print(sol.summary())
print()
print(compare(sol, reference_mestimator(psi_mean_variance, [0.0, 1.0],
                                        names=["mu", "sigma2"])).summary())

df = datasets.load_spector()
design = Design.from_dataframe(df, x=["GPA", "TUCE", "PSI"], y="GRADE")


def psi_logistic(theta):
    return ee_regression(theta, design.X, design.y, model="logistic")


sol = MEstimator(psi_logistic, init=np.zeros(design.p), names=design.names).estimate()
print()
print(sol.summary())
print()
print(compare(sol, reference_glm(design, family="binomial", cov_type="HC0")).summary())
