"""
Hand-rolled generalized linear models.

Logistic, Poisson and log-binomial regression fitted by maximizing the
log-likelihood directly with the optimizer driver.
"""

from handmle.regression.design import Design, INTERCEPT
from handmle.regression.families import (
    Binomial,
    Family,
    IdentityLink,
    Link,
    LogitLink,
    LogLink,
    Poisson,
    resolve_family,
    resolve_link,
)
from handmle.regression._objectives import GLMObjective
from handmle.regression.solution import GLMSolution
from handmle.regression.solvers import glm, log_binomial, logistic, poisson

__all__ = [
    "Design",
    "INTERCEPT",
    "Family",
    "Binomial",
    "Poisson",
    "Link",
    "IdentityLink",
    "LogitLink",
    "LogLink",
    "resolve_family",
    "resolve_link",
    "GLMObjective",
    "GLMSolution",
    "glm",
    "logistic",
    "poisson",
    "log_binomial",
]
