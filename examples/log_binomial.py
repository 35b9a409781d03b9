"""
Log-binomial regression: relative risks with a non-canonical link.

Probabilities above one are outside the model, so the objective returns a
large penalty there and the optimizer backs away.
"""

import numpy as np

from handmle.core.objective import PENALTY
from handmle.reference import compare, reference_glm
from handmle.regression import Design, GLMObjective, log_binomial

rng = np.random.default_rng(2024)
n = 1000
x = rng.standard_normal((n, 2))
p = np.exp(-1.5 + 0.3 * x[:, 0] - 0.2 * x[:, 1])
y = rng.binomial(1, np.minimum(p, 1.0)).astype(float)

design = Design.from_arrays(x, y, names=["exposure", "confounder"])
objective = GLMObjective(design, "binomial", "log")
print(objective.check_gradient())
print("objective at an infeasible point:", objective.objective(np.array([1.0, 0.0, 0.0])),
      "(PENALTY =", PENALTY, ")")

sol = log_binomial(design, methods=("BFGS", "Nelder-Mead"))
print(sol.runs.to_frame())
print()
print(sol.summary())
print()
print("Relative risks")
print(sol.ratios().round(4))

print()
print(compare(sol, reference_glm(design, family="binomial", link="log")).summary())
