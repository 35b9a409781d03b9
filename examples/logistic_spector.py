"""
Logistic regression on the Spector & Mazzeo teaching-method data.

Hand-written log-likelihood and gradient, several optimizers, then a
comparison with statsmodels.
"""

from handmle import datasets, fit_mle
from handmle.reference import compare, reference_glm
from handmle.regression import Binomial, Design, GLMObjective

df = datasets.load_spector()
design = Design.from_dataframe(df, x=["GPA", "TUCE", "PSI"], y="GRADE")
objective = GLMObjective(design, Binomial())

print(objective.check_gradient())

sol = fit_mle(objective, methods=("BFGS", "L-BFGS-B", "Nelder-Mead", "CG"))
print(sol.runs.to_frame())
print()
print(sol.summary())

ref = reference_glm(design, family="binomial")
print()
print(compare(sol, ref).summary())
