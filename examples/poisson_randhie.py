"""
Poisson regression of outpatient visits in the RAND Health Insurance Experiment.
"""

from handmle import datasets
from handmle.reference import compare, reference_glm
from handmle.regression import Design, GLMObjective, Poisson, poisson

COVARIATES = ["lncoins", "idp", "lpi", "fmde", "physlm", "disea", "hlthg", "hlthf", "hlthp"]

df = datasets.load_randhie()
design = Design.from_dataframe(df, x=COVARIATES, y="mdvis")

print(GLMObjective(design, Poisson()).check_gradient())

sol = poisson(design, methods=("BFGS", "L-BFGS-B"), tol=1e-10)
print(sol.summary())
print()
print("Rate ratios")
print(sol.ratios().round(4))

print()
print(compare(sol, reference_glm(design, family="poisson")).summary())
