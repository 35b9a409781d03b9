"""
Cox proportional hazards model for re-arrest (Rossi et al.).

Efron and Breslow ties, compared with lifelines (Efron).
"""

from handmle import datasets
from handmle.reference import compare, reference_coxph
from handmle.survival import CoxObjective, SurvivalDesign, coxph

COVARIATES = ["fin", "age", "race", "wexp", "mar", "paro", "prio"]

df = datasets.load_rossi()
design = SurvivalDesign.from_dataframe(df, duration="week", event="arrest", x=COVARIATES)

for ties in ("efron", "breslow"):
    print(ties, CoxObjective(design, ties=ties).check_gradient())

efron = coxph(design)
breslow = coxph(design, ties="breslow")
print(efron.summary())
print()
print("Breslow coefficients")
print(breslow.to_frame().round(4))

print()
print(compare(efron, reference_coxph(design)).summary())
