"""
Cox model stratified by race: separate baseline hazards, shared coefficients.
"""

from handmle import datasets
from handmle.reference import compare, reference_coxph
from handmle.survival import CoxObjective, SurvivalDesign, coxph

df = datasets.load_rossi()
design = SurvivalDesign.from_dataframe(
    df, duration="week", event="arrest",
    x=["fin", "age", "prio"], strata="race",
)
print(f"{design.n} subjects, {design.n_events} events, strata: {design.n_strata}")
print(CoxObjective(design).check_gradient())

sol = coxph(design, methods=("BFGS", "Newton-CG"))
print(sol.runs.to_frame())
print()
print(sol.summary())

print()
print(compare(sol, reference_coxph(design)).summary())
