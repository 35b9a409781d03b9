"""
Tolerance tiers for numerical agreement checks.

Each tier names one of the agreement thresholds a hand-rolled fit has to
meet:
- analytic gradient vs finite differences
- hand-rolled coefficients vs a reference library fit
- Hessian-based standard errors vs the reference library
- inverse-link round trips

Used by the comparator, the gradient checker and the test suite.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Analytic gradient vs central finite differences
GRADIENT_CHECK = ToleranceTier(
    rtol=1e-6,
    atol=1e-6,
    name='gradient_check',
    description='analytic gradient matches finite differences',
)

# Coefficients vs reference library, on the link scale (mean abs diff)
REFERENCE_COEF = ToleranceTier(
    rtol=0.0,
    atol=1e-2,
    name='reference_coef',
    description='mean absolute coefficient difference vs reference fit',
)

# Inverse-Hessian standard errors vs reference library (max abs diff)
REFERENCE_SE = ToleranceTier(
    rtol=0.0,
    atol=1e-3,
    name='reference_se',
    description='maximum absolute standard error difference vs reference fit',
)

# link(linkinv(eta)) == eta where linkinv is not saturated
ROUNDTRIP = ToleranceTier(
    rtol=1e-12,
    atol=1e-8,
    name='roundtrip',
    description='inverse link followed by link returns the linear predictor',
)


def select_tolerance(kind: str) -> ToleranceTier:
    """Select a tolerance tier by name."""
    tiers = {
        tier.name: tier
        for tier in (GRADIENT_CHECK, REFERENCE_COEF, REFERENCE_SE, ROUNDTRIP)
    }
    if kind not in tiers:
        valid = ', '.join(sorted(tiers))
        raise ValueError(f"Unknown tolerance tier: {kind!r}. Valid tiers: {valid}")
    return tiers[kind]
