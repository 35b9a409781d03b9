"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from handmle import datasets


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def logistic_data(rng):
    """Logistic regression dataset with a known truth."""
    n = 400
    beta_true = np.array([-0.5, 1.0, -0.75])
    X = rng.standard_normal((n, 2))
    p = 1.0 / (1.0 + np.exp(-(beta_true[0] + X @ beta_true[1:])))
    y = rng.binomial(1, p).astype(np.float64)
    return X, y, beta_true


@pytest.fixture
def poisson_data(rng):
    """Poisson regression dataset with exposure offset."""
    n = 400
    beta_true = np.array([0.3, 0.5, -0.25])
    X = rng.standard_normal((n, 2))
    exposure = rng.uniform(0.5, 2.0, n)
    mu = exposure * np.exp(beta_true[0] + X @ beta_true[1:])
    y = rng.poisson(mu).astype(np.float64)
    return X, y, np.log(exposure), beta_true


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2  # Perfect collinearity
    X = np.column_stack([x1, x2, x3])
    y = rng.binomial(1, 0.5, n).astype(np.float64)
    return X, y


@pytest.fixture(scope="session")
def spector():
    return datasets.load_spector()


@pytest.fixture(scope="session")
def rossi():
    return datasets.load_rossi()


@pytest.fixture(scope="session")
def gbsg2():
    return datasets.load_gbsg2()
