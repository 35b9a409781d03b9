"""
GLM family and link function specifications.

Each Family defines:
- A variance function V(μ) relating variance to the mean
- A canonical link function g(μ) mapping the mean to the linear predictor
- A log-likelihood, the quantity the hand-rolled objective maximizes
- A domain check on μ, used to return the penalty value instead of
  evaluating the likelihood outside the parameter space

Each Link defines:
- g(μ) → η  (link)
- g⁻¹(η) → μ  (inverse link)
- dμ/dη  (derivative of inverse link, for the score)

Links are not clipped: an inverse link that leaves the family's domain
(e.g. exp(η) > 1 under the log-binomial model) is detected by
Family.valid_mean() and penalized by the objective.

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
    R Core Team. stats::family, stats::make.link
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray
from scipy.special import expit, gammaln, logit, xlog1py, xlogy

from handmle.core.validation import check_nonnegative, check_unit_interval


# =====================================================================
# Link functions
# =====================================================================

class Link(ABC):
    """Abstract link function g(μ) mapping mean to linear predictor."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def link(self, mu: NDArray) -> NDArray:
        """g(μ) → η."""
        ...

    @abstractmethod
    def linkinv(self, eta: NDArray) -> NDArray:
        """g⁻¹(η) → μ."""
        ...

    @abstractmethod
    def mu_eta(self, eta: NDArray) -> NDArray:
        """dμ/dη = (g⁻¹)'(η)."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class IdentityLink(Link):
    """Identity link: g(μ) = μ."""

    @property
    def name(self) -> str:
        return 'identity'

    def link(self, mu: NDArray) -> NDArray:
        return np.array(mu, dtype=np.float64)

    def linkinv(self, eta: NDArray) -> NDArray:
        return np.array(eta, dtype=np.float64)

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.ones_like(np.asarray(eta, dtype=np.float64))


class LogitLink(Link):
    """Logit link: g(μ) = log(μ/(1-μ)). Canonical for Binomial."""

    @property
    def name(self) -> str:
        return 'logit'

    def link(self, mu: NDArray) -> NDArray:
        return logit(np.asarray(mu, dtype=np.float64))

    def linkinv(self, eta: NDArray) -> NDArray:
        return expit(np.asarray(eta, dtype=np.float64))

    def mu_eta(self, eta: NDArray) -> NDArray:
        p = expit(np.asarray(eta, dtype=np.float64))
        return p * (1.0 - p)


class LogLink(Link):
    """Log link: g(μ) = log(μ). Canonical for Poisson; log-binomial for Binomial."""

    @property
    def name(self) -> str:
        return 'log'

    def link(self, mu: NDArray) -> NDArray:
        with np.errstate(divide='ignore'):
            return np.log(np.asarray(mu, dtype=np.float64))

    def linkinv(self, eta: NDArray) -> NDArray:
        with np.errstate(over='ignore'):
            return np.exp(np.asarray(eta, dtype=np.float64))

    def mu_eta(self, eta: NDArray) -> NDArray:
        return self.linkinv(eta)


# =====================================================================
# Link name → class mapping
# =====================================================================

_LINK_CLASSES: dict[str, type[Link]] = {
    'identity': IdentityLink,
    'logit': LogitLink,
    'log': LogLink,
}


def resolve_link(link: str | Link | None, default: Link | None = None) -> Link:
    """Resolve a link argument to a Link instance."""
    if link is None:
        if default is None:
            raise ValueError("link is required when no default is given")
        return default
    if isinstance(link, Link):
        return link
    if isinstance(link, str):
        cls = _LINK_CLASSES.get(link.lower())
        if cls is None:
            valid = ', '.join(sorted(_LINK_CLASSES.keys()))
            raise ValueError(f"Unknown link: {link!r}. Valid links: {valid}")
        return cls()
    raise TypeError(f"link must be str or Link, got {type(link).__name__}")


# =====================================================================
# Family base class
# =====================================================================

class Family(ABC):
    """
    GLM family specification.

    Defines the response distribution and a link function. Both families
    here have dispersion fixed at 1.
    """

    def __init__(self, link: str | Link | None = None):
        self._link = resolve_link(link, self._default_link())

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def _default_link(self) -> Link:
        ...

    @abstractmethod
    def validate_response(self, y: NDArray) -> None:
        """Raise ValidationError if y is outside the family's support."""
        ...

    @property
    def link(self) -> Link:
        return self._link

    @property
    def is_canonical(self) -> bool:
        """Whether the link is the family's canonical link."""
        return self._link.name == self._default_link().name

    @abstractmethod
    def variance(self, mu: NDArray) -> NDArray:
        """Variance function V(μ)."""
        ...

    @abstractmethod
    def valid_mean(self, mu: NDArray) -> bool:
        """Whether every μ lies inside the family's mean space."""
        ...

    @abstractmethod
    def clip_mean(self, mu: NDArray) -> NDArray:
        """Project μ into the interior of the mean space."""
        ...

    @abstractmethod
    def log_likelihood(self, y: NDArray, mu: NDArray, wt: NDArray | None = None) -> float:
        """Σ wt_i log f(y_i; μ_i), including normalizing constants."""
        ...

    @abstractmethod
    def deviance(self, y: NDArray, mu: NDArray, wt: NDArray | None = None) -> float:
        """2 * (saturated log-likelihood - model log-likelihood)."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link.name!r})"


def _weights(y: NDArray, wt: NDArray | None) -> NDArray:
    return np.ones_like(y) if wt is None else wt


# =====================================================================
# Concrete families
# =====================================================================

class Binomial(Family):
    """Binomial (Bernoulli) family. Canonical link: logit.

    V(μ) = μ(1-μ), with 0 < μ < 1.
    """

    @property
    def name(self) -> str:
        return 'binomial'

    def _default_link(self) -> Link:
        return LogitLink()

    def validate_response(self, y: NDArray) -> None:
        check_unit_interval(y, 'y')

    def variance(self, mu: NDArray) -> NDArray:
        return mu * (1.0 - mu)

    def valid_mean(self, mu: NDArray) -> bool:
        return bool(np.all(np.isfinite(mu)) and np.all(mu > 0) and np.all(mu < 1))

    def clip_mean(self, mu: NDArray) -> NDArray:
        return np.clip(mu, 1e-10, 1.0 - 1e-10)

    def log_likelihood(self, y: NDArray, mu: NDArray, wt: NDArray | None = None) -> float:
        wt = _weights(y, wt)
        return float(np.sum(wt * (xlogy(y, mu) + xlog1py(1.0 - y, -mu))))

    def deviance(self, y: NDArray, mu: NDArray, wt: NDArray | None = None) -> float:
        wt = _weights(y, wt)
        # Saturated log-likelihood is 0 for 0/1 responses
        saturated = np.sum(wt * (xlogy(y, y) + xlogy(1.0 - y, 1.0 - y)))
        return 2.0 * float(saturated - self.log_likelihood(y, mu, wt))


class Poisson(Family):
    """Poisson family. Canonical link: log.

    V(μ) = μ, with μ > 0.
    """

    @property
    def name(self) -> str:
        return 'poisson'

    def _default_link(self) -> Link:
        return LogLink()

    def validate_response(self, y: NDArray) -> None:
        check_nonnegative(y, 'y')

    def variance(self, mu: NDArray) -> NDArray:
        return np.array(mu, dtype=np.float64)

    def valid_mean(self, mu: NDArray) -> bool:
        return bool(np.all(np.isfinite(mu)) and np.all(mu > 0))

    def clip_mean(self, mu: NDArray) -> NDArray:
        return np.clip(mu, 1e-10, np.finfo(np.float64).max)

    def log_likelihood(self, y: NDArray, mu: NDArray, wt: NDArray | None = None) -> float:
        wt = _weights(y, wt)
        return float(np.sum(wt * (xlogy(y, mu) - mu - gammaln(y + 1.0))))

    def deviance(self, y: NDArray, mu: NDArray, wt: NDArray | None = None) -> float:
        wt = _weights(y, wt)
        return 2.0 * float(np.sum(wt * (xlogy(y, y / mu) - (y - mu))))


# =====================================================================
# Family name → class mapping + resolver
# =====================================================================

_FAMILY_CLASSES: dict[str, type[Family]] = {
    'binomial': Binomial,
    'poisson': Poisson,
}


def resolve_family(family: str | Family, link: str | Link | None = None) -> Family:
    """Resolve a family argument (and optional link) to a Family instance.

    Args:
        family: Either 'binomial', 'poisson' or a Family instance.
        link: Link override. Only allowed with a string family.

    Raises:
        ValueError: If the name is not recognized.
        TypeError: If the argument is neither string nor Family.
    """
    if isinstance(family, Family):
        if link is not None and resolve_link(link).name != family.link.name:
            raise ValueError(
                f"link {resolve_link(link).name!r} conflicts with "
                f"{family!r}; pass the link to the Family instead"
            )
        return family
    if isinstance(family, str):
        cls = _FAMILY_CLASSES.get(family.lower())
        if cls is None:
            valid = ', '.join(sorted(_FAMILY_CLASSES.keys()))
            raise ValueError(f"Unknown family: {family!r}. Valid families: {valid}")
        return cls(link)
    raise TypeError(f"family must be str or Family, got {type(family).__name__}")
