"""Registry of supported distribution families and their conjugate updates.

Every family carries, as plain data, its prior parameter names and domains,
a support check for observed samples, and a closed-form posterior update.
The registry is closed: callers pick a family by tag, it is looked up once,
and an unknown tag is a validation error.

Updates are pure functions of ``(prior, sample)``; the ``PriorSpec`` and
``PosteriorParams`` they exchange are frozen.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

import numpy as np
from scipy import stats as sp_stats

from abayes.core.errors import ValidationError


class Distribution(str, Enum):
    """Supported data-generating families."""

    BERNOULLI = "bernoulli"
    POISSON = "poisson"
    NORMAL = "normal"
    LOGNORMAL = "lognormal"
    EXPONENTIAL = "exponential"
    UNIFORM = "uniform"


class ParamDomain(str, Enum):
    """Valid domain for a prior parameter."""

    POSITIVE = "positive"
    REAL = "real"

    def contains(self, value: float) -> bool:
        if not math.isfinite(value):
            return False
        if self is ParamDomain.POSITIVE:
            return value > 0
        return True


# ======================================================================
# Prior / posterior value types
# ======================================================================

@dataclass(frozen=True)
class PriorSpec:
    """Validated prior parameters for one family.  Build with :func:`validate`."""

    distribution: Distribution
    params: Mapping[str, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __getitem__(self, name: str) -> float:
        return self.params[name]

    def as_dict(self) -> dict[str, float]:
        return dict(self.params)


@dataclass(frozen=True)
class PosteriorParams:
    """Posterior parameters for one group after absorbing ``n`` observations."""

    distribution: Distribution
    params: Mapping[str, float]
    n: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __getitem__(self, name: str) -> float:
        return self.params[name]

    def as_dict(self) -> dict[str, float]:
        return dict(self.params)


@dataclass(frozen=True)
class DistributionSpec:
    """Static description of a family: prior shape, support and update rule.

    ``draw_params`` names the posterior quantities the sampler draws, in
    order; the first one is the primary quantity used for the headline
    comparison.
    """

    distribution: Distribution
    prior_params: tuple[tuple[str, ParamDomain], ...]
    support: str
    check_support: Callable[[np.ndarray], bool] = field(repr=False)
    update: Callable[[Mapping[str, float], np.ndarray], dict[str, float]] = field(repr=False)
    draw_params: tuple[str, ...]

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.prior_params)

    @property
    def primary(self) -> str:
        return self.draw_params[0]


# ======================================================================
# Conjugate update rules
# ======================================================================

def _update_beta(prior: Mapping[str, float], x: np.ndarray) -> dict[str, float]:
    successes = float(np.sum(x))
    failures = float(len(x)) - successes
    return {"alpha": prior["alpha"] + successes, "beta": prior["beta"] + failures}


def _update_gamma_counts(prior: Mapping[str, float], x: np.ndarray) -> dict[str, float]:
    """Poisson likelihood: shape absorbs the total count, rate the exposure."""
    return {"shape": prior["shape"] + float(np.sum(x)), "rate": prior["rate"] + float(len(x))}


def _update_gamma_waiting(prior: Mapping[str, float], x: np.ndarray) -> dict[str, float]:
    """Exponential likelihood: shape absorbs the event count, rate the total time."""
    return {"shape": prior["shape"] + float(len(x)), "rate": prior["rate"] + float(np.sum(x))}


def _update_pareto(prior: Mapping[str, float], x: np.ndarray) -> dict[str, float]:
    return {"xm": max(prior["xm"], float(np.max(x))), "alpha": prior["alpha"] + float(len(x))}


def _update_nig(prior: Mapping[str, float], x: np.ndarray) -> dict[str, float]:
    """Normal-Inverse-Gamma update over (mean, variance).

    mu'     = (lambda * mu + n * xbar) / (lambda + n)
    lambda' = lambda + n
    alpha'  = alpha + n / 2
    beta'   = beta + S / 2 + n * lambda * (xbar - mu)^2 / (2 * (lambda + n))

    where S is the sum of squared deviations from the sample mean.
    """
    n = float(len(x))
    xbar = float(np.mean(x))
    ss = float(np.sum((x - xbar) ** 2))
    mu, lam, alpha, beta = prior["mu"], prior["lambda"], prior["alpha"], prior["beta"]
    lam_post = lam + n
    return {
        "mu": (lam * mu + n * xbar) / lam_post,
        "lambda": lam_post,
        "alpha": alpha + n / 2.0,
        "beta": beta + 0.5 * ss + (n * lam * (xbar - mu) ** 2) / (2.0 * lam_post),
    }


def _update_nig_log(prior: Mapping[str, float], x: np.ndarray) -> dict[str, float]:
    return _update_nig(prior, np.log(x))


# ======================================================================
# Support checks
# ======================================================================

def _is_binary(x: np.ndarray) -> bool:
    return bool(np.all((x == 0) | (x == 1)))


def _is_count(x: np.ndarray) -> bool:
    return bool(np.all(x >= 0) and np.all(x == np.floor(x)))


def _is_non_negative(x: np.ndarray) -> bool:
    return bool(np.all(x >= 0))


def _is_positive(x: np.ndarray) -> bool:
    return bool(np.all(x > 0))


def _is_real(x: np.ndarray) -> bool:
    return True


_NIG_PRIOR = (
    ("mu", ParamDomain.REAL),
    ("lambda", ParamDomain.POSITIVE),
    ("alpha", ParamDomain.POSITIVE),
    ("beta", ParamDomain.POSITIVE),
)

REGISTRY: Mapping[Distribution, DistributionSpec] = MappingProxyType({
    Distribution.BERNOULLI: DistributionSpec(
        distribution=Distribution.BERNOULLI,
        prior_params=(("alpha", ParamDomain.POSITIVE), ("beta", ParamDomain.POSITIVE)),
        support="values in {0, 1}",
        check_support=_is_binary,
        update=_update_beta,
        draw_params=("Probability",),
    ),
    Distribution.POISSON: DistributionSpec(
        distribution=Distribution.POISSON,
        prior_params=(("shape", ParamDomain.POSITIVE), ("rate", ParamDomain.POSITIVE)),
        support="non-negative integers",
        check_support=_is_count,
        update=_update_gamma_counts,
        draw_params=("Lambda",),
    ),
    Distribution.NORMAL: DistributionSpec(
        distribution=Distribution.NORMAL,
        prior_params=_NIG_PRIOR,
        support="finite real numbers",
        check_support=_is_real,
        update=_update_nig,
        draw_params=("Mu", "Sig2"),
    ),
    Distribution.LOGNORMAL: DistributionSpec(
        distribution=Distribution.LOGNORMAL,
        prior_params=_NIG_PRIOR,
        support="strictly positive real numbers",
        check_support=_is_positive,
        update=_update_nig_log,
        draw_params=("Mean", "Var", "Mu", "Sig2"),
    ),
    Distribution.EXPONENTIAL: DistributionSpec(
        distribution=Distribution.EXPONENTIAL,
        prior_params=(("shape", ParamDomain.POSITIVE), ("rate", ParamDomain.POSITIVE)),
        support="non-negative real numbers",
        check_support=_is_non_negative,
        update=_update_gamma_waiting,
        draw_params=("Lambda",),
    ),
    Distribution.UNIFORM: DistributionSpec(
        distribution=Distribution.UNIFORM,
        prior_params=(("xm", ParamDomain.POSITIVE), ("alpha", ParamDomain.POSITIVE)),
        support="non-negative real numbers",
        check_support=_is_non_negative,
        update=_update_pareto,
        draw_params=("Theta",),
    ),
})


# ======================================================================
# Public API
# ======================================================================

def get_spec(distribution: Distribution | str) -> DistributionSpec:
    """Look up the registry entry for a family tag (enum member or its value)."""
    try:
        return REGISTRY[Distribution(distribution)]
    except ValueError:
        supported = ", ".join(d.value for d in Distribution)
        raise ValidationError(
            f"unknown distribution: {distribution!r} (supported: {supported})"
        ) from None


def validate(distribution: Distribution | str, prior_map: Mapping[str, Any]) -> PriorSpec:
    """Check a raw prior mapping against the family's names and domains.

    Raises
    ------
    ValidationError
        If a parameter is missing, unexpected, non-numeric or outside its
        domain.
    """
    spec = get_spec(distribution)
    expected = set(spec.param_names)
    given = set(prior_map)
    if given != expected:
        missing = sorted(expected - given)
        extra = sorted(given - expected)
        raise ValidationError(
            f"invalid prior specification for {spec.distribution.value}: "
            f"missing={missing} unexpected={extra}"
        )

    params: dict[str, float] = {}
    for name, domain in spec.prior_params:
        if isinstance(prior_map[name], (bool, np.bool_)):
            raise ValidationError(
                f"invalid prior domain: {name}={prior_map[name]!r} is not a number"
            )
        try:
            value = float(prior_map[name])
        except (TypeError, ValueError):
            raise ValidationError(
                f"invalid prior domain: {name}={prior_map[name]!r} is not a number"
            ) from None
        if not domain.contains(value):
            raise ValidationError(
                f"invalid prior domain: {name}={value!r} must be {domain.value}"
            )
        params[name] = value
    return PriorSpec(distribution=spec.distribution, params=params)


def validate_sample(distribution: Distribution | str, sample: Any) -> np.ndarray:
    """Coerce a sample to a 1-D float array and check it against the support.

    Empty samples are rejected: a posterior built from zero observations is
    just the prior, and comparing two priors is almost always a caller bug.
    """
    spec = get_spec(distribution)
    try:
        x = np.asarray(sample, dtype=float)
    except (TypeError, ValueError):
        raise ValidationError("sample violates distribution support: non-numeric values") from None
    if x.ndim != 1:
        raise ValidationError(
            f"sample violates distribution support: expected a 1-D sample, got shape {x.shape}"
        )
    if x.size == 0:
        raise ValidationError("insufficient data: sample is empty")
    if not np.all(np.isfinite(x)) or not spec.check_support(x):
        raise ValidationError(
            f"sample violates distribution support: {spec.distribution.value} expects {spec.support}"
        )
    return x


def update(
    distribution: Distribution | str,
    prior: PriorSpec,
    sample: Any,
) -> PosteriorParams:
    """Return the posterior parameters after observing ``sample``.

    Pure: identical inputs always produce equal ``PosteriorParams``.
    """
    spec = get_spec(distribution)
    if prior.distribution is not spec.distribution:
        raise ValidationError(
            f"invalid prior specification: prior is for {prior.distribution.value}, "
            f"not {spec.distribution.value}"
        )
    x = validate_sample(spec.distribution, sample)
    params = spec.update(prior.params, x)
    return PosteriorParams(distribution=spec.distribution, params=params, n=int(x.size))


def posterior_marginal(posterior: PosteriorParams) -> Optional[Any]:
    """Closed-form marginal of the primary drawn quantity, as a frozen scipy dist.

    Returns ``None`` where no simple closed form exists (lognormal ``Mean``).
    """
    p = posterior.params
    family = posterior.distribution
    if family is Distribution.BERNOULLI:
        return sp_stats.beta(p["alpha"], p["beta"])
    if family in (Distribution.POISSON, Distribution.EXPONENTIAL):
        return sp_stats.gamma(p["shape"], scale=1.0 / p["rate"])
    if family is Distribution.NORMAL:
        # Marginal of the mean under NIG is Student-t with 2 * alpha dof.
        scale = math.sqrt(p["beta"] / (p["alpha"] * p["lambda"]))
        return sp_stats.t(df=2.0 * p["alpha"], loc=p["mu"], scale=scale)
    if family is Distribution.UNIFORM:
        return sp_stats.pareto(p["alpha"], scale=p["xm"])
    return None
