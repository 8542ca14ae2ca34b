"""Helpers for building priors before a test is run.

Two sources of prior information:
1. Elicited: an expected value of the compared quantity plus a strength in
   pseudo-observations (e.g. mean 2.3 with strength 10 gives Gamma(23, 10))
2. Historical: empirical Bayes moment matching on the per-test estimates of
   past experiments

Both return plain prior mappings that still go through
:func:`abayes.stats.distributions.validate` when a test runs.
"""

from __future__ import annotations

import numpy as np

from abayes.core.errors import ValidationError
from abayes.stats.distributions import Distribution, get_spec


# ======================================================================
# Elicited prior
# ======================================================================

def prior_from_mean(
    distribution: Distribution | str,
    expected_value: float,
    strength: float,
) -> dict[str, float]:
    """Build a prior centred on ``expected_value`` worth ``strength`` observations.

    Parameters
    ----------
    distribution : Distribution | str
        ``bernoulli``, ``poisson`` or ``exponential``.
    expected_value : float
        Prior mean of the compared quantity (a rate in (0, 1) for
        bernoulli, a positive rate otherwise).
    strength : float
        Prior weight in pseudo-observations.  Scaling it up with the same
        mean concentrates the prior without moving it.

    Returns
    -------
    dict[str, float]
        Prior parameters for the family.
    """
    family = get_spec(distribution).distribution
    if strength <= 0:
        raise ValidationError("invalid prior domain: strength must be positive")

    if family is Distribution.BERNOULLI:
        if not 0 < expected_value < 1:
            raise ValidationError("invalid prior domain: expected rate must be between 0 and 1 exclusive")
        return {"alpha": expected_value * strength, "beta": (1 - expected_value) * strength}

    if family in (Distribution.POISSON, Distribution.EXPONENTIAL):
        if expected_value <= 0:
            raise ValidationError("invalid prior domain: expected rate must be positive")
        return {"shape": expected_value * strength, "rate": float(strength)}

    raise ValidationError(
        f"invalid prior specification: no mean/strength form for {family.value}"
    )


# ======================================================================
# Historical prior (empirical Bayes)
# ======================================================================

def _moments(values: list[float]) -> tuple[float, float]:
    if len(values) < 2:
        raise ValidationError("insufficient data: need at least 2 historical values for moment matching")
    arr = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(arr)):
        raise ValidationError("sample violates distribution support: historical values must be finite")
    return float(np.mean(arr)), float(np.var(arr, ddof=1))  # unbiased sample variance


def fit_beta_moment_matching(rates: list[float]) -> tuple[float, float]:
    """Fit a Beta distribution to observed rates via moment matching.

    Given sample mean m and variance v:
        alpha = m * (m*(1-m)/v - 1)
        beta  = (1-m) * (m*(1-m)/v - 1)

    Parameters
    ----------
    rates : list[float]
        Observed rates from past experiments, each in (0, 1).

    Returns
    -------
    tuple[float, float]
        (alpha, beta) parameters for the fitted Beta distribution.
    """
    m, v = _moments(rates)
    if not 0 < m < 1:
        raise ValidationError("sample violates distribution support: mean rate must be in (0, 1)")
    if v <= 0 or v >= m * (1 - m):
        raise ValidationError(
            "insufficient data: historical rates have no usable spread for a Beta fit"
        )
    common = m * (1 - m) / v - 1
    return (m * common, (1 - m) * common)


def fit_gamma_moment_matching(rates: list[float]) -> tuple[float, float]:
    """Fit a Gamma distribution to observed positive rates via moment matching.

    shape = m^2 / v, rate = m / v.

    Returns
    -------
    tuple[float, float]
        (shape, rate)
    """
    m, v = _moments(rates)
    if m <= 0:
        raise ValidationError("sample violates distribution support: mean rate must be positive")
    if v <= 0:
        raise ValidationError(
            "insufficient data: historical rates have no usable spread for a Gamma fit"
        )
    return (m * m / v, m / v)


def historical_prior(distribution: Distribution | str, estimates: list[float]) -> dict[str, float]:
    """Empirical Bayes prior from past per-test estimates of the compared quantity."""
    family = get_spec(distribution).distribution
    if family is Distribution.BERNOULLI:
        alpha, beta = fit_beta_moment_matching(estimates)
        return {"alpha": alpha, "beta": beta}
    if family in (Distribution.POISSON, Distribution.EXPONENTIAL):
        shape, rate = fit_gamma_moment_matching(estimates)
        return {"shape": shape, "rate": rate}
    raise ValidationError(
        f"invalid prior specification: no historical fit for {family.value}"
    )
