"""Posterior sampling for the conjugate families in the registry.

Draws are taken from an explicit ``numpy.random.Generator`` passed in by the
caller, never from global state, so the same generator state and posterior
always reproduce the same vectors bit for bit.  The draw vectors are frozen
(read-only arrays) once created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional

import numpy as np

from abayes.core.config import settings
from abayes.core.errors import NumericalWarning, ValidationError
from abayes.stats.distributions import (
    Distribution,
    PosteriorParams,
    get_spec,
)

logger = logging.getLogger(__name__)


def hdi_from_samples(samples: np.ndarray, credible_mass: float = 0.95) -> tuple[float, float]:
    """Compute the Highest Density Interval from Monte Carlo samples.

    Uses the sorted-interval method: find the shortest interval containing
    ``credible_mass`` proportion of sorted samples.

    Parameters
    ----------
    samples : np.ndarray
        1-D array of Monte Carlo samples.
    credible_mass : float
        Probability mass to include (e.g. 0.95 for 95% HDI).

    Returns
    -------
    tuple[float, float]
        (lower_bound, upper_bound)
    """
    if not 0 < credible_mass < 1:
        raise ValidationError("credible_mass must be between 0 and 1 exclusive")
    sorted_samples = np.sort(samples)
    n = len(sorted_samples)
    if n == 0:
        return (float("nan"), float("nan"))
    interval_size = int(np.ceil(credible_mass * n))
    if interval_size >= n:
        return (float(sorted_samples[0]), float(sorted_samples[-1]))

    widths = sorted_samples[interval_size:] - sorted_samples[: n - interval_size]
    best_idx = int(np.argmin(widths))
    return (float(sorted_samples[best_idx]), float(sorted_samples[best_idx + interval_size - 1]))


@dataclass(frozen=True)
class MonteCarloDraws:
    """Posterior draws for one group, keyed by drawn quantity name.

    All vectors share the same length ``count``.  The first key is the
    primary quantity of the family.
    """

    distribution: Distribution
    values: Mapping[str, np.ndarray]
    count: int
    warnings: tuple[NumericalWarning, ...] = ()

    def __post_init__(self) -> None:
        frozen = {}
        for name, arr in self.values.items():
            arr = np.array(arr, dtype=float, copy=True)
            arr.setflags(write=False)
            frozen[name] = arr
        object.__setattr__(self, "values", MappingProxyType(frozen))

    def __getitem__(self, name: str) -> np.ndarray:
        return self.values[name]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.values)

    @property
    def primary(self) -> np.ndarray:
        return self.values[self.names[0]]


# ======================================================================
# Per-family samplers
# ======================================================================

def _draw_beta(p: Mapping[str, float], count: int, rng: np.random.Generator) -> dict[str, np.ndarray]:
    return {"Probability": rng.beta(p["alpha"], p["beta"], size=count)}


def _draw_gamma(p: Mapping[str, float], count: int, rng: np.random.Generator) -> dict[str, np.ndarray]:
    return {"Lambda": rng.gamma(p["shape"], 1.0 / p["rate"], size=count)}


def _draw_nig(p: Mapping[str, float], count: int, rng: np.random.Generator) -> dict[str, np.ndarray]:
    # sigma^2 ~ InvGamma(alpha, beta); mu | sigma^2 ~ N(mu, sigma^2 / lambda)
    sig2 = 1.0 / rng.gamma(p["alpha"], 1.0 / p["beta"], size=count)
    mu = rng.normal(p["mu"], np.sqrt(sig2 / p["lambda"]))
    return {"Mu": mu, "Sig2": sig2}


def _draw_lognormal(p: Mapping[str, float], count: int, rng: np.random.Generator) -> dict[str, np.ndarray]:
    nig = _draw_nig(p, count, rng)
    mu, sig2 = nig["Mu"], nig["Sig2"]
    with np.errstate(over="ignore"):
        mean = np.exp(mu + sig2 / 2.0)
        var = np.expm1(sig2) * np.exp(2.0 * mu + sig2)
    return {"Mean": mean, "Var": var, "Mu": mu, "Sig2": sig2}


def _draw_pareto(p: Mapping[str, float], count: int, rng: np.random.Generator) -> dict[str, np.ndarray]:
    # numpy's pareto is Lomax; shift by one and scale for the classical form.
    return {"Theta": p["xm"] * (1.0 + rng.pareto(p["alpha"], size=count))}


_SAMPLERS: Mapping[Distribution, Callable[..., dict[str, np.ndarray]]] = MappingProxyType({
    Distribution.BERNOULLI: _draw_beta,
    Distribution.POISSON: _draw_gamma,
    Distribution.NORMAL: _draw_nig,
    Distribution.LOGNORMAL: _draw_lognormal,
    Distribution.EXPONENTIAL: _draw_gamma,
    Distribution.UNIFORM: _draw_pareto,
})


# ======================================================================
# Public API
# ======================================================================

def check_simulation_count(count: int) -> tuple[NumericalWarning, ...]:
    """Reject unusable counts; flag counts below the recommended minimum."""
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
        raise ValidationError(f"simulation count must be an integer, got {count!r}")
    if count < 1:
        raise ValidationError(f"simulation count must be >= 1, got {count}")
    if count > settings.MAX_SIMULATION_COUNT:
        raise ValidationError(
            f"simulation count must be <= {settings.MAX_SIMULATION_COUNT}, got {count}"
        )
    if count < settings.MIN_RECOMMENDED_SIMULATIONS:
        logger.warning(
            "Simulation count %d is below the recommended minimum %d; "
            "Monte Carlo error will be large",
            count, settings.MIN_RECOMMENDED_SIMULATIONS,
        )
        return (NumericalWarning.LOW_SIMULATION_COUNT,)
    return ()


def sample(
    posterior: PosteriorParams,
    distribution: Distribution | str,
    count: int,
    rng: np.random.Generator,
) -> MonteCarloDraws:
    """Draw ``count`` values of every posterior quantity for one group.

    Parameters
    ----------
    posterior : PosteriorParams
        Output of :func:`abayes.stats.distributions.update`.
    distribution : Distribution | str
        Family tag; must match the posterior's family.
    count : int
        Number of Monte Carlo draws.
    rng : np.random.Generator
        Random source; its state advances.

    Returns
    -------
    MonteCarloDraws
        Read-only draws in the family's ``draw_params`` order.
    """
    spec = get_spec(distribution)
    if posterior.distribution is not spec.distribution:
        raise ValidationError(
            f"posterior is for {posterior.distribution.value}, not {spec.distribution.value}"
        )
    warnings = check_simulation_count(count)
    raw = _SAMPLERS[spec.distribution](posterior.params, int(count), rng)
    values = {name: raw[name] for name in spec.draw_params}
    return MonteCarloDraws(
        distribution=spec.distribution,
        values=values,
        count=int(count),
        warnings=warnings,
    )


def seed_sequence(seed: Optional[int | np.random.SeedSequence]) -> np.random.SeedSequence:
    """Root ``SeedSequence`` for a caller seed: a non-negative int, ``None`` or a sequence."""
    if isinstance(seed, np.random.SeedSequence):
        return seed
    if seed is not None and (
        isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0
    ):
        raise ValidationError(f"seed must be a non-negative integer or None, got {seed!r}")
    return np.random.SeedSequence(seed)


def spawn_generators(
    seed: Optional[int | np.random.SeedSequence],
    n: int = 2,
) -> list[np.random.Generator]:
    """Independent generators for ``n`` groups, derived from one seed.

    Child streams come from ``SeedSequence.spawn`` so groups never share
    stream state.
    """
    return [np.random.default_rng(child) for child in seed_sequence(seed).spawn(n)]
