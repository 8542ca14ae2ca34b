"""Immutable result of one A/B comparison.

A ``TestResult`` is built once per :func:`abayes.stats.engine.run_test`
call via :func:`assemble`, which only checks structure: two groups, matching
draw vectors, one comparison per drawn quantity.  Summary and plotting code
read it; nothing updates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

import numpy as np

from abayes.core.errors import NumericalWarning, StructuralError
from abayes.stats.bayesian import MonteCarloDraws
from abayes.stats.comparison import Comparison
from abayes.stats.distributions import Distribution, PosteriorParams, PriorSpec

GROUPS = ("A", "B")


@dataclass(frozen=True)
class TestResult:
    """Inputs, posteriors, raw draws and derived statistics of one test."""

    __test__ = False  # not a pytest class

    distribution: Distribution
    prior: PriorSpec
    posterior_a: PosteriorParams
    posterior_b: PosteriorParams
    draws_a: MonteCarloDraws
    draws_b: MonteCarloDraws
    comparisons: Mapping[str, Comparison]
    simulation_count: int
    seed: Optional[int | np.random.SeedSequence] = None
    warnings: tuple[NumericalWarning, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "comparisons", MappingProxyType(dict(self.comparisons)))

    # ------------------------------------------------------------------
    # Headline statistics (primary quantity)
    # ------------------------------------------------------------------

    @property
    def primary(self) -> Comparison:
        return self.comparisons[self.draws_a.names[0]]

    @property
    def prob_a_gt_b(self) -> float:
        return self.primary.prob_a_gt_b

    @property
    def loss_a(self) -> float:
        return self.primary.loss_a

    @property
    def loss_b(self) -> float:
        return self.primary.loss_b

    @property
    def credible_interval(self) -> tuple[float, float]:
        return self.primary.credible_interval

    @property
    def diff_quantiles(self) -> Mapping[float, float]:
        return self.primary.diff_quantiles

    @property
    def posteriors(self) -> dict[str, PosteriorParams]:
        return {"A": self.posterior_a, "B": self.posterior_b}


def _merge_warnings(*groups) -> tuple[NumericalWarning, ...]:
    seen: list[NumericalWarning] = []
    for group in groups:
        for w in group:
            if w not in seen:
                seen.append(w)
    return tuple(seen)


def assemble(
    distribution: Distribution,
    prior: PriorSpec,
    posteriors: Mapping[str, PosteriorParams],
    draws: Mapping[str, MonteCarloDraws],
    comparisons: Mapping[str, Comparison],
    seed: Optional[int | np.random.SeedSequence] = None,
) -> TestResult:
    """Bundle the pieces of a comparison into a ``TestResult``.

    Raises
    ------
    StructuralError
        If groups other than exactly A and B are present, the draw vectors
        differ in names or length, or a drawn quantity has no comparison.
    """
    if set(posteriors) != set(GROUPS):
        raise StructuralError(
            f"posterior params must be present for exactly groups A and B, got {sorted(posteriors)}"
        )
    if set(draws) != set(GROUPS):
        raise StructuralError(f"draws must be present for exactly groups A and B, got {sorted(draws)}")

    draws_a, draws_b = draws["A"], draws["B"]
    if draws_a.names != draws_b.names:
        raise StructuralError(
            f"draw quantities differ between groups: {draws_a.names} vs {draws_b.names}"
        )
    for name in draws_a.names:
        if len(draws_a[name]) != len(draws_b[name]):
            raise StructuralError(
                f"draw-length mismatch for {name}: {len(draws_a[name])} vs {len(draws_b[name])}"
            )
        if len(draws_a[name]) != draws_a.count:
            raise StructuralError(f"draw-length mismatch for {name}: expected {draws_a.count}")
    if set(comparisons) != set(draws_a.names):
        raise StructuralError(
            f"comparisons {sorted(comparisons)} do not match drawn quantities {list(draws_a.names)}"
        )
    for group, params in posteriors.items():
        if params.distribution is not distribution:
            raise StructuralError(f"posterior for group {group} is {params.distribution.value}")

    warnings = _merge_warnings(
        draws_a.warnings,
        draws_b.warnings,
        *(comparisons[name].warnings for name in draws_a.names),
    )
    return TestResult(
        distribution=distribution,
        prior=prior,
        posterior_a=posteriors["A"],
        posterior_b=posteriors["B"],
        draws_a=draws_a,
        draws_b=draws_b,
        comparisons={name: comparisons[name] for name in draws_a.names},
        simulation_count=draws_a.count,
        seed=seed,
        warnings=warnings,
    )
