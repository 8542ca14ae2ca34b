"""StatsEngine: orchestrator that ties together prior validation, conjugate
updates, posterior sampling and the Monte Carlo comparison into a single
``run_test`` call.

This is the main entry point for the comparisons router and for the
calibration runner.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from abayes.core.config import settings
from abayes.stats import distributions
from abayes.stats.bayesian import sample, spawn_generators
from abayes.stats.comparison import compare
from abayes.stats.distributions import Distribution
from abayes.stats.result import TestResult, assemble

logger = logging.getLogger(__name__)


class StatsEngine:
    """Runs Bayesian A/B comparisons.

    Holds only call defaults; every ``run_test`` owns its random source and
    output buffers, so one engine can be shared between threads.

    Parameters
    ----------
    simulation_count : int | None
        Default Monte Carlo draws per group.  Defaults to
        ``settings.DEFAULT_SIMULATION_COUNT``.
    quantiles : Sequence[float] | None
        Default quantiles of the difference to report.
    credible_mass : float | None
        Default mass of the difference credible interval and HDI.
    """

    def __init__(
        self,
        simulation_count: Optional[int] = None,
        quantiles: Optional[Sequence[float]] = None,
        credible_mass: Optional[float] = None,
    ) -> None:
        self.simulation_count = (
            settings.DEFAULT_SIMULATION_COUNT if simulation_count is None else simulation_count
        )
        self.quantiles = tuple(settings.DIFF_QUANTILES if quantiles is None else quantiles)
        self.credible_mass = settings.CREDIBLE_MASS if credible_mass is None else credible_mass

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run_test(
        self,
        sample_a: Any,
        sample_b: Any,
        priors: Mapping[str, float],
        distribution: Distribution | str,
        simulation_count: Optional[int] = None,
        seed: Optional[int | np.random.SeedSequence] = None,
        quantiles: Optional[Sequence[float]] = None,
        credible_mass: Optional[float] = None,
    ) -> TestResult:
        """Compare two samples under a shared prior.

        Steps:
        1. Look up the family and validate the prior
        2. Update the prior with each sample (support checked here)
        3. Spawn independent random streams for A and B
        4. Draw posterior samples for each group
        5. Compare every drawn quantity
        6. Assemble the immutable result

        Parameters
        ----------
        sample_a, sample_b : array-like
            Raw observations for the two groups.
        priors : Mapping[str, float]
            Prior parameters for the family, e.g. ``{"alpha": 1, "beta": 1}``.
        distribution : Distribution | str
            Family tag.
        simulation_count : int | None
            Monte Carlo draws per group.
        seed : int | np.random.SeedSequence | None
            Seed for the random streams; ``None`` draws fresh entropy.

        Returns
        -------
        TestResult

        Raises
        ------
        ValidationError
            Bad family, prior, sample or simulation count.
        StructuralError
            The pieces of the result do not line up.
        """
        count = self.simulation_count if simulation_count is None else simulation_count
        qs = self.quantiles if quantiles is None else tuple(quantiles)
        mass = self.credible_mass if credible_mass is None else credible_mass

        # ----------------------------------------------------------
        # 1. Family + prior
        # ----------------------------------------------------------
        spec = distributions.get_spec(distribution)
        prior = distributions.validate(spec.distribution, priors)

        # ----------------------------------------------------------
        # 2. Conjugate updates
        # ----------------------------------------------------------
        posteriors = {
            "A": distributions.update(spec.distribution, prior, sample_a),
            "B": distributions.update(spec.distribution, prior, sample_b),
        }
        logger.debug(
            "Posteriors for %s: A=%s (n=%d) B=%s (n=%d)",
            spec.distribution.value,
            posteriors["A"].as_dict(), posteriors["A"].n,
            posteriors["B"].as_dict(), posteriors["B"].n,
        )

        # ----------------------------------------------------------
        # 3 & 4. Independent streams and posterior draws
        # ----------------------------------------------------------
        rng_a, rng_b = spawn_generators(seed, 2)
        draws = {
            "A": sample(posteriors["A"], spec.distribution, count, rng_a),
            "B": sample(posteriors["B"], spec.distribution, count, rng_b),
        }

        # ----------------------------------------------------------
        # 5. Comparison per drawn quantity
        # ----------------------------------------------------------
        comparisons = {
            name: compare(
                draws["A"][name],
                draws["B"][name],
                quantity=name,
                quantiles=qs,
                credible_mass=mass,
            )
            for name in spec.draw_params
        }

        # ----------------------------------------------------------
        # 6. Assemble
        # ----------------------------------------------------------
        result = assemble(
            spec.distribution,
            prior,
            posteriors,
            draws,
            comparisons,
            seed=seed,
        )
        logger.debug(
            "Test %s: P(A>B)=%.4f loss_a=%.6g loss_b=%.6g warnings=%s",
            spec.distribution.value, result.prob_a_gt_b, result.loss_a, result.loss_b,
            [w.value for w in result.warnings],
        )
        return result


def run_test(
    sample_a: Any,
    sample_b: Any,
    priors: Mapping[str, float],
    distribution: Distribution | str,
    simulation_count: Optional[int] = None,
    seed: Optional[int | np.random.SeedSequence] = None,
    quantiles: Optional[Sequence[float]] = None,
    credible_mass: Optional[float] = None,
) -> TestResult:
    """Run one comparison with the configured defaults.  See :meth:`StatsEngine.run_test`."""
    return StatsEngine().run_test(
        sample_a,
        sample_b,
        priors,
        distribution,
        simulation_count=simulation_count,
        seed=seed,
        quantiles=quantiles,
        credible_mass=credible_mass,
    )
