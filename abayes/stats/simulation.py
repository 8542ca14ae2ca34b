"""Calibration runner: many simulated A/B tests under a known truth.

Used to check how often a prior and decision threshold produce false calls
when A and B come from the same process.  Trials are independent, so they
run on a thread pool; each trial gets its own child ``SeedSequence`` (one
stream for generating data, one for the test's posterior draws), so no two
trials share random state and a fixed seed reproduces the whole run.

A ``threading.Event`` passed as ``cancel`` is checked before each trial
starts.  A cancelled run returns the trials that finished.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import numpy as np

from abayes.core.errors import ValidationError
from abayes.stats.bayesian import seed_sequence
from abayes.stats.decisions import is_significant
from abayes.stats.distributions import Distribution
from abayes.stats.engine import StatsEngine

logger = logging.getLogger(__name__)

SampleGenerator = Callable[[np.random.Generator], tuple[np.ndarray, np.ndarray]]


@dataclass(frozen=True)
class CalibrationReport:
    """Outcome of a calibration run.

    ``probabilities`` holds P(A > B) for every finished trial, in trial
    order; cancelled trials are absent.
    """

    requested: int
    completed: int
    significant: int
    threshold: float
    probabilities: np.ndarray
    cancelled: bool = False

    @property
    def false_positive_rate(self) -> float:
        if self.completed == 0:
            return float("nan")
        return self.significant / self.completed


# ======================================================================
# Sample generators
# ======================================================================

def poisson_null(lam: float, size: int) -> SampleGenerator:
    """Both groups drawn from Poisson(``lam``) with ``size`` observations each."""
    def generate(rng: np.random.Generator) -> tuple[np.ndarray, np.ndarray]:
        return rng.poisson(lam, size=size), rng.poisson(lam, size=size)
    return generate


def bernoulli_null(p: float, size: int) -> SampleGenerator:
    """Both groups drawn from Bernoulli(``p``) with ``size`` observations each."""
    def generate(rng: np.random.Generator) -> tuple[np.ndarray, np.ndarray]:
        return (
            (rng.random(size) < p).astype(float),
            (rng.random(size) < p).astype(float),
        )
    return generate


# ======================================================================
# Runner
# ======================================================================

def run_calibration(
    generate: SampleGenerator,
    priors: Mapping[str, float],
    distribution: Distribution | str,
    trials: int,
    threshold: float,
    simulation_count: int = 10_000,
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
) -> CalibrationReport:
    """Run ``trials`` independent simulated tests and count significant calls.

    Parameters
    ----------
    generate : SampleGenerator
        Produces ``(sample_a, sample_b)`` from a generator.  For a
        false-positive calibration both groups share the same truth.
    priors : Mapping[str, float]
        Prior used by every trial.
    distribution : Distribution | str
        Family tag.
    trials : int
        Number of simulated tests.
    threshold : float
        Two-tailed significance threshold on P(A > B), see
        :func:`abayes.stats.decisions.is_significant`.
    simulation_count : int
        Monte Carlo draws per group per trial.
    seed : int | None
        Root seed; the same seed reproduces every trial.
    max_workers : int | None
        Thread pool size.
    cancel : threading.Event | None
        When set, trials that have not started are skipped.

    Returns
    -------
    CalibrationReport
    """
    if trials < 1:
        raise ValidationError(f"trials must be >= 1, got {trials}")
    if not 0 < threshold < 1:
        raise ValidationError("threshold must be between 0 and 1 exclusive")
    engine = StatsEngine(simulation_count=simulation_count)
    children = seed_sequence(seed).spawn(trials)

    def _trial(index: int, child: np.random.SeedSequence) -> Optional[tuple[int, float, bool]]:
        if cancel is not None and cancel.is_set():
            return None
        data_seq, test_seq = child.spawn(2)
        sample_a, sample_b = generate(np.random.default_rng(data_seq))
        result = engine.run_test(sample_a, sample_b, priors, distribution, seed=test_seq)
        return index, result.prob_a_gt_b, is_significant(result, threshold)

    outcomes: dict[int, tuple[float, bool]] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(_trial, i, child) for i, child in enumerate(children)]
        for future in as_completed(futures):
            outcome = future.result()
            if outcome is not None:
                index, prob, flagged = outcome
                outcomes[index] = (prob, flagged)

    ordered = np.array([outcomes[i][0] for i in sorted(outcomes)], dtype=float)
    ordered.setflags(write=False)
    significant = sum(1 for _, flagged in outcomes.values() if flagged)
    cancelled = len(ordered) < trials

    report = CalibrationReport(
        requested=trials,
        completed=len(ordered),
        significant=significant,
        threshold=threshold,
        probabilities=ordered,
        cancelled=cancelled,
    )
    logger.info(
        "Calibration %s: %d/%d trials, %d significant (rate %.4f)%s",
        getattr(distribution, "value", distribution), report.completed, trials,
        significant, report.false_positive_rate, " [cancelled]" if cancelled else "",
    )
    return report
