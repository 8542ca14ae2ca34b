"""abayes Bayesian A/B comparison engine.

Public API:
- Distribution / validate / update: closed registry of conjugate families
- sample / hdi_from_samples: posterior Monte Carlo draws
- compare: P(A > B), expected loss and difference quantiles from draws
- TestResult: immutable result of one comparison
- StatsEngine / run_test: orchestrator for a full comparison
- loss_threshold_decision / rope_decision / is_significant: decision policies
- run_calibration: repeated simulated tests for false-positive calibration
- summarize / render_summary: reporting of a finished result
"""

from abayes.stats.bayesian import MonteCarloDraws, hdi_from_samples, sample, spawn_generators
from abayes.stats.comparison import Comparison, compare, mc_standard_error
from abayes.stats.decisions import is_significant, loss_threshold_decision, rope_decision
from abayes.stats.distributions import (
    REGISTRY,
    Distribution,
    DistributionSpec,
    PosteriorParams,
    PriorSpec,
    get_spec,
    update,
    validate,
)
from abayes.stats.engine import StatsEngine, run_test
from abayes.stats.priors import historical_prior, prior_from_mean
from abayes.stats.result import TestResult, assemble
from abayes.stats.simulation import CalibrationReport, run_calibration
from abayes.stats.summary import TestSummary, render_summary, summarize

__all__ = [
    "REGISTRY",
    "Distribution",
    "DistributionSpec",
    "PriorSpec",
    "PosteriorParams",
    "get_spec",
    "validate",
    "update",
    "MonteCarloDraws",
    "sample",
    "spawn_generators",
    "hdi_from_samples",
    "Comparison",
    "compare",
    "mc_standard_error",
    "TestResult",
    "assemble",
    "StatsEngine",
    "run_test",
    "loss_threshold_decision",
    "rope_decision",
    "is_significant",
    "prior_from_mean",
    "historical_prior",
    "CalibrationReport",
    "run_calibration",
    "TestSummary",
    "summarize",
    "render_summary",
]
