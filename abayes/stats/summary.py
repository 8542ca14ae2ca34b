"""Summary of a finished comparison for reports and API responses.

Pure formatting: every number here is read off the ``TestResult`` (or, for
the closed-form posterior interval, off the posterior parameters).  No new
Monte Carlo work happens.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from abayes.stats.distributions import PosteriorParams, posterior_marginal
from abayes.stats.result import TestResult


class GroupSummary(BaseModel):
    group: str
    n: int
    posterior: dict[str, float]
    posterior_mean: Optional[float] = None
    posterior_interval: Optional[tuple[float, float]] = None


class QuantitySummary(BaseModel):
    quantity: str
    prob_a_gt_b: float
    prob_a_gt_b_se: float
    expected_loss_a: float
    expected_loss_b: float
    credible_mass: float
    credible_interval: tuple[float, float]
    hdi: tuple[float, float]
    diff_quantiles: dict[str, float]
    warnings: list[str] = []


class TestSummary(BaseModel):
    __test__ = False  # not a pytest class

    distribution: str
    prior: dict[str, float]
    simulation_count: int
    groups: list[GroupSummary]
    primary: QuantitySummary
    quantities: list[QuantitySummary]
    warnings: list[str] = []


def _group(label: str, posterior: PosteriorParams, credible_mass: float) -> GroupSummary:
    marginal = posterior_marginal(posterior)
    mean = interval = None
    if marginal is not None:
        mean = float(marginal.mean())
        lo, hi = marginal.interval(credible_mass)
        interval = (float(lo), float(hi))
    return GroupSummary(
        group=label,
        n=posterior.n,
        posterior=posterior.as_dict(),
        posterior_mean=mean,
        posterior_interval=interval,
    )


def summarize(result: TestResult) -> TestSummary:
    """Structured summary of every compared quantity and both groups."""
    quantities = [
        QuantitySummary(
            quantity=comp.quantity,
            prob_a_gt_b=comp.prob_a_gt_b,
            prob_a_gt_b_se=comp.prob_a_gt_b_se,
            expected_loss_a=comp.loss_a,
            expected_loss_b=comp.loss_b,
            credible_mass=comp.credible_mass,
            credible_interval=comp.credible_interval,
            hdi=comp.diff_hdi,
            diff_quantiles={f"{q:g}": v for q, v in comp.diff_quantiles.items()},
            warnings=[w.value for w in comp.warnings],
        )
        for comp in result.comparisons.values()
    ]
    mass = result.primary.credible_mass
    return TestSummary(
        distribution=result.distribution.value,
        prior=result.prior.as_dict(),
        simulation_count=result.simulation_count,
        groups=[
            _group("A", result.posterior_a, mass),
            _group("B", result.posterior_b, mass),
        ],
        primary=quantities[0],
        quantities=quantities,
        warnings=[w.value for w in result.warnings],
    )


def render_summary(result: TestResult) -> str:
    """Short markdown report of a result."""
    summary = summarize(result)
    lines = [
        f"**Bayesian A/B test ({summary.distribution}, "
        f"{summary.simulation_count:,} draws per group)**",
        "",
    ]
    for q in summary.quantities:
        lo, hi = q.credible_interval
        lines.append(
            f"- {q.quantity}: P(A > B) = {q.prob_a_gt_b:.1%} (+/- {q.prob_a_gt_b_se:.2%}); "
            f"expected loss choosing A = {q.expected_loss_a:.4g}, choosing B = {q.expected_loss_b:.4g}; "
            f"{q.credible_mass:.0%} credible interval of A - B = [{lo:.4g}, {hi:.4g}]"
        )
    if summary.warnings:
        lines.append("")
        lines.append("**Warnings:** " + ", ".join(summary.warnings))
    return "\n".join(lines)
