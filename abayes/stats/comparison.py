"""Monte Carlo comparison of two groups' posterior draws.

Draw vectors are paired element-wise: draw ``i`` of A is compared with draw
``i`` of B.  Because the two vectors come from independent random streams,
the pairs are independent samples from the product of the two posterior
marginals, and the fraction of pairs with ``a > b`` estimates P(A > B).
Ties count as "not greater".

Expected posterior loss of choosing A is ``E[max(B - A, 0)]``: the average
amount given up by picking A in the worlds where B was actually better.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

import numpy as np

from abayes.core.config import settings
from abayes.core.errors import NumericalWarning, StructuralError, ValidationError
from abayes.stats.bayesian import hdi_from_samples

logger = logging.getLogger(__name__)


def mc_standard_error(p: float, count: int) -> float:
    """Standard error of a Monte Carlo proportion estimate: sqrt(p(1-p)/n)."""
    if count <= 0 or math.isnan(p):
        return float("nan")
    return math.sqrt(max(p * (1.0 - p), 0.0) / count)


@dataclass(frozen=True)
class Comparison:
    """Reduced statistics for one drawn quantity."""

    quantity: str
    prob_a_gt_b: float
    prob_a_gt_b_se: float
    loss_a: float
    loss_b: float
    diff_quantiles: Mapping[float, float]
    credible_interval: tuple[float, float]
    diff_hdi: tuple[float, float]
    credible_mass: float
    count: int
    warnings: tuple[NumericalWarning, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "diff_quantiles", MappingProxyType(dict(self.diff_quantiles)))

    @property
    def prob_b_gt_a(self) -> float:
        """Complement of ``prob_a_gt_b``; ties are assigned to B here."""
        return 1.0 - self.prob_a_gt_b


def _check_quantiles(quantiles: Sequence[float]) -> tuple[float, ...]:
    qs = tuple(float(q) for q in quantiles)
    if not qs or any(not 0.0 <= q <= 1.0 for q in qs):
        raise ValidationError(f"quantiles must be within [0, 1], got {list(quantiles)}")
    return qs


def _as_vector(draws, label: str) -> np.ndarray:
    arr = np.asarray(draws, dtype=float)
    if arr.ndim != 1:
        raise StructuralError(f"draws for group {label} must be 1-D, got shape {arr.shape}")
    if arr.size == 0:
        raise StructuralError(f"draws for group {label} are empty")
    return arr


def compare(
    draws_a,
    draws_b,
    quantity: str = "value",
    quantiles: Optional[Sequence[float]] = None,
    credible_mass: Optional[float] = None,
) -> Comparison:
    """Compare two equal-length draw vectors.

    Parameters
    ----------
    draws_a, draws_b : array-like
        Posterior draws for A and B, index-aligned.
    quantity : str
        Name of the compared quantity (for labelling and logs).
    quantiles : Sequence[float] | None
        Quantiles of ``A - B`` to report.  Defaults to
        ``settings.DIFF_QUANTILES``.
    credible_mass : float | None
        Mass of the equal-tailed credible interval and HDI of ``A - B``.
        Defaults to ``settings.CREDIBLE_MASS``.

    Returns
    -------
    Comparison

    Raises
    ------
    StructuralError
        If either vector is empty or not 1-D, or their lengths differ.
    """
    qs = _check_quantiles(settings.DIFF_QUANTILES if quantiles is None else quantiles)
    mass = settings.CREDIBLE_MASS if credible_mass is None else float(credible_mass)
    if not 0 < mass < 1:
        raise ValidationError("credible_mass must be between 0 and 1 exclusive")

    a = _as_vector(draws_a, "A")
    b = _as_vector(draws_b, "B")
    if a.size != b.size:
        raise StructuralError(
            f"draw vectors must have equal length, got {a.size} and {b.size}"
        )

    warnings: list[NumericalWarning] = []

    finite = np.isfinite(a) & np.isfinite(b)
    if not np.all(finite):
        dropped = int(a.size - np.count_nonzero(finite))
        logger.warning("%s: dropping %d non-finite draw pairs of %d", quantity, dropped, a.size)
        warnings.append(NumericalWarning.NONFINITE_DRAWS)
        a, b = a[finite], b[finite]

    n = int(a.size)
    if n == 0:
        logger.warning("%s: no finite draw pairs left; expected losses are undefined", quantity)
        warnings.append(NumericalWarning.ZERO_EXPECTED_LOSS)
        nan = float("nan")
        return Comparison(
            quantity=quantity,
            prob_a_gt_b=nan,
            prob_a_gt_b_se=nan,
            loss_a=nan,
            loss_b=nan,
            diff_quantiles={q: nan for q in qs},
            credible_interval=(nan, nan),
            diff_hdi=(nan, nan),
            credible_mass=mass,
            count=0,
            warnings=tuple(warnings),
        )

    if np.ptp(a) == 0 and np.ptp(b) == 0:
        logger.warning("%s: both groups have constant draws; posteriors are degenerate", quantity)
        warnings.append(NumericalWarning.DEGENERATE_DRAWS)

    diff = a - b
    prob = float(np.count_nonzero(a > b)) / n
    # max(., 0) keeps each term non-negative, so the mean cannot go below 0
    loss_a = float(np.mean(np.maximum(-diff, 0.0)))
    loss_b = float(np.mean(np.maximum(diff, 0.0)))

    # An exact zero only means no sampled draw favoured the other group.
    zero_loss = [group for group, loss in (("A", loss_a), ("B", loss_b)) if loss == 0.0]
    if zero_loss:
        logger.warning(
            "%s: expected loss of choosing %s is exactly zero over %d draws",
            quantity, " and ".join(zero_loss), n,
        )
        warnings.append(NumericalWarning.ZERO_EXPECTED_LOSS)

    tail = (1.0 - mass) / 2.0
    q_values = np.quantile(diff, qs)
    lo, hi = np.quantile(diff, [tail, 1.0 - tail])

    return Comparison(
        quantity=quantity,
        prob_a_gt_b=prob,
        prob_a_gt_b_se=mc_standard_error(prob, n),
        loss_a=loss_a,
        loss_b=loss_b,
        diff_quantiles={q: float(v) for q, v in zip(qs, q_values)},
        credible_interval=(float(lo), float(hi)),
        diff_hdi=hdi_from_samples(diff, mass),
        credible_mass=mass,
        count=n,
        warnings=tuple(warnings),
    )
