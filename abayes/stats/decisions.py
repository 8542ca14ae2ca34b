"""Decision policies applied to a finished comparison.

The engine only measures; these functions turn measurements into calls.
Every threshold is a required argument with no built-in default.

- Expected loss ("threshold of caring"): choose a group once the loss of
  choosing it drops below what the caller cares about.
- ROPE (Region of Practical Equivalence): compare the HDI of ``A - B``
  against ``[-rope_width, +rope_width]``.
- Probability: two-tailed call on P(A > B), used by the calibration runner
  to count false positives.
"""

from __future__ import annotations

import math
from typing import Union

from abayes.core.errors import ValidationError
from abayes.stats.comparison import Comparison
from abayes.stats.result import TestResult

CHOOSE_A = "choose_a"
CHOOSE_B = "choose_b"
KEEP_TESTING = "keep_testing"
EQUIVALENT = "equivalent"
UNDECIDED = "undecided"


def _comparison(target: Union[TestResult, Comparison]) -> Comparison:
    return target.primary if isinstance(target, TestResult) else target


# ======================================================================
# Expected loss
# ======================================================================

def loss_threshold_decision(
    target: Union[TestResult, Comparison],
    loss_threshold: float,
) -> dict:
    """Epsilon stopping on expected posterior loss.

    Parameters
    ----------
    target : TestResult | Comparison
        A result (its primary comparison is used) or a single comparison.
    loss_threshold : float
        Largest expected loss, in outcome units, the caller will accept.

    Returns
    -------
    dict
        decision: "choose_a" | "choose_b" | "keep_testing"
        loss_a, loss_b: the expected losses
        loss_threshold: echoed back
    """
    if not loss_threshold > 0 or not math.isfinite(loss_threshold):
        raise ValidationError("loss_threshold must be a positive finite number")
    comp = _comparison(target)
    result = {
        "decision": KEEP_TESTING,
        "loss_a": comp.loss_a,
        "loss_b": comp.loss_b,
        "loss_threshold": loss_threshold,
    }
    if math.isnan(comp.loss_a) or math.isnan(comp.loss_b):
        return result

    # Lower loss wins; on a tie prefer the group more likely to be better.
    if comp.loss_a < comp.loss_b or (comp.loss_a == comp.loss_b and comp.prob_a_gt_b >= 0.5):
        if comp.loss_a < loss_threshold:
            result["decision"] = CHOOSE_A
    elif comp.loss_b < loss_threshold:
        result["decision"] = CHOOSE_B
    return result


# ======================================================================
# ROPE (Region of Practical Equivalence) decisions
# ======================================================================

def rope_decision(
    target: Union[TestResult, Comparison],
    rope_width: float,
) -> dict:
    """ROPE-based decision on the HDI of ``A - B``.

    Returns
    -------
    dict
        decision: "choose_a" | "choose_b" | "equivalent" | "undecided"
        hdi: (low, high) of difference distribution
        rope: (-rope_width, +rope_width)
        hdi_in_rope: True if HDI is entirely inside ROPE
        hdi_outside_rope: True if HDI is entirely outside ROPE
    """
    if not rope_width >= 0 or not math.isfinite(rope_width):
        raise ValidationError("rope_width must be a non-negative finite number")
    comp = _comparison(target)
    hdi_low, hdi_high = comp.diff_hdi

    hdi_in_rope = (hdi_low >= -rope_width) and (hdi_high <= rope_width)
    hdi_outside_rope = (hdi_low > rope_width) or (hdi_high < -rope_width)

    if hdi_in_rope:
        decision = EQUIVALENT
    elif hdi_outside_rope:
        decision = CHOOSE_A if hdi_low > rope_width else CHOOSE_B
    else:
        decision = UNDECIDED

    return {
        "decision": decision,
        "hdi": (hdi_low, hdi_high),
        "rope": (-rope_width, rope_width),
        "hdi_in_rope": hdi_in_rope,
        "hdi_outside_rope": hdi_outside_rope,
    }


# ======================================================================
# Probability threshold
# ======================================================================

def is_significant(target: Union[TestResult, Comparison], threshold: float) -> bool:
    """Two-tailed call: P(A > B) below ``threshold / 2`` or above ``1 - threshold / 2``.

    With ``threshold=0.1`` a result is significant when P(A > B) falls
    outside [0.05, 0.95].
    """
    if not 0 < threshold < 1:
        raise ValidationError("threshold must be between 0 and 1 exclusive")
    prob = _comparison(target).prob_a_gt_b
    if math.isnan(prob):
        return False
    tail = threshold / 2.0
    return prob < tail or prob > 1.0 - tail
