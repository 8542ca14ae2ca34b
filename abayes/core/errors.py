"""Error taxonomy for the comparison engine.

``ValidationError`` and ``StructuralError`` are raised immediately and end
the call.  ``NumericalWarning`` values are never raised: they are recorded
on the comparison and the test result so reporting code can surface them.
"""

from __future__ import annotations

from enum import Enum


class ABTestError(Exception):
    """Base class for every error raised by abayes."""


class ValidationError(ABTestError, ValueError):
    """Bad caller input: prior domain, sample support, empty sample, counts."""


class StructuralError(ABTestError):
    """A result could not be assembled because its parts do not line up."""


class NumericalWarning(str, Enum):
    """Non-fatal numerical conditions attached to a result."""

    LOW_SIMULATION_COUNT = "low_simulation_count"
    DEGENERATE_DRAWS = "degenerate_draws"
    ZERO_EXPECTED_LOSS = "zero_expected_loss"
    NONFINITE_DRAWS = "nonfinite_draws"
