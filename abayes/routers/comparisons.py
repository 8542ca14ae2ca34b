"""Comparisons router: runs a Bayesian A/B comparison on posted samples.

Returns the structured summary of the result and, if the caller supplies a
loss threshold, the expected-loss decision.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from abayes.core.config import settings
from abayes.core.errors import StructuralError, ValidationError
from abayes.stats.decisions import loss_threshold_decision, rope_decision
from abayes.stats.distributions import Distribution
from abayes.stats.engine import run_test
from abayes.stats.summary import TestSummary, summarize

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comparisons"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ComparisonRequest(BaseModel):
    distribution: Distribution
    sample_a: list[float]
    sample_b: list[float]
    priors: dict[str, float]
    simulation_count: Optional[int] = Field(default=None, le=settings.MAX_SIMULATION_COUNT)
    seed: Optional[int] = Field(default=None, ge=0)
    loss_threshold: Optional[float] = Field(default=None, gt=0)
    rope_width: Optional[float] = Field(default=None, ge=0)


class ComparisonResponse(BaseModel):
    summary: TestSummary
    loss_decision: Optional[dict] = None
    rope_decision: Optional[dict] = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/comparisons", response_model=ComparisonResponse)
def create_comparison(body: ComparisonRequest) -> ComparisonResponse:
    """Run a comparison and return its summary.  Sync, so it runs in the threadpool."""
    try:
        result = run_test(
            body.sample_a,
            body.sample_b,
            body.priors,
            body.distribution,
            simulation_count=body.simulation_count,
            seed=body.seed,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc
    except StructuralError:
        logger.exception("Failed to assemble comparison result for %s", body.distribution.value)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Comparison result could not be assembled",
        )

    return ComparisonResponse(
        summary=summarize(result),
        loss_decision=(
            loss_threshold_decision(result, body.loss_threshold)
            if body.loss_threshold is not None
            else None
        ),
        rope_decision=(
            rope_decision(result, body.rope_width)
            if body.rope_width is not None
            else None
        ),
    )
