"""
BD Scoring API Router
app/routers/scoring.py

Endpoints:
  POST /api/v1/scoring/evaluate            — Score one company across all configured pillars
  POST /api/v1/scoring/evaluate/batch      — Score several companies, failures reported per company
  POST /api/v1/scoring/insights            — Score one company and return per-pillar summaries
  POST /api/v1/scoring/validate            — Validate company data without scoring
  GET  /api/v1/scoring/pillars             — Pillar catalog (weights, required/optional fields)
  GET  /api/v1/scoring/weights/profiles    — Named weight profiles
  POST /api/v1/scoring/weights/validate    — Validate a weight mapping

Register in main.py:
    from app.routers.scoring import router as scoring_router
    app.include_router(scoring_router)
"""

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from app.config import settings
from app.core.dependencies import get_scoring_engine, get_weighting_engine
from app.models.base import FrozenModel
from app.models.company import CompanyData
from app.models.enumerations import Pillar
from app.models.market import MarketContext
from app.models.scoring import BatchEvaluation, PillarInfo, ScoringConfig, ScoringResult
from app.models.validation import ValidationResult
from app.scoring.engine import ScoringEngine
from app.scoring.weighting_engine import WeightingEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{settings.API_V1_PREFIX}/scoring", tags=["BD Scoring"])


# =====================================================================
# Request / Response Models
# =====================================================================

class EvaluationRequest(FrozenModel):
    """One company plus optional market context and weight configuration."""
    company: CompanyData
    context: Optional[MarketContext] = None
    config: Optional[ScoringConfig] = None


class BatchEvaluationRequest(FrozenModel):
    companies: List[CompanyData] = Field(..., min_length=1)
    context: Optional[MarketContext] = None
    config: Optional[ScoringConfig] = None


class InsightsResponse(FrozenModel):
    company_name: str
    overall_score: float
    insights: Dict[Pillar, str]


# =====================================================================
# Evaluation
# =====================================================================

@router.post(
    "/evaluate",
    response_model=ScoringResult,
    summary="Evaluate one company",
    description="""
    Runs every configured pillar concurrently and combines them with the
    configured (or default) weights. Invalid company data returns 422,
    an unusable weight configuration returns 400.
    """,
)
async def evaluate_company(
    request: EvaluationRequest,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    logger.info(f"Evaluating company: {request.company.basic_info.name}")
    return await engine.evaluate_company_async(request.company, request.context, request.config)


@router.post(
    "/evaluate/batch",
    response_model=BatchEvaluation,
    summary="Evaluate several companies",
)
def evaluate_companies(
    request: BatchEvaluationRequest,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    logger.info(f"Evaluating batch of {len(request.companies)} companies")
    return engine.evaluate_companies(request.companies, request.context, request.config)


@router.post(
    "/insights",
    response_model=InsightsResponse,
    summary="Per-pillar score summaries",
)
async def pillar_insights(
    request: EvaluationRequest,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    result = await engine.evaluate_company_async(request.company, request.context, request.config)
    return InsightsResponse(
        company_name=result.company_name,
        overall_score=result.overall_score,
        insights=engine.get_pillar_insights(result),
    )


@router.post(
    "/validate",
    response_model=ValidationResult,
    summary="Validate company data",
    description="Company-level checks merged with every pillar's own checks. Never scores.",
)
def validate_company(
    company: CompanyData,
    engine: ScoringEngine = Depends(get_scoring_engine),
):
    return engine.validate_input_data(company)


# =====================================================================
# Pillars and weights
# =====================================================================

@router.get(
    "/pillars",
    response_model=Dict[Pillar, PillarInfo],
    summary="Pillar catalog",
)
def list_pillars(engine: ScoringEngine = Depends(get_scoring_engine)):
    return {pillar_id: pillar.pillar_info for pillar_id, pillar in engine.pillars.items()}


@router.get(
    "/weights/profiles",
    response_model=Dict[str, Dict[Pillar, float]],
    summary="Named weight profiles",
)
def list_weight_profiles(weighting: WeightingEngine = Depends(get_weighting_engine)):
    return weighting.profiles


@router.post(
    "/weights/validate",
    response_model=ValidationResult,
    summary="Validate a weight mapping",
    description="Unknown pillar names are reported as warnings, not rejected.",
)
def validate_weights(
    weights: Dict[str, float],
    weighting: WeightingEngine = Depends(get_weighting_engine),
):
    return weighting.validate_weights(weights)
