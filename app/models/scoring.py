from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.models.base import FrozenModel
from app.models.enumerations import InvestmentRecommendation, Pillar, RiskLevel


# =============================================================================
# PILLAR-LEVEL RECORDS
# =============================================================================

class ScoringFactor(FrozenModel):
    """One heuristic sub-judgment inside a pillar. Score is clamped to [0, 5]."""

    name: str
    weight: float = Field(..., ge=0.0, le=1.0)
    score: float
    rationale: str

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        return round(max(0.0, min(5.0, v)), 4)


class PillarScore(FrozenModel):
    pillar: Pillar
    raw_score: float = Field(..., ge=0.0, le=5.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    completeness: float = Field(default=1.0, ge=0.0, le=1.0)
    factors: List[ScoringFactor] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    explanation: str = ""


class PillarInfo(FrozenModel):
    name: str
    description: str
    default_weight: float = Field(..., ge=0.0, le=1.0)
    required_fields: List[str] = Field(default_factory=list)
    optional_fields: List[str] = Field(default_factory=list)


class PillarConfig(FrozenModel):
    """Construction-time constants for one pillar scorer."""
    methodology_reliability: float = Field(..., ge=0.0, le=1.0)
    default_weight: float = Field(..., ge=0.0, le=1.0)


class ExplanationFactor(FrozenModel):
    name: str
    contribution: float
    explanation: str


class ScoreExplanation(FrozenModel):
    summary: str
    factors: List[ExplanationFactor] = Field(default_factory=list)
    methodology: str
    limitations: List[str] = Field(default_factory=list)


# =============================================================================
# CONFIGURATION
# =============================================================================

class ScoringParameters(FrozenModel):
    confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    completeness_threshold: float = Field(default=0.7, ge=0.0, le=1.0)


class ScoringConfig(FrozenModel):
    """Weights are left unconstrained here; the weighting engine rejects bad ones."""
    name: str = "default"
    weights: Dict[Pillar, float]
    parameters: ScoringParameters = Field(default_factory=ScoringParameters)


# =============================================================================
# ENGINE-LEVEL RECORDS
# =============================================================================

class WeightedScore(FrozenModel):
    score: float = Field(..., ge=0.0, le=5.0)
    breakdown: Dict[Pillar, float] = Field(default_factory=dict)
    normalized_weights: Dict[Pillar, float] = Field(default_factory=dict)
    confidence: float = Field(..., ge=0.0, le=1.0)


class ConfidenceMetrics(FrozenModel):
    overall: float = Field(..., ge=0.0, le=1.0)
    data_completeness: float = Field(..., ge=0.0, le=1.0)
    model_accuracy: float = Field(..., ge=0.0, le=1.0)
    comparable_quality: float = Field(..., ge=0.0, le=1.0)


class ScoringResult(FrozenModel):
    """Final output of one evaluation; never mutated after creation."""

    company_id: UUID
    company_name: str
    overall_score: float = Field(..., ge=0.0, le=5.0)
    confidence: ConfidenceMetrics
    pillar_scores: Dict[Pillar, PillarScore]
    weighted_scores: WeightedScore
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    investment_recommendation: InvestmentRecommendation
    risk_level: RiskLevel
    config_name: str
    evaluation_date: date

    @property
    def overall_confidence(self) -> float:
        return self.confidence.overall


class PillarImpact(FrozenModel):
    pillar: Pillar
    current_contribution: float
    proposed_contribution: float
    difference: float


class WeightImpact(FrozenModel):
    current_score: float
    proposed_score: float
    total_score_difference: float
    percentage_change: float
    pillar_impacts: List[PillarImpact] = Field(default_factory=list)
    significant_changes: List[Pillar] = Field(default_factory=list)


class EvaluationFailure(FrozenModel):
    company_id: UUID
    company_name: str
    error_code: str
    message: str


class BatchEvaluation(FrozenModel):
    results: List[ScoringResult] = Field(default_factory=list)
    failures: List[EvaluationFailure] = Field(default_factory=list)


class ScoringStatistics(FrozenModel):
    total_evaluations: int
    average_score: float
    average_confidence: float
    score_distribution: Dict[str, int] = Field(default_factory=dict)
    recommendation_distribution: Dict[InvestmentRecommendation, int] = Field(default_factory=dict)
    highest_scoring_company: Optional[str] = None
