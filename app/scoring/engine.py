"""
scoring/engine.py — Scoring Engine

Orchestrates one company evaluation:

  1. Resolve configured pillars        (ConfigurationError for unknown pillars)
  2. validate_input_data()             (InvalidDataError, no partial result)
  3. Normalize weights                 (ConfigurationError before any pillar runs)
  4. Pillar scorers                    (sequential, or fanned out per pillar)
  5. calculate_weighted_score()        via WeightingEngine
  6. calculate_confidence()            weight-normalized, never a plain mean
  7. Warnings (deduplicated), recommendations, investment call, risk level
  8. Optional hand-off to a ResultSink

Everything is a pure function of (CompanyData, MarketContext, ScoringConfig):
the only "today" is MarketContext.evaluation_date.
"""

import asyncio
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

import structlog

from app.config import Settings, get_settings
from app.core.exceptions import ConfigurationError, InvalidDataError, ScoringError
from app.models.company import CompanyData
from app.models.enumerations import InvestmentRecommendation, Pillar, RiskLevel
from app.models.market import MarketContext
from app.models.scoring import (
    BatchEvaluation,
    ConfidenceMetrics,
    EvaluationFailure,
    PillarScore,
    ScoringConfig,
    ScoringParameters,
    ScoringResult,
    ScoringStatistics,
    WeightedScore,
)
from app.models.validation import ValidationError, ValidationResult, ValidationWarning
from app.scoring.confidence_calculator import ConfidenceCalculator
from app.scoring.pillars import ScoringPillar, default_pillars
from app.scoring.utils import threshold_score
from app.scoring.validation_service import ValidationService
from app.scoring.weighting_engine import WeightingEngine

logger = structlog.get_logger(__name__)

STRONG_TOTAL = 4.0
MODERATE_TOTAL = 3.0
STRONG_PILLAR = 4.0
WEAK_PILLAR = 2.5

# Confidence-adjusted score (total × overall confidence)
INVESTMENT_THRESHOLDS = (
    (4.0, InvestmentRecommendation.STRONG_BUY),
    (3.5, InvestmentRecommendation.BUY),
    (2.5, InvestmentRecommendation.HOLD),
    (2.0, InvestmentRecommendation.SELL),
)

RISK_THRESHOLDS = (
    (3.5, RiskLevel.VERY_HIGH),
    (2.5, RiskLevel.HIGH),
    (1.5, RiskLevel.MEDIUM),
)
RISK_PILLARS = (Pillar.REGULATORY_RISK, Pillar.FINANCIAL_READINESS, Pillar.MARKET_OUTLOOK)

# (minimum score, label); anything under 2.0 lands in the lowest band
SCORE_DISTRIBUTION = (
    (4.0, "4.0-5.0"),
    (3.0, "3.0-4.0"),
    (2.0, "2.0-3.0"),
)
LOWEST_BAND = "1.0-2.0"


@runtime_checkable
class ResultSink(Protocol):
    """Persistence collaborator that receives every finished result."""

    def save_scoring_result(self, result: ScoringResult) -> None: ...


def _dedupe(messages: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(messages))


class ScoringEngine:
    """Company evaluation across every configured pillar."""

    def __init__(
        self,
        pillars: Optional[Sequence[ScoringPillar]] = None,
        weighting_engine: Optional[WeightingEngine] = None,
        validation_service: Optional[ValidationService] = None,
        confidence_calculator: Optional[ConfidenceCalculator] = None,
        settings: Optional[Settings] = None,
        result_sink: Optional[ResultSink] = None,
    ):
        self.settings = settings or get_settings()
        self.validation_service = validation_service or ValidationService()
        self.confidence_calculator = confidence_calculator or ConfidenceCalculator()
        self.weighting_engine = weighting_engine or WeightingEngine(
            confidence_calculator=self.confidence_calculator,
            dominance_threshold=self.settings.DOMINANCE_THRESHOLD,
        )
        if pillars is None:
            pillars = default_pillars(self.validation_service, self.confidence_calculator)
        self.pillars: Dict[Pillar, ScoringPillar] = {p.pillar_id: p for p in pillars}
        self.result_sink = result_sink

    def default_config(self) -> ScoringConfig:
        return ScoringConfig(
            name="default",
            weights={Pillar(k): v for k, v in self.settings.pillar_weights.items()},
            parameters=ScoringParameters(
                confidence_threshold=self.settings.CONFIDENCE_THRESHOLD,
                completeness_threshold=self.settings.COMPLETENESS_THRESHOLD,
            ),
        )

    # ------------------------------------------------------------------ #
    # Evaluation
    # ------------------------------------------------------------------ #

    def evaluate_company(
        self,
        data: CompanyData,
        context: Optional[MarketContext] = None,
        config: Optional[ScoringConfig] = None,
    ) -> ScoringResult:
        """
        Score one company, running pillars one after another.

        Raises:
            InvalidDataError: company-level or pillar validation failed.
            ConfigurationError: weights are unusable or name unknown pillars.
            CalculationError: an internal aggregation precondition failed.
        """
        context = context or MarketContext.default()
        config = config or self.default_config()
        pillars, weights = self._prepare(data, context, config)

        pillar_scores = {p.pillar_id: p.calculate_score(data, context) for p in pillars}
        return self._assemble(data, context, config, pillar_scores, weights)

    async def evaluate_company_async(
        self,
        data: CompanyData,
        context: Optional[MarketContext] = None,
        config: Optional[ScoringConfig] = None,
    ) -> ScoringResult:
        """
        Same result as evaluate_company(), with one worker thread per pillar.

        Validation runs in a worker thread too, so the event loop never does
        the scoring work. Results are gathered in registration order. The
        first pillar failure cancels the remaining tasks and is re-raised,
        and their scores are discarded. asyncio.to_thread cannot interrupt a
        thread that is already running, so a cancelled pillar may still run
        to completion in the background.
        """
        context = context or MarketContext.default()
        config = config or self.default_config()
        pillars, weights = await asyncio.to_thread(self._prepare, data, context, config)

        tasks = [
            asyncio.create_task(asyncio.to_thread(p.calculate_score, data, context))
            for p in pillars
        ]
        try:
            scores = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        pillar_scores = {p.pillar_id: s for p, s in zip(pillars, scores)}
        return self._assemble(data, context, config, pillar_scores, weights)

    def evaluate_companies(
        self,
        companies: Sequence[CompanyData],
        context: Optional[MarketContext] = None,
        config: Optional[ScoringConfig] = None,
    ) -> BatchEvaluation:
        """Score each company; a failing company is recorded, never dropped."""
        results: List[ScoringResult] = []
        failures: List[EvaluationFailure] = []
        for company in companies:
            try:
                results.append(self.evaluate_company(company, context, config))
            except ScoringError as e:
                logger.warning(
                    "evaluation_failed",
                    company=company.basic_info.name,
                    company_id=str(company.id),
                    error_code=e.error_code,
                    error=e.message,
                )
                failures.append(EvaluationFailure(
                    company_id=company.id,
                    company_name=company.basic_info.name,
                    error_code=e.error_code,
                    message=e.message,
                ))
        logger.info("batch_evaluated", succeeded=len(results), failed=len(failures))
        return BatchEvaluation(results=results, failures=failures)

    # ------------------------------------------------------------------ #
    # Steps
    # ------------------------------------------------------------------ #

    def validate_input_data(
        self,
        data: CompanyData,
        context: Optional[MarketContext] = None,
        pillars: Optional[Sequence[ScoringPillar]] = None,
    ) -> ValidationResult:
        """Company-level validation merged with every pillar's own checks."""
        as_of = (context or MarketContext.default()).evaluation_date
        if pillars is None:
            pillars = list(self.pillars.values())

        company = self.validation_service.validate_company_data(data, as_of)
        errors: Dict[Tuple[str, str], ValidationError] = {(e.field, e.message): e for e in company.errors}
        warnings: Dict[Tuple[str, str], ValidationWarning] = {(w.field, w.message): w for w in company.warnings}

        for pillar in pillars:
            result = pillar.validate_data(data, as_of)
            for error in result.errors:
                errors.setdefault((error.field, error.message), error)
            for warning in result.warnings:
                warnings.setdefault((warning.field, warning.message), warning)

        return ValidationResult.build(list(errors.values()), list(warnings.values()), company.completeness)

    def calculate_weighted_score(
        self,
        pillar_scores: Mapping[Pillar, PillarScore],
        weights: Mapping[Pillar, float],
    ) -> WeightedScore:
        return self.weighting_engine.apply_weights(pillar_scores, weights)

    def calculate_confidence(
        self,
        pillar_scores: Mapping[Pillar, PillarScore],
        data: CompanyData,
        context: MarketContext,
        weights: Mapping[Pillar, float],
    ) -> ConfidenceMetrics:
        overall = self.confidence_calculator.overall(
            {p: s.confidence for p, s in pillar_scores.items()},
            dict(weights),
        )
        return ConfidenceMetrics(
            overall=overall,
            data_completeness=round(self.validation_service.check_data_completeness(data), 4),
            model_accuracy=self.settings.MODEL_ACCURACY,
            comparable_quality=self.confidence_calculator.comparable_quality(len(context.comparable_companies)),
        )

    def generate_recommendations(
        self,
        pillar_scores: Mapping[Pillar, PillarScore],
        weighted: WeightedScore,
        confidence: ConfidenceMetrics,
        parameters: ScoringParameters,
    ) -> List[str]:
        recommendations = []
        if weighted.score >= STRONG_TOTAL:
            recommendations.append("Strong candidate for partnership or acquisition")
        elif weighted.score >= MODERATE_TOTAL:
            recommendations.append("Moderate investment opportunity with specific strengths")
        else:
            recommendations.append("High-risk investment requiring careful evaluation")

        asset = pillar_scores.get(Pillar.ASSET_QUALITY)
        if asset is not None:
            if asset.raw_score >= STRONG_PILLAR:
                recommendations.append("Strong pipeline assets with competitive advantages")
            elif asset.raw_score < WEAK_PILLAR:
                recommendations.append("Pipeline quality concerns require further due diligence")

        financial = pillar_scores.get(Pillar.FINANCIAL_READINESS)
        if financial is not None and financial.raw_score < WEAK_PILLAR:
            recommendations.append("Financial runway concerns - consider timing of investment")

        regulatory = pillar_scores.get(Pillar.REGULATORY_RISK)
        if regulatory is not None and regulatory.raw_score < WEAK_PILLAR:
            recommendations.append("High regulatory risk - monitor clinical trial progress closely")

        if confidence.overall < parameters.confidence_threshold:
            recommendations.append("Low confidence in scoring - gather additional data before decision")
        if confidence.data_completeness < parameters.completeness_threshold:
            recommendations.append("Incomplete data - request additional company information")
        return recommendations

    @staticmethod
    def determine_investment_recommendation(
        overall_score: float,
        confidence: ConfidenceMetrics,
    ) -> InvestmentRecommendation:
        adjusted = overall_score * confidence.overall
        return threshold_score(adjusted, INVESTMENT_THRESHOLDS, InvestmentRecommendation.STRONG_SELL)

    @staticmethod
    def determine_risk_level(
        pillar_scores: Mapping[Pillar, PillarScore],
        confidence: ConfidenceMetrics,
    ) -> RiskLevel:
        risks = [5.0 - pillar_scores[p].raw_score for p in RISK_PILLARS if p in pillar_scores]
        risks.append(4.0 * (1.0 - confidence.overall))
        average = sum(risks) / len(risks)
        return threshold_score(average, RISK_THRESHOLDS, RiskLevel.LOW)

    # ------------------------------------------------------------------ #
    # Reporting helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def get_scoring_statistics(results: Sequence[ScoringResult]) -> ScoringStatistics:
        distribution = {LOWEST_BAND: 0, **{label: 0 for _, label in reversed(SCORE_DISTRIBUTION)}}
        recommendations = {r: 0 for r in InvestmentRecommendation}
        if not results:
            return ScoringStatistics(
                total_evaluations=0,
                average_score=0.0,
                average_confidence=0.0,
                score_distribution=distribution,
                recommendation_distribution=recommendations,
            )

        for result in results:
            distribution[threshold_score(result.overall_score, SCORE_DISTRIBUTION, LOWEST_BAND)] += 1
            recommendations[result.investment_recommendation] += 1

        best = max(results, key=lambda r: r.overall_score)
        count = len(results)
        return ScoringStatistics(
            total_evaluations=count,
            average_score=round(sum(r.overall_score for r in results) / count, 4),
            average_confidence=round(sum(r.confidence.overall for r in results) / count, 4),
            score_distribution=distribution,
            recommendation_distribution=recommendations,
            highest_scoring_company=best.company_name,
        )

    def get_pillar_insights(self, result: ScoringResult) -> Dict[Pillar, str]:
        """Explanation summary per scored pillar."""
        return {
            pillar: self.pillars[pillar].explain_score(score).summary
            for pillar, score in result.pillar_scores.items()
            if pillar in self.pillars
        }

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _prepare(
        self,
        data: CompanyData,
        context: MarketContext,
        config: ScoringConfig,
    ) -> Tuple[List[ScoringPillar], Dict[Pillar, float]]:
        unknown = [p.value for p in config.weights if p not in self.pillars]
        if unknown:
            raise ConfigurationError(
                f"Weights reference unregistered pillars: {', '.join(unknown)}",
                details={"pillars": unknown},
            )
        pillars = [p for pid, p in self.pillars.items() if pid in config.weights]

        validation = self.validate_input_data(data, context, pillars)
        if not validation.is_valid:
            first = validation.errors[0]
            raise InvalidDataError(
                f"Company data validation failed: {first.field}: {first.message}",
                errors=validation.errors,
            )

        weights = self.weighting_engine.normalize_weights(config.weights)
        return pillars, weights

    def _assemble(
        self,
        data: CompanyData,
        context: MarketContext,
        config: ScoringConfig,
        pillar_scores: Dict[Pillar, PillarScore],
        weights: Dict[Pillar, float],
    ) -> ScoringResult:
        weighted = self.calculate_weighted_score(pillar_scores, weights)
        confidence = self.calculate_confidence(pillar_scores, data, context, weights)
        warnings = _dedupe(w for score in pillar_scores.values() for w in score.warnings)

        result = ScoringResult(
            company_id=data.id,
            company_name=data.basic_info.name,
            overall_score=weighted.score,
            confidence=confidence,
            pillar_scores=pillar_scores,
            weighted_scores=weighted,
            warnings=warnings,
            recommendations=self.generate_recommendations(pillar_scores, weighted, confidence, config.parameters),
            investment_recommendation=self.determine_investment_recommendation(weighted.score, confidence),
            risk_level=self.determine_risk_level(pillar_scores, confidence),
            config_name=config.name,
            evaluation_date=context.evaluation_date,
        )

        logger.info(
            "company_evaluated",
            company=result.company_name,
            company_id=str(result.company_id),
            overall_score=result.overall_score,
            confidence=confidence.overall,
            recommendation=result.investment_recommendation.value,
            risk_level=result.risk_level.value,
            config=config.name,
        )

        if self.result_sink is not None:
            self.result_sink.save_scoring_result(result)
        return result
