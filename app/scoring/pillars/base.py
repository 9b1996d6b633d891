"""
scoring/pillars/base.py — Pillar Scorer Contract

Every pillar turns CompanyData + MarketContext into a PillarScore:

    1. validate_data()            — base required-field checks + pillar checks
    2. calculate_factors()        — fixed, ordered ScoringFactor list
    3. raw_score                  = clamp(Σ(wᵢ × scoreᵢ) / Σ wᵢ, 0, 5)
    4. confidence                 = completeness × quality × reliability
    5. warnings                   = generic thresholds + pillar red flags

Subclasses declare their identity and field lists as class attributes and
implement the four hooks marked abstract below.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import structlog

from app.config import get_settings
from app.core.exceptions import InvalidDataError, MissingRequiredFieldError
from app.models.company import CompanyData
from app.models.enumerations import Pillar, ValidationSeverity
from app.models.market import MarketContext
from app.models.scoring import (
    ExplanationFactor,
    PillarConfig,
    PillarInfo,
    PillarScore,
    ScoreExplanation,
    ScoringFactor,
)
from app.models.validation import ValidationError, ValidationResult, ValidationWarning
from app.scoring.confidence_calculator import ConfidenceCalculator
from app.scoring.utils import clamp, threshold_score, weighted_mean
from app.scoring.validation_service import ValidationService

logger = structlog.get_logger(__name__)

Issues = Tuple[List[ValidationError], List[ValidationWarning]]

LOW_COMPLETENESS_WARNING = 0.7
LOW_CONFIDENCE = 0.3
LOW_COMPLETENESS = 0.5
LOW_SCORE = 2.0

# (minimum score, band) for explanation summaries
SCORE_BANDS = (
    (4.5, "Excellent"),
    (3.5, "Good"),
    (2.5, "Average"),
    (1.5, "Below Average"),
)

DEFAULT_LIMITATIONS = [
    "Scoring based on available data at time of evaluation",
    "Market conditions and competitive landscape may change",
    "Regulatory outcomes are inherently uncertain",
]


@runtime_checkable
class ScoringPillar(Protocol):
    """Capability every pillar scorer exposes to the engine."""

    pillar_id: Pillar

    @property
    def pillar_info(self) -> PillarInfo: ...

    def calculate_score(self, data: CompanyData, context: MarketContext) -> PillarScore: ...

    def get_required_fields(self) -> List[str]: ...

    def validate_data(self, data: CompanyData, as_of: Optional[date] = None) -> ValidationResult: ...

    def explain_score(self, score: PillarScore) -> ScoreExplanation: ...


class BasePillar(ABC):
    """Shared validation, aggregation, confidence and explanation logic."""

    pillar_id: Pillar
    name: str
    description: str
    methodology: str
    required_fields: List[str] = []
    optional_fields: List[str] = []

    def __init__(
        self,
        config: Optional[PillarConfig] = None,
        validation_service: Optional[ValidationService] = None,
        confidence_calculator: Optional[ConfidenceCalculator] = None,
    ):
        if config is None:
            settings = get_settings()
            config = PillarConfig(
                methodology_reliability=settings.pillar_reliabilities[self.pillar_id.value],
                default_weight=settings.pillar_weights[self.pillar_id.value],
            )
        self.config = config
        self.validation_service = validation_service or ValidationService()
        self.confidence_calculator = confidence_calculator or ConfidenceCalculator()

    # ------------------------------------------------------------------ #
    # Contract
    # ------------------------------------------------------------------ #

    @property
    def pillar_info(self) -> PillarInfo:
        return PillarInfo(
            name=self.name,
            description=self.description,
            default_weight=self.config.default_weight,
            required_fields=list(self.required_fields),
            optional_fields=list(self.optional_fields),
        )

    def get_required_fields(self) -> List[str]:
        return list(self.required_fields)

    def validate_data(self, data: CompanyData, as_of: Optional[date] = None) -> ValidationResult:
        as_of = as_of or date.today()
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []

        for field in self.required_fields:
            error = self.validation_service.validate_field(data, field)
            if error is not None:
                errors.append(error)

        specific_errors, specific_warnings = self.validate_specific(data, as_of)
        errors.extend(specific_errors)
        warnings.extend(specific_warnings)

        completeness = self.data_completeness(data)
        if completeness < LOW_COMPLETENESS_WARNING:
            warnings.append(ValidationWarning(
                field="overall",
                message=f"Data completeness is low ({int(completeness * 100)}%)",
                suggestion="Consider gathering additional data for more accurate scoring",
            ))

        return ValidationResult.build(errors, warnings, completeness)

    def calculate_score(self, data: CompanyData, context: MarketContext) -> PillarScore:
        validation = self.validate_data(data, context.evaluation_date)
        if not validation.is_valid:
            missing = self.validation_service.get_missing_fields(data, self.required_fields)
            if missing:
                raise MissingRequiredFieldError(missing[0], errors=validation.errors)
            first = validation.errors[0]
            raise InvalidDataError(
                f"{self.name} validation failed: {first.field}: {first.message}",
                errors=validation.errors,
            )

        factors = self.calculate_factors(data, context)
        raw_score = round(
            clamp(weighted_mean([f.score for f in factors], [f.weight for f in factors])),
            4,
        )

        quality = self.assess_data_quality(data, context)
        confidence = self.confidence_calculator.calculate(
            validation.completeness,
            quality,
            self.config.methodology_reliability,
        ).confidence

        warnings = self._generic_warnings(raw_score, confidence, validation.completeness)
        warnings.extend(self.specific_warnings(data, context))

        logger.info(
            "pillar_scored",
            pillar=self.pillar_id.value,
            company=data.basic_info.name,
            raw_score=raw_score,
            confidence=confidence,
            completeness=round(validation.completeness, 4),
            data_quality=round(quality, 4),
            warnings=len(warnings),
        )

        return PillarScore(
            pillar=self.pillar_id,
            raw_score=raw_score,
            confidence=confidence,
            completeness=round(validation.completeness, 4),
            factors=factors,
            warnings=warnings,
            explanation=self.methodology,
        )

    def explain_score(self, score: PillarScore) -> ScoreExplanation:
        summary = f"{self.name} scored {score.raw_score:.1f}/5.0 ({score_band(score.raw_score)})"
        suffix = self.summary_suffix(score.raw_score)
        if suffix:
            summary = f"{summary} - {suffix}"
        return ScoreExplanation(
            summary=summary,
            factors=[
                ExplanationFactor(
                    name=f.name,
                    contribution=round(f.weight * f.score, 4),
                    explanation=f.rationale,
                )
                for f in score.factors
            ],
            methodology=score.explanation or self.methodology,
            limitations=list(DEFAULT_LIMITATIONS),
        )

    # ------------------------------------------------------------------ #
    # Helpers for subclasses
    # ------------------------------------------------------------------ #

    def data_completeness(self, data: CompanyData) -> float:
        return self.validation_service.field_completeness(data, self.required_fields, self.optional_fields)

    @staticmethod
    def factor(name: str, weight: float, score: float, rationale: str) -> ScoringFactor:
        return ScoringFactor(name=name, weight=weight, score=score, rationale=rationale)

    def summary_suffix(self, raw_score: float) -> Optional[str]:
        return None

    @staticmethod
    def _generic_warnings(raw_score: float, confidence: float, completeness: float) -> List[str]:
        warnings = []
        if confidence < LOW_CONFIDENCE:
            warnings.append("Low confidence score due to insufficient data")
        if completeness < LOW_COMPLETENESS:
            warnings.append("Significant data gaps may affect scoring accuracy")
        if raw_score <= LOW_SCORE:
            warnings.append("Low score indicates significant concerns")
        return warnings

    # ------------------------------------------------------------------ #
    # Pillar hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        """Pillar-specific errors (blocking) and warnings (advisory)."""

    @abstractmethod
    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        """Fixed, ordered factor list; declared weights sum to 1.0."""

    @abstractmethod
    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        """Pillar-specific data-quality heuristic in [0, 1]."""

    @abstractmethod
    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        """Pillar-specific red flags."""


def score_band(score: float) -> str:
    return threshold_score(score, SCORE_BANDS, "Poor")


def critical(field: str, message: str) -> ValidationError:
    return ValidationError(field=field, message=message, severity=ValidationSeverity.CRITICAL)


def advisory(field: str, message: str, suggestion: Optional[str] = None) -> ValidationWarning:
    return ValidationWarning(field=field, message=message, suggestion=suggestion)
