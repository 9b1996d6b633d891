"""
scoring/weighting_engine.py — Weighting Engine

Turns per-pillar raw scores into one weighted total.

    normalized_i  = w_i / Σ w
    contribution_i = normalized_i × raw_score_i
    total          = Σ contribution_i              (stays inside [min raw, max raw])
    confidence     = Σ(normalized_i × confidence_i)

Also validates user-supplied weight mappings, keeps named weight profiles and
measures how a proposed re-weighting moves the total.
"""

import math
from typing import Dict, List, Mapping, Optional, Union

import structlog

from app.config import get_settings
from app.core.exceptions import CalculationError, ConfigurationError
from app.models.enumerations import Pillar, ValidationSeverity
from app.models.scoring import PillarImpact, PillarScore, WeightedScore, WeightImpact
from app.models.validation import ValidationError, ValidationResult, ValidationWarning
from app.scoring.confidence_calculator import ConfidenceCalculator
from app.scoring.utils import clamp

logger = structlog.get_logger(__name__)

WeightKey = Union[Pillar, str]

WEIGHT_SUM_TOLERANCE = 0.001
WEIGHT_SPREAD_LIMIT = 0.4
SIGNIFICANT_CHANGE = 0.1

P = Pillar

# Ordering: AQ, MO, CI, SF, FR, RR
DEFAULT_PROFILES: Dict[str, Dict[Pillar, float]] = {
    "default": {
        P.ASSET_QUALITY: 0.25, P.MARKET_OUTLOOK: 0.20, P.CAPITAL_INTENSITY: 0.15,
        P.STRATEGIC_FIT: 0.20, P.FINANCIAL_READINESS: 0.10, P.REGULATORY_RISK: 0.10,
    },
    "conservative": {
        P.ASSET_QUALITY: 0.20, P.MARKET_OUTLOOK: 0.15, P.CAPITAL_INTENSITY: 0.15,
        P.STRATEGIC_FIT: 0.15, P.FINANCIAL_READINESS: 0.20, P.REGULATORY_RISK: 0.15,
    },
    "aggressive": {
        P.ASSET_QUALITY: 0.35, P.MARKET_OUTLOOK: 0.30, P.CAPITAL_INTENSITY: 0.10,
        P.STRATEGIC_FIT: 0.15, P.FINANCIAL_READINESS: 0.05, P.REGULATORY_RISK: 0.05,
    },
    "balanced": {p: 1.0 / 6.0 for p in Pillar},
    "strategic": {
        P.ASSET_QUALITY: 0.30, P.MARKET_OUTLOOK: 0.20, P.CAPITAL_INTENSITY: 0.10,
        P.STRATEGIC_FIT: 0.30, P.FINANCIAL_READINESS: 0.05, P.REGULATORY_RISK: 0.05,
    },
}


def _as_pillar(key: WeightKey) -> Optional[Pillar]:
    try:
        return Pillar(key)
    except ValueError:
        return None


class WeightingEngine:
    """Weight normalization, application, validation and profiles."""

    def __init__(
        self,
        confidence_calculator: Optional[ConfidenceCalculator] = None,
        dominance_threshold: Optional[float] = None,
    ):
        self.confidence_calculator = confidence_calculator or ConfidenceCalculator()
        if dominance_threshold is None:
            dominance_threshold = get_settings().DOMINANCE_THRESHOLD
        self.dominance_threshold = dominance_threshold
        self._profiles: Dict[str, Dict[Pillar, float]] = {
            name: dict(weights) for name, weights in DEFAULT_PROFILES.items()
        }

    # ------------------------------------------------------------------ #
    # Normalization and application
    # ------------------------------------------------------------------ #

    def normalize_weights(self, weights: Mapping[WeightKey, float]) -> Dict[Pillar, float]:
        """
        Scale weights so they sum to 1.0.

        Raises:
            ConfigurationError: empty mapping, unknown pillar, negative or
                non-finite weight, or a zero sum.
        """
        if not weights:
            raise ConfigurationError("Weight configuration is empty")

        resolved: Dict[Pillar, float] = {}
        for key, value in weights.items():
            pillar = _as_pillar(key)
            if pillar is None:
                raise ConfigurationError(f"Unknown pillar '{key}' in weights", details={"pillar": str(key)})
            if not math.isfinite(value):
                raise ConfigurationError(
                    f"Weight for {pillar.value} is not a finite number",
                    details={"pillar": pillar.value},
                )
            if value < 0:
                raise ConfigurationError(
                    f"Weight for {pillar.value} cannot be negative",
                    details={"pillar": pillar.value, "weight": value},
                )
            resolved[pillar] = float(value)

        total = sum(resolved.values())
        if total <= 0:
            raise ConfigurationError("Weights sum to zero; at least one pillar needs a positive weight")

        normalized = {pillar: value / total for pillar, value in resolved.items()}
        logger.debug("weights_normalized", total=round(total, 6), pillars=len(normalized))
        return normalized

    def apply_weights(
        self,
        pillar_scores: Mapping[Pillar, PillarScore],
        weights: Mapping[WeightKey, float],
    ) -> WeightedScore:
        """
        Weighted total of pillar raw scores.

        A weight naming a pillar with no score is a CalculationError; a score
        without a weight simply contributes nothing.
        """
        normalized = self.normalize_weights(weights)

        missing = [p.value for p in normalized if p not in pillar_scores]
        if missing:
            raise CalculationError(f"No pillar score available for weighted pillars: {', '.join(missing)}")

        breakdown: Dict[Pillar, float] = {}
        for pillar, weight in normalized.items():
            breakdown[pillar] = round(weight * pillar_scores[pillar].raw_score, 4)

        total = sum(weight * pillar_scores[p].raw_score for p, weight in normalized.items())
        confidence = self.confidence_calculator.overall(
            {p: pillar_scores[p].confidence for p in normalized},
            normalized,
        )

        return WeightedScore(
            score=round(clamp(total), 4),
            breakdown=breakdown,
            normalized_weights={p: round(w, 6) for p, w in normalized.items()},
            confidence=confidence,
        )

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate_weights(self, weights: Mapping[WeightKey, float]) -> ValidationResult:
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []

        known: Dict[Pillar, float] = {}
        for key, value in weights.items():
            pillar = _as_pillar(key)
            name = pillar.value if pillar else str(key)
            if pillar is None:
                warnings.append(ValidationWarning(
                    field=name,
                    message=f"Unknown pillar '{name}' will be ignored",
                    suggestion=f"Use one of: {', '.join(p.value for p in Pillar)}",
                ))
                continue
            if not math.isfinite(value):
                errors.append(ValidationError(field=name, message="Weight must be a finite number"))
                continue
            known[pillar] = value

            if value < 0:
                errors.append(ValidationError(field=name, message="Weight cannot be negative"))
            if value > 1.0:
                errors.append(ValidationError(field=name, message="Weight cannot exceed 1.0"))
            if value == 0:
                warnings.append(ValidationWarning(
                    field=name,
                    message="Zero weight will exclude this pillar from scoring",
                    suggestion="Consider using a small positive weight instead",
                ))
            elif value > self.dominance_threshold:
                warnings.append(ValidationWarning(
                    field=name,
                    message=f"Weight above {self.dominance_threshold:.2f} lets one pillar dominate the score",
                    suggestion="Consider a more balanced weight distribution",
                ))

        for pillar in Pillar:
            if pillar not in known:
                warnings.append(ValidationWarning(
                    field=pillar.value,
                    message="No weight specified; pillar will be excluded from scoring",
                    suggestion="Add an explicit weight for every pillar",
                ))

        total = sum(known.values())
        if total == 0:
            errors.append(ValidationError(
                field="total",
                message="All weights cannot be zero",
                severity=ValidationSeverity.CRITICAL,
            ))
        elif abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            warnings.append(ValidationWarning(
                field="total",
                message=f"Weights sum to {total:.3f} instead of 1.0",
                suggestion="Weights will be automatically normalized",
            ))

        values = list(known.values())
        if values and all(v > 0 for v in values) and max(values) - min(values) > WEIGHT_SPREAD_LIMIT:
            warnings.append(ValidationWarning(
                field="distribution",
                message="Large spread between highest and lowest weight",
                suggestion="Review whether the weighting reflects the intended strategy",
            ))

        return ValidationResult.build(errors, warnings, 1.0)

    # ------------------------------------------------------------------ #
    # Profiles
    # ------------------------------------------------------------------ #

    @property
    def profiles(self) -> Dict[str, Dict[Pillar, float]]:
        return {name: dict(weights) for name, weights in self._profiles.items()}

    def get_profile(self, name: str) -> Dict[Pillar, float]:
        try:
            return dict(self._profiles[name.lower()])
        except KeyError:
            raise ConfigurationError(
                f"Unknown weight profile '{name}'",
                details={"available": sorted(self._profiles)},
            ) from None

    def save_profile(self, name: str, weights: Mapping[WeightKey, float]) -> Dict[Pillar, float]:
        """Store a normalized copy; critical validation errors are rejected."""
        validation = self.validate_weights(weights)
        if validation.critical_errors or not validation.is_valid:
            raise ConfigurationError(
                f"Cannot save invalid weight profile: {validation.errors[0].message}",
                details={"profile": name},
            )
        normalized = self.normalize_weights(
            {k: v for k, v in weights.items() if _as_pillar(k) is not None}
        )
        self._profiles[name.lower()] = normalized
        logger.info("weight_profile_saved", profile=name.lower(), pillars=len(normalized))
        return dict(normalized)

    def delete_profile(self, name: str) -> bool:
        return self._profiles.pop(name.lower(), None) is not None

    def available_profiles(self) -> List[str]:
        return sorted(self._profiles)

    # ------------------------------------------------------------------ #
    # Impact analysis
    # ------------------------------------------------------------------ #

    def calculate_weight_impact(
        self,
        pillar_scores: Mapping[Pillar, PillarScore],
        current_weights: Mapping[WeightKey, float],
        proposed_weights: Mapping[WeightKey, float],
    ) -> WeightImpact:
        current = self.apply_weights(pillar_scores, current_weights)
        proposed = self.apply_weights(pillar_scores, proposed_weights)

        difference = proposed.score - current.score
        percentage = (difference / current.score) * 100 if current.score > 0 else 0.0

        impacts: List[PillarImpact] = []
        for pillar in Pillar:
            if pillar not in current.breakdown and pillar not in proposed.breakdown:
                continue
            before = current.breakdown.get(pillar, 0.0)
            after = proposed.breakdown.get(pillar, 0.0)
            impacts.append(PillarImpact(
                pillar=pillar,
                current_contribution=before,
                proposed_contribution=after,
                difference=round(after - before, 4),
            ))

        return WeightImpact(
            current_score=current.score,
            proposed_score=proposed.score,
            total_score_difference=round(difference, 4),
            percentage_change=round(percentage, 2),
            pillar_impacts=impacts,
            significant_changes=[i.pillar for i in impacts if abs(i.difference) > SIGNIFICANT_CHANGE],
        )
