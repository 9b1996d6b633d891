"""
scoring/confidence_calculator.py — Confidence Calculator

Combines how much data a pillar had, how trustworthy that data looks, and how
empirically grounded the pillar's heuristics are into one bounded value.

Formula:
    confidence = clamp(completeness × quality × reliability, 0, 1)

Generic data-quality penalties (applied by pillars that read funding data):
    quality  = 1.0
    quality −= 0.2   if the latest funding round is older than 12 months
    quality −= 0.1   if monthly burn exceeds cash on hand
    quality ×= complete_records / total_records   (e.g. trials with patient counts)

Engine level:
    overall = Σ(w_i × confidence_i) / Σ(w_i)   over normalized pillar weights
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional

import structlog

from app.models.company import Financials
from app.scoring.utils import clamp, months_between, weighted_mean

logger = structlog.get_logger(__name__)


@dataclass
class ConfidenceResult:
    """Output of ConfidenceCalculator.calculate()."""
    confidence: float     # in [0, 1], rounded to 4 places
    completeness: float   # clamped input
    quality: float        # clamped input
    reliability: float    # clamped input


class ConfidenceCalculator:
    """Multiplicative confidence with clamped inputs and output."""

    STALE_FUNDING_MONTHS: int = 12
    STALE_FUNDING_PENALTY: float = 0.2
    BURN_EXCEEDS_CASH_PENALTY: float = 0.1

    # (minimum comparable count, quality)
    COMPARABLE_QUALITY = ((10, 0.9), (5, 0.7), (2, 0.5))
    COMPARABLE_QUALITY_FLOOR: float = 0.3

    def calculate(
        self,
        completeness: float,
        quality: float,
        reliability: float,
    ) -> ConfidenceResult:
        """
        Args:
            completeness: Fraction of expected fields present.
            quality: Pillar-specific data-quality heuristic.
            reliability: Methodology reliability constant of the pillar.

        Returns:
            ConfidenceResult; every component is clamped to [0, 1] before and
            after combination, so the result is monotone in each input.

        Examples:
            >>> ConfidenceCalculator().calculate(1.0, 0.8, 0.8).confidence
            0.64
        """
        c = clamp(completeness, 0.0, 1.0)
        q = clamp(quality, 0.0, 1.0)
        r = clamp(reliability, 0.0, 1.0)
        confidence = round(clamp(c * q * r, 0.0, 1.0), 4)
        return ConfidenceResult(
            confidence=confidence,
            completeness=c,
            quality=q,
            reliability=r,
        )

    def funding_quality(self, financials: Financials, as_of: date) -> float:
        """Staleness and burn/cash consistency penalties, starting from 1.0."""
        quality = 1.0
        funding = financials.latest_funding
        if funding is not None and months_between(funding.date, as_of) > self.STALE_FUNDING_MONTHS:
            quality -= self.STALE_FUNDING_PENALTY
        if financials.burn_rate > financials.cash_position:
            quality -= self.BURN_EXCEEDS_CASH_PENALTY
        return clamp(quality, 0.0, 1.0)

    @staticmethod
    def record_completeness_factor(complete: int, total: int) -> float:
        """Share of supporting records with complete sub-fields; 1.0 without records."""
        if total <= 0:
            return 1.0
        return clamp(complete / max(1, total), 0.0, 1.0)

    def overall(
        self,
        pillar_confidences: Dict[str, float],
        weights: Dict[str, float],
    ) -> float:
        """Weight-normalized average of pillar confidences."""
        keys = [k for k in pillar_confidences if k in weights]
        values = [pillar_confidences[k] for k in keys]
        key_weights = [weights[k] for k in keys]
        if sum(key_weights) <= 0:
            # All-zero weights leave nothing to trust.
            return 0.0
        overall = round(clamp(weighted_mean(values, key_weights), 0.0, 1.0), 4)
        logger.debug("overall_confidence_calculated", pillars=len(keys), overall=overall)
        return overall

    def comparable_quality(self, comparable_count: Optional[int]) -> float:
        for minimum, quality in self.COMPARABLE_QUALITY:
            if (comparable_count or 0) >= minimum:
                return quality
        return self.COMPARABLE_QUALITY_FLOOR
