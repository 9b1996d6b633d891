"""
scoring/pillars/market_outlook.py — Market Outlook Pillar

Commercial attractiveness of the company's target market.

Factors (weight):
    Market Size               0.30
    Growth Potential          0.25
    Competitive Landscape     0.20
    Regulatory Pathway        0.15
    Reimbursement Environment 0.05
    Market Dynamics           0.05
"""

import math
from datetime import date
from typing import Dict, List

from app.models.company import CompanyData
from app.models.enumerations import (
    DevelopmentStage,
    Pillar,
    RegulatoryPathway,
    ReimbursementEnvironment,
)
from app.models.market import MarketContext
from app.models.scoring import ScoringFactor
from app.scoring.pillars.base import BasePillar, Issues, advisory, critical
from app.scoring.utils import any_matches, bucket_score, clamp, threshold_score

FACTOR_WEIGHTS: Dict[str, float] = {
    "market_size": 0.30,
    "growth_potential": 0.25,
    "competitive_landscape": 0.20,
    "regulatory_pathway": 0.15,
    "reimbursement": 0.05,
    "market_dynamics": 0.05,
}

# Addressable market ($B)
MARKET_SIZE_THRESHOLDS = ((10, 5.0), (5, 4.0), (1, 3.0), (0.1, 2.0))
# Annual growth (fraction)
GROWTH_THRESHOLDS = ((0.15, 5.0), (0.08, 4.0), (0.03, 3.0), (0.0, 2.0))
# Competitor count: 0, 1-2, 3-5, 6-10, more
COMPETITOR_COUNT_BUCKETS = ((1, 5.0), (3, 4.0), (6, 3.0), (11, 2.0), (math.inf, 1.0))
ADVANCED_STAGES = (DevelopmentStage.PHASE_3, DevelopmentStage.APPROVED, DevelopmentStage.MARKETED)
APPROVED_STAGES = (DevelopmentStage.APPROVED, DevelopmentStage.MARKETED)

PATHWAY_SCORES: Dict[RegulatoryPathway, float] = {
    RegulatoryPathway.BREAKTHROUGH: 5.0,
    RegulatoryPathway.FAST_TRACK: 4.5,
    RegulatoryPathway.ACCELERATED: 4.0,
    RegulatoryPathway.ORPHAN: 4.0,
    RegulatoryPathway.STANDARD: 3.0,
}

REIMBURSEMENT_SCORES: Dict[ReimbursementEnvironment, float] = {
    ReimbursementEnvironment.FAVORABLE: 5.0,
    ReimbursementEnvironment.MODERATE: 3.0,
    ReimbursementEnvironment.CHALLENGING: 2.0,
    ReimbursementEnvironment.UNKNOWN: 2.5,
}

# Net drivers (drivers − barriers)
NET_DRIVER_THRESHOLDS = ((3, 5.0), (1, 4.0), (0, 3.0), (-2, 2.0))
HIGH_IMPACT_DRIVERS = ("unmet need", "aging population", "breakthrough", "innovation")


class MarketOutlookPillar(BasePillar):
    pillar_id = Pillar.MARKET_OUTLOOK
    name = "Market Outlook"
    description = "Analyzes market potential and competitive landscape"
    methodology = (
        "Market outlook evaluation based on market size, growth potential, competitive "
        "landscape, regulatory pathway, reimbursement environment, and market dynamics"
    )
    required_fields = ["market.addressableMarket", "basicInfo.therapeuticAreas"]
    optional_fields = ["market.competitors", "market.marketDynamics"]

    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        market = data.market
        errors, warnings = [], []
        if market.addressable_market <= 0:
            errors.append(critical(
                "market.addressableMarket",
                "Addressable market size must be greater than zero",
            ))
        if not data.basic_info.therapeutic_areas:
            errors.append(critical(
                "basicInfo.therapeuticAreas",
                "At least one therapeutic area must be specified",
            ))
        if market.market_dynamics.growth_rate < 0:
            warnings.append(advisory(
                "market.marketDynamics.growthRate",
                "Negative market growth rate detected",
                "Verify growth rate data and consider market decline factors",
            ))
        if not market.competitors:
            warnings.append(advisory(
                "market.competitors",
                "No competitor information provided",
                "Add competitor analysis for more accurate market assessment",
            ))
        if market.market_dynamics.reimbursement == ReimbursementEnvironment.UNKNOWN:
            warnings.append(advisory(
                "market.marketDynamics.reimbursement",
                "Reimbursement environment is unknown",
                "Research reimbursement landscape for target indications",
            ))
        if 0 < market.addressable_market < 0.1:
            warnings.append(advisory(
                "market.addressableMarket",
                "Very small addressable market (< $100M)",
                "Verify market size calculation and consider niche market dynamics",
            ))
        return errors, warnings

    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._market_size(data),
            self._growth_potential(data),
            self._competitive_landscape(data),
            self._regulatory_pathway(data),
            self._reimbursement(data),
            self._market_dynamics(data),
        ]

    def _market_size(self, data: CompanyData) -> ScoringFactor:
        size = data.market.addressable_market
        return self.factor(
            "Market Size",
            FACTOR_WEIGHTS["market_size"],
            threshold_score(size, MARKET_SIZE_THRESHOLDS, 1.0),
            f"Addressable market of ${size:.1f}B",
        )

    def _growth_potential(self, data: CompanyData) -> ScoringFactor:
        dynamics = data.market.market_dynamics
        score = threshold_score(dynamics.growth_rate, GROWTH_THRESHOLDS, 1.0)
        if len(dynamics.drivers) > len(dynamics.barriers):
            score = min(5.0, score + 0.5)
        elif len(dynamics.barriers) > len(dynamics.drivers):
            score = max(1.0, score - 0.5)
        return self.factor(
            "Growth Potential",
            FACTOR_WEIGHTS["growth_potential"],
            score,
            f"Market growth rate of {dynamics.growth_rate * 100:.1f}% with "
            f"{len(dynamics.drivers)} drivers and {len(dynamics.barriers)} barriers",
        )

    def _competitive_landscape(self, data: CompanyData) -> ScoringFactor:
        competitors = data.market.competitors
        count = len(competitors)
        score = bucket_score(count, COMPETITOR_COUNT_BUCKETS)
        advanced = sum(1 for c in competitors if c.stage in ADVANCED_STAGES)
        if advanced > count // 2:
            score -= 1.0
        with_weaknesses = sum(1 for c in competitors if c.weaknesses)
        if with_weaknesses > count // 2:
            score += 0.5
        return self.factor(
            "Competitive Landscape",
            FACTOR_WEIGHTS["competitive_landscape"],
            score,
            f"{count} competitors identified, {advanced} in late-stage development",
        )

    def _regulatory_pathway(self, data: CompanyData) -> ScoringFactor:
        strategy = data.regulatory.regulatory_strategy
        score = PATHWAY_SCORES[strategy.pathway]
        if strategy.timeline <= 24:
            score += 0.5
        elif strategy.timeline >= 60:
            score -= 0.5
        if len(strategy.risks) > 3:
            score -= 0.5
        return self.factor(
            "Regulatory Pathway",
            FACTOR_WEIGHTS["regulatory_pathway"],
            score,
            f"{strategy.pathway.value} pathway with {strategy.timeline} month timeline",
        )

    def _reimbursement(self, data: CompanyData) -> ScoringFactor:
        environment = data.market.market_dynamics.reimbursement
        return self.factor(
            "Reimbursement Environment",
            FACTOR_WEIGHTS["reimbursement"],
            REIMBURSEMENT_SCORES[environment],
            f"{environment.value} reimbursement environment",
        )

    def _market_dynamics(self, data: CompanyData) -> ScoringFactor:
        dynamics = data.market.market_dynamics
        net_drivers = len(dynamics.drivers) - len(dynamics.barriers)
        score = threshold_score(net_drivers, NET_DRIVER_THRESHOLDS, 1.0)
        if any_matches(dynamics.drivers, HIGH_IMPACT_DRIVERS):
            score += 0.5
        return self.factor(
            "Market Dynamics",
            FACTOR_WEIGHTS["market_dynamics"],
            score,
            f"Net market drivers: {net_drivers}",
        )

    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        market = data.market
        dynamics = market.market_dynamics
        checks = [
            market.addressable_market > 0,
            dynamics.growth_rate >= 0,
            bool(market.competitors),
            bool(dynamics.drivers or dynamics.barriers),
            dynamics.reimbursement != ReimbursementEnvironment.UNKNOWN,
        ]
        return clamp(sum(checks) / len(checks), 0.0, 1.0)

    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        market = data.market
        warnings = []
        if market.addressable_market < 0.1:
            warnings.append("Very small addressable market may limit commercial viability")
        if market.market_dynamics.growth_rate < 0:
            warnings.append("Declining market conditions pose significant risk")
        if sum(1 for c in market.competitors if c.stage in APPROVED_STAGES) > 2:
            warnings.append("Multiple approved competitors create challenging market entry")
        if data.regulatory.regulatory_strategy.timeline > 60:
            warnings.append("Extended regulatory timeline increases market entry risk")
        if market.market_dynamics.reimbursement == ReimbursementEnvironment.CHALLENGING:
            warnings.append("Challenging reimbursement environment may limit market access")
        return warnings
