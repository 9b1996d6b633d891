"""
scoring/pillars/financial_readiness.py — Financial Readiness Pillar

Cash position, burn efficiency and funding runway relative to what the
company's development stage normally requires.

Factors (weight):
    Cash Position            0.25   stage-scaled cash thresholds
    Burn Rate Efficiency     0.20   burn vs. expected stage range
    Funding Runway           0.30   months of runway
    Capital Intensity        0.15   stage intensity + pipeline complexity
    Financing Need Timing    0.08   months until next raise × stage advantage
    Data Freshness           0.02   days since latest funding round
"""

import math
from datetime import date
from typing import Dict, List, Tuple

from app.models.company import CompanyData
from app.models.enumerations import DevelopmentStage, FundingEnvironment, Pillar
from app.models.market import MarketContext
from app.models.scoring import ScoringFactor
from app.scoring.pillars.base import BasePillar, Issues, advisory, critical
from app.scoring.utils import bucket_score, clamp, days_between, months_between, threshold_score

S = DevelopmentStage

FACTOR_WEIGHTS: Dict[str, float] = {
    "cash_position": 0.25,
    "burn_rate_efficiency": 0.20,
    "funding_runway": 0.30,
    "capital_intensity": 0.15,
    "financing_need_timing": 0.08,
    "data_freshness": 0.02,
}

# Cash thresholds ($M) are scaled by the stage multiplier
CASH_THRESHOLDS = ((500, 5.0), (200, 4.0), (100, 3.0), (50, 2.0))
CASH_STAGE_MULTIPLIER: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 0.5, S.PHASE_1: 0.7, S.PHASE_2: 1.0,
    S.PHASE_3: 1.5, S.APPROVED: 1.2, S.MARKETED: 2.0,
}

# Expected monthly burn ($M) per stage: (low, high)
EXPECTED_BURN: Dict[DevelopmentStage, Tuple[float, float]] = {
    S.PRECLINICAL: (1, 5), S.PHASE_1: (3, 10), S.PHASE_2: (5, 20),
    S.PHASE_3: (10, 50), S.APPROVED: (5, 30), S.MARKETED: (10, 100),
}

RUNWAY_THRESHOLDS = ((24, 5.0), (18, 4.0), (12, 3.0), (6, 2.0))

STAGE_INTENSITY: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 0.2, S.PHASE_1: 0.4, S.PHASE_2: 0.6,
    S.PHASE_3: 0.9, S.APPROVED: 0.5, S.MARKETED: 0.3,
}
INTENSITY_BUCKETS = ((0.3, 5.0), (0.5, 4.0), (0.7, 3.0), (0.9, 2.0), (math.inf, 1.0))

# Financing is assumed to start 9 months before cash runs out
FINANCING_LEAD_MONTHS = 9
FINANCING_TIMING_THRESHOLDS = ((18, 5.0), (12, 4.0), (6, 3.0), (3, 2.0))
STAGE_FINANCING_ADVANTAGE: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 0.8, S.PHASE_1: 0.9, S.PHASE_2: 1.0,
    S.PHASE_3: 1.2, S.APPROVED: 1.3, S.MARKETED: 1.1,
}
FUNDING_ENVIRONMENT_DELTA: Dict[FundingEnvironment, float] = {
    FundingEnvironment.ABUNDANT: 0.3,
    FundingEnvironment.MODERATE: 0.0,
    FundingEnvironment.CONSTRAINED: -0.3,
}

FRESHNESS_BUCKETS = ((30, 5.0), (60, 4.0), (90, 3.0), (180, 2.0), (math.inf, 1.0))


class FinancialReadinessPillar(BasePillar):
    pillar_id = Pillar.FINANCIAL_READINESS
    name = "Financial Readiness"
    description = "Assesses financial position and funding runway"
    methodology = (
        "Financial readiness evaluation based on cash position, burn rate efficiency, "
        "funding runway, capital intensity, and financing timing"
    )
    required_fields = ["financials.cashPosition", "financials.burnRate", "financials.runway"]
    optional_fields = ["financials.lastFunding"]

    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        fin = data.financials
        errors, warnings = [], []
        if fin.cash_position <= 0:
            errors.append(critical(
                "financials.cashPosition",
                "Cash position must be positive for financial readiness assessment",
            ))
        if fin.burn_rate <= 0:
            errors.append(critical(
                "financials.burnRate",
                "Burn rate must be positive for financial readiness assessment",
            ))
        if fin.cash_position > 10000:
            warnings.append(advisory(
                "financials.cashPosition",
                "Cash position seems unusually high",
                "Verify cash position is in millions of dollars",
            ))
        if fin.burn_rate > 100:
            warnings.append(advisory(
                "financials.burnRate",
                "Monthly burn rate seems unusually high",
                "Verify burn rate is monthly and in millions of dollars",
            ))
        funding = fin.latest_funding
        if funding is not None and days_between(funding.date, as_of) > 90:
            warnings.append(advisory(
                "financials.lastFunding",
                "Last funding data is more than 90 days old",
                "Update funding information for more accurate assessment",
            ))
        return errors, warnings

    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._cash_position(data),
            self._burn_rate_efficiency(data),
            self._funding_runway(data),
            self._capital_intensity(data),
            self._financing_need_timing(data, context),
            self._data_freshness(data, context.evaluation_date),
        ]

    def _cash_position(self, data: CompanyData) -> ScoringFactor:
        stage = data.basic_info.stage
        multiplier = CASH_STAGE_MULTIPLIER[stage]
        scaled = tuple((limit * multiplier, score) for limit, score in CASH_THRESHOLDS)
        cash = data.financials.cash_position
        return self.factor(
            "Cash Position",
            FACTOR_WEIGHTS["cash_position"],
            threshold_score(cash, scaled, 1.0),
            f"Cash position of ${cash:.1f}M relative to {stage.value} stage requirements",
        )

    def _burn_rate_efficiency(self, data: CompanyData) -> ScoringFactor:
        stage = data.basic_info.stage
        low, high = EXPECTED_BURN[stage]
        burn = data.financials.burn_rate
        score = bucket_score(burn, ((low, 5.0), (low * 1.5, 4.0), (high, 3.0), (high * 1.5, 2.0), (math.inf, 1.0)),
                             inclusive=True)
        return self.factor(
            "Burn Rate Efficiency",
            FACTOR_WEIGHTS["burn_rate_efficiency"],
            score,
            f"Monthly burn rate of ${burn:.1f}M compared to expected range "
            f"${low:.0f}-{high:.0f}M for {stage.value} stage",
        )

    def _funding_runway(self, data: CompanyData) -> ScoringFactor:
        runway = data.financials.runway or 0
        return self.factor(
            "Funding Runway",
            FACTOR_WEIGHTS["funding_runway"],
            threshold_score(runway, RUNWAY_THRESHOLDS, 1.0),
            f"{runway} months of funding runway remaining",
        )

    def _capital_intensity(self, data: CompanyData) -> ScoringFactor:
        stage = data.basic_info.stage
        programs = data.pipeline.programs
        indications = len({p.indication for p in programs})
        pipeline_complexity = (min(1.0, len(programs) / 10) + min(1.0, indications / 5)) / 2
        intensity = (STAGE_INTENSITY[stage] + pipeline_complexity) / 2
        return self.factor(
            "Capital Intensity",
            FACTOR_WEIGHTS["capital_intensity"],
            bucket_score(intensity, INTENSITY_BUCKETS),
            f"Capital intensity based on {stage.value} stage and pipeline complexity",
        )

    def _financing_need_timing(self, data: CompanyData, context: MarketContext) -> ScoringFactor:
        stage = data.basic_info.stage
        months_until_raise = max(0, (data.financials.runway or 0) - FINANCING_LEAD_MONTHS)
        score = threshold_score(months_until_raise, FINANCING_TIMING_THRESHOLDS, 1.0)
        score *= STAGE_FINANCING_ADVANTAGE[stage]
        environment = context.market_conditions.funding_environment
        score += FUNDING_ENVIRONMENT_DELTA[environment]
        return self.factor(
            "Financing Need Timing",
            FACTOR_WEIGHTS["financing_need_timing"],
            min(5.0, score),
            f"Next financing needed in approximately {months_until_raise} months "
            f"({environment.value} funding environment)",
        )

    def _data_freshness(self, data: CompanyData, as_of: date) -> ScoringFactor:
        funding = data.financials.latest_funding
        if funding is None:
            score, rationale = 5.0, "No funding round on record; freshness not penalized"
        else:
            days = days_between(funding.date, as_of)
            score = bucket_score(days, FRESHNESS_BUCKETS)
            rationale = f"Financial data is {days} days old"
        return self.factor("Data Freshness", FACTOR_WEIGHTS["data_freshness"], score, rationale)

    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        fin = data.financials
        quality = 1.0
        if not (fin.cash_position > 0 and fin.burn_rate > 0):
            quality *= 0.5
        if fin.latest_funding is None:
            quality *= 0.8
        if not (fin.runway is not None and 0 < fin.runway < 120):
            quality *= 0.7
        return clamp(quality, 0.0, 1.0)

    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        fin = data.financials
        warnings = []
        runway = fin.runway or 0
        if runway < 6:
            warnings.append("Critical: Less than 6 months runway remaining")
        elif runway < 12:
            warnings.append("Warning: Less than 12 months runway remaining")
        if fin.burn_rate > fin.cash_position * 0.1:
            warnings.append("High burn rate relative to cash position")
        funding = fin.latest_funding
        if funding is not None and months_between(funding.date, context.evaluation_date) > 18:
            warnings.append("No recent funding activity (>18 months)")
        return warnings
