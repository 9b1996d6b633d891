"""
scoring/pillars/capital_intensity.py — Capital Intensity Pillar

How much capital the company needs to reach market, and how efficiently it
uses what it has. Higher score = lower capital intensity.

Factors (weight):
    Development Cost          0.25   stage base, complex-area and portfolio deltas
    Capital Efficiency        0.20   burn per program buckets, cash per program
    Manufacturing Complexity  0.20   highest complexity level over areas/mechanisms
    Regulatory Cost           0.15   pathway base, trial burden deltas
    Time to Market            0.10   stage base, timeline and near-term milestone
    Scalability               0.10   market size buckets, platform/oral bonuses
"""

import math
from datetime import date
from typing import Dict, List

from app.models.company import CompanyData
from app.models.enumerations import (
    DevelopmentStage,
    MilestoneStatus,
    Pillar,
    RegulatoryPathway,
    TrialStatus,
)
from app.models.market import MarketContext
from app.models.scoring import ScoringFactor
from app.scoring.pillars.base import BasePillar, Issues, advisory, critical
from app.scoring.utils import any_matches, bucket_score, clamp, matches_any, threshold_score

S = DevelopmentStage

FACTOR_WEIGHTS: Dict[str, float] = {
    "development_cost": 0.25,
    "capital_efficiency": 0.20,
    "manufacturing_complexity": 0.20,
    "regulatory_cost": 0.15,
    "time_to_market": 0.10,
    "scalability": 0.10,
}

DEVELOPMENT_COST_BASE: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 4.5, S.PHASE_1: 4.0, S.PHASE_2: 3.0,
    S.PHASE_3: 2.0, S.APPROVED: 4.0, S.MARKETED: 4.0,
}
COMPLEX_AREAS = ("oncology", "neurology", "rare diseases", "gene therapy")

# Burn per program ($M/month): [0,2) [2,5) [5,10) [10,20) else
BURN_PER_PROGRAM_BUCKETS = ((2, 4.5), (5, 4.0), (10, 3.0), (20, 2.0), (math.inf, 1.5))
RICH_CASH_PER_PROGRAM = 50
THIN_CASH_PER_PROGRAM = 10

# Manufacturing complexity level (3 = hardest)
AREA_COMPLEXITY = (
    (3, ("gene therapy", "cell therapy", "biologics", "personalized medicine")),
    (2, ("monoclonal antibodies", "vaccines", "protein therapeutics")),
    (1, ("small molecules", "generics")),
)
MECHANISM_COMPLEXITY = (
    (3, ("gene", "cell", "viral")),
    (2, ("antibody", "protein")),
)
MANUFACTURING_SCORE_BY_LEVEL = {0: 4.5, 1: 4.5, 2: 3.5, 3: 2.0}

REGULATORY_COST_BASE: Dict[RegulatoryPathway, float] = {
    RegulatoryPathway.ORPHAN: 4.5,
    RegulatoryPathway.BREAKTHROUGH: 4.0,
    RegulatoryPathway.FAST_TRACK: 4.0,
    RegulatoryPathway.ACCELERATED: 3.5,
    RegulatoryPathway.STANDARD: 3.0,
}

TIME_TO_MARKET_BASE: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 2.0, S.PHASE_1: 2.5, S.PHASE_2: 3.5,
    S.PHASE_3: 4.0, S.APPROVED: 5.0, S.MARKETED: 5.0,
}

# Addressable market ($B): ≤1, ≤5, ≤20, else
MARKET_SCALE_BUCKETS = ((1, 2.0), (5, 3.0), (20, 4.0), (math.inf, 4.5))
PLATFORM_AREAS = ("gene therapy", "cell therapy", "platform technology")
ORAL_MECHANISMS = ("small molecule", "oral")


class CapitalIntensityPillar(BasePillar):
    pillar_id = Pillar.CAPITAL_INTENSITY
    name = "Capital Intensity"
    description = "Evaluates capital requirements and development costs"
    methodology = (
        "Capital intensity evaluation based on development costs, capital efficiency, "
        "manufacturing complexity, regulatory costs, time to market, and scalability"
    )
    required_fields = ["financials.burnRate", "basicInfo.stage"]
    optional_fields = ["pipeline.programs", "regulatory.clinicalTrials"]

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        errors, warnings = [], []
        if data.financials.burn_rate <= 0:
            errors.append(critical(
                "financials.burnRate",
                "Valid burn rate is required for capital intensity assessment",
            ))
        if data.basic_info.stage in (S.APPROVED, S.MARKETED):
            warnings.append(advisory(
                "basicInfo.stage",
                "Capital intensity assessment is less relevant for approved/marketed products",
                "Consider focusing on commercial capital requirements",
            ))
        if not data.pipeline.programs:
            warnings.append(advisory(
                "pipeline.programs",
                "No pipeline programs for capital allocation analysis",
                "Pipeline information improves capital intensity assessment",
            ))
        if not data.regulatory.clinical_trials and data.basic_info.stage != S.PRECLINICAL:
            warnings.append(advisory(
                "regulatory.clinicalTrials",
                "No clinical trial information for clinical-stage company",
                "Clinical trial data helps estimate development costs",
            ))
        return errors, warnings

    # ------------------------------------------------------------------ #
    # Factors
    # ------------------------------------------------------------------ #

    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._development_cost(data),
            self._capital_efficiency(data),
            self._manufacturing_complexity(data),
            self._regulatory_cost(data),
            self._time_to_market(data, context.evaluation_date),
            self._scalability(data),
        ]

    def _development_cost(self, data: CompanyData) -> ScoringFactor:
        stage = data.basic_info.stage
        score = DEVELOPMENT_COST_BASE[stage]
        if any_matches(data.basic_info.therapeutic_areas, COMPLEX_AREAS):
            score -= 0.5
        programs = data.pipeline.total_programs
        if programs > 3:
            score -= 0.3
        elif programs == 1:
            score += 0.2
        return self.factor(
            "Development Cost",
            FACTOR_WEIGHTS["development_cost"],
            score,
            f"Development cost assessment based on stage ({stage.value}), "
            "therapeutic complexity, and program portfolio size",
        )

    def _capital_efficiency(self, data: CompanyData) -> ScoringFactor:
        fin = data.financials
        programs = max(1, data.pipeline.total_programs)
        burn_per_program = fin.burn_rate / programs
        score = bucket_score(burn_per_program, BURN_PER_PROGRAM_BUCKETS)

        cash_per_program = fin.cash_position / programs
        if cash_per_program > RICH_CASH_PER_PROGRAM:
            score += 0.3
        elif cash_per_program < THIN_CASH_PER_PROGRAM:
            score -= 0.3
        return self.factor(
            "Capital Efficiency",
            FACTOR_WEIGHTS["capital_efficiency"],
            score,
            f"Capital efficiency based on burn rate per program (${burn_per_program:.1f}M/month) "
            "and cash allocation",
        )

    def _manufacturing_complexity(self, data: CompanyData) -> ScoringFactor:
        level = 0
        for area in data.basic_info.therapeutic_areas:
            for area_level, keywords in AREA_COMPLEXITY:
                if matches_any(area, keywords):
                    level = max(level, area_level)
                    break
        for program in data.pipeline.programs:
            for mech_level, keywords in MECHANISM_COMPLEXITY:
                if matches_any(program.mechanism, keywords):
                    level = max(level, mech_level)
                    break
        return self.factor(
            "Manufacturing Complexity",
            FACTOR_WEIGHTS["manufacturing_complexity"],
            MANUFACTURING_SCORE_BY_LEVEL[level],
            "Manufacturing complexity based on therapeutic modality and production requirements",
        )

    def _regulatory_cost(self, data: CompanyData) -> ScoringFactor:
        pathway = data.regulatory.regulatory_strategy.pathway
        trials = data.regulatory.clinical_trials
        score = REGULATORY_COST_BASE[pathway]

        if sum(1 for t in trials if t.phase == S.PHASE_3) > 1:
            score -= 0.5
        active = sum(1 for t in trials if t.status in (TrialStatus.ACTIVE, TrialStatus.RECRUITING))
        if active > 3:
            score -= 0.3
        if trials:
            patients = sum(t.patient_count or 0 for t in trials)
            if patients > 1000:
                score -= 0.4
            elif patients < 100:
                score += 0.2
        return self.factor(
            "Regulatory Cost",
            FACTOR_WEIGHTS["regulatory_cost"],
            score,
            f"Regulatory cost based on pathway ({pathway.value}) and clinical trial requirements",
        )

    def _time_to_market(self, data: CompanyData, as_of: date) -> ScoringFactor:
        score = TIME_TO_MARKET_BASE[data.basic_info.stage]
        timeline = data.regulatory.regulatory_strategy.timeline
        if timeline <= 24:
            score += 0.5
        elif timeline > 60:
            score -= 0.5

        lead = data.pipeline.lead_program
        if lead is not None and any(
            m.status == MilestoneStatus.UPCOMING and m.expected_date.year == as_of.year
            for m in lead.timeline
        ):
            score += 0.3
        return self.factor(
            "Time to Market",
            FACTOR_WEIGHTS["time_to_market"],
            score,
            f"Time to market based on development stage and regulatory timeline ({timeline} months)",
        )

    def _scalability(self, data: CompanyData) -> ScoringFactor:
        score = bucket_score(data.market.addressable_market, MARKET_SCALE_BUCKETS, inclusive=True)
        if any_matches(data.basic_info.therapeutic_areas, PLATFORM_AREAS):
            score += 0.5
        if len({p.indication for p in data.pipeline.programs}) > 2:
            score += 0.2
        if any(matches_any(p.mechanism, ORAL_MECHANISMS) for p in data.pipeline.programs):
            score += 0.3
        return self.factor(
            "Scalability",
            FACTOR_WEIGHTS["scalability"],
            score,
            "Scalability based on market size, platform potential, and manufacturing scalability",
        )

    # ------------------------------------------------------------------ #
    # Quality / warnings
    # ------------------------------------------------------------------ #

    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        quality = self.confidence_calculator.funding_quality(data.financials, context.evaluation_date)
        trials = data.regulatory.clinical_trials
        complete = sum(1 for t in trials if t.patient_count is not None)
        quality *= self.confidence_calculator.record_completeness_factor(complete, len(trials))
        return clamp(quality, 0.0, 1.0)

    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        warnings = []
        fin = data.financials
        if fin.burn_rate > 10:
            warnings.append("High monthly burn rate may indicate capital inefficiency")
        if fin.runway is not None and fin.runway < 12:
            warnings.append("Short funding runway may require immediate capital raising")
        if any_matches(data.basic_info.therapeutic_areas, ("gene therapy", "cell therapy")):
            warnings.append("Complex manufacturing may require significant capital investment")
        if sum(1 for t in data.regulatory.clinical_trials if t.phase == S.PHASE_3) > 1:
            warnings.append("Multiple Phase 3 trials significantly increase capital requirements")
        return warnings

    def summary_suffix(self, raw_score: float) -> str:
        level = threshold_score(raw_score, ((3.5, "Low"), (2.5, "Moderate")), "High")
        return f"{level} capital intensity"

