"""
scoring/pillars/regulatory_risk.py — Regulatory Risk Pillar

Likelihood and cost of getting the pipeline through regulators.
Higher score = lower regulatory risk.

Factors (weight):
    Pathway Complexity    0.25
    Clinical Risk         0.20
    Regulatory Precedent  0.20
    Safety Profile        0.15
    Manufacturing Risk    0.10
    Timeline Risk         0.10
"""

import math
from datetime import date
from typing import Dict, List, Tuple

from app.models.company import CompanyData
from app.models.enumerations import (
    ApprovalType,
    DevelopmentStage,
    Pillar,
    RegulatoryPathway,
    TrialStatus,
)
from app.models.market import MarketContext
from app.models.scoring import ScoringFactor
from app.scoring.pillars.base import BasePillar, Issues, advisory, critical
from app.scoring.utils import (
    any_matches,
    bucket_score,
    clamp,
    count_matching,
    first_keyword_delta,
    matches_any,
    threshold_score,
)

S = DevelopmentStage
P = RegulatoryPathway

FACTOR_WEIGHTS: Dict[str, float] = {
    "pathway_complexity": 0.25,
    "clinical_risk": 0.20,
    "regulatory_precedent": 0.20,
    "safety_profile": 0.15,
    "manufacturing_risk": 0.10,
    "timeline_risk": 0.10,
}

# --- Pathway complexity ---------------------------------------------------
PATHWAY_BASE: Dict[RegulatoryPathway, float] = {
    P.ORPHAN: 4.5, P.BREAKTHROUGH: 4.2, P.FAST_TRACK: 4.0, P.ACCELERATED: 3.8, P.STANDARD: 3.0,
}
# First matching keyword per therapeutic area wins
AREA_COMPLEXITY_DELTAS: Tuple[Tuple[str, float], ...] = (
    ("gene therapy", -0.8),
    ("cell therapy", -0.7),
    ("neurology", -0.5),
    ("psychiatry", -0.5),
    ("cardiovascular", -0.3),
    ("oncology", -0.2),
    ("rare diseases", 0.3),
    ("infectious diseases", 0.2),
    ("dermatology", 0.3),
)
STAGE_PATHWAY_DELTA: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: -0.2, S.PHASE_1: 0.1, S.PHASE_2: 0.2, S.PHASE_3: 0.3,
}
APPROVED_STAGE_SCORE = 4.5

# --- Clinical risk ----------------------------------------------------------
CLINICAL_BASE: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 3.5, S.PHASE_1: 3.0, S.PHASE_2: 2.5,
    S.PHASE_3: 2.0, S.APPROVED: 4.5, S.MARKETED: 4.5,
}
# Total enrolled patients: ≤100, ≤500, ≤1500, more
PATIENT_TOTAL_DELTAS = ((100, 0.2), (500, 0.1), (1500, -0.1), (math.inf, -0.3))
HARD_ENDPOINT_AREAS = ("neurology", "psychiatry", "alzheimer", "depression")

# --- Regulatory precedent ---------------------------------------------------
ESTABLISHED_AREAS = ("oncology", "cardiovascular", "diabetes", "infectious diseases", "dermatology")
EMERGING_AREAS = ("gene therapy", "cell therapy", "digital therapeutics", "microbiome")
CHALLENGING_AREAS = ("neurology", "psychiatry", "alzheimer", "pain")
ESTABLISHED_MECHANISMS = ("small molecule", "monoclonal antibody", "vaccine")
NOVEL_MECHANISMS = ("gene therapy", "cell therapy", "rna therapy", "crispr")
EXPEDITED_APPROVALS = (ApprovalType.BREAKTHROUGH, ApprovalType.FAST_TRACK, ApprovalType.CONDITIONAL)
MATURE_AREAS = ("oncology", "cardiovascular", "diabetes")

# --- Safety profile ---------------------------------------------------------
SAFETY_BASE = 3.5
AREA_SAFETY = (
    (("gene therapy", "cell therapy", "immunotherapy", "neurology"), -0.4),
    (("oncology", "cardiovascular", "respiratory"), -0.1),
    (("dermatology", "ophthalmology", "infectious diseases"), 0.2),
)
MECHANISM_SAFETY = (
    (("immunosuppressive", "cytotoxic", "gene editing", "viral vector"), -0.3),
    (("monoclonal antibody", "protein therapy", "hormone therapy"), -0.1),
    (("topical", "oral small molecule", "vaccine"), 0.2),
)
VULNERABLE_POPULATIONS = ("pediatric", "elderly", "immunocompromised", "pregnant")
COMBINATION_KEYWORDS = ("combination", "plus")

# --- Manufacturing risk -----------------------------------------------------
MANUFACTURING_BASE = 3.5
MECHANISM_MANUFACTURING = (
    (("gene therapy", "cell therapy", "viral vector", "personalized medicine"), -0.4),
    (("monoclonal antibody", "protein therapy", "biologics"), -0.1),
    (("small molecule", "oral", "topical"), 0.2),
)
COMPLEX_MANUFACTURING_AREAS = ("gene therapy", "cell therapy", "regenerative medicine")
SCALE_UP_KEYWORDS = ("autologous", "personalized", "fresh", "living")
SUPPLY_CHAIN_KEYWORDS = ("cold chain", "cryopreservation", "short shelf life")

# --- Timeline risk ----------------------------------------------------------
# Regulatory timeline (months): ≤24, ≤48, ≤72, ≤96, more
TIMELINE_BUCKETS = ((24, 4.5), (48, 4.0), (72, 3.0), (96, 2.5), (math.inf, 2.0))
EXPECTED_TIMELINE: Dict[DevelopmentStage, Tuple[int, int]] = {
    S.PRECLINICAL: (60, 120), S.PHASE_1: (48, 84), S.PHASE_2: (36, 60),
    S.PHASE_3: (24, 48), S.APPROVED: (0, 12), S.MARKETED: (0, 6),
}
PATHWAY_TIMELINE_DELTA: Dict[RegulatoryPathway, float] = {
    P.BREAKTHROUGH: 0.3, P.FAST_TRACK: 0.3, P.ACCELERATED: 0.2, P.ORPHAN: 0.1, P.STANDARD: 0.0,
}

# --- Warnings ---------------------------------------------------------------
HIGH_RISK_AREAS = ("gene therapy", "cell therapy", "neurology", "psychiatry")
NOVEL_MECHANISM_WARNING = ("crispr", "gene editing", "rna therapy", "viral vector")
COMPLEX_MANUFACTURING_MECHANISMS = ("gene therapy", "cell therapy", "personalized")
# Timelines shorter than this are optimistic for the stage
OPTIMISTIC_TIMELINE: Dict[DevelopmentStage, int] = {S.PRECLINICAL: 48, S.PHASE_1: 36, S.PHASE_2: 24}

CLINICAL_STAGES = (S.PHASE_1, S.PHASE_2, S.PHASE_3)


def _keyword_group_delta(text: str, groups) -> float:
    """Delta of the first keyword group ``text`` matches, else 0."""
    for keywords, delta in groups:
        if matches_any(text, keywords):
            return delta
    return 0.0


class RegulatoryRiskPillar(BasePillar):
    pillar_id = Pillar.REGULATORY_RISK
    name = "Regulatory Risk"
    description = "Evaluates regulatory pathway and approval risks"
    methodology = (
        "Regulatory risk evaluation based on pathway complexity, clinical risk, regulatory "
        "precedent, safety profile, manufacturing risk, and timeline risk "
        "(higher score indicates lower risk)"
    )
    required_fields = ["basicInfo.stage", "basicInfo.therapeuticAreas"]
    optional_fields = ["regulatory.approvals", "regulatory.clinicalTrials", "regulatory.regulatoryStrategy"]

    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        errors, warnings = [], []
        stage = data.basic_info.stage
        if stage == S.MARKETED:
            warnings.append(advisory(
                "basicInfo.stage",
                "Regulatory risk assessment is less relevant for marketed products",
                "Consider post-market regulatory risks and lifecycle management",
            ))
        if not data.basic_info.therapeutic_areas:
            errors.append(critical(
                "basicInfo.therapeuticAreas",
                "Therapeutic areas are required for regulatory risk assessment",
            ))
        if stage in CLINICAL_STAGES and not data.regulatory.clinical_trials:
            warnings.append(advisory(
                "regulatory.clinicalTrials",
                "No clinical trial data for development-stage company",
                "Add clinical trial information for more accurate regulatory risk assessment",
            ))
        if not data.regulatory.regulatory_strategy.risks:
            warnings.append(advisory(
                "regulatory.regulatoryStrategy.risks",
                "No regulatory risks identified in strategy",
                "Consider adding known regulatory risks and challenges",
            ))
        return errors, warnings

    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._pathway_complexity(data),
            self._clinical_risk(data),
            self._regulatory_precedent(data),
            self._safety_profile(data),
            self._manufacturing_risk(data),
            self._timeline_risk(data, context.evaluation_date),
        ]

    def _pathway_complexity(self, data: CompanyData) -> ScoringFactor:
        pathway = data.regulatory.regulatory_strategy.pathway
        stage = data.basic_info.stage
        score = PATHWAY_BASE[pathway]
        for area in data.basic_info.therapeutic_areas:
            score += first_keyword_delta(area, AREA_COMPLEXITY_DELTAS) or 0.0
        if stage in (S.APPROVED, S.MARKETED):
            score = APPROVED_STAGE_SCORE
        else:
            score += STAGE_PATHWAY_DELTA[stage]
        return self.factor(
            "Pathway Complexity",
            FACTOR_WEIGHTS["pathway_complexity"],
            score,
            f"Pathway complexity assessment based on regulatory pathway ({pathway.value}), "
            "therapeutic area complexity, and development stage",
        )

    def _clinical_risk(self, data: CompanyData) -> ScoringFactor:
        trials = data.regulatory.clinical_trials
        score = CLINICAL_BASE[data.basic_info.stage]
        if sum(1 for t in trials if t.phase == S.PHASE_3) > 1:
            score -= 0.5
        if sum(1 for t in trials if t.phase == S.PHASE_2) > 2:
            score -= 0.3
        if trials:
            patients = sum(t.patient_count or 0 for t in trials)
            score += bucket_score(patients, PATIENT_TOTAL_DELTAS, inclusive=True)
        if any(t.status in (TrialStatus.SUSPENDED, TrialStatus.TERMINATED) for t in trials):
            score -= 0.4
        if any_matches(data.basic_info.therapeutic_areas, HARD_ENDPOINT_AREAS):
            score -= 0.3
        return self.factor(
            "Clinical Risk",
            FACTOR_WEIGHTS["clinical_risk"],
            score,
            f"Clinical risk based on development stage, trial complexity ({len(trials)} trials), "
            "patient population size, and endpoint difficulty",
        )

    def _regulatory_precedent(self, data: CompanyData) -> ScoringFactor:
        areas = data.basic_info.therapeutic_areas
        score = 3.0
        for area in areas:
            if matches_any(area, ESTABLISHED_AREAS):
                score += 0.3
            elif matches_any(area, EMERGING_AREAS):
                score -= 0.4
            elif matches_any(area, CHALLENGING_AREAS):
                score -= 0.2
        for program in data.pipeline.programs:
            if matches_any(program.mechanism, ESTABLISHED_MECHANISMS):
                score += 0.2
            elif matches_any(program.mechanism, NOVEL_MECHANISMS):
                score -= 0.3
        approvals = data.regulatory.approvals
        if approvals:
            score += 0.4
            if any(a.type in EXPEDITED_APPROVALS for a in approvals):
                score += 0.2
        if any_matches(areas, MATURE_AREAS):
            score += 0.2
        return self.factor(
            "Regulatory Precedent",
            FACTOR_WEIGHTS["regulatory_precedent"],
            score,
            "Regulatory precedent assessment based on therapeutic area maturity, mechanism "
            "precedent, company approval history, and competitive landscape",
        )

    def _safety_profile(self, data: CompanyData) -> ScoringFactor:
        score = SAFETY_BASE
        for area in data.basic_info.therapeutic_areas:
            score += _keyword_group_delta(area, AREA_SAFETY)
        programs = data.pipeline.programs
        for program in programs:
            score += _keyword_group_delta(program.mechanism, MECHANISM_SAFETY)
        trials = data.regulatory.clinical_trials
        if data.basic_info.stage != S.PRECLINICAL:
            if any(t.status == TrialStatus.COMPLETED for t in trials):
                score += 0.3
            if any(t.status == TrialStatus.SUSPENDED for t in trials):
                score -= 0.5
        if any(matches_any(p.indication, VULNERABLE_POPULATIONS) for p in programs):
            score -= 0.2
        if any(matches_any(p.mechanism, COMBINATION_KEYWORDS) for p in programs):
            score -= 0.2
        return self.factor(
            "Safety Profile",
            FACTOR_WEIGHTS["safety_profile"],
            score,
            "Safety profile assessment based on therapeutic area risks, mechanism safety, "
            "clinical experience, and patient population considerations",
        )

    def _manufacturing_risk(self, data: CompanyData) -> ScoringFactor:
        score = MANUFACTURING_BASE
        programs = data.pipeline.programs
        for program in programs:
            score += _keyword_group_delta(program.mechanism, MECHANISM_MANUFACTURING)
        if any_matches(data.basic_info.therapeutic_areas, COMPLEX_MANUFACTURING_AREAS):
            score -= 0.3
        if any(
            matches_any(p.mechanism, SCALE_UP_KEYWORDS) or matches_any(p.indication, SCALE_UP_KEYWORDS)
            for p in programs
        ):
            score -= 0.3
        if any(matches_any(p.mechanism, SUPPLY_CHAIN_KEYWORDS) for p in programs):
            score -= 0.2
        return self.factor(
            "Manufacturing Risk",
            FACTOR_WEIGHTS["manufacturing_risk"],
            score,
            "Manufacturing risk assessment based on production complexity, scale-up challenges, "
            "and supply chain requirements",
        )

    def _timeline_risk(self, data: CompanyData, as_of: date) -> ScoringFactor:
        strategy = data.regulatory.regulatory_strategy
        timeline = strategy.timeline
        score = bucket_score(timeline, TIMELINE_BUCKETS, inclusive=True)

        low, high = EXPECTED_TIMELINE[data.basic_info.stage]
        if low <= timeline <= high:
            score += 0.2
        elif timeline > high:
            score -= 0.3
        else:
            score -= 0.1

        trials = data.regulatory.clinical_trials
        if any(
            t.expected_completion is not None
            and t.expected_completion < as_of
            and t.status != TrialStatus.COMPLETED
            for t in trials
        ):
            score -= 0.4
        if any((t.patient_count or 0) > 500 for t in trials):
            score -= 0.2
        if any_matches(data.basic_info.therapeutic_areas, ("rare", "orphan")):
            score -= 0.1
        score += PATHWAY_TIMELINE_DELTA[strategy.pathway]
        return self.factor(
            "Timeline Risk",
            FACTOR_WEIGHTS["timeline_risk"],
            score,
            f"Timeline risk assessment based on regulatory timeline ({timeline} months), "
            "development stage consistency, trial execution history, and pathway advantages",
        )

    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        strategy = data.regulatory.regulatory_strategy
        quality = 1.0
        if not strategy.risks:
            quality -= 0.2
        if not strategy.mitigations:
            quality -= 0.1
        trials = data.regulatory.clinical_trials
        if trials:
            dated = sum(1 for t in trials if t.start_date is not None and t.expected_completion is not None)
            quality *= 0.7 + 0.3 * self.confidence_calculator.record_completeness_factor(dated, len(trials))
        if strategy.timeline <= 0 or strategy.timeline > 200:
            quality -= 0.3
        return clamp(quality, 0.0, 1.0)

    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        warnings = []
        areas = data.basic_info.therapeutic_areas
        programs = data.pipeline.programs
        stage = data.basic_info.stage
        timeline = data.regulatory.regulatory_strategy.timeline
        if any_matches(areas, HIGH_RISK_AREAS):
            warnings.append("High-risk therapeutic area may face additional regulatory scrutiny")
        if count_matching((p.mechanism for p in programs), NOVEL_MECHANISM_WARNING):
            warnings.append("Novel mechanism may require additional regulatory guidance and longer review times")
        if any(t.status == TrialStatus.SUSPENDED for t in data.regulatory.clinical_trials):
            warnings.append("Suspended clinical trials may indicate safety or efficacy concerns")
        if stage in OPTIMISTIC_TIMELINE and timeline < OPTIMISTIC_TIMELINE[stage]:
            warnings.append("Regulatory timeline may be optimistic for current development stage")
        if count_matching((p.mechanism for p in programs), COMPLEX_MANUFACTURING_MECHANISMS):
            warnings.append("Complex manufacturing may require extensive regulatory oversight and validation")
        if len({p.indication for p in programs}) > 3:
            warnings.append(
                "Multiple indications may require separate regulatory submissions and increase complexity"
            )
        return warnings

    def summary_suffix(self, raw_score: float) -> str:
        level = threshold_score(raw_score, ((4.0, "Low"), (3.0, "Moderate")), "High")
        return f"{level} regulatory risk"
