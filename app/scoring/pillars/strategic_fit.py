"""
scoring/pillars/strategic_fit.py — Strategic Fit Pillar

How attractive the company is to a typical large-pharma acquirer or partner.

Factors (weight):
    Therapeutic Alignment   0.25
    Capability Complement   0.20
    Synergy Potential       0.20   3 + 0.4·R&D + 0.3·commercial + 0.2·manufacturing + 0.1·regulatory
    Integration Complexity  0.15
    Geographic Fit          0.10
    Cultural Fit            0.10
"""

from datetime import date
from typing import Dict, List

from app.models.company import CompanyData
from app.models.enumerations import DevelopmentStage, Pillar, RegulatoryPathway, TrialStatus
from app.models.market import MarketContext
from app.models.scoring import ScoringFactor
from app.scoring.pillars.base import BasePillar, Issues, advisory, critical
from app.scoring.utils import any_matches, clamp, count_matching, matches_any, threshold_score

S = DevelopmentStage
P = RegulatoryPathway

FACTOR_WEIGHTS: Dict[str, float] = {
    "therapeutic_alignment": 0.25,
    "capability_complement": 0.20,
    "synergy_potential": 0.20,
    "integration_complexity": 0.15,
    "geographic_fit": 0.10,
    "cultural_fit": 0.10,
}

STRATEGIC_AREAS = (
    "oncology", "immunology", "neurology", "rare diseases", "ophthalmology",
    "dermatology", "respiratory", "cardiovascular", "metabolic", "infectious diseases",
)
ALIGNMENT_THRESHOLDS = ((0.8, 4.5), (0.6, 4.0), (0.4, 3.5), (0.2, 2.5))
HIGH_VALUE_AREAS = ("oncology", "rare diseases", "gene therapy", "immunology")

CAPABILITY_BASE: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 3.5, S.PHASE_1: 4.0, S.PHASE_2: 4.5,
    S.PHASE_3: 4.0, S.APPROVED: 3.5, S.MARKETED: 3.0,
}
PLATFORM_MECHANISMS = ("gene therapy", "cell therapy", "antibody platform", "delivery platform")
SPECIALIZED_AREAS = ("rare diseases", "pediatric", "precision medicine", "biomarkers")

# Synergy component keyword sets
PLATFORM_KEYWORDS = ("platform", "technology", "delivery system")
RD_SYNERGY_AREAS = ("oncology", "immunology", "neurology")
COMMERCIAL_AREAS = ("oncology", "immunology", "dermatology", "ophthalmology")
SPECIALTY_AREAS = ("rare diseases", "oncology", "neurology")
BIOLOGIC_MECHANISMS = ("antibody", "protein")
SMALL_MOLECULE_MECHANISMS = ("small molecule", "oral")
REGULATORY_SYNERGY: Dict[RegulatoryPathway, float] = {
    P.BREAKTHROUGH: 0.5, P.FAST_TRACK: 0.5, P.ORPHAN: 0.5, P.ACCELERATED: 0.3, P.STANDARD: 0.1,
}
SYNERGY_COMPONENT_WEIGHTS = {"rd": 0.4, "commercial": 0.3, "manufacturing": 0.2, "regulatory": 0.1}

INTEGRATION_BASE: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 4.0, S.PHASE_1: 3.5, S.PHASE_2: 3.0,
    S.PHASE_3: 2.5, S.APPROVED: 2.0, S.MARKETED: 1.5,
}

MAJOR_REGIONS = ("US", "EU", "Japan", "China")
# Major regions covered: 0, 1, 2, 3-4
REGION_COVERAGE_THRESHOLDS = ((3, 4.5), (2, 4.0), (1, 3.5))

CUTTING_EDGE_AREAS = ("gene therapy", "cell therapy", "precision medicine", "ai/ml")
CULTURE_STAGE_DELTA: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 0.2, S.PHASE_1: 0.2, S.PHASE_2: 0.1,
    S.PHASE_3: -0.1, S.APPROVED: -0.1, S.MARKETED: -0.1,
}

NICHE_AREAS = ("ultra-rare", "orphan", "pediatric only")
VAGUE_AREAS = ("other", "general")


class StrategicFitPillar(BasePillar):
    pillar_id = Pillar.STRATEGIC_FIT
    name = "Strategic Fit"
    description = "Assesses strategic alignment with potential acquirers or partners"
    methodology = (
        "Strategic fit evaluation based on therapeutic alignment, capability complement, "
        "synergy potential, integration complexity, geographic fit, and cultural alignment"
    )
    required_fields = ["basicInfo.therapeuticAreas", "pipeline.programs"]
    optional_fields = ["market.competitors", "regulatory.approvals"]

    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        errors, warnings = [], []
        if not data.basic_info.therapeutic_areas:
            errors.append(critical(
                "basicInfo.therapeuticAreas",
                "Therapeutic areas are required for strategic fit assessment",
            ))
        if not data.pipeline.programs:
            errors.append(critical(
                "pipeline.programs",
                "Pipeline programs are required for strategic fit evaluation",
            ))
        if not data.market.competitors:
            warnings.append(advisory(
                "market.competitors",
                "No competitor data available",
                "Add competitor information for better strategic positioning analysis",
            ))
        if not data.regulatory.approvals and data.basic_info.stage != S.PRECLINICAL:
            warnings.append(advisory(
                "regulatory.approvals",
                "No regulatory approvals data for advanced-stage company",
                "Add regulatory milestone information for better strategic assessment",
            ))
        return errors, warnings

    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._therapeutic_alignment(data),
            self._capability_complement(data),
            self._synergy_potential(data),
            self._integration_complexity(data),
            self._geographic_fit(data),
            self._cultural_fit(data),
        ]

    def _therapeutic_alignment(self, data: CompanyData) -> ScoringFactor:
        areas = data.basic_info.therapeutic_areas
        aligned = count_matching(areas, STRATEGIC_AREAS)
        ratio = aligned / max(1, len(areas))
        score = threshold_score(ratio, ALIGNMENT_THRESHOLDS, 2.0)
        if any_matches(areas, HIGH_VALUE_AREAS):
            score += 0.3
        indications = len({p.indication for p in data.pipeline.programs})
        if indications == 1:
            score += 0.2
        elif indications > 5:
            score -= 0.2
        return self.factor(
            "Therapeutic Alignment",
            FACTOR_WEIGHTS["therapeutic_alignment"],
            score,
            f"Therapeutic alignment based on strategic area coverage ({aligned}/{len(areas)}) "
            "and focus on high-value indications",
        )

    def _capability_complement(self, data: CompanyData) -> ScoringFactor:
        programs = data.pipeline.programs
        score = CAPABILITY_BASE[data.basic_info.stage]
        if any(matches_any(p.mechanism, PLATFORM_MECHANISMS) for p in programs):
            score += 0.4
        if len({p.mechanism for p in programs}) > 2:
            score += 0.2
        if any_matches(data.basic_info.therapeutic_areas, SPECIALIZED_AREAS):
            score += 0.3
        return self.factor(
            "Capability Complement",
            FACTOR_WEIGHTS["capability_complement"],
            score,
            "Capability complement assessment based on development stage, platform potential, "
            "mechanism diversity, and specialized expertise",
        )

    def _synergy_potential(self, data: CompanyData) -> ScoringFactor:
        components = {
            "rd": self._rd_synergy(data),
            "commercial": self._commercial_synergy(data),
            "manufacturing": self._manufacturing_synergy(data),
            "regulatory": self._regulatory_synergy(data),
        }
        score = 3.0 + sum(components[k] * w for k, w in SYNERGY_COMPONENT_WEIGHTS.items())
        return self.factor(
            "Synergy Potential",
            FACTOR_WEIGHTS["synergy_potential"],
            score,
            "Synergy potential based on R&D, commercial, manufacturing, and regulatory "
            "alignment opportunities",
        )

    @staticmethod
    def _rd_synergy(data: CompanyData) -> float:
        programs = data.pipeline.programs
        synergy = 0.0
        if len({p.mechanism for p in programs}) > 1:
            synergy += 0.3
        if any(matches_any(p.mechanism, PLATFORM_KEYWORDS) for p in programs):
            synergy += 0.4
        if any_matches(data.basic_info.therapeutic_areas, RD_SYNERGY_AREAS):
            synergy += 0.3
        return min(1.0, synergy)

    @staticmethod
    def _commercial_synergy(data: CompanyData) -> float:
        areas = data.basic_info.therapeutic_areas
        synergy = 0.0
        if any_matches(areas, COMMERCIAL_AREAS):
            synergy += 0.4
        if len(data.market.competitors) > 2:
            synergy += 0.3
        if any_matches(areas, SPECIALTY_AREAS):
            synergy += 0.3
        return min(1.0, synergy)

    @staticmethod
    def _manufacturing_synergy(data: CompanyData) -> float:
        mechanisms = [p.mechanism for p in data.pipeline.programs]
        synergy = 0.0
        if count_matching(mechanisms, BIOLOGIC_MECHANISMS) > 1:
            synergy += 0.4
        small_molecules = count_matching(mechanisms, SMALL_MOLECULE_MECHANISMS)
        if small_molecules > 1:
            synergy += 0.3
        if small_molecules:
            synergy += 0.3
        return min(1.0, synergy)

    @staticmethod
    def _regulatory_synergy(data: CompanyData) -> float:
        synergy = REGULATORY_SYNERGY[data.regulatory.regulatory_strategy.pathway]
        if data.regulatory.approvals:
            synergy += 0.3
        return min(1.0, synergy)

    def _integration_complexity(self, data: CompanyData) -> ScoringFactor:
        trials = data.regulatory.clinical_trials
        score = INTEGRATION_BASE[data.basic_info.stage]
        active = sum(1 for t in trials if t.status in (TrialStatus.ACTIVE, TrialStatus.RECRUITING))
        if active > 3:
            score -= 0.5
        elif active == 0:
            score += 0.3
        programs = data.pipeline.total_programs
        if programs > 5:
            score -= 0.3
        elif programs == 1:
            score += 0.2
        if any((t.patient_count or 0) > 500 for t in trials):
            score -= 0.2
        return self.factor(
            "Integration Complexity",
            FACTOR_WEIGHTS["integration_complexity"],
            score,
            f"Integration complexity based on development stage, active trials ({active}), "
            "portfolio size, and operational scope",
        )

    def _geographic_fit(self, data: CompanyData) -> ScoringFactor:
        regions = {a.region for a in data.regulatory.approvals}
        covered = sum(1 for r in MAJOR_REGIONS if r in regions)
        score = threshold_score(covered, REGION_COVERAGE_THRESHOLDS, 3.0)
        if any((t.patient_count or 0) > 300 for t in data.regulatory.clinical_trials):
            score += 0.2
        if "US" in regions or "United States" in regions:
            score += 0.2
        return self.factor(
            "Geographic Fit",
            FACTOR_WEIGHTS["geographic_fit"],
            score,
            f"Geographic fit based on regulatory presence in {covered} major regions "
            "and global clinical experience",
        )

    def _cultural_fit(self, data: CompanyData) -> ScoringFactor:
        programs = data.pipeline.programs
        innovation = min(4.5, 3.0 + 0.2 * len({p.mechanism for p in programs}))
        score = (3.5 + innovation) / 2
        score += CULTURE_STAGE_DELTA[data.basic_info.stage]
        if any(p.differentiators for p in programs):
            score += 0.2
        if any_matches(data.basic_info.therapeutic_areas, CUTTING_EDGE_AREAS):
            score += 0.3
        return self.factor(
            "Cultural Fit",
            FACTOR_WEIGHTS["cultural_fit"],
            score,
            "Cultural fit assessment based on innovation profile, risk tolerance, scientific "
            "rigor, and therapeutic focus",
        )

    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        quality = 1.0
        if any_matches(data.basic_info.therapeutic_areas, VAGUE_AREAS):
            quality -= 0.2
        programs = data.pipeline.programs
        if programs:
            quality *= sum(1 for p in programs if p.differentiators) / len(programs)
        competitors = data.market.competitors
        if competitors:
            with_strengths = sum(1 for c in competitors if c.strengths) / len(competitors)
            quality *= 0.8 + 0.2 * with_strengths
        return clamp(quality, 0.0, 1.0)

    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        warnings = []
        programs = data.pipeline.programs
        if any_matches(data.basic_info.therapeutic_areas, NICHE_AREAS):
            warnings.append("Niche therapeutic focus may limit strategic appeal to some acquirers")
        if len(programs) == 1:
            warnings.append("Single program dependency increases strategic risk")
        if data.basic_info.stage == S.PRECLINICAL and len(programs) < 2:
            warnings.append("Early-stage single asset may have limited strategic value")
        active = sum(
            1 for t in data.regulatory.clinical_trials
            if t.status in (TrialStatus.ACTIVE, TrialStatus.RECRUITING)
        )
        if active > 5:
            warnings.append("Multiple active trials may complicate integration planning")
        if not data.regulatory.approvals:
            warnings.append("No regulatory approvals may limit immediate strategic value")
        return warnings
