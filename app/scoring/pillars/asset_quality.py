"""
scoring/pillars/asset_quality.py — Asset Quality Pillar

Strength of the pipeline itself: breadth, maturity, differentiation and the
size of the need it addresses.

Factors (weight):
    Pipeline Strength        0.25   program count buckets + indication diversity
    Development Stage        0.20   most advanced program, late-stage depth
    Competitive Positioning  0.20   lead differentiation, competitors ahead, peer benchmarks
    IP Strength              0.15   proprietary/patent signals, platform, generics
    Indication Size          0.10   addressable market thresholds
    Unmet Medical Need       0.10   high-need areas, drivers, competitive density
"""

from datetime import date
from typing import Dict, List

from app.models.company import CompanyData, Program
from app.models.enumerations import DevelopmentStage, MilestoneStatus, Pillar, RiskLevel
from app.models.market import MarketContext
from app.models.scoring import ScoringFactor
from app.scoring.pillars.base import BasePillar, Issues, advisory, critical
from app.scoring.utils import any_matches, clamp, count_matching, matches_any, threshold_score

S = DevelopmentStage

FACTOR_WEIGHTS: Dict[str, float] = {
    "pipeline_strength": 0.25,
    "development_stage": 0.20,
    "competitive_positioning": 0.20,
    "ip_strength": 0.15,
    "indication_size": 0.10,
    "unmet_need": 0.10,
}

STAGE_ORDER = [S.PRECLINICAL, S.PHASE_1, S.PHASE_2, S.PHASE_3, S.APPROVED, S.MARKETED]

# Program count: 0, 1, 2-3, 4-6, more
PROGRAM_COUNT_THRESHOLDS = ((7, 4.5), (4, 4.0), (2, 3.5), (1, 2.5))

STAGE_MATURITY: Dict[DevelopmentStage, float] = {
    S.PRECLINICAL: 2.0, S.PHASE_1: 2.5, S.PHASE_2: 3.5,
    S.PHASE_3: 4.0, S.APPROVED: 4.5, S.MARKETED: 5.0,
}
SETBACK_STATUSES = (MilestoneStatus.DELAYED, MilestoneStatus.CANCELLED)

# Lead program differentiator count: 3+, 1-2, none
DIFFERENTIATION_THRESHOLDS = ((3, 0.8), (1, 0.4))
UNDIFFERENTIATED_DELTA = -0.5
STRONG_PEER_BENCHMARK = 4.0
WEAK_PEER_BENCHMARK = 2.5

IP_KEYWORDS = ("patent", "proprietary", "exclusive", "first-in-class", "novel")
PLATFORM_KEYWORDS = ("platform",)
GENERIC_KEYWORDS = ("generic", "biosimilar")

# Addressable market ($B)
INDICATION_SIZE_THRESHOLDS = ((10, 4.5), (5, 4.0), (1, 3.5), (0.1, 2.5))
PREMIUM_PRICING_AREAS = ("rare", "orphan")

HIGH_UNMET_NEED_AREAS = ("rare diseases", "oncology", "neurology", "alzheimer", "orphan")
UNMET_NEED_DRIVERS = ("unmet need", "no approved", "lack of treatment")


def _stage_rank(stage: DevelopmentStage) -> int:
    return STAGE_ORDER.index(stage)


def _most_advanced(programs: List[Program]) -> DevelopmentStage:
    return max((p.stage for p in programs), key=_stage_rank)


class AssetQualityPillar(BasePillar):
    pillar_id = Pillar.ASSET_QUALITY
    name = "Asset Quality"
    description = "Evaluates pipeline strength, development stage, and competitive positioning"
    methodology = (
        "Asset quality evaluation based on pipeline strength, development stage, competitive "
        "positioning, IP strength, indication size, and unmet medical need"
    )
    required_fields = ["pipeline.programs", "basicInfo.therapeuticAreas", "basicInfo.stage"]
    optional_fields = [
        "pipeline.leadProgram.differentiators",
        "pipeline.leadProgram.risks",
        "market.competitors",
    ]

    def validate_specific(self, data: CompanyData, as_of: date) -> Issues:
        errors, warnings = [], []
        programs = data.pipeline.programs
        if not programs:
            errors.append(critical(
                "pipeline.programs",
                "At least one pipeline program is required for asset quality assessment",
            ))
        if not data.basic_info.therapeutic_areas:
            errors.append(critical(
                "basicInfo.therapeuticAreas",
                "Therapeutic areas are required for competitive positioning analysis",
            ))
        lead = data.pipeline.lead_program
        if lead is not None and not lead.differentiators:
            warnings.append(advisory(
                "pipeline.leadProgram.differentiators",
                "No differentiators specified for lead program",
                "Consider adding key differentiators to improve competitive positioning assessment",
            ))
        for program in programs:
            if program.stage == S.PRECLINICAL and not program.indication.strip():
                warnings.append(advisory(
                    "pipeline.programs.indication",
                    f"Indication not specified for preclinical program: {program.name}",
                    "Specify target indication for more accurate assessment",
                ))
        return errors, warnings

    def calculate_factors(self, data: CompanyData, context: MarketContext) -> List[ScoringFactor]:
        return [
            self._pipeline_strength(data),
            self._development_stage(data),
            self._competitive_positioning(data, context),
            self._ip_strength(data),
            self._indication_size(data),
            self._unmet_need(data),
        ]

    def _pipeline_strength(self, data: CompanyData) -> ScoringFactor:
        programs = data.pipeline.programs
        count = len(programs)
        score = threshold_score(count, PROGRAM_COUNT_THRESHOLDS, 1.0)
        indications = len({p.indication for p in programs})
        if count > 1 and indications / count >= 0.5:
            score += 0.3
        elif count > 2 and indications == 1:
            score -= 0.3
        return self.factor(
            "Pipeline Strength",
            FACTOR_WEIGHTS["pipeline_strength"],
            score,
            f"Pipeline of {count} programs across {indications} indications",
        )

    def _development_stage(self, data: CompanyData) -> ScoringFactor:
        programs = data.pipeline.programs
        lead_stage = _most_advanced(programs)
        score = STAGE_MATURITY[lead_stage]
        late_stage = sum(1 for p in programs if _stage_rank(p.stage) >= _stage_rank(S.PHASE_2))
        if late_stage >= 2:
            score += 0.2
        if any(m.status in SETBACK_STATUSES for p in programs for m in p.timeline):
            score -= 0.3
        return self.factor(
            "Development Stage",
            FACTOR_WEIGHTS["development_stage"],
            score,
            f"Most advanced program at {lead_stage.value} with {late_stage} programs in Phase II or later",
        )

    def _competitive_positioning(self, data: CompanyData, context: MarketContext) -> ScoringFactor:
        lead = data.pipeline.lead_program
        score = 3.0
        differentiators = len(lead.differentiators) if lead is not None else 0
        score += threshold_score(differentiators, DIFFERENTIATION_THRESHOLDS, UNDIFFERENTIATED_DELTA)

        company_rank = _stage_rank(data.basic_info.stage)
        ahead = sum(1 for c in data.market.competitors if _stage_rank(c.stage) > company_rank)
        if ahead == 0:
            score += 0.3
        elif ahead > 2:
            score -= 0.5

        benchmarks = context.benchmarks_for(data.basic_info.therapeutic_areas, data.basic_info.stage)
        if benchmarks:
            peer_average = sum(b.average_score for b in benchmarks) / len(benchmarks)
            if peer_average >= STRONG_PEER_BENCHMARK:
                score -= 0.2
            elif peer_average <= WEAK_PEER_BENCHMARK:
                score += 0.2
        return self.factor(
            "Competitive Positioning",
            FACTOR_WEIGHTS["competitive_positioning"],
            score,
            f"Lead program has {differentiators} differentiators; "
            f"{ahead} competitors are further advanced",
        )

    def _ip_strength(self, data: CompanyData) -> ScoringFactor:
        programs = data.pipeline.programs
        score = 3.0
        ip_mentions = count_matching((d for p in programs for d in p.differentiators), IP_KEYWORDS)
        if ip_mentions:
            score += 0.5
        if ip_mentions >= 3:
            score += 0.3
        if any(matches_any(p.mechanism, PLATFORM_KEYWORDS) for p in programs):
            score += 0.3
        if any(matches_any(p.mechanism, GENERIC_KEYWORDS) for p in programs) or any_matches(
            data.basic_info.therapeutic_areas, GENERIC_KEYWORDS
        ):
            score -= 0.8
        return self.factor(
            "IP Strength",
            FACTOR_WEIGHTS["ip_strength"],
            score,
            f"IP strength based on {ip_mentions} proprietary differentiators and platform position",
        )

    def _indication_size(self, data: CompanyData) -> ScoringFactor:
        size = data.market.addressable_market
        score = threshold_score(size, INDICATION_SIZE_THRESHOLDS, 1.5)
        if any_matches(data.basic_info.therapeutic_areas, PREMIUM_PRICING_AREAS):
            score += 0.3
        return self.factor(
            "Indication Size",
            FACTOR_WEIGHTS["indication_size"],
            score,
            f"Target indications address a ${size:.1f}B market",
        )

    def _unmet_need(self, data: CompanyData) -> ScoringFactor:
        score = 3.0
        if any_matches(data.basic_info.therapeutic_areas, HIGH_UNMET_NEED_AREAS):
            score += 0.8
        if any_matches(data.market.market_dynamics.drivers, UNMET_NEED_DRIVERS):
            score += 0.4
        competitors = len(data.market.competitors)
        if competitors == 0:
            score += 0.3
        elif competitors > 5:
            score -= 0.5
        return self.factor(
            "Unmet Medical Need",
            FACTOR_WEIGHTS["unmet_need"],
            score,
            "Unmet medical need based on therapeutic area, market drivers, and treatment alternatives",
        )

    def assess_data_quality(self, data: CompanyData, context: MarketContext) -> float:
        programs = data.pipeline.programs
        quality = 1.0
        if programs:
            described = sum(1 for p in programs if p.mechanism.strip() and p.indication.strip())
            quality *= self.confidence_calculator.record_completeness_factor(described, len(programs))
        lead = data.pipeline.lead_program
        if lead is not None and not lead.risks:
            quality -= 0.1
        if lead is not None and not lead.differentiators:
            quality -= 0.1
        return clamp(quality, 0.0, 1.0)

    def specific_warnings(self, data: CompanyData, context: MarketContext) -> List[str]:
        programs = data.pipeline.programs
        warnings = []
        if len(programs) == 1:
            warnings.append("Single-asset pipeline concentrates development risk")
        if any(
            r.probability == RiskLevel.HIGH and r.impact == RiskLevel.HIGH
            for p in programs for r in p.risks
        ):
            warnings.append("High-probability, high-impact program risks identified")
        if len(data.market.competitors) > 5:
            warnings.append("Crowded competitive landscape may limit asset differentiation")
        lead = data.pipeline.lead_program
        if lead is not None and not lead.differentiators:
            warnings.append("Lead program lacks clear differentiation")
        return warnings
