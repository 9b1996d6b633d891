# tests/test_pillars.py
"""
Pillar Scorer Tests

Contract checks shared by all six pillars, then pillar-specific scenarios.
"""

import pytest

from app.core.exceptions import InvalidDataError, MissingRequiredFieldError
from app.models.enumerations import Pillar, ValidationSeverity
from app.models.market import BenchmarkData, MarketConditions, MarketContext
from app.models.scoring import PillarConfig
from app.scoring.pillars import (
    PILLAR_CLASSES,
    AssetQualityPillar,
    FinancialReadinessPillar,
    MarketOutlookPillar,
    RegulatoryRiskPillar,
    ScoringPillar,
    StrategicFitPillar,
    default_pillars,
)
from tests.conftest import EVALUATION_DATE


def factor_score(score, name):
    return next(f.score for f in score.factors if f.name == name)


# =============================================================================
# SHARED CONTRACT
# =============================================================================

@pytest.mark.parametrize("pillar_cls", PILLAR_CLASSES, ids=lambda c: c.__name__)
class TestPillarContract:
    """Every pillar honors the same output bounds and structure."""

    def test_implements_protocol(self, pillar_cls):
        assert isinstance(pillar_cls(), ScoringPillar)

    def test_score_bounds(self, pillar_cls, company, context):
        score = pillar_cls().calculate_score(company, context)
        assert 0.0 <= score.raw_score <= 5.0
        assert 0.0 <= score.confidence <= 1.0
        assert 0.0 <= score.completeness <= 1.0

    def test_six_factors_with_weights_summing_to_one(self, pillar_cls, company, context):
        score = pillar_cls().calculate_score(company, context)
        assert len(score.factors) == 6
        assert sum(f.weight for f in score.factors) == pytest.approx(1.0)
        assert all(0.0 <= f.score <= 5.0 for f in score.factors)

    def test_factor_order_is_stable(self, pillar_cls, company, context):
        pillar = pillar_cls()
        first = [f.name for f in pillar.calculate_score(company, context).factors]
        second = [f.name for f in pillar.calculate_score(company, context).factors]
        assert first == second

    def test_pillar_id_matches_score(self, pillar_cls, company, context):
        pillar = pillar_cls()
        assert pillar.calculate_score(company, context).pillar == pillar.pillar_id

    def test_pillar_info_uses_configured_weight(self, pillar_cls):
        pillar = pillar_cls(config=PillarConfig(methodology_reliability=0.5, default_weight=0.3))
        info = pillar.pillar_info
        assert info.default_weight == 0.3
        assert info.required_fields == pillar.get_required_fields()

    def test_zero_reliability_means_zero_confidence(self, pillar_cls, company, context):
        pillar = pillar_cls(config=PillarConfig(methodology_reliability=0.0, default_weight=0.2))
        score = pillar.calculate_score(company, context)
        assert score.confidence == 0.0
        assert "Low confidence score due to insufficient data" in score.warnings

    def test_explanation_has_one_entry_per_factor(self, pillar_cls, company, context):
        pillar = pillar_cls()
        score = pillar.calculate_score(company, context)
        explanation = pillar.explain_score(score)
        assert explanation.summary.startswith(f"{pillar.name} scored")
        assert [f.name for f in explanation.factors] == [f.name for f in score.factors]
        assert explanation.limitations


class TestDefaultPillars:

    def test_registration_order(self):
        assert [p.pillar_id for p in default_pillars()] == [
            Pillar.ASSET_QUALITY,
            Pillar.MARKET_OUTLOOK,
            Pillar.CAPITAL_INTENSITY,
            Pillar.STRATEGIC_FIT,
            Pillar.FINANCIAL_READINESS,
            Pillar.REGULATORY_RISK,
        ]

    def test_default_weights_sum_to_one(self):
        assert sum(p.pillar_info.default_weight for p in default_pillars()) == pytest.approx(1.0)


# =============================================================================
# ASSET QUALITY
# =============================================================================

class TestAssetQuality:

    def test_base_company_factors(self, company, context):
        score = AssetQualityPillar().calculate_score(company, context)
        assert factor_score(score, "Pipeline Strength") == pytest.approx(3.8)
        assert factor_score(score, "IP Strength") == pytest.approx(3.5)
        assert factor_score(score, "Indication Size") == pytest.approx(4.0)

    def test_strong_peer_benchmarks_lower_positioning(self, company):
        baseline = MarketContext.default(EVALUATION_DATE)
        crowded = MarketContext(
            evaluation_date=EVALUATION_DATE,
            benchmark_data=[BenchmarkData(therapeutic_area="immunology", stage="phase2", average_score=4.3)],
        )
        pillar = AssetQualityPillar()

        before = factor_score(pillar.calculate_score(company, baseline), "Competitive Positioning")
        after = factor_score(pillar.calculate_score(company, crowded), "Competitive Positioning")

        assert after == pytest.approx(before - 0.2)

    def test_empty_pipeline_is_critical(self, make_company, context):
        company = make_company(pipeline={"programs": []})
        result = AssetQualityPillar().validate_data(company, context.evaluation_date)
        assert not result.is_valid
        assert any(
            e.message == "At least one pipeline program is required for asset quality assessment"
            for e in result.critical_errors
        )

    def test_preclinical_program_without_indication_warns(self, make_company, context):
        company = make_company(pipeline={"programs": [{
            "name": "ACM-001", "stage": "preclinical", "differentiators": ["Novel target"],
        }]})
        result = AssetQualityPillar().validate_data(company, context.evaluation_date)
        assert result.is_valid
        assert any(
            w.message == "Indication not specified for preclinical program: ACM-001"
            for w in result.warnings
        )

    def test_single_asset_warning(self, efficient_preclinical_company, context):
        score = AssetQualityPillar().calculate_score(efficient_preclinical_company, context)
        assert "Single-asset pipeline concentrates development risk" in score.warnings


# =============================================================================
# MARKET OUTLOOK
# =============================================================================

class TestMarketOutlook:

    def test_market_size_bucket(self, company, context):
        score = MarketOutlookPillar().calculate_score(company, context)
        assert factor_score(score, "Market Size") == 4.0

    def test_zero_market_is_a_missing_required_field(self, make_company, context):
        company = make_company(market={"addressableMarket": 0.0})
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            MarketOutlookPillar().calculate_score(company, context)
        assert exc_info.value.field == "market.addressableMarket"
        assert isinstance(exc_info.value, InvalidDataError)

    def test_declining_market_is_not_blocking(self, make_company, context):
        company = make_company(market={"marketDynamics": {"growthRate": -0.2}})
        result = MarketOutlookPillar().validate_data(company, context.evaluation_date)
        assert result.is_valid

    def test_no_competitors_is_advisory(self, make_company, context):
        company = make_company(market={"competitors": []})
        result = MarketOutlookPillar().validate_data(company, context.evaluation_date)
        assert result.is_valid
        assert any(w.message == "No competitor information provided" for w in result.warnings)

    def test_declining_market_warning(self, make_company, context):
        company = make_company(market={"marketDynamics": {"growthRate": -0.05, "reimbursement": "moderate"}})
        score = MarketOutlookPillar().calculate_score(company, context)
        assert "Declining market conditions pose significant risk" in score.warnings


# =============================================================================
# FINANCIAL READINESS
# =============================================================================

class TestFinancialReadiness:

    def test_base_company_factors(self, company, context):
        score = FinancialReadinessPillar().calculate_score(company, context)
        assert factor_score(score, "Cash Position") == 3.0
        assert factor_score(score, "Funding Runway") == 5.0

    def test_critical_runway_warning(self, make_company, context):
        company = make_company(financials={"runway": 3})
        score = FinancialReadinessPillar().calculate_score(company, context)
        assert "Critical: Less than 6 months runway remaining" in score.warnings
        assert "Warning: Less than 12 months runway remaining" not in score.warnings

    def test_constrained_funding_lowers_timing(self, company):
        pillar = FinancialReadinessPillar()
        moderate = MarketContext.default(EVALUATION_DATE)
        constrained = MarketContext(
            evaluation_date=EVALUATION_DATE,
            market_conditions=MarketConditions(funding_environment="constrained"),
        )
        before = factor_score(pillar.calculate_score(company, moderate), "Financing Need Timing")
        after = factor_score(pillar.calculate_score(company, constrained), "Financing Need Timing")
        assert after == pytest.approx(before - 0.3)

    def test_zero_cash_is_critical(self, make_company, context):
        company = make_company(financials={"cashPosition": 0.0})
        result = FinancialReadinessPillar().validate_data(company, context.evaluation_date)
        assert any(
            e.field == "financials.cashPosition" and e.severity == ValidationSeverity.CRITICAL
            for e in result.errors
        )


# =============================================================================
# STRATEGIC FIT / REGULATORY RISK
# =============================================================================

class TestStrategicFit:

    def test_missing_programs_is_critical(self, make_company, context):
        company = make_company(pipeline={"programs": []})
        result = StrategicFitPillar().validate_data(company, context.evaluation_date)
        assert any(
            e.message == "Pipeline programs are required for strategic fit evaluation"
            for e in result.errors
        )

    def test_no_approvals_warning(self, company, context):
        score = StrategicFitPillar().calculate_score(company, context)
        assert "No regulatory approvals may limit immediate strategic value" in score.warnings


class TestRegulatoryRisk:

    def test_high_risk_area_warning(self, make_company, context):
        company = make_company(basicInfo={"therapeuticAreas": ["Neurology"]})
        score = RegulatoryRiskPillar().calculate_score(company, context)
        assert "High-risk therapeutic area may face additional regulatory scrutiny" in score.warnings

    def test_summary_names_risk_level(self, company, context):
        pillar = RegulatoryRiskPillar()
        explanation = pillar.explain_score(pillar.calculate_score(company, context))
        assert explanation.summary.endswith("regulatory risk")
