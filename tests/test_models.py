# tests/test_models.py

"""
Model Validation Tests - Enumerations, wire aliases and derived fields
"""

import pytest
from datetime import date
from pydantic import ValidationError as PydanticValidationError

from app.models.company import CompanyData, Financials
from app.models.enumerations import DevelopmentStage, Pillar, ValidationSeverity
from app.models.market import BenchmarkData, MarketContext
from app.models.scoring import PillarScore, ScoringConfig, ScoringFactor
from app.models.validation import ValidationError, ValidationResult, ValidationWarning
from tests.conftest import BASE_COMPANY, EVALUATION_DATE, company_payload


# ENUMERATION TESTS


class TestPillarEnum:
    """Tests for Pillar enumeration."""

    def test_all_pillars_exist(self):
        """Test that all 6 pillars are defined in registration order."""
        expected = [
            "asset_quality", "market_outlook", "capital_intensity",
            "strategic_fit", "financial_readiness", "regulatory_risk",
        ]
        assert [p.value for p in Pillar] == expected

    def test_string_keys_hash_like_members(self):
        """Test that plain strings look up Pillar-keyed dicts."""
        weights = {Pillar.ASSET_QUALITY: 0.25}
        assert weights["asset_quality"] == 0.25


class TestDevelopmentStageEnum:

    def test_stage_order(self):
        expected = ["preclinical", "phase1", "phase2", "phase3", "approved", "marketed"]
        assert [s.value for s in DevelopmentStage] == expected


# COMPANY SNAPSHOT TESTS


class TestCompanyData:
    """Tests for CompanyData parsing."""

    def test_parses_camel_case_payload(self, company):
        assert company.basic_info.name == "Acme Therapeutics"
        assert company.basic_info.stage == DevelopmentStage.PHASE_2
        assert company.pipeline.total_programs == 2
        assert company.pipeline.lead_program.name == "ACM-101"
        assert company.market.market_dynamics.growth_rate == 0.09

    def test_dumps_back_to_camel_case(self, company):
        dumped = company.model_dump(by_alias=True, mode="json")
        assert "basicInfo" in dumped
        assert "therapeuticAreas" in dumped["basicInfo"]
        assert dumped["financials"]["lastFunding"]["date"] == "2024-01-15"

    def test_alias_round_trip(self, company):
        restored = CompanyData.model_validate_json(company.model_dump_json(by_alias=True))
        assert restored == company

    def test_accepts_field_names(self):
        financials = Financials(cash_position=10.0, burn_rate=2.0)
        assert financials.runway == 5

    def test_is_frozen(self, company):
        with pytest.raises(PydanticValidationError):
            company.basic_info.name = "Other"

    def test_unknown_stage_rejected(self):
        payload = company_payload(basicInfo={**BASE_COMPANY["basicInfo"], "stage": "phase4"})
        with pytest.raises(PydanticValidationError):
            CompanyData.model_validate(payload)

    def test_missing_section_rejected(self):
        payload = company_payload()
        del payload["financials"]
        with pytest.raises(PydanticValidationError):
            CompanyData.model_validate(payload)


class TestFinancials:
    """Tests for runway derivation and latest funding."""

    def test_runway_derived_from_cash_and_burn(self, company):
        assert company.financials.runway == 30

    def test_explicit_runway_wins(self, make_company):
        company = make_company(financials={"runway": 9})
        assert company.financials.runway == 9

    def test_no_runway_without_positive_burn(self, make_company):
        company = make_company(financials={"burnRate": 0.0})
        assert company.financials.runway is None

    def test_no_runway_when_ratio_overflows(self, make_company):
        company = make_company(financials={"cashPosition": 100.0, "burnRate": 1e-320})
        assert company.financials.runway is None

    @pytest.mark.parametrize("field", ["cashPosition", "burnRate"])
    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_non_finite_amounts_rejected(self, field, value):
        payload = company_payload(financials={field: value})
        with pytest.raises(PydanticValidationError):
            CompanyData.model_validate(payload)

    def test_latest_funding_falls_back_to_history(self):
        financials = Financials.model_validate({
            "cashPosition": 50.0,
            "burnRate": 2.0,
            "fundingHistory": [
                {"type": "seed", "amount": 5.0, "date": "2020-01-01"},
                {"type": "series_a", "amount": 40.0, "date": "2022-06-01"},
            ],
        })
        assert financials.latest_funding.amount == 40.0


# MARKET CONTEXT TESTS


class TestMarketContext:

    def test_default_uses_given_date(self):
        assert MarketContext.default(EVALUATION_DATE).evaluation_date == EVALUATION_DATE

    def test_default_without_date_is_today(self):
        assert MarketContext.default().evaluation_date == date.today()

    def test_benchmarks_match_area_case_insensitively(self):
        context = MarketContext(
            evaluation_date=EVALUATION_DATE,
            benchmark_data=[
                BenchmarkData(therapeutic_area="Oncology", stage="phase2", average_score=3.5),
                BenchmarkData(therapeutic_area="Oncology", stage="phase3", average_score=3.9),
                BenchmarkData(therapeutic_area="Neurology", stage="phase2", average_score=2.1),
            ],
        )
        matches = context.benchmarks_for(["oncology"], DevelopmentStage.PHASE_2)
        assert [b.average_score for b in matches] == [3.5]


# SCORING RECORD TESTS


class TestScoringFactor:

    @pytest.mark.parametrize("raw,expected", [(-1.0, 0.0), (2.34567, 2.3457), (7.5, 5.0)])
    def test_score_is_clamped_and_rounded(self, raw, expected):
        factor = ScoringFactor(name="Test", weight=0.2, score=raw, rationale="test")
        assert factor.score == expected

    def test_weight_out_of_range_rejected(self):
        with pytest.raises(PydanticValidationError):
            ScoringFactor(name="Test", weight=1.5, score=3.0, rationale="test")


class TestPillarScore:

    def test_raw_score_bounds_enforced(self):
        with pytest.raises(PydanticValidationError):
            PillarScore(pillar=Pillar.ASSET_QUALITY, raw_score=5.1, confidence=0.5)

    def test_confidence_bounds_enforced(self):
        with pytest.raises(PydanticValidationError):
            PillarScore(pillar=Pillar.ASSET_QUALITY, raw_score=3.0, confidence=1.2)


class TestScoringConfig:

    def test_weights_accept_wire_names(self):
        config = ScoringConfig.model_validate({"name": "custom", "weights": {"asset_quality": 1.0}})
        assert config.weights == {Pillar.ASSET_QUALITY: 1.0}
        assert config.parameters.confidence_threshold == 0.6

    def test_unknown_pillar_rejected(self):
        with pytest.raises(PydanticValidationError):
            ScoringConfig.model_validate({"weights": {"valuation": 1.0}})


# VALIDATION RESULT TESTS


class TestValidationResult:

    def test_valid_without_errors(self):
        result = ValidationResult.build([], [ValidationWarning(field="x", message="advisory")], 0.8)
        assert result.is_valid
        assert result.critical_errors == []

    def test_any_error_invalidates(self):
        errors = [
            ValidationError(field="a", message="bad"),
            ValidationError(field="b", message="worse", severity=ValidationSeverity.CRITICAL),
        ]
        result = ValidationResult.build(errors, [], 0.5)
        assert not result.is_valid
        assert [e.field for e in result.critical_errors] == ["b"]

    def test_completeness_clamped(self):
        assert ValidationResult.build([], [], 1.4).completeness == 1.0
        assert ValidationResult.build([], [], -0.2).completeness == 0.0

    def test_wire_name_is_is_valid(self):
        dumped = ValidationResult.build([], [], 1.0).model_dump(by_alias=True)
        assert dumped["isValid"] is True
