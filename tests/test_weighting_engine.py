# tests/test_weighting_engine.py
"""
Weighting Engine Tests

Normalization, weighted totals, weight validation, profiles and impact
analysis against hand-built pillar scores.
"""

import math

import pytest

from app.core.exceptions import CalculationError, ConfigurationError
from app.models.enumerations import Pillar, ValidationSeverity
from app.models.scoring import PillarScore
from app.scoring.weighting_engine import DEFAULT_PROFILES, WeightingEngine

P = Pillar


@pytest.fixture
def weighting():
    return WeightingEngine(dominance_threshold=0.5)


@pytest.fixture
def pillar_scores():
    raw = {
        P.ASSET_QUALITY: (4.0, 0.8),
        P.MARKET_OUTLOOK: (3.5, 0.7),
        P.CAPITAL_INTENSITY: (2.5, 0.9),
        P.STRATEGIC_FIT: (4.5, 0.85),
        P.FINANCIAL_READINESS: (3.0, 0.6),
        P.REGULATORY_RISK: (3.8, 0.75),
    }
    return {
        pillar: PillarScore(pillar=pillar, raw_score=score, confidence=confidence)
        for pillar, (score, confidence) in raw.items()
    }


class TestNormalizeWeights:

    def test_sums_to_one(self, weighting):
        normalized = weighting.normalize_weights({P.ASSET_QUALITY: 2.0, P.MARKET_OUTLOOK: 1.0, P.STRATEGIC_FIT: 1.0})
        assert sum(normalized.values()) == pytest.approx(1.0, abs=1e-9)
        assert normalized[P.ASSET_QUALITY] == pytest.approx(0.5)

    def test_accepts_string_keys(self, weighting):
        normalized = weighting.normalize_weights({"asset_quality": 1.0, "regulatory_risk": 3.0})
        assert normalized[P.REGULATORY_RISK] == pytest.approx(0.75)

    @pytest.mark.parametrize(
        "weights",
        [
            {},
            {P.ASSET_QUALITY: 0.0, P.MARKET_OUTLOOK: 0.0},
            {P.ASSET_QUALITY: -0.1, P.MARKET_OUTLOOK: 1.1},
            {P.ASSET_QUALITY: math.nan},
            {P.ASSET_QUALITY: math.inf},
            {"not_a_pillar": 1.0},
        ],
        ids=["empty", "zero-sum", "negative", "nan", "inf", "unknown"],
    )
    def test_rejects_unusable_weights(self, weighting, weights):
        with pytest.raises(ConfigurationError):
            weighting.normalize_weights(weights)


class TestApplyWeights:

    def test_default_weights(self, weighting, pillar_scores):
        result = weighting.apply_weights(pillar_scores, DEFAULT_PROFILES["default"])

        expected = 0.25 * 4.0 + 0.20 * 3.5 + 0.15 * 2.5 + 0.20 * 4.5 + 0.10 * 3.0 + 0.10 * 3.8
        assert result.score == pytest.approx(expected, abs=1e-4)
        assert result.breakdown[P.ASSET_QUALITY] == pytest.approx(1.0)
        assert sum(result.normalized_weights.values()) == pytest.approx(1.0, abs=1e-6)

    def test_confidence_is_weighted_not_plain_mean(self, weighting, pillar_scores):
        weights = {P.CAPITAL_INTENSITY: 0.9, P.FINANCIAL_READINESS: 0.1}
        result = weighting.apply_weights(pillar_scores, weights)
        assert result.confidence == pytest.approx(0.9 * 0.9 + 0.1 * 0.6, abs=1e-4)

    def test_unweighted_pillar_contributes_nothing(self, weighting, pillar_scores):
        result = weighting.apply_weights(pillar_scores, {P.ASSET_QUALITY: 1.0})
        assert result.score == pytest.approx(4.0)
        assert set(result.breakdown) == {P.ASSET_QUALITY}

    def test_weight_without_score_fails(self, weighting, pillar_scores):
        partial = {P.ASSET_QUALITY: pillar_scores[P.ASSET_QUALITY]}
        with pytest.raises(CalculationError):
            weighting.apply_weights(partial, {P.ASSET_QUALITY: 0.5, P.MARKET_OUTLOOK: 0.5})

    def test_total_within_pillar_range(self, weighting, pillar_scores):
        result = weighting.apply_weights(pillar_scores, DEFAULT_PROFILES["aggressive"])
        raw = [s.raw_score for s in pillar_scores.values()]
        assert min(raw) <= result.score <= max(raw)


class TestValidateWeights:

    def test_default_profile_is_clean(self, weighting):
        result = weighting.validate_weights(DEFAULT_PROFILES["default"])
        assert result.is_valid
        assert result.warnings == []

    def test_negative_and_oversized_weights_are_errors(self, weighting):
        weights = dict(DEFAULT_PROFILES["default"])
        weights[P.ASSET_QUALITY] = -0.1
        weights[P.MARKET_OUTLOOK] = 1.2
        result = weighting.validate_weights(weights)
        assert not result.is_valid
        messages = {(e.field, e.message) for e in result.errors}
        assert ("asset_quality", "Weight cannot be negative") in messages
        assert ("market_outlook", "Weight cannot exceed 1.0") in messages

    def test_zero_weight_warning(self, weighting):
        weights = {**DEFAULT_PROFILES["default"], P.ASSET_QUALITY: 0.0}
        result = weighting.validate_weights(weights)
        assert any(
            w.field == "asset_quality" and w.message == "Zero weight will exclude this pillar from scoring"
            for w in result.warnings
        )

    def test_sum_warning(self, weighting):
        weights = {p: 0.2 for p in Pillar}
        result = weighting.validate_weights(weights)
        assert result.is_valid
        assert any(w.field == "total" and w.message == "Weights sum to 1.200 instead of 1.0" for w in result.warnings)

    def test_all_zero_is_critical(self, weighting):
        result = weighting.validate_weights({p: 0.0 for p in Pillar})
        assert not result.is_valid
        assert result.critical_errors[0].field == "total"
        assert result.critical_errors[0].severity == ValidationSeverity.CRITICAL

    def test_dominant_weight_and_spread_warnings(self, weighting):
        weights = {
            P.ASSET_QUALITY: 0.6, P.MARKET_OUTLOOK: 0.1, P.CAPITAL_INTENSITY: 0.1,
            P.STRATEGIC_FIT: 0.1, P.FINANCIAL_READINESS: 0.05, P.REGULATORY_RISK: 0.05,
        }
        result = weighting.validate_weights(weights)
        fields = [w.field for w in result.warnings]
        assert "asset_quality" in fields
        assert "distribution" in fields

    def test_missing_and_unknown_pillars_warn(self, weighting):
        result = weighting.validate_weights({"asset_quality": 0.5, "market_outlook": 0.5, "bogus": 0.1})
        fields = [w.field for w in result.warnings]
        assert "bogus" in fields
        assert "regulatory_risk" in fields
        assert result.is_valid


class TestProfiles:

    def test_builtin_profiles(self, weighting):
        assert weighting.available_profiles() == ["aggressive", "balanced", "conservative", "default", "strategic"]
        for weights in weighting.profiles.values():
            assert sum(weights.values()) == pytest.approx(1.0, abs=1e-9)

    def test_get_profile_is_case_insensitive(self, weighting):
        assert weighting.get_profile("Conservative")[P.FINANCIAL_READINESS] == 0.20

    def test_unknown_profile(self, weighting):
        with pytest.raises(ConfigurationError):
            weighting.get_profile("moonshot")

    def test_save_normalizes_and_delete_removes(self, weighting):
        saved = weighting.save_profile("Custom", {p: 1.0 for p in Pillar})
        assert saved[P.ASSET_QUALITY] == pytest.approx(1.0 / 6.0)
        assert "custom" in weighting.available_profiles()
        assert weighting.delete_profile("custom")
        assert not weighting.delete_profile("custom")

    def test_save_rejects_invalid(self, weighting):
        with pytest.raises(ConfigurationError):
            weighting.save_profile("broken", {p: 0.0 for p in Pillar})

    def test_profiles_are_copies(self, weighting):
        weighting.profiles["default"][P.ASSET_QUALITY] = 0.99
        assert weighting.get_profile("default")[P.ASSET_QUALITY] == 0.25


class TestWeightImpact:

    def test_impact_of_aggressive_profile(self, weighting, pillar_scores):
        impact = weighting.calculate_weight_impact(
            pillar_scores, DEFAULT_PROFILES["default"], DEFAULT_PROFILES["aggressive"]
        )
        assert impact.total_score_difference == pytest.approx(impact.proposed_score - impact.current_score, abs=1e-4)
        assert len(impact.pillar_impacts) == 6
        # market outlook: 0.30 * 3.5 - 0.20 * 3.5 = 0.35
        assert P.MARKET_OUTLOOK in impact.significant_changes

    def test_unchanged_weight_is_not_significant(self, weighting, pillar_scores):
        impact = weighting.calculate_weight_impact(
            pillar_scores, DEFAULT_PROFILES["default"], DEFAULT_PROFILES["conservative"]
        )
        assert P.CAPITAL_INTENSITY not in impact.significant_changes
        assert P.FINANCIAL_READINESS in impact.significant_changes

    def test_identical_weights_have_no_impact(self, weighting, pillar_scores):
        impact = weighting.calculate_weight_impact(
            pillar_scores, DEFAULT_PROFILES["balanced"], DEFAULT_PROFILES["balanced"]
        )
        assert impact.total_score_difference == 0.0
        assert impact.percentage_change == 0.0
        assert impact.significant_changes == []
