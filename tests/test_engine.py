# tests/test_engine.py
"""
Scoring Engine Tests

End-to-end evaluation, configuration failures, concurrent fan-out, batch
evaluation and reporting helpers.
"""

import asyncio
import threading

import pytest

from app.core.exceptions import CalculationError, ConfigurationError, InvalidDataError
from app.models.enumerations import InvestmentRecommendation, Pillar, RiskLevel
from app.models.scoring import ConfidenceMetrics, PillarInfo, PillarScore, ScoreExplanation, ScoringConfig
from app.models.validation import ValidationResult
from app.scoring.engine import ResultSink, ScoringEngine
from app.scoring.pillars import AssetQualityPillar, MarketOutlookPillar, ScoringPillar, default_pillars


class RecordingSink:
    def __init__(self):
        self.saved = []

    def save_scoring_result(self, result):
        self.saved.append(result)


class ExplodingPillar(MarketOutlookPillar):
    """Market outlook scorer whose factor step always fails."""

    def calculate_factors(self, data, context):
        raise CalculationError("factor table unavailable")


class BlockedPillar(AssetQualityPillar):
    """Asset quality scorer that holds its worker thread until released."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()
        self.finished = threading.Event()

    def calculate_score(self, data, context):
        self.release.wait(timeout=5)
        try:
            return super().calculate_score(data, context)
        finally:
            self.finished.set()


class ThreadRecordingPillar(AssetQualityPillar):
    def __init__(self):
        super().__init__()
        self.validation_threads = []

    def validate_data(self, data, as_of=None):
        self.validation_threads.append(threading.get_ident())
        return super().validate_data(data, as_of)


class FixedPillar:
    """Market outlook stand-in that satisfies ScoringPillar without BasePillar."""

    pillar_id = Pillar.MARKET_OUTLOOK

    @property
    def pillar_info(self):
        return PillarInfo(name="Fixed", description="Constant score", default_weight=0.2)

    def calculate_score(self, data, context):
        return PillarScore(pillar=self.pillar_id, raw_score=3.0, confidence=0.8)

    def get_required_fields(self):
        return []

    def validate_data(self, data, as_of=None):
        return ValidationResult.build([], [], 1.0)

    def explain_score(self, score):
        return ScoreExplanation(summary="Fixed scored 3.0/5.0", methodology="constant")


def confidence(overall, completeness=0.9):
    return ConfidenceMetrics(
        overall=overall, data_completeness=completeness, model_accuracy=0.85, comparable_quality=0.3
    )


def pillar_score(pillar, raw, conf=0.8):
    return PillarScore(pillar=pillar, raw_score=raw, confidence=conf)


# =============================================================================
# EVALUATION
# =============================================================================

class TestEvaluateCompany:

    def test_full_result(self, engine, company, context):
        result = engine.evaluate_company(company, context)

        assert result.company_id == company.id
        assert result.company_name == "Acme Therapeutics"
        assert list(result.pillar_scores) == list(Pillar)
        assert 0.0 <= result.overall_score <= 5.0
        assert result.overall_score == result.weighted_scores.score
        assert result.config_name == "default"
        assert result.evaluation_date == context.evaluation_date
        assert result.recommendations

    def test_overall_between_pillar_extremes(self, engine, company, context):
        result = engine.evaluate_company(company, context)
        raw = [s.raw_score for s in result.pillar_scores.values()]
        assert min(raw) <= result.overall_score <= max(raw)

    def test_idempotent_including_json(self, engine, company, context):
        first = engine.evaluate_company(company, context)
        second = engine.evaluate_company(company, context)

        assert first == second
        assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)

    def test_warnings_are_deduplicated(self, engine, company, context):
        result = engine.evaluate_company(company, context)
        assert len(result.warnings) == len(set(result.warnings))

    def test_overall_confidence_is_weighted(self, engine, company, context):
        result = engine.evaluate_company(company, context)
        weights = engine.weighting_engine.normalize_weights(engine.default_config().weights)
        expected = sum(weights[p] * s.confidence for p, s in result.pillar_scores.items())
        assert result.overall_confidence == pytest.approx(expected, abs=1e-4)

    def test_zero_burn_rate_is_invalid(self, engine, make_company, context):
        company = make_company(financials={"burnRate": 0.0})

        with pytest.raises(InvalidDataError) as exc_info:
            engine.evaluate_company(company, context)

        assert any(e.field == "financials.burnRate" for e in exc_info.value.errors)

    def test_subset_config_runs_only_weighted_pillars(self, engine, company, context):
        config = ScoringConfig(name="financial", weights={Pillar.FINANCIAL_READINESS: 1.0, Pillar.MARKET_OUTLOOK: 1.0})

        result = engine.evaluate_company(company, context, config)

        assert set(result.pillar_scores) == {Pillar.MARKET_OUTLOOK, Pillar.FINANCIAL_READINESS}
        assert result.config_name == "financial"

    def test_result_sink_receives_result(self, company, context):
        sink = RecordingSink()
        assert isinstance(sink, ResultSink)
        engine = ScoringEngine(result_sink=sink)

        result = engine.evaluate_company(company, context)

        assert sink.saved == [result]

    def test_accepts_any_scoring_pillar(self, company, context):
        fixed = FixedPillar()
        assert isinstance(fixed, ScoringPillar)
        pillars = [fixed if p.pillar_id == Pillar.MARKET_OUTLOOK else p for p in default_pillars()]
        engine = ScoringEngine(pillars=pillars)

        result = engine.evaluate_company(company, context)

        assert result.pillar_scores[Pillar.MARKET_OUTLOOK].raw_score == 3.0
        assert engine.get_pillar_insights(result)[Pillar.MARKET_OUTLOOK] == "Fixed scored 3.0/5.0"


class TestConfigurationErrors:

    def test_all_zero_weights(self, engine, company, context):
        config = ScoringConfig(weights={p: 0.0 for p in Pillar})
        with pytest.raises(ConfigurationError):
            engine.evaluate_company(company, context, config)

    def test_negative_weight(self, engine, company, context):
        config = ScoringConfig(weights={Pillar.ASSET_QUALITY: -1.0, Pillar.MARKET_OUTLOOK: 2.0})
        with pytest.raises(ConfigurationError):
            engine.evaluate_company(company, context, config)

    def test_unregistered_pillar(self, company, context):
        engine = ScoringEngine(pillars=[p for p in default_pillars() if p.pillar_id != Pillar.STRATEGIC_FIT])
        with pytest.raises(ConfigurationError) as exc_info:
            engine.evaluate_company(company, context)
        assert "strategic_fit" in exc_info.value.message


# =============================================================================
# CONCURRENT EVALUATION
# =============================================================================

class TestEvaluateCompanyAsync:

    def test_matches_sequential(self, engine, company, context):
        sequential = engine.evaluate_company(company, context)
        concurrent = asyncio.run(engine.evaluate_company_async(company, context))
        assert concurrent == sequential

    def test_first_failure_propagates(self, company, context):
        pillars = [ExplodingPillar() if p.pillar_id == Pillar.MARKET_OUTLOOK else p for p in default_pillars()]
        engine = ScoringEngine(pillars=pillars)

        with pytest.raises(CalculationError):
            asyncio.run(engine.evaluate_company_async(company, context))

    def test_failure_cancels_sibling_pillars(self, company, context, monkeypatch):
        blocked = BlockedPillar()
        sink = RecordingSink()
        engine = ScoringEngine(pillars=[blocked, ExplodingPillar()], result_sink=sink)
        config = ScoringConfig(weights={Pillar.ASSET_QUALITY: 0.5, Pillar.MARKET_OUTLOOK: 0.5})

        tasks = []
        create_task = asyncio.create_task

        def recording_create_task(coro):
            task = create_task(coro)
            tasks.append(task)
            return task

        monkeypatch.setattr(asyncio, "create_task", recording_create_task)

        async def run():
            with pytest.raises(CalculationError):
                await engine.evaluate_company_async(company, context, config)
            # failure surfaced while the sibling was still blocked
            assert not blocked.finished.is_set()
            await asyncio.wait(tasks)
            blocked.release.set()
            await asyncio.to_thread(blocked.finished.wait, 5)

        asyncio.run(run())

        assert len(tasks) == 2
        assert tasks[0].cancelled()
        assert sink.saved == []

    def test_validation_runs_off_event_loop(self, company, context):
        recorder = ThreadRecordingPillar()
        pillars = [recorder if p.pillar_id == Pillar.ASSET_QUALITY else p for p in default_pillars()]
        engine = ScoringEngine(pillars=pillars)

        asyncio.run(engine.evaluate_company_async(company, context))

        assert recorder.validation_threads
        assert threading.get_ident() not in recorder.validation_threads

    def test_invalid_data_raised_before_fan_out(self, engine, make_company, context):
        company = make_company(pipeline={"programs": []})
        with pytest.raises(InvalidDataError):
            asyncio.run(engine.evaluate_company_async(company, context))


# =============================================================================
# DECISION RULES
# =============================================================================

class TestDecisionRules:

    @pytest.mark.parametrize(
        "score,overall,expected",
        [
            (5.0, 0.9, InvestmentRecommendation.STRONG_BUY),
            (4.0, 0.9, InvestmentRecommendation.BUY),
            (4.0, 0.7, InvestmentRecommendation.HOLD),
            (4.0, 0.55, InvestmentRecommendation.SELL),
            (3.0, 0.5, InvestmentRecommendation.STRONG_SELL),
        ],
    )
    def test_investment_recommendation(self, score, overall, expected):
        assert ScoringEngine.determine_investment_recommendation(score, confidence(overall)) == expected

    def test_low_risk(self):
        scores = {
            Pillar.REGULATORY_RISK: pillar_score(Pillar.REGULATORY_RISK, 4.5),
            Pillar.FINANCIAL_READINESS: pillar_score(Pillar.FINANCIAL_READINESS, 4.5),
            Pillar.MARKET_OUTLOOK: pillar_score(Pillar.MARKET_OUTLOOK, 4.5),
        }
        assert ScoringEngine.determine_risk_level(scores, confidence(0.9)) == RiskLevel.LOW

    def test_very_high_risk(self):
        scores = {
            Pillar.REGULATORY_RISK: pillar_score(Pillar.REGULATORY_RISK, 1.0),
            Pillar.FINANCIAL_READINESS: pillar_score(Pillar.FINANCIAL_READINESS, 1.0),
            Pillar.MARKET_OUTLOOK: pillar_score(Pillar.MARKET_OUTLOOK, 1.0),
        }
        assert ScoringEngine.determine_risk_level(scores, confidence(0.2)) == RiskLevel.VERY_HIGH

    def test_risk_uses_only_present_pillars(self):
        scores = {Pillar.MARKET_OUTLOOK: pillar_score(Pillar.MARKET_OUTLOOK, 2.0)}
        # (3.0 + 4 * 0.5) / 2 = 2.5
        assert ScoringEngine.determine_risk_level(scores, confidence(0.5)) == RiskLevel.HIGH

    def test_recommendations(self, engine):
        scores = {
            Pillar.ASSET_QUALITY: pillar_score(Pillar.ASSET_QUALITY, 4.2),
            Pillar.FINANCIAL_READINESS: pillar_score(Pillar.FINANCIAL_READINESS, 2.0),
            Pillar.REGULATORY_RISK: pillar_score(Pillar.REGULATORY_RISK, 2.4),
        }
        weighted = engine.calculate_weighted_score(scores, {p: 1.0 for p in scores})
        parameters = engine.default_config().parameters

        recommendations = engine.generate_recommendations(scores, weighted, confidence(0.5, 0.6), parameters)

        # (4.2 + 2.0 + 2.4) / 3 = 2.8667
        assert recommendations == [
            "High-risk investment requiring careful evaluation",
            "Strong pipeline assets with competitive advantages",
            "Financial runway concerns - consider timing of investment",
            "High regulatory risk - monitor clinical trial progress closely",
            "Low confidence in scoring - gather additional data before decision",
            "Incomplete data - request additional company information",
        ]


# =============================================================================
# BATCH AND REPORTING
# =============================================================================

class TestBatchAndStatistics:

    def test_failures_are_recorded(self, engine, company, make_company, context):
        broken = make_company(financials={"burnRate": 0.0})

        batch = engine.evaluate_companies([company, broken], context)

        assert len(batch.results) == 1
        assert len(batch.failures) == 1
        failure = batch.failures[0]
        assert failure.company_id == broken.id
        assert failure.error_code == "INVALID_DATA"

    def test_statistics(self, engine, company, efficient_preclinical_company, context):
        results = engine.evaluate_companies([company, efficient_preclinical_company], context).results

        stats = engine.get_scoring_statistics(results)

        assert stats.total_evaluations == 2
        assert sum(stats.score_distribution.values()) == 2
        assert sum(stats.recommendation_distribution.values()) == 2
        assert stats.average_score == pytest.approx(sum(r.overall_score for r in results) / 2, abs=1e-4)
        assert stats.highest_scoring_company == max(results, key=lambda r: r.overall_score).company_name

    def test_empty_statistics(self, engine):
        stats = engine.get_scoring_statistics([])
        assert stats.total_evaluations == 0
        assert list(stats.score_distribution) == ["1.0-2.0", "2.0-3.0", "3.0-4.0", "4.0-5.0"]
        assert stats.highest_scoring_company is None

    def test_pillar_insights(self, engine, company, context):
        result = engine.evaluate_company(company, context)

        insights = engine.get_pillar_insights(result)

        assert set(insights) == set(Pillar)
        assert insights[Pillar.ASSET_QUALITY].startswith("Asset Quality scored")


class TestValidateInputData:

    def test_merges_company_and_pillar_issues(self, engine, make_company, context):
        company = make_company(pipeline={"programs": []})

        result = engine.validate_input_data(company, context)

        assert not result.is_valid
        keys = [(e.field, e.message) for e in result.errors]
        assert len(keys) == len(set(keys))
        assert any(w.field == "pipeline.programs" for w in result.warnings)

    def test_valid_company(self, engine, company, context):
        result = engine.validate_input_data(company, context)
        assert result.is_valid
        assert 0.0 <= result.completeness <= 1.0
