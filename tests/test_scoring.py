"""
tests/test_scoring.py — Unit tests for the lead scorer and its weight tables.
"""

from dataclasses import replace

import pytest

from app.ai_engine.processor import QualificationResult
from app.config import Settings, check_startup_config, settings
from app.exceptions import ConfigurationError
from app.services.scoring import MAX_TOTAL_SCORE, LeadScore, ScoreWeights, score_lead


def _result(**overrides) -> QualificationResult:
    fields = {
        "priority": "medium",
        "project_type": "web-development",
        "estimated_budget": "5k-15k",
        "urgency": "planning",
        "complexity": "medium",
        "confidence_score": 0.5,
    }
    fields.update(overrides)
    return QualificationResult(**fields)


@pytest.fixture
def weights():
    return ScoreWeights.from_settings()


# ── score_lead ────────────────────────────────────────────────────────────────

class TestScoreLead:
    def test_high_value_lead_scores_99(self, qualification, weights):
        assert score_lead(qualification, weights) == LeadScore(
            total_score=99,
            budget_score=25,
            urgency_score=20,
            complexity_score=15,
            priority_score=30,
            quality_score=9,
        )

    def test_idempotent(self, qualification, weights):
        assert score_lead(qualification, weights) == score_lead(qualification, weights)

    def test_mid_range_lead(self, weights):
        score = score_lead(_result(), weights)
        # 15 + 10 + 10 + 20 + 5
        assert score.total_score == 60

    def test_lowest_possible_score(self, weights):
        score = score_lead(
            _result(priority="low", estimated_budget="under-5k", urgency="exploring",
                    complexity="simple", confidence_score=0.0),
            weights,
        )
        assert score.total_score == 10 + 5 + 8 + 10 + 0

    def test_maximum_is_exactly_100(self, weights):
        score = score_lead(
            _result(priority="high", estimated_budget="50k-plus", urgency="immediate",
                    complexity="complex", confidence_score=1.0),
            weights,
        )
        assert score.total_score == MAX_TOTAL_SCORE

    @pytest.mark.parametrize("confidence, expected", [
        (0.0, 0), (0.04, 0), (0.25, 3), (0.5, 5), (0.9, 9), (1.0, 10),
    ])
    def test_quality_rounds_half_up(self, weights, confidence, expected):
        assert score_lead(_result(confidence_score=confidence), weights).quality_score == expected

    def test_total_clamped_when_weights_retuned_upward(self):
        boosted = ScoreWeights.from_tables(
            budget={"under-5k": 10, "5k-15k": 15, "15k-50k": 20, "50k-plus": 60},
            urgency={"exploring": 5, "planning": 10, "within-month": 15, "immediate": 40},
            complexity={"simple": 8, "medium": 10, "complex": 15},
            priority={"low": 10, "medium": 20, "high": 30},
        )
        score = score_lead(
            _result(priority="high", estimated_budget="50k-plus", urgency="immediate",
                    complexity="complex", confidence_score=1.0),
            boosted,
        )
        assert score.total_score == 100
        assert score.budget_score == 60

    def test_every_combination_in_range(self, weights):
        for priority in ("low", "medium", "high"):
            for budget in ("under-5k", "5k-15k", "15k-50k", "50k-plus"):
                for urgency in ("exploring", "planning", "within-month", "immediate"):
                    for complexity in ("simple", "medium", "complex"):
                        score = score_lead(
                            _result(priority=priority, estimated_budget=budget,
                                    urgency=urgency, complexity=complexity, confidence_score=1.0),
                            weights,
                        )
                        assert 0 <= score.total_score <= 100

    def test_lookup_miss_raises_key_error(self, qualification):
        partial = replace(ScoreWeights.from_settings(), budget={})
        with pytest.raises(KeyError):
            score_lead(qualification, partial)

    def test_defaults_to_settings_weights(self, qualification):
        assert score_lead(qualification).total_score == 99

    def test_as_dict(self, qualification, weights):
        data = score_lead(qualification, weights).as_dict()
        assert data["total_score"] == 99
        assert set(data) == {
            "total_score", "budget_score", "urgency_score",
            "complexity_score", "priority_score", "quality_score",
        }


# ── ScoreWeights ──────────────────────────────────────────────────────────────

class TestScoreWeights:
    def test_tables_are_required(self):
        with pytest.raises(TypeError):
            ScoreWeights()

    def test_missing_member_rejected(self):
        with pytest.raises(ConfigurationError, match="complexity"):
            ScoreWeights.from_tables(
                budget=settings.budget_weights,
                urgency=settings.urgency_weights,
                complexity={"simple": 8, "medium": 10},
                priority=settings.priority_weights,
            )

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigurationError, match="unknown"):
            ScoreWeights.from_tables(
                budget={**settings.budget_weights, "1m-plus": 40},
                urgency=settings.urgency_weights,
                complexity=settings.complexity_weights,
                priority=settings.priority_weights,
            )

    def test_negative_weight_rejected(self):
        with pytest.raises(ConfigurationError, match="non-negative"):
            ScoreWeights.from_tables(
                budget=settings.budget_weights,
                urgency=settings.urgency_weights,
                complexity=settings.complexity_weights,
                priority={"low": -1, "medium": 20, "high": 30},
            )


# ── check_startup_config ──────────────────────────────────────────────────────

class TestStartupConfig:
    def test_default_settings_pass(self):
        check_startup_config(settings)

    def test_captcha_required_without_secret_is_fatal(self):
        config = Settings(captcha_required=True, turnstile_secret_key=None)
        with pytest.raises(ConfigurationError, match="TURNSTILE_SECRET_KEY"):
            check_startup_config(config)

    def test_captcha_required_with_secret_passes(self):
        check_startup_config(Settings(captcha_required=True, turnstile_secret_key="secret"))

    def test_bad_weight_table_is_fatal(self):
        config = Settings(urgency_weights={"immediate": 20})
        with pytest.raises(ConfigurationError):
            check_startup_config(config)
