"""
Unit tests for the burnout risk predictor and team roll-up (no DB needed).
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from wellness_core.core.errors import InsufficientDataError
from wellness_core.services.aggregator import WeekSnapshot
from wellness_core.services.burnout import (
    InsufficientData,
    InsufficientDataPolicy,
    InterventionUrgency,
    RiskLevel,
    TeamRollup,
    Trend,
    assess,
    assess_team,
    point_risk,
    predict,
    risk_level_for,
    risk_trend,
    rollup_members,
    trend_delta,
)

NOW = datetime(2099, 6, 20, 9, 0, tzinfo=timezone.utc)
FIRST_MONDAY = date(2099, 5, 4)


def _weeks(stress, burnout=None, energy=None, readings=1):
    burnout = burnout or [None] * len(stress)
    energy = energy or [None] * len(stress)
    return [
        WeekSnapshot(
            week_start=FIRST_MONDAY + timedelta(weeks=i),
            stress_level=s,
            energy_level=e,
            burnout_score=b,
            reading_count=readings,
        )
        for i, (s, b, e) in enumerate(zip(stress, burnout, energy))
    ]


class TestPredict:
    def test_rising_stress_scenario(self):
        result = predict(_weeks([8, 8, 9], burnout=[6, 7, 8]), NOW)
        assert result.risk_level == RiskLevel.high
        assert result.risk_score == pytest.approx(6.3)
        assert result.trend == Trend.worsening
        assert result.intervention_urgency == InterventionUrgency.urgent
        assert result.weeks_until_burnout == 4
        assert result.factors.chronic_stress_detected is True
        assert result.factors.high_stress_frequency == 3
        assert result.provisional is False

    def test_calm_history_is_low(self):
        result = predict(_weeks([2, 2, 2, 2], burnout=[1, 1, 1, 1], energy=[8, 8, 8, 8]), NOW)
        assert result.risk_level in (RiskLevel.minimal, RiskLevel.low)
        assert result.trend == Trend.stable
        assert result.weeks_until_burnout is None

    def test_critical_has_zero_weeks_until_burnout(self):
        result = predict(
            _weeks([10] * 4, burnout=[9, 10, 10, 10], energy=[1, 1, 0, 0], readings=0), NOW
        )
        assert result.risk_level == RiskLevel.critical
        assert result.weeks_until_burnout == 0
        assert result.intervention_urgency == InterventionUrgency.immediate

    def test_score_bounded(self):
        for stress in (0, 5, 10):
            result = predict(_weeks([stress] * 5, burnout=[stress] * 5, energy=[10 - stress] * 5), NOW)
            assert 0.0 <= result.risk_score <= 10.0

    def test_unordered_history_is_sorted(self):
        history = _weeks([8, 8, 9], burnout=[6, 7, 8])
        assert predict(list(reversed(history)), NOW).risk_score == predict(history, NOW).risk_score

    def test_latest_stress_sweep_is_monotonic(self):
        scores = []
        for latest in [x / 2 for x in range(0, 21)]:
            history = _weeks([5, 6, 5, latest], burnout=[3, 3, 3, 3], energy=[5, 5, 5, 5])
            scores.append(predict(history, NOW).risk_score)
        assert scores == sorted(scores)

    def test_latest_burnout_sweep_is_monotonic(self):
        scores = []
        for latest in range(0, 11):
            history = _weeks([6, 6, 6], burnout=[4, 4, latest], energy=[5, 5, 5])
            scores.append(predict(history, NOW).risk_score)
        assert scores == sorted(scores)

    def test_uniform_shift_is_monotonic(self):
        low = predict(_weeks([3, 4, 5], burnout=[2, 3, 4]), NOW).risk_score
        high = predict(_weeks([4, 5, 6], burnout=[3, 4, 5]), NOW).risk_score
        assert high >= low

    def test_confidence_level_does_not_change_score(self):
        sparse = _weeks([6, 7, 8], burnout=[5, 5, 5])
        full = [
            WeekSnapshot(w.week_start, w.stress_level, None, 5.0, w.burnout_score, w.reading_count)
            for w in sparse
        ]
        a, b = predict(sparse, NOW), predict(full, NOW)
        assert a.factors.confidence_level < b.factors.confidence_level
        assert a.risk_score == b.risk_score


class TestInsufficientData:
    def test_predict_raises(self):
        with pytest.raises(InsufficientDataError) as exc_info:
            predict(_weeks([5, 5]), NOW)
        assert exc_info.value.data_points == 2
        assert exc_info.value.required == 3

    def test_report_policy(self):
        result = assess(_weeks([5]), NOW, InsufficientDataPolicy.report)
        assert isinstance(result, InsufficientData)
        assert result.data_points == 1
        assert result.required == 3

    def test_provisional_policy_is_flagged(self):
        result = assess([], NOW, InsufficientDataPolicy.provisional)
        assert result.provisional is True
        assert result.risk_score == 3.5
        assert result.risk_level == RiskLevel.moderate
        assert result.trend == Trend.stable

    def test_strict_policy_raises(self):
        with pytest.raises(InsufficientDataError):
            assess(_weeks([5, 5]), NOW, InsufficientDataPolicy.strict)

    def test_enough_history_ignores_policy(self):
        result = assess(_weeks([5, 5, 5]), NOW, InsufficientDataPolicy.strict)
        assert result.provisional is False


class TestHelpers:
    @pytest.mark.parametrize("score,level", [
        (0.0, RiskLevel.minimal), (1.9, RiskLevel.minimal), (2.0, RiskLevel.low),
        (4.0, RiskLevel.moderate), (6.0, RiskLevel.high), (7.9, RiskLevel.high),
        (8.0, RiskLevel.critical), (10.0, RiskLevel.critical),
    ])
    def test_risk_level_boundaries(self, score, level):
        assert risk_level_for(score) == level

    def test_trend_delta_window(self):
        delta, k = trend_delta([1, 1, 1, 4, 4, 4, 4])
        assert k == 3
        # latest [4, 4, 4] against the three before them [1, 1, 4]
        assert delta == pytest.approx(2.0)

    def test_trend_delta_short_history(self):
        delta, k = trend_delta([3, 5, 6])
        assert k == 1
        assert delta == pytest.approx(1.0)

    def test_point_risk_capped(self):
        week = WeekSnapshot(FIRST_MONDAY, stress_level=10, energy_level=0, burnout_score=10)
        assert point_risk(week) == 10.0

    def test_risk_trend_series(self):
        points = risk_trend(_weeks([8, 2]))
        assert [p.week_start for p in points] == ["2099-05-04", "2099-05-11"]
        assert points[0].risk_score > points[1].risk_score


class TestTeam:
    def test_rollup_members(self):
        members = [
            predict(_weeks([8, 8, 9], burnout=[6, 7, 8]), NOW),
            predict(_weeks([2, 2, 2], energy=[8, 8, 8]), NOW),
        ]
        rollup = rollup_members(members)
        assert rollup.team_size == 2
        assert rollup.risk_distribution["high"] == 1
        assert sum(rollup.risk_distribution.values()) == 2

    def test_assess_team_cost_and_turnover(self):
        rollup = TeamRollup(
            team_size=10,
            risk_distribution={"critical": 1, "high": 2, "moderate": 4, "low": 3},
            average_risk_score=5.2,
            trend_counts={"worsening": 4, "stable": 6},
        )
        result = assess_team("org-1", rollup, NOW)
        assert result.estimated_cost_impact == pytest.approx(15000 * (0.5 + 2 * 0.25 + 4 * 0.05))
        assert result.predicted_turnover_risk == pytest.approx(0.2)
        assert result.urgent_interventions_needed == 3
        assert result.risk_distribution["minimal"] == 0
        assert any("critical-risk" in a for a in result.recommended_org_actions)

    def test_empty_team(self):
        result = assess_team("org-2", TeamRollup(team_size=0), NOW)
        assert result.predicted_turnover_risk == 0.0
        assert result.estimated_cost_impact == 0.0
        assert result.recommended_org_actions
