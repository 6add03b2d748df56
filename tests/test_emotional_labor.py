"""
Emotional labor quantifier: scoring, compensation and analytics.
"""
from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings as hyp_settings, strategies as st

from wellness_core.core.errors import ValidationError
from wellness_core.models.reflection import ContextType
from wellness_core.services.emotional_labor import (
    CLIENT_STATES,
    SessionRecord,
    assess,
    compensate,
    get_entries,
    record_entry,
    summarize_entries,
)

NOW = datetime(2099, 10, 5, 15, 0, tzinfo=timezone.utc)


def _session(**overrides):
    params = dict(
        context="medical",
        duration_minutes=60,
        emotional_intensity=5,
        trauma_exposure=False,
        client_emotional_state="distressed",
        display_rules=["show_empathy"],
        internal_state=6,
        displayed_state=4,
        control_over_expression=5,
        consequence_severity=5,
    )
    params.update(overrides)
    return SessionRecord.create(**params)


class TestSessionValidation:
    @pytest.mark.parametrize("field,value", [
        ("emotional_intensity", 11),
        ("emotional_intensity", float("nan")),
        ("internal_state", -0.5),
        ("displayed_state", "4"),
        ("control_over_expression", True),
        ("consequence_severity", float("inf")),
        ("duration_minutes", -1),
        ("duration_minutes", 10**400),
        ("internal_state", 10**400),
        ("trauma_exposure", "yes"),
        ("client_emotional_state", "happy"),
        ("context", "space"),
        ("display_rules", [1, 2]),
    ])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            _session(**{field: value})
        assert exc_info.value.field == field

    def test_context_parsed_to_enum(self):
        assert _session().context == ContextType.medical


class TestAssess:
    def test_component_scores(self):
        a = assess(_session())
        assert a.surface_acting_score == pytest.approx(1.6)
        assert a.deep_acting_score == pytest.approx(7.0)
        assert a.emotional_dissonance == pytest.approx(2.0)
        assert a.emotional_suppression == pytest.approx(2.4)
        assert a.emotional_amplification == 0.0
        assert a.display_rule_complexity == 4.0
        assert a.frequency_of_emotional_labor == 8

    def test_hide_shock_triples_surface_acting(self):
        plain = assess(_session(display_rules=[]))
        hidden = assess(_session(display_rules=["hide_shock"]))
        assert hidden.surface_acting_score == pytest.approx(plain.surface_acting_score * 3)

    def test_amplification_when_displaying_more(self):
        a = assess(_session(internal_state=2, displayed_state=7))
        assert a.emotional_amplification == pytest.approx(6.0)
        assert a.emotional_suppression == 0.0


class TestCompensate:
    def test_medical_session(self):
        c = compensate(40.0, assess(_session()), "medical")
        assert c.multiplier == pytest.approx(2.47)
        assert c.hazard_pay == pytest.approx(58.8)
        assert c.total_rate == pytest.approx(98.8)
        assert c.annual_impact_estimate == pytest.approx(61152)
        assert c.burnout_risk_factor == pytest.approx(0.23)
        assert c.recommended_interventions == ["Continue current emotional labor management practices"]
        assert c.urgent is False

    def test_all_zero_session_is_floor(self):
        s = _session(
            context="general", duration_minutes=0, emotional_intensity=0, display_rules=[],
            internal_state=0, displayed_state=0, control_over_expression=0, consequence_severity=0,
        )
        c = compensate(50.0, assess(s), s.context)
        assert c.multiplier == 1.0
        assert c.hazard_pay == 0.0
        assert c.total_rate == 50.0
        assert "Advocate for more flexibility in emotional display rules" in c.recommended_interventions

    def test_all_ten_session_is_capped_and_urgent(self):
        s = _session(
            context="mental_health", emotional_intensity=10, trauma_exposure=True,
            display_rules=["hide_shock", "show_empathy"], internal_state=10, displayed_state=0,
            control_over_expression=0, consequence_severity=10,
        )
        c = compensate(50.0, assess(s), s.context, s.trauma_exposure)
        assert c.multiplier == 3.0
        assert c.hazard_pay == 100.0
        assert c.annual_impact_estimate == 104000
        assert c.urgent is True
        assert any(i.startswith("URGENT") for i in c.recommended_interventions)

    def test_trauma_bonus_raises_multiplier(self):
        a = assess(_session(context="legal"))
        assert compensate(40.0, a, "legal", True).multiplier > compensate(40.0, a, "legal", False).multiplier

    @pytest.mark.parametrize("rate", [0, -10, float("nan"), float("inf"), "40", True, 10**400])
    def test_bad_base_rate(self, rate):
        with pytest.raises(ValidationError):
            compensate(rate, assess(_session()), "medical")

    def test_tampered_assessment_rejected(self):
        a = assess(_session())
        a.surface_acting_score = 42
        with pytest.raises(ValidationError):
            compensate(40.0, a, "medical")


_scores = st.floats(min_value=0, max_value=10, allow_nan=False)
_huge = st.integers(min_value=10**309, max_value=10**500)


class TestCompensationBounds:
    @hyp_settings(max_examples=200, deadline=None)
    @given(
        context=st.sampled_from([c.value for c in ContextType]),
        state=st.sampled_from(sorted(CLIENT_STATES)),
        rules=st.lists(st.sampled_from(["hide_shock", "show_empathy", "stay_neutral", "smile"]), max_size=6),
        intensity=_scores, internal=_scores, displayed=_scores, control=_scores, consequence=_scores,
        duration=st.floats(min_value=0, max_value=600, allow_nan=False),
        trauma=st.booleans(),
        base_rate=st.floats(min_value=0.01, max_value=500, allow_nan=False),
    )
    def test_outputs_bounded(
        self, context, state, rules, intensity, internal, displayed, control, consequence,
        duration, trauma, base_rate,
    ):
        s = SessionRecord.create(
            context, duration, intensity, trauma, state, rules, internal, displayed, control, consequence,
        )
        a = assess(s)
        for name, value in a.to_dict().items():
            if name != "duration_of_emotional_labor":
                assert 0.0 <= value <= 10.0, name
        c = compensate(base_rate, a, s.context, s.trauma_exposure)
        assert 1.0 <= c.multiplier <= 3.0
        assert 0.0 <= c.burnout_risk_factor <= 1.0
        assert c.hazard_pay >= 0.0
        assert c.recommended_interventions

    @hyp_settings(max_examples=50, deadline=None)
    @given(
        field=st.sampled_from([
            "duration_minutes", "emotional_intensity", "internal_state", "displayed_state",
            "control_over_expression", "consequence_severity",
        ]),
        value=_huge,
    )
    def test_huge_integers_rejected(self, field, value):
        with pytest.raises(ValidationError) as exc_info:
            _session(**{field: value})
        assert exc_info.value.field == field


class TestAnalytics:
    def test_empty_history(self):
        analytics = summarize_entries([])
        assert analytics.entry_count == 0
        assert analytics.average_multiplier == 1.0
        assert analytics.recommendations == ["Start tracking emotional labor to get insights"]

    def test_summary_over_recorded_entries(self, db, facade, account_id):
        identity = facade.hasher.hash(account_id)
        heavy = _session(
            context="mental_health", emotional_intensity=10, display_rules=["hide_shock", "show_empathy"],
            internal_state=10, displayed_state=0, control_over_expression=0, consequence_severity=10,
            duration_minutes=120,
        )
        light = _session(context="educational")
        for i, s in enumerate([heavy, heavy, light]):
            a = assess(s)
            record_entry(db, identity, "s" * 64, s.context, a, compensate(40.0, a, s.context), NOW + timedelta(hours=i))
        db.commit()

        entries = get_entries(db, identity, since=NOW - timedelta(days=1))
        analytics = summarize_entries(entries)
        assert analytics.entry_count == 3
        assert analytics.highest_labor_contexts[0] == "mental_health"
        assert len(analytics.burnout_risk_trend) == 3
        assert analytics.total_extra_compensation > 0
        assert {c.context for c in analytics.comparison_to_benchmark} == {"mental_health", "educational"}
        assert any("burnout-risk" in r for r in analytics.recommendations)

    def test_since_filters_entries(self, db, facade, account_id):
        identity = facade.hasher.hash(account_id)
        s = _session()
        a = assess(s)
        record_entry(db, identity, "s" * 64, s.context, a, compensate(40.0, a, s.context), NOW - timedelta(days=60))
        db.commit()
        assert get_entries(db, identity, since=NOW - timedelta(days=30)) == []
