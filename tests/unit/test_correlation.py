"""Unit tests for dayfusion.analysis.correlation.

Covers:
- Rule catalogue: five built-in rules sized by window tiers
- Event projection from activities and whole days
- find_event_sequence: ordering, rolling window, incomplete sequences
- detect_patterns: workout/location example, window override, multiple matches
- Insights: pattern mapping, data-quality warning
"""

from __future__ import annotations

import pytest

from config.settings import CorrelationWindows
from dayfusion.analysis.correlation import (
    DEFAULT_RULES,
    assess_data_completeness,
    build_default_rules,
    detect_patterns,
    extract_events_from_activities,
    extract_events_from_daily_data,
    find_event_sequence,
    generate_insights,
)
from dayfusion.models.correlation import CorrelationRule, DetectedPattern, Event
from dayfusion.models.records import DailyData, to_records

STAMP = 1_710_000_000_000


def _rule(rule_id):
    return next(r for r in DEFAULT_RULES if r.rule_id == rule_id)


# ── Rule catalogue ────────────────────────────────────────────────────────────────

class TestRuleCatalogue:
    def test_five_builtin_rules(self):
        assert [r.rule_id for r in DEFAULT_RULES] == [
            "workout_location",
            "pre_workout_preparation",
            "bedtime_routine",
            "work_break_activity",
            "commute_pattern",
        ]

    def test_workout_location_definition(self):
        rule = _rule("workout_location")
        assert rule.events == ("workout_start", "location_change")
        assert rule.time_window_ms == 300000
        assert rule.confidence == pytest.approx(0.9)

    def test_rules_follow_configured_windows(self):
        windows = CorrelationWindows(immediate=1000, short=2000, medium=3000, long=4000)
        rules = {r.rule_id: r for r in build_default_rules(windows)}
        assert rules["workout_location"].time_window_ms == 1000
        assert rules["pre_workout_preparation"].time_window_ms == 2000
        assert rules["bedtime_routine"].time_window_ms == 3000


# ── Event projection ──────────────────────────────────────────────────────────────

class TestEventProjection:
    def test_activity_types_map_to_events(self):
        events = extract_events_from_activities(
            [
                {"timestamp": 30, "type": "sleep"},
                {"timestamp": 10, "type": "workout", "location": "Gym"},
                {"timestamp": 20, "type": "walk", "steps": 500},
            ]
        )
        assert [(e.type, e.timestamp) for e in events] == [
            ("workout_start", 10),
            ("location_change", 10),
            ("step_increase", 20),
            ("sleep_start", 30),
        ]

    def test_zero_steps_yield_no_event(self):
        assert extract_events_from_activities([{"timestamp": 1, "steps": 0}]) == []

    def test_untimestamped_activities_skipped(self):
        assert extract_events_from_activities([{"type": "workout"}]) == []

    def test_daily_projection_tags_places_calls_and_apps(self, sample_daily_data):
        types = {e.type for e in extract_events_from_daily_data(sample_daily_data)}
        assert {
            "location_home",
            "location_work",
            "location_gym",
            "call_personal",
            "app_usage_fitness",
            "app_usage_decrease",
        } <= types

    def test_daily_projection_sorted(self, sample_daily_data):
        stamps = [e.timestamp for e in extract_events_from_daily_data(sample_daily_data)]
        assert stamps == sorted(stamps)

    def test_app_usage_decrease_after_last_active_hour(self):
        hour = 60 * 60 * 1000
        day = DailyData(
            date="1970-01-01",
            app_usage=to_records("app_usage", [{"timestamp": 5 * hour + 10, "duration": 1000}]),
        )
        decreases = [e for e in extract_events_from_daily_data(day) if e.type == "app_usage_decrease"]
        assert [e.timestamp for e in decreases] == [6 * hour]


# ── Sequence matching ─────────────────────────────────────────────────────────────

class TestFindEventSequence:
    def test_matches_in_order(self):
        events = [Event("a", 0), Event("x", 5), Event("b", 10)]
        match = find_event_sequence(events, 0, ["a", "b"], 100)
        assert [e.type for e in match] == ["a", "b"]

    def test_rolling_window(self):
        """Each step is measured from the previously accepted event."""
        events = [Event("a", 0), Event("b", 90), Event("c", 180)]
        assert find_event_sequence(events, 0, ["a", "b", "c"], 100) is not None

    def test_gap_beyond_window_fails(self):
        events = [Event("a", 0), Event("b", 101)]
        assert find_event_sequence(events, 0, ["a", "b"], 100) is None

    def test_start_index_out_of_range(self):
        assert find_event_sequence([Event("a", 0)], 3, ["a"], 100) is None

    def test_out_of_order_types_fail(self):
        events = [Event("b", 0), Event("a", 10)]
        assert find_event_sequence(events, 0, ["a", "b"], 100) is None


# ── detect_patterns ───────────────────────────────────────────────────────────────

class TestDetectPatterns:
    def test_workout_then_location_within_window(self):
        """Two events 2 minutes apart match the 5-minute workout_location rule once."""
        events = [Event("workout_start", 0), Event("location_change", 120000)]
        patterns = detect_patterns(events, rules=[_rule("workout_location")], detected_at=STAMP)
        assert len(patterns) == 1
        assert patterns[0].match_count == 1
        assert patterns[0].detected_at == STAMP

    def test_workout_then_location_outside_window(self):
        events = [Event("workout_start", 0), Event("location_change", 600000)]
        assert detect_patterns(events, rules=[_rule("workout_location")], detected_at=STAMP) == []

    def test_window_override(self):
        """time_window_ms overrides every rule's own window."""
        events = [Event("workout_start", 0), Event("location_change", 600000)]
        patterns = detect_patterns(
            events, rules=[_rule("workout_location")], time_window_ms=700000, detected_at=STAMP
        )
        assert patterns[0].match_count == 1

    def test_multiple_matches_per_day(self):
        events = [
            Event("workout_start", 0),
            Event("location_change", 1000),
            Event("workout_start", 10_000_000),
            Event("location_change", 10_001_000),
        ]
        patterns = detect_patterns(events, rules=[_rule("workout_location")], detected_at=STAMP)
        assert patterns[0].match_count == 2

    def test_accepts_activity_records(self):
        activities = [{"timestamp": 100, "type": "workout", "location": "Gym"}]
        patterns = detect_patterns(activities, detected_at=STAMP)
        assert [p.rule for p in patterns] == ["workout_location"]

    def test_fixture_day_patterns(self, sample_daily_data):
        patterns = detect_patterns(sample_daily_data, detected_at=STAMP)
        assert [p.rule for p in patterns] == [
            "workout_location",
            "pre_workout_preparation",
            "bedtime_routine",
            "commute_pattern",
        ]

    def test_deterministic(self, sample_daily_data):
        first = detect_patterns(sample_daily_data, detected_at=STAMP)
        second = detect_patterns(sample_daily_data, detected_at=STAMP)
        assert [p.to_dict() for p in first] == [p.to_dict() for p in second]

    def test_empty_input(self):
        assert detect_patterns([], detected_at=STAMP) == []

    def test_custom_rule(self):
        rule = CorrelationRule("calls", ("call_personal", "call_personal"), 1000, 0.5, "chatty")
        events = [Event("call_personal", 0), Event("call_personal", 500)]
        assert detect_patterns(events, rules=[rule], detected_at=STAMP)[0].rule == "calls"


# ── Insights ──────────────────────────────────────────────────────────────────────

class TestInsights:
    def test_workout_pattern_maps_to_fitness(self):
        pattern = DetectedPattern("workout_location", 0.9, [[Event("a", 0)], [Event("a", 1)]], "t", STAMP)
        insights = generate_insights([pattern], {"activities": [1]})
        assert insights[0].type == "fitness"
        assert insights[0].severity == "positive"
        assert "2 instances" in insights[0].message

    def test_unmapped_pattern_is_general(self):
        pattern = DetectedPattern("commute_pattern", 0.9, [[]], "daily_commute", STAMP)
        assert generate_insights([pattern], {"activities": [1]})[0].type == "general"

    def test_sparse_data_adds_quality_warning(self, empty_daily_data):
        insights = generate_insights([], empty_daily_data)
        assert [i.type for i in insights] == ["data_quality"]
        assert insights[0].severity == "warning"

    def test_completeness_levels(self, sample_daily_data, empty_daily_data):
        assert assess_data_completeness(None) == 0.0
        assert assess_data_completeness(sample_daily_data) == pytest.approx(0.8)
        assert assess_data_completeness(empty_daily_data) == pytest.approx(0.3)
