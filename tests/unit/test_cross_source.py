"""Unit tests for dayfusion.analysis.cross_source."""

from __future__ import annotations

import pytest

from dayfusion.analysis.cross_source import (
    analyze_app_usage_patterns,
    analyze_data_correlations,
    analyze_temporal_patterns,
    calculate_health_correlation,
    calculate_social_score,
    correlate_activity_with_location,
    correlate_health_with_activity,
    correlate_social_with_location,
    time_of_day,
)
from dayfusion.models.records import SourceRecord, to_records

HOUR = 60 * 60 * 1000


def _activity(ts, **fields):
    return SourceRecord(source="activities", timestamp=ts, fields=fields)


def _place(ts, name):
    return SourceRecord(source="locations", timestamp=ts, fields={"name": name})


# ── Activity ↔ location ───────────────────────────────────────────────────────────

class TestActivityLocation:
    def test_pairs_places_within_one_hour(self):
        activities = [_activity(2 * HOUR, type="walk")]
        places = [_place(2 * HOUR + 30 * 60 * 1000, "Park"), _place(5 * HOUR, "Office")]
        result = correlate_activity_with_location(activities, places)
        assert len(result) == 1
        assert [p["name"] for p in result[0]["locations"]] == ["Park"]

    def test_strength_decays_with_gap(self):
        """A place 30 minutes away gives strength 0.5."""
        result = correlate_activity_with_location(
            [_activity(0, type="walk")], [_place(30 * 60 * 1000, "Park")]
        )
        assert result[0]["correlation_strength"] == pytest.approx(0.5)

    def test_no_nearby_place_no_correlation(self):
        assert correlate_activity_with_location([_activity(0)], [_place(2 * HOUR, "Far")]) == []


# ── Health ↔ activity ─────────────────────────────────────────────────────────────

class TestHealthActivity:
    def test_exercise_scores(self):
        """Exercise +0.5, over 30 minutes +0.3, full calorie share +0.2."""
        activity = _activity(0, type="exercise", duration=45 * 60 * 1000, calories=500)
        assert calculate_health_correlation(activity, {"calories": 500}) == pytest.approx(1.0)

    def test_no_health_data_scores_zero(self):
        assert calculate_health_correlation(_activity(0, type="exercise"), None) == 0.0

    def test_only_exercise_activities_correlated(self):
        activities = [_activity(0, type="walk"), _activity(1, sport_type="running", duration=60000)]
        result = correlate_health_with_activity({"steps": 8000}, activities)
        assert len(result) == 1
        impact = result[0]["health_impact"]
        assert impact["estimated_steps"] == 100
        assert impact["estimated_calories"] == 8

    def test_without_health_data_returns_empty(self):
        assert correlate_health_with_activity(None, [_activity(0, type="exercise")]) == []


# ── Social ↔ location ─────────────────────────────────────────────────────────────

class TestSocialLocation:
    def test_known_long_call_scores_full(self):
        call = SourceRecord("call_logs", 0, {"contact_name": "Alex", "duration": 420})
        assert calculate_social_score(call) == pytest.approx(1.0)

    def test_unknown_short_call_scores_base(self):
        assert calculate_social_score(SourceRecord("call_logs", 0, {"duration": 30})) == pytest.approx(0.5)

    def test_call_paired_with_place_within_thirty_minutes(self):
        calls = [SourceRecord("call_logs", HOUR, {"contact_name": "Alex", "call_type": "incoming"})]
        result = correlate_social_with_location(calls, [_place(HOUR + 10 * 60 * 1000, "Cafe")])
        context = result[0]["social_context"]
        assert context["location_context"] == ["Cafe"]
        assert context["call_context"]["contact"] == "Alex"


# ── App usage and time of day ─────────────────────────────────────────────────────

class TestAppUsage:
    def test_profile(self):
        apps = to_records(
            "app_usage",
            [
                {"timestamp": 9 * HOUR, "app_name": "Mail", "category": "Productivity", "duration": 600},
                {"timestamp": 9 * HOUR + 5, "app_name": "Maps", "category": "Travel", "duration": 300},
                {"timestamp": 20 * HOUR, "app_name": "Video", "duration": 100},
            ],
        )
        profile = analyze_app_usage_patterns(apps, "UTC")
        assert profile["total_screen_time"] == pytest.approx(1000)
        assert profile["peak_usage_hour"] == 9
        assert profile["app_diversity"] == 3
        assert profile["category_breakdown"]["Other"]["duration"] == pytest.approx(100)
        assert len(profile["hourly_pattern"]) == 24

    def test_empty_usage(self):
        assert analyze_app_usage_patterns([]) == {}

    @pytest.mark.parametrize(
        "hour,bucket",
        [(6, "morning"), (11, "morning"), (12, "afternoon"), (17, "evening"), (22, "night"), (3, "night")],
    )
    def test_time_of_day_buckets(self, hour, bucket):
        assert time_of_day(hour * HOUR, "UTC") == bucket

    def test_time_of_day_respects_timezone(self):
        """05:00 UTC is 07:00 in Amsterdam during summer time."""
        summer_day_ms = 1719792000000  # 2024-07-01T00:00:00Z
        assert time_of_day(summer_day_ms + 5 * HOUR, "UTC") == "night"
        assert time_of_day(summer_day_ms + 5 * HOUR, "Europe/Amsterdam") == "morning"


# ── Whole-day bundle ──────────────────────────────────────────────────────────────

class TestDataCorrelations:
    def test_bundle_keys(self, sample_daily_data):
        result = analyze_data_correlations(sample_daily_data, "UTC")
        assert set(result) == {
            "activity_location",
            "health_activity",
            "social_location",
            "app_usage_patterns",
            "temporal_patterns",
        }

    def test_fixture_day_correlations(self, sample_daily_data):
        result = analyze_data_correlations(sample_daily_data, "UTC")
        assert len(result["activity_location"]) >= 1
        assert len(result["health_activity"]) == 1  # strength workout has a sport_type
        assert len(result["social_location"]) == 1

    def test_temporal_patterns_group_records(self, sample_daily_data):
        temporal = analyze_temporal_patterns(sample_daily_data, "UTC")
        assert len(temporal["morning"]["locations"]) == 2
        assert len(temporal["night"]["activities"]) == 1
