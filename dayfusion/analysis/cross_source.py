"""Cross-source correlations for DayFusion.

Relates records from different collectors by time proximity: activities to
places, health totals to exercise, calls to places, plus app-usage and
time-of-day profiles. Pure functions — every result is plain data.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

from config.defaults import (
    ACTIVITY_LOCATION_WINDOW_MS,
    LONG_ACTIVITY_MS,
    LONG_CALL_SECONDS,
    SOCIAL_LOCATION_WINDOW_MS,
)
from dayfusion.models.records import DailyData, SourceRecord
from dayfusion.utils.date_utils import local_hour

logger = logging.getLogger(__name__)

TIME_OF_DAY_BUCKETS = ("morning", "afternoon", "evening", "night")


def _num(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0.0
    return float(value)


def _nearby(timestamp: int, places: Sequence[SourceRecord], window_ms: int) -> List[SourceRecord]:
    return [
        p for p in places
        if p.timestamp is not None and abs(timestamp - p.timestamp) < window_ms
    ]


def calculate_correlation_strength(activity: SourceRecord, places: Sequence[SourceRecord]) -> float:
    """Time-proximity strength in [0, 1]: 1 - mean gap / 1 hour."""
    if not places or activity.timestamp is None:
        return 0.0
    mean_gap = sum(abs(activity.timestamp - p.timestamp) for p in places) / len(places)
    return max(0.0, 1.0 - mean_gap / ACTIVITY_LOCATION_WINDOW_MS)


def correlate_activity_with_location(
    activities: Sequence[SourceRecord],
    locations: Sequence[SourceRecord],
) -> List[Dict[str, Any]]:
    """Pair each activity with the places visited within one hour of it."""
    correlations: List[Dict[str, Any]] = []
    for activity in activities:
        if activity.timestamp is None:
            continue
        places = _nearby(activity.timestamp, locations, ACTIVITY_LOCATION_WINDOW_MS)
        if not places:
            continue
        correlations.append(
            {
                "activity": activity.to_dict(),
                "locations": [p.to_dict() for p in places],
                "correlation_strength": calculate_correlation_strength(activity, places),
            }
        )
    return correlations


def _is_exercise(activity: SourceRecord) -> bool:
    return activity.get("type") == "exercise" or bool(activity.get("sport_type"))


def calculate_health_correlation(
    activity: SourceRecord,
    health_data: Optional[Mapping[str, Any]],
) -> float:
    """Score how much an exercise activity explains the day's health totals.

    +0.5 for an exercise, +0.3 when longer than 30 minutes, and up to +0.2 for
    the activity's share of the day's calories. Capped at 1.0.
    """
    if not health_data:
        return 0.0
    score = 0.0
    if _is_exercise(activity):
        score += 0.5
    if _num(activity.get("duration")) > LONG_ACTIVITY_MS:
        score += 0.3
    activity_calories = _num(activity.get("calories"))
    day_calories = _num(health_data.get("calories"))
    if activity_calories and day_calories:
        score += min(0.2, activity_calories / day_calories * 0.2)
    return min(1.0, score)


def correlate_health_with_activity(
    health_data: Optional[Mapping[str, Any]],
    activities: Sequence[SourceRecord],
) -> List[Dict[str, Any]]:
    """Estimate the health impact of each exercise activity.

    Activity ``duration`` is in milliseconds.
    """
    if not health_data:
        return []
    correlations: List[Dict[str, Any]] = []
    for activity in activities:
        if not _is_exercise(activity):
            continue
        minutes = _num(activity.get("duration")) / 60000
        calories = _num(activity.get("calories"))
        correlations.append(
            {
                "activity": activity.to_dict(),
                "health_impact": {
                    "estimated_steps": int(minutes * 100),
                    "estimated_calories": calories if calories else int(minutes * 8),
                    "correlation_score": calculate_health_correlation(activity, health_data),
                },
            }
        )
    return correlations


def calculate_social_score(call: SourceRecord) -> float:
    """0.5 base, +0.3 for a known contact, +0.2 for calls over five minutes."""
    score = 0.5
    if call.get("contact_name"):
        score += 0.3
    if _num(call.get("duration")) > LONG_CALL_SECONDS:
        score += 0.2
    return min(1.0, score)


def correlate_social_with_location(
    call_logs: Sequence[SourceRecord],
    locations: Sequence[SourceRecord],
) -> List[Dict[str, Any]]:
    """Pair each call with the places visited within 30 minutes of it."""
    correlations: List[Dict[str, Any]] = []
    for call in call_logs:
        if call.timestamp is None:
            continue
        places = _nearby(call.timestamp, locations, SOCIAL_LOCATION_WINDOW_MS)
        if not places:
            continue
        correlations.append(
            {
                "call": call.to_dict(),
                "locations": [p.to_dict() for p in places],
                "social_context": {
                    "location_context": [p.get("name") or "Unknown location" for p in places],
                    "call_context": {
                        "type": call.get("call_type"),
                        "duration": call.get("duration"),
                        "contact": call.get("contact_name") or "Unknown",
                    },
                    "social_score": calculate_social_score(call),
                },
            }
        )
    return correlations


def analyze_app_usage_patterns(
    app_usage: Sequence[SourceRecord],
    timezone_name: str = "UTC",
) -> Dict[str, Any]:
    """Profile a day's app usage.

    Args:
        app_usage: App usage records with ``duration`` and ``category``.
        timezone_name: Timezone used for the 24-hour profile.

    Returns:
        Dict with total screen time, per-category breakdown, hourly profile,
        peak hour, app diversity and average session duration. Empty dict
        when there is no usage.
    """
    if not app_usage:
        return {}
    total = 0.0
    categories: Dict[str, Dict[str, float]] = {}
    hourly = [0.0] * 24

    for app in app_usage:
        duration = _num(app.get("duration"))
        total += duration
        bucket = categories.setdefault(app.get("category") or "Other", {"duration": 0.0, "apps": 0})
        bucket["duration"] += duration
        bucket["apps"] += 1
        if app.timestamp is not None:
            hourly[local_hour(app.timestamp, timezone_name)] += duration

    return {
        "total_screen_time": total,
        "category_breakdown": categories,
        "hourly_pattern": hourly,
        "peak_usage_hour": hourly.index(max(hourly)),
        "app_diversity": len(app_usage),
        "avg_session_duration": total / len(app_usage),
    }


def time_of_day(timestamp_ms: int, timezone_name: str = "UTC") -> str:
    """Bucket a timestamp: morning 6-12, afternoon 12-17, evening 17-22, else night."""
    hour = local_hour(timestamp_ms, timezone_name)
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"


def analyze_temporal_patterns(daily_data: DailyData, timezone_name: str = "UTC") -> Dict[str, Any]:
    """Group the day's activities, places and calls by time of day."""
    patterns: Dict[str, Dict[str, List[Dict[str, Any]]]] = {
        bucket: {"activities": [], "locations": [], "calls": []}
        for bucket in TIME_OF_DAY_BUCKETS
    }
    for key, records in (
        ("activities", daily_data.activities),
        ("locations", daily_data.locations),
        ("calls", daily_data.call_logs),
    ):
        for record in records:
            if record.timestamp is None:
                continue
            patterns[time_of_day(record.timestamp, timezone_name)][key].append(record.to_dict())
    return patterns


def analyze_data_correlations(daily_data: DailyData, timezone_name: str = "UTC") -> Dict[str, Any]:
    """Run every cross-source correlation over one day.

    Returns:
        Dict keyed ``activity_location``, ``health_activity``,
        ``social_location``, ``app_usage_patterns`` and ``temporal_patterns``.
    """
    correlations = {
        "activity_location": correlate_activity_with_location(
            daily_data.activities, daily_data.locations
        ),
        "health_activity": correlate_health_with_activity(
            daily_data.health_data, daily_data.activities
        ),
        "social_location": correlate_social_with_location(
            daily_data.call_logs, daily_data.locations
        ),
        "app_usage_patterns": analyze_app_usage_patterns(daily_data.app_usage, timezone_name),
        "temporal_patterns": analyze_temporal_patterns(daily_data, timezone_name),
    }
    logger.debug(
        "Cross-source: %d activity-location, %d health-activity, %d social-location",
        len(correlations["activity_location"]),
        len(correlations["health_activity"]),
        len(correlations["social_location"]),
    )
    return correlations
