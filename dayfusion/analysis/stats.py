"""Daily statistics, section summaries, and insights for DayFusion.

Builds the overview, detailed and stats sections of a DailySummary from a
collected day and its cross-source correlations. Pure functions — no I/O.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence

from config.defaults import (
    DAILY_STEP_GOAL,
    GOOD_ACTIVITY_STEPS,
    HIGH_ACTIVITY_COUNT,
    HIGH_CALORIE_BURN,
    MOVEMENT_LOCAL_KM,
    MOVEMENT_MODERATE_KM,
    STRONG_CORRELATION_COUNT,
    TOP_APPS_LIMIT,
)
from dayfusion.models.correlation import Insight
from dayfusion.models.records import DailyData, SourceRecord
from dayfusion.models.summary import DailyOverview, DailyStats, DetailedSummary
from dayfusion.utils.geo_utils import coordinates_of, haversine_km, place_identifier

logger = logging.getLogger(__name__)


def _num(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0.0
    return float(value)


def _health(daily_data: DailyData) -> Mapping[str, Any]:
    return daily_data.health_data or {}


def _total(records: Sequence[SourceRecord], key: str) -> float:
    return sum(_num(r.get(key)) for r in records)


def _distinct(values: Sequence[Any]) -> List[Any]:
    seen: List[Any] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


# ── Helpers ───────────────────────────────────────────────────────────────────


def group_by(records: Sequence[SourceRecord], key: str) -> Dict[str, List[Dict[str, Any]]]:
    """Group records by a field value; missing values group under "Unknown"."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for record in records:
        group = str(record.get(key) or "Unknown")
        groups.setdefault(group, []).append(record.to_dict())
    return groups


def find_most_visited_location(locations: Sequence[SourceRecord]) -> Optional[Dict[str, Any]]:
    """Most frequent place identifier, or None when no places were visited."""
    visits = Counter(
        identifier for identifier in (place_identifier(p) for p in locations) if identifier
    )
    if not visits:
        return None
    name, count = visits.most_common(1)[0]
    return {"name": name, "visits": count}


def analyze_movement_pattern(locations: Sequence[SourceRecord]) -> str:
    """Classify movement by mean hop distance between consecutive places.

    Returns "stationary" with fewer than two located places, otherwise
    "local" (< 1 km), "moderate" (< 10 km) or "extensive".
    """
    points = [c for c in (coordinates_of(p) for p in locations) if c is not None]
    if len(points) < 2:
        return "stationary"
    hops = [
        haversine_km(a[0], a[1], b[0], b[1])
        for a, b in zip(points, points[1:])
    ]
    mean = sum(hops) / len(hops)
    if mean < MOVEMENT_LOCAL_KM:
        return "local"
    if mean < MOVEMENT_MODERATE_KM:
        return "moderate"
    return "extensive"


def find_top_app_category(app_usage: Sequence[SourceRecord]) -> Optional[Dict[str, Any]]:
    if not app_usage:
        return None
    totals: Dict[str, float] = {}
    for app in app_usage:
        category = app.get("category") or "Other"
        totals[category] = totals.get(category, 0.0) + _num(app.get("duration"))
    name = max(totals, key=lambda k: totals[k])
    return {"name": name, "duration": totals[name]}


def get_top_apps(app_usage: Sequence[SourceRecord], limit: int = TOP_APPS_LIMIT) -> List[Dict[str, Any]]:
    """Apps ranked by total duration, longest first."""
    totals: Dict[str, float] = {}
    for app in app_usage:
        name = str(app.get("app_name") or "Unknown")
        totals[name] = totals.get(name, 0.0) + _num(app.get("duration"))
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "duration": duration} for name, duration in ranked[:limit]]


# ── Sections ──────────────────────────────────────────────────────────────────


def extract_key_insights(daily_data: DailyData, correlations: Mapping[str, Any]) -> List[str]:
    insights: List[str] = []
    if _num(_health(daily_data).get("steps")) > DAILY_STEP_GOAL:
        insights.append("Achieved step goal")
    if len(daily_data.activities) > HIGH_ACTIVITY_COUNT:
        insights.append("High activity day")
    if len(correlations.get("activity_location") or []) > STRONG_CORRELATION_COUNT:
        insights.append("Strong location-activity correlation")
    return insights


def build_overview(daily_data: DailyData, correlations: Mapping[str, Any]) -> DailyOverview:
    """Headline numbers for the day.

    Steps and calories come from the health context. Distance and active
    minutes come from the health context when it reports them, otherwise
    from the activity records (``duration`` in milliseconds).
    """
    health = _health(daily_data)
    distance = _num(health.get("distance")) or _total(daily_data.activities, "distance")
    active_minutes = _num(health.get("active_minutes")) or (
        _total(daily_data.activities, "duration") / 60000
    )
    return DailyOverview(
        total_activities=len(daily_data.activities),
        unique_locations=len(daily_data.locations),
        total_calls=len(daily_data.call_logs),
        screen_time=_total(daily_data.app_usage, "duration"),
        total_steps=int(_num(health.get("steps"))),
        total_calories=_num(health.get("calories")),
        total_distance=distance,
        active_minutes=active_minutes,
        locations=_distinct([place_identifier(p) for p in daily_data.locations]),
        key_insights=extract_key_insights(daily_data, correlations),
    )


def summarize_correlations(correlations: Mapping[str, Any]) -> Dict[str, int]:
    counts = {
        key: len(correlations.get(key) or [])
        for key in ("activity_location", "health_activity", "social_location")
    }
    counts["total_patterns"] = sum(
        len(value) for value in correlations.values() if isinstance(value, list)
    )
    return counts


def build_detailed_summary(daily_data: DailyData, correlations: Mapping[str, Any]) -> DetailedSummary:
    activities = daily_data.activities
    locations = daily_data.locations
    calls = daily_data.call_logs
    apps = daily_data.app_usage

    return DetailedSummary(
        activities={
            "count": len(activities),
            "types": _distinct([a.get("type") for a in activities]),
            "total_duration": _total(activities, "duration"),
            "by_type": group_by(activities, "type"),
        },
        locations={
            "count": len(locations),
            "unique_places": _distinct([p.get("name") for p in locations]),
            "most_visited": find_most_visited_location(locations),
        },
        social={
            "total_calls": len(calls),
            "total_duration": _total(calls, "duration"),
            "contacts": _distinct([c.get("contact_name") for c in calls]),
            "by_type": group_by(calls, "call_type"),
        },
        digital={
            "total_time": _total(apps, "duration"),
            "unique_apps": _distinct([a.get("app_name") for a in apps]),
            "top_apps": get_top_apps(apps),
            "by_category": group_by(apps, "category"),
        },
        health=dict(daily_data.health_data) if daily_data.health_data else {
            "message": "No health data available"
        },
        correlations=summarize_correlations(correlations),
    )


def build_daily_stats(daily_data: DailyData) -> DailyStats:
    activities = daily_data.activities
    calls = daily_data.call_logs
    apps = daily_data.app_usage

    return DailyStats(
        activity_stats={
            "total_count": len(activities),
            "total_duration": _total(activities, "duration"),
            "types": len(_distinct([a.get("type") for a in activities])),
        },
        location_stats={
            "unique_places": len(daily_data.locations),
            "most_visited": find_most_visited_location(daily_data.locations),
            "travel_pattern": analyze_movement_pattern(daily_data.locations),
        },
        social_stats={
            "total_calls": len(calls),
            "total_duration": _total(calls, "duration"),
            "unique_contacts": len(_distinct([c.get("contact_name") for c in calls])),
        },
        digital_stats={
            "screen_time": _total(apps, "duration"),
            "unique_apps": len(_distinct([a.get("app_name") for a in apps])),
            "top_category": find_top_app_category(apps),
        },
        health_stats=dict(daily_data.health_data or {}),
    )


# ── Insights ──────────────────────────────────────────────────────────────────


def generate_activity_insight(activities: Sequence[SourceRecord]) -> Optional[Insight]:
    if not activities:
        return None
    types = _distinct([a.get("type") for a in activities])
    total_duration = _total(activities, "duration")
    return Insight(
        type="activity",
        severity="info",
        message=f"Recorded {len(activities)} activities across {len(types)} different types",
        impact="high" if len(activities) > HIGH_ACTIVITY_COUNT else "medium",
        details={
            "total_duration": total_duration,
            "activity_types": types,
            "avg_duration": total_duration / len(activities),
        },
    )


def generate_health_insight(health_data: Optional[Mapping[str, Any]]) -> Optional[Insight]:
    """Summarize step and calorie milestones from the day's health context."""
    if not health_data:
        return None
    steps = _num(health_data.get("steps"))
    notes: List[str] = []
    if steps > DAILY_STEP_GOAL:
        notes.append("Exceeded daily step goal")
    elif steps > GOOD_ACTIVITY_STEPS:
        notes.append("Good activity level")
    if _num(health_data.get("calories")) > HIGH_CALORIE_BURN:
        notes.append("High calorie burn day")

    return Insight(
        type="health",
        severity="positive" if notes else "info",
        message=", ".join(notes) or "Health data recorded",
        impact="high" if steps > DAILY_STEP_GOAL else "medium",
        details=dict(health_data),
    )


def generate_daily_insights(daily_data: DailyData, correlations: Mapping[str, Any]) -> List[Insight]:
    """Activity, health and correlation insights for one day."""
    insights = [
        generate_activity_insight(daily_data.activities),
        generate_health_insight(daily_data.health_data),
    ]
    activity_location = correlations.get("activity_location") or []
    if activity_location:
        insights.append(
            Insight(
                type="correlation",
                severity="info",
                message=f"Found {len(activity_location)} activity-location correlations",
                impact="medium",
            )
        )
    return [i for i in insights if i is not None]


def build_narrative_context(daily_data: DailyData, correlations: Mapping[str, Any]) -> Dict[str, Any]:
    """Compact plain-text context handed to the narrative collaborator."""
    health = daily_data.health_data
    if health:
        health_summary = (
            f"{int(_num(health.get('steps')))} steps, "
            f"{int(_num(health.get('calories')))} calories"
        )
    else:
        health_summary = "No health data"
    return {
        "date": daily_data.date,
        "activity_summary": f"{len(daily_data.activities)} activities recorded",
        "location_summary": f"Visited {len(daily_data.locations)} places",
        "social_summary": f"{len(daily_data.call_logs)} phone interactions",
        "health_summary": health_summary,
        "key_correlations": len(correlations.get("activity_location") or []),
    }
