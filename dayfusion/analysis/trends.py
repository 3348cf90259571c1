"""Multi-day folds for DayFusion weekly and monthly summaries.

Sums counted metrics across daily summaries, unions visited places, and
compares the two halves of a period to label its trend.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Sequence

from config.defaults import (
    DAILY_STEP_GOAL,
    TREND_DECREASE_RATIO,
    TREND_INCREASE_RATIO,
    TREND_MIN_DAYS,
)
from dayfusion.models.correlation import Insight
from dayfusion.models.summary import DailySummary

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_average_activity(summaries: Sequence[DailySummary]) -> int:
    """Mean daily step count, rounded half-up. 0 for an empty period."""
    if not summaries:
        return 0
    total = sum(s.overview.total_steps for s in summaries)
    return _round_half_up(total / len(summaries))


def aggregate_period_stats(summaries: Sequence[DailySummary]) -> Dict[str, Any]:
    """Sum counted metrics and union visited places across a period.

    Returns:
        Dict with total steps, distance, calories, active minutes, the
        union of visited place identifiers (first-seen order) and its size.
    """
    locations: List[str] = []
    seen = set()
    for summary in summaries:
        for place in summary.overview.locations:
            if place not in seen:
                seen.add(place)
                locations.append(place)

    return {
        "total_steps": sum(s.overview.total_steps for s in summaries),
        "total_distance": sum(s.overview.total_distance for s in summaries),
        "total_calories": sum(s.overview.total_calories for s in summaries),
        "active_minutes": sum(s.overview.active_minutes for s in summaries),
        "unique_locations": len(locations),
        "locations": locations,
    }


def two_halves_trend(values: Sequence[float]) -> str:
    """Label a series by comparing the mean of its two halves.

    The split point is ``len // 2``, so an odd-length series puts the extra
    element in the second half. Fewer than three values is always "stable".

    Args:
        values: Per-day metric values in chronological order.

    Returns:
        "increasing" when the second-half mean exceeds the first by more than
        10%, "decreasing" when it falls more than 10% below, else "stable".
    """
    if len(values) < TREND_MIN_DAYS:
        return "stable"
    mid = len(values) // 2
    first = values[:mid]
    second = values[mid:]
    first_avg = sum(first) / len(first)
    second_avg = sum(second) / len(second)
    if second_avg > first_avg * TREND_INCREASE_RATIO:
        return "increasing"
    if second_avg < first_avg * TREND_DECREASE_RATIO:
        return "decreasing"
    return "stable"


def analyze_weekly_trends(summaries: Sequence[DailySummary]) -> Dict[str, str]:
    return {
        "activity_trend": two_halves_trend([s.overview.total_steps for s in summaries]),
        # No per-day sleep metric is collected
        "sleep_trend": "stable",
        "social_trend": two_halves_trend([s.overview.total_calls for s in summaries]),
    }


def generate_weekly_insights(summaries: Sequence[DailySummary]) -> List[Insight]:
    insights: List[Insight] = []
    average = calculate_average_activity(summaries)
    if average > DAILY_STEP_GOAL:
        insights.append(
            Insight(
                type="activity",
                severity="positive",
                message="Great weekly activity level!",
                details={"average_steps": average},
            )
        )
    if analyze_weekly_trends(summaries)["activity_trend"] == "increasing":
        insights.append(
            Insight(
                type="trend",
                severity="positive",
                message="Activity levels are increasing",
                recommendation="Keep up the good momentum!",
            )
        )
    return insights
