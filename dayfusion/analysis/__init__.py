"""DayFusion analysis package.

Pure analytical functions only — no I/O, no collaborator calls, no side effects.
All functions operate on typed models from dayfusion.models.
"""

from dayfusion.analysis.correlation import (
    DEFAULT_RULES,
    build_default_rules,
    detect_patterns,
    extract_events_from_activities,
    extract_events_from_daily_data,
    find_event_sequence,
    generate_insights,
)
from dayfusion.analysis.cross_source import analyze_data_correlations
from dayfusion.analysis.fusion import apply_confidence_scoring, harmonize
from dayfusion.analysis.trends import analyze_weekly_trends, two_halves_trend

__all__ = [
    "harmonize",
    "apply_confidence_scoring",
    "DEFAULT_RULES",
    "build_default_rules",
    "detect_patterns",
    "extract_events_from_activities",
    "extract_events_from_daily_data",
    "find_event_sequence",
    "generate_insights",
    "analyze_data_correlations",
    "analyze_weekly_trends",
    "two_halves_trend",
]
