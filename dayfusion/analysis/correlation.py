"""Rule-based event correlation for DayFusion.

Projects a day's records into a chronologically sorted event stream and
matches a declarative catalogue of ordered-event rules against it using a
rolling time window. Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
import math
import re
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from config.defaults import (
    COMPLETENESS_WITH_ACTIVITIES,
    COMPLETENESS_WITHOUT_ACTIVITIES,
    DATA_COMPLETENESS_THRESHOLD,
)
from config.settings import CorrelationWindows
from dayfusion.models.correlation import CorrelationRule, DetectedPattern, Event, Insight
from dayfusion.models.records import DailyData, SourceRecord
from dayfusion.utils.date_utils import now_ms
from dayfusion.utils.geo_utils import place_identifier

logger = logging.getLogger(__name__)

_HOUR_MS = 60 * 60 * 1000

# Place tags recognised in a location's category or name
_PLACE_TAGS: Dict[str, Tuple[str, ...]] = {
    "location_home": ("home",),
    "location_work": ("work", "office"),
    "location_gym": ("gym", "fitness"),
}

# App categories treated as fitness usage
_FITNESS_APP_TOKENS: Tuple[str, ...] = ("fitness", "health", "sports", "workout")

RecordLike = Union[SourceRecord, Mapping[str, Any]]


def build_default_rules(windows: Optional[CorrelationWindows] = None) -> Tuple[CorrelationRule, ...]:
    """Build the built-in rule catalogue against a set of window tiers.

    Args:
        windows: Window tiers in milliseconds (default: CorrelationWindows()).

    Returns:
        Tuple of the five built-in CorrelationRule definitions.
    """
    w = windows or CorrelationWindows()
    return (
        CorrelationRule(
            rule_id="workout_location",
            events=("workout_start", "location_change"),
            time_window_ms=w.immediate,
            confidence=0.9,
            narrative_tag="workout_at_location",
            tier="immediate",
        ),
        CorrelationRule(
            rule_id="pre_workout_preparation",
            events=("app_usage_fitness", "location_gym", "workout_start"),
            time_window_ms=w.short,
            confidence=0.8,
            narrative_tag="planned_workout",
            tier="short",
        ),
        CorrelationRule(
            rule_id="bedtime_routine",
            events=("app_usage_decrease", "location_home", "sleep_start"),
            time_window_ms=w.medium,
            confidence=0.85,
            narrative_tag="bedtime_preparation",
            tier="medium",
        ),
        CorrelationRule(
            rule_id="work_break_activity",
            events=("location_work", "step_increase", "call_personal"),
            time_window_ms=w.short,
            confidence=0.7,
            narrative_tag="work_break_taken",
            tier="short",
        ),
        CorrelationRule(
            rule_id="commute_pattern",
            events=("location_home", "step_increase", "location_work"),
            time_window_ms=w.medium,
            confidence=0.9,
            narrative_tag="daily_commute",
            tier="medium",
        ),
    )


DEFAULT_RULES: Tuple[CorrelationRule, ...] = build_default_rules()


# ── Event projection ──────────────────────────────────────────────────────────


def _as_record(source: str, item: RecordLike) -> SourceRecord:
    if isinstance(item, SourceRecord):
        return item
    return SourceRecord.from_mapping(source, item)


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return 0.0


def _sort_events(events: List[Event]) -> List[Event]:
    # list.sort is stable: ties keep their projection order
    return sorted(events, key=lambda e: e.timestamp)


def extract_events_from_activities(activities: Iterable[RecordLike]) -> List[Event]:
    """Project activity records into a sorted event stream.

    Workouts yield ``workout_start``, sleep yields ``sleep_start``, a
    non-empty ``location`` yields ``location_change`` and positive ``steps``
    yields ``step_increase``. Records without a timestamp are skipped.

    Args:
        activities: Activity records (SourceRecord or raw mappings).

    Returns:
        Events sorted ascending by timestamp (stable).
    """
    events: List[Event] = []
    for item in activities or ():
        record = _as_record("activities", item)
        ts = record.timestamp
        if ts is None:
            continue
        activity_type = str(record.get("type") or "").lower()
        if activity_type == "workout":
            events.append(Event("workout_start", ts, record.to_dict()))
        elif activity_type == "sleep":
            events.append(Event("sleep_start", ts, record.to_dict()))
        location = record.get("location")
        if location:
            events.append(Event("location_change", ts, {"location": location}))
        if _number(record.get("steps")) > 0:
            events.append(Event("step_increase", ts, {"steps": record.get("steps")}))
    return _sort_events(events)


def _place_tags(place: SourceRecord) -> List[str]:
    text = f"{place.get('category') or ''} {place.get('name') or ''}".lower()
    tokens = set(re.split(r"[^a-z]+", text))
    return [tag for tag, words in _PLACE_TAGS.items() if tokens.intersection(words)]


def _location_events(locations: Iterable[RecordLike]) -> List[Event]:
    events: List[Event] = []
    for item in locations or ():
        place = _as_record("locations", item)
        if place.timestamp is None:
            continue
        identifier = place_identifier(place)
        payload = {"location": identifier, "category": place.get("category")}
        events.append(Event("location_change", place.timestamp, payload))
        for tag in _place_tags(place):
            events.append(Event(tag, place.timestamp, dict(payload)))
    return events


def _call_events(call_logs: Iterable[RecordLike]) -> List[Event]:
    events: List[Event] = []
    for item in call_logs or ():
        call = _as_record("call_logs", item)
        contact = call.get("contact_name")
        if call.timestamp is None or not contact:
            continue
        events.append(
            Event(
                "call_personal",
                call.timestamp,
                {"contact": contact, "duration": call.get("duration")},
            )
        )
    return events


def _app_events(app_usage: Iterable[RecordLike]) -> List[Event]:
    events: List[Event] = []
    hourly: Dict[int, float] = defaultdict(float)

    for item in app_usage or ():
        usage = _as_record("app_usage", item)
        if usage.timestamp is None:
            continue
        category = str(usage.get("category") or "").lower()
        if any(token in category for token in _FITNESS_APP_TOKENS):
            events.append(
                Event(
                    "app_usage_fitness",
                    usage.timestamp,
                    {"app": usage.get("app_name"), "category": category},
                )
            )
        hourly[usage.timestamp // _HOUR_MS] += _number(usage.get("duration"))

    if hourly:
        # Walk one hour past the last active hour so a drop to zero is seen
        first, last = min(hourly), max(hourly)
        for hour in range(first + 1, last + 2):
            previous = hourly.get(hour - 1, 0.0)
            current = hourly.get(hour, 0.0)
            if previous > 0 and current < previous / 2:
                events.append(
                    Event(
                        "app_usage_decrease",
                        hour * _HOUR_MS,
                        {"previous": previous, "current": current},
                    )
                )
    return events


def extract_events_from_daily_data(daily_data: DailyData) -> List[Event]:
    """Project a whole day (activities, places, calls, app usage) into events.

    Args:
        daily_data: The collected day.

    Returns:
        Events sorted ascending by timestamp (stable).
    """
    events = extract_events_from_activities(daily_data.activities)
    events.extend(_location_events(daily_data.locations))
    events.extend(_call_events(daily_data.call_logs))
    events.extend(_app_events(daily_data.app_usage))
    return _sort_events(events)


# ── Sequence matching ─────────────────────────────────────────────────────────


def find_event_sequence(
    events: Sequence[Event],
    start_index: int,
    required: Sequence[str],
    window_ms: int,
) -> Optional[List[Event]]:
    """Match a required ordered event-type sequence starting at start_index.

    The window is rolling: each accepted event must fall within window_ms of
    the previously accepted one, not of the sequence start.

    Args:
        events: Events sorted ascending by timestamp.
        start_index: Index to start scanning from.
        required: Ordered event types to match.
        window_ms: Maximum gap between consecutive accepted events.

    Returns:
        The matched events, or None if the sequence is incomplete.
    """
    if start_index >= len(events) or not required:
        return None
    sequence: List[Event] = []
    current_time = events[start_index].timestamp
    for event in events[start_index:]:
        if len(sequence) == len(required):
            break
        if event.type == required[len(sequence)] and event.timestamp <= current_time + window_ms:
            sequence.append(event)
            current_time = event.timestamp
    return sequence if len(sequence) == len(required) else None


def apply_rule(
    rule: CorrelationRule,
    events: Sequence[Event],
    time_window_ms: Optional[int] = None,
    detected_at: Optional[int] = None,
) -> Optional[DetectedPattern]:
    """Evaluate one rule against an event stream.

    Every index holding the rule's first event type is tried as a start, so
    a rule may match several times per day.

    Returns:
        DetectedPattern with all matches, or None if the rule never matched.
    """
    window = time_window_ms if time_window_ms is not None else rule.time_window_ms
    matches: List[List[Event]] = []
    for index, event in enumerate(events):
        if event.type != rule.events[0]:
            continue
        sequence = find_event_sequence(events, index, rule.events, window)
        if sequence is not None:
            matches.append(sequence)

    if not matches:
        return None
    return DetectedPattern(
        rule=rule.rule_id,
        confidence=rule.confidence,
        matches=matches,
        narrative_tag=rule.narrative_tag,
        detected_at=now_ms() if detected_at is None else detected_at,
    )


def _events_of(source: Any) -> List[Event]:
    if isinstance(source, DailyData):
        return extract_events_from_daily_data(source)
    items = list(source or ())
    if items and all(isinstance(item, Event) for item in items):
        return _sort_events(items)
    return extract_events_from_activities(items)


def detect_patterns(
    source: Union[DailyData, Sequence[Event], Sequence[RecordLike]],
    rules: Optional[Sequence[CorrelationRule]] = None,
    time_window_ms: Optional[int] = None,
    detected_at: Optional[int] = None,
) -> List[DetectedPattern]:
    """Detect every catalogue rule in a day's events.

    Args:
        source: A DailyData, a list of Events, or a list of activity records.
        rules: Rule catalogue (default: DEFAULT_RULES).
        time_window_ms: When set, overrides every rule's own window.
        detected_at: Detection timestamp to stamp on patterns (default: now).

    Returns:
        One DetectedPattern per rule that matched at least once, in
        catalogue order.
    """
    catalogue = DEFAULT_RULES if rules is None else rules
    events = _events_of(source)
    stamp = now_ms() if detected_at is None else detected_at

    patterns: List[DetectedPattern] = []
    for rule in catalogue:
        pattern = apply_rule(rule, events, time_window_ms, stamp)
        if pattern is not None:
            patterns.append(pattern)

    logger.debug(
        "Correlation: %d events, %d/%d rules matched",
        len(events), len(patterns), len(catalogue),
    )
    return patterns


# ── Insights ──────────────────────────────────────────────────────────────────

# rule id → (type, severity, message template, recommendation)
_PATTERN_INSIGHTS: Dict[str, Tuple[str, str, str, str]] = {
    "workout_location": (
        "fitness",
        "positive",
        "Regular workouts at consistent locations ({count} instances)",
        "Maintain this routine for better fitness tracking",
    ),
    "bedtime_routine": (
        "sleep",
        "positive",
        "Consistent bedtime routine detected",
        "Continue wind-down activities for better sleep quality",
    ),
    "work_break_activity": (
        "wellness",
        "positive",
        "Active work breaks detected",
        "Keep taking regular movement breaks during work",
    ),
}


def generate_pattern_insight(pattern: DetectedPattern) -> Insight:
    """Map a detected pattern to its fixed insight category."""
    details = {
        "match_count": pattern.match_count,
        "confidence": pattern.confidence,
        "narrative_tag": pattern.narrative_tag,
    }
    entry = _PATTERN_INSIGHTS.get(pattern.rule)
    if entry is None:
        return Insight(
            type="general",
            severity="info",
            message=f"Pattern detected: {pattern.rule}",
            rule=pattern.rule,
            details=details,
        )
    insight_type, severity, template, recommendation = entry
    return Insight(
        type=insight_type,
        severity=severity,
        message=template.format(count=pattern.match_count),
        recommendation=recommendation,
        rule=pattern.rule,
        details=details,
    )


def assess_data_completeness(data: Any) -> float:
    """Coarse day-level completeness proxy based on activity presence.

    Returns 0.0 with no data, 0.8 if any activities exist, otherwise 0.3.
    """
    if data is None:
        return 0.0
    if isinstance(data, Mapping):
        activities = data.get("activities")
    else:
        activities = getattr(data, "activities", None)
    if activities is None:
        return 0.0
    return COMPLETENESS_WITH_ACTIVITIES if len(activities) > 0 else COMPLETENESS_WITHOUT_ACTIVITIES


def generate_data_quality_insights(data: Any) -> List[Insight]:
    completeness = assess_data_completeness(data)
    if completeness >= DATA_COMPLETENESS_THRESHOLD:
        return []
    return [
        Insight(
            type="data_quality",
            severity="warning",
            message="Incomplete data may affect analysis accuracy",
            recommendation="Ensure all health sources are connected and syncing",
            details={"completeness": completeness},
        )
    ]


def generate_insights(patterns: Sequence[DetectedPattern], data: Any) -> List[Insight]:
    """Build pattern insights plus a data-quality warning when data is sparse.

    Args:
        patterns: Patterns detected for the day.
        data: The day's data (DailyData or a mapping with ``activities``).

    Returns:
        Pattern insights in pattern order, followed by any quality insight.
    """
    insights = [generate_pattern_insight(p) for p in patterns]
    insights.extend(generate_data_quality_insights(data))
    return insights
