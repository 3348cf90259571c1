"""Correlation data models for DayFusion.

Defines declarative correlation rules, the ephemeral events they match
against, and the detected patterns and insights they produce.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class CorrelationRule:
    """A declarative ordered-event pattern. Read-only configuration."""

    rule_id: str
    events: Tuple[str, ...]
    time_window_ms: int
    confidence: float
    narrative_tag: str
    tier: str = ""          # "immediate", "short", "medium" or "long"


@dataclass(frozen=True)
class Event:
    """A typed point on the day's timeline, derived for one correlation pass."""

    type: str
    timestamp: int
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class DetectedPattern:
    """All matches of one rule over one event stream."""

    rule: str
    confidence: float
    matches: List[List[Event]] = field(default_factory=list)
    narrative_tag: str = ""
    detected_at: int = 0

    @property
    def match_count(self) -> int:
        return len(self.matches)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["match_count"] = self.match_count
        return data


@dataclass
class Insight:
    """A human-facing observation derived from patterns or raw daily data."""

    type: str                       # "fitness", "sleep", "data_quality", "activity", ...
    severity: str                   # "positive", "info", "warning"
    message: str
    recommendation: str = ""
    rule: Optional[str] = None      # Correlation rule that produced this insight
    impact: str = ""                # "high", "medium", "low"
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EventChain:
    """A detected pattern flattened for narrative consumers."""

    date: str
    pattern: str
    confidence: float
    events: List[List[Event]] = field(default_factory=list)
    narrative: str = ""


@dataclass
class CorrelationResult:
    """Complete output of one correlation pass over a day."""

    patterns: List[DetectedPattern] = field(default_factory=list)
    insights: List[Insight] = field(default_factory=list)
    cross_source: Dict[str, Any] = field(default_factory=dict)
    event_count: int = 0
