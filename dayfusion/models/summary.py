"""Summary output models for DayFusion.

Defines the daily, weekly, and monthly summary shapes returned by the
orchestrator. Every model serializes to acyclic plain data via to_dict().
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from dayfusion.models.correlation import DetectedPattern, Insight
from dayfusion.models.fusion import TimeSlot


@dataclass(frozen=True)
class SummaryOptions:
    """Caller options for a summary request.

    ``force_refresh`` bypasses cached results but is not part of the cache key,
    so a refreshed summary replaces the cached one.
    """

    include_narrative: bool = False
    force_refresh: bool = False

    def cache_fields(self) -> Dict[str, Any]:
        """Options that distinguish cached results."""
        return {"include_narrative": self.include_narrative}


@dataclass
class DailyOverview:
    """Headline numbers for one day."""

    total_activities: int = 0
    unique_locations: int = 0
    total_calls: int = 0
    screen_time: float = 0.0
    total_steps: int = 0
    total_calories: float = 0.0
    total_distance: float = 0.0
    active_minutes: float = 0.0
    locations: List[str] = field(default_factory=list)   # Visited place identifiers
    key_insights: List[str] = field(default_factory=list)


@dataclass
class DetailedSummary:
    """Per-domain breakdown of one day."""

    activities: Dict[str, Any] = field(default_factory=dict)
    locations: Dict[str, Any] = field(default_factory=dict)
    social: Dict[str, Any] = field(default_factory=dict)
    digital: Dict[str, Any] = field(default_factory=dict)
    health: Dict[str, Any] = field(default_factory=dict)
    correlations: Dict[str, int] = field(default_factory=dict)


@dataclass
class DailyStats:
    """Statistical view of one day."""

    activity_stats: Dict[str, Any] = field(default_factory=dict)
    location_stats: Dict[str, Any] = field(default_factory=dict)
    social_stats: Dict[str, Any] = field(default_factory=dict)
    digital_stats: Dict[str, Any] = field(default_factory=dict)
    health_stats: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DailySummary:
    """Top-level result of one daily orchestrator run.

    ``narrative`` stays None unless a narrative was requested and the
    narrative collaborator produced text.
    """

    date: str
    overview: DailyOverview = field(default_factory=DailyOverview)
    detailed: DetailedSummary = field(default_factory=DetailedSummary)
    stats: DailyStats = field(default_factory=DailyStats)
    insights: List[Insight] = field(default_factory=list)
    patterns: List[DetectedPattern] = field(default_factory=list)
    narrative: Optional[str] = None
    generated_at: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class WeeklySummary:
    """Fold of consecutive daily summaries."""

    start_date: str
    end_date: str
    days: int = 0
    period: str = "week"
    average_activity: int = 0
    total_stats: Dict[str, Any] = field(default_factory=dict)
    trends: Dict[str, str] = field(default_factory=dict)
    insights: List[Insight] = field(default_factory=list)
    daily_dates: List[str] = field(default_factory=list)
    timezone: str = "UTC"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthlySummary(WeeklySummary):
    """Fold of every daily summary in one calendar month."""

    year: int = 0
    month: int = 0


@dataclass
class AnalysisResult:
    """Unified analysis: fused health slots, patterns, summary, and insights."""

    date: str
    slots: Dict[int, TimeSlot] = field(default_factory=dict)
    patterns: List[DetectedPattern] = field(default_factory=list)
    summary: Optional[DailySummary] = None
    insights: List[Insight] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "slots": {str(k): v.to_dict() for k, v in self.slots.items()},
            "patterns": [p.to_dict() for p in self.patterns],
            "summary": self.summary.to_dict() if self.summary is not None else None,
            "insights": [i.to_dict() for i in self.insights],
            "metadata": dict(self.metadata),
        }
