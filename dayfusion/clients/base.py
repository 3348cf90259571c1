"""Collaborator interfaces required by the DayFusion engine.

Callers implement these to plug data sources, narrative generation and
long-term storage into the orchestrator. The engine never talks to a
device, database or model directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional

if TYPE_CHECKING:
    from dayfusion.models.summary import DailySummary


class SourceCollector(ABC):
    """Supplies one day's raw records.

    Range methods receive inclusive epoch-millisecond bounds of the local
    day. Each method may return SourceRecord objects or plain mappings; the
    collection phase normalizes both.
    """

    @abstractmethod
    def get_activities_for_date_range(self, start_ms: int, end_ms: int) -> Iterable[Any]:
        """Activities (workouts, walks, sleep, ...) started in the range."""

    @abstractmethod
    def get_visited_places(self, start_ms: int, end_ms: int) -> Iterable[Any]:
        """Places visited in the range."""

    @abstractmethod
    def get_call_analytics(self, start_ms: int, end_ms: int) -> Iterable[Any]:
        """Phone calls in the range."""

    @abstractmethod
    def get_app_usage_for_date(self, day: date) -> Iterable[Any]:
        """Foreground app usage sessions for the day."""

    @abstractmethod
    def get_health_context_for_date(self, day: date) -> Optional[Mapping[str, Any]]:
        """Daily health totals (steps, calories, ...) or None."""

    def is_call_log_available(self) -> bool:
        """Whether call logs can be read on this device. Defaults to True."""
        return True


class NarrativeGenerator(ABC):
    """Turns a compact day context into prose."""

    @abstractmethod
    def generate_narrative_text(self, prompt_context: Dict[str, Any]) -> Optional[str]:
        """Return narrative text, or None if none could be produced."""


class SummaryStore(ABC):
    """Persists daily summaries beyond the cache lifetime."""

    @abstractmethod
    def add_daily_summary(self, day: str, summary: "DailySummary") -> None:
        """Store the summary for an ISO date (YYYY-MM-DD)."""
