"""SummaryAgent — Assemble the DailySummary from upstream phase results.

Builds overview, detailed and stats sections, merges daily and pattern
insights, and, only when requested, asks the narrative collaborator for
prose. A missing or failing narrative leaves ``narrative`` as None.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from dayfusion.agents.base import BaseAgent
from dayfusion.analysis.stats import (
    build_daily_stats,
    build_detailed_summary,
    build_narrative_context,
    build_overview,
    generate_daily_insights,
)
from dayfusion.clients.base import NarrativeGenerator
from dayfusion.models.correlation import CorrelationResult
from dayfusion.models.pipeline import SummaryContext
from dayfusion.models.records import DailyData
from dayfusion.models.summary import DailySummary
from dayfusion.utils.date_utils import now_ms

logger = logging.getLogger(__name__)

ENGINE_VERSION = "2.0"


def count_data_sources(daily_data: DailyData) -> int:
    """Number of sources that contributed anything to the day (0-5)."""
    present = [
        daily_data.activities,
        daily_data.locations,
        daily_data.call_logs,
        daily_data.app_usage,
    ]
    return sum(1 for records in present if records) + (1 if daily_data.health_data else 0)


def iso_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


class SummaryAgent(BaseAgent):
    """Assemble one day's summary.

    Args:
        narrative_generator: Optional collaborator producing narrative text.
        clock: Zero-argument callable returning epoch milliseconds.
    """

    name = "SummaryAgent"
    version = "1.0.0"

    def __init__(
        self,
        narrative_generator: Optional[NarrativeGenerator] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.narrative_generator = narrative_generator
        self._clock = clock or now_ms

    def run(self, context: SummaryContext) -> DailySummary:
        """Build the DailySummary for context.day.

        Args:
            context: SummaryContext with daily_data, fused_slots and
                correlation_result populated by earlier phases.

        Returns:
            Fully populated DailySummary.
        """
        daily = context.daily_data or DailyData(date=context.day_str)
        correlation = context.correlation_result or CorrelationResult()
        cross = correlation.cross_source

        narrative: Optional[str] = None
        if context.options.include_narrative:
            narrative = self.generate_narrative(daily, cross)
            if narrative is None:
                context.add_warning("Narrative unavailable")

        slots = context.fused_slots or {}
        mean_confidence = (
            sum(s.confidence for s in slots.values()) / len(slots) if slots else 0.0
        )

        summary = DailySummary(
            date=daily.date,
            overview=build_overview(daily, cross),
            detailed=build_detailed_summary(daily, cross),
            stats=build_daily_stats(daily),
            insights=generate_daily_insights(daily, cross) + list(correlation.insights),
            patterns=list(correlation.patterns),
            narrative=narrative,
            generated_at=iso_timestamp(self._clock()),
            metadata={
                "data_sources": count_data_sources(daily),
                "correlations": len(correlation.patterns),
                "event_count": correlation.event_count,
                "slot_count": len(slots),
                "mean_slot_confidence": round(mean_confidence, 4),
                "failed_sources": list(daily.failed_sources),
                "timezone": context.config.timezone,
                "version": ENGINE_VERSION,
            },
        )
        logger.info(
            "SummaryAgent: %s | insights=%d patterns=%d narrative=%s",
            summary.date,
            len(summary.insights),
            len(summary.patterns),
            "yes" if summary.narrative else "no",
        )
        return summary

    def generate_narrative(self, daily: DailyData, cross_source: Dict[str, Any]) -> Optional[str]:
        """Ask the narrative collaborator for text; None on absence or failure."""
        if self.narrative_generator is None:
            logger.debug("SummaryAgent: narrative requested but no generator configured")
            return None
        prompt_context = build_narrative_context(daily, cross_source)
        try:
            text = self.narrative_generator.generate_narrative_text(prompt_context)
        except Exception as exc:
            logger.warning("SummaryAgent: narrative generation failed for %s: %s", daily.date, exc)
            return None
        if not text or not isinstance(text, str):
            return None
        return text.strip() or None
