"""FusionAgent — Harmonize the day's sources onto fixed-width time slots.

Two entry points share one fusion core:
- run(context): fuses the collected day (activities, places, calls, app
  usage) together with every configured health source.
- merge_health_data(day): fuses only the priority-ordered health sources
  (platform health API > fitness tracker import > manual entry).

A health source whose fetch raises is logged and omitted; it never aborts
the fusion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from dayfusion.agents.base import BaseAgent
from dayfusion.analysis.fusion import harmonize
from dayfusion.models.fusion import TimeSlot
from dayfusion.models.pipeline import SummaryContext
from dayfusion.models.records import SourceBatch, to_records
from dayfusion.utils.date_utils import now_ms

logger = logging.getLogger(__name__)


@dataclass
class HealthSource:
    """A named health data source with a fetch function.

    Lower ``priority`` values are fetched first.
    """

    name: str
    priority: int
    fetch: Callable[[date], Iterable[Any]]


class FusionAgent(BaseAgent):
    """Build scored TimeSlots from the day's collected records and health sources.

    Args:
        health_sources: Health sources to merge (any order; sorted by priority).
        slot_width_ms: Slot width in milliseconds.
        clock: Zero-argument callable returning epoch milliseconds.
    """

    name = "FusionAgent"
    version = "1.0.0"

    def __init__(
        self,
        health_sources: Sequence[HealthSource] = (),
        slot_width_ms: Optional[int] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.health_sources = sorted(health_sources, key=lambda s: s.priority)
        self.slot_width_ms = slot_width_ms
        self._clock = clock or now_ms

    def run(self, context: SummaryContext) -> Dict[int, TimeSlot]:
        """Fuse the collected day plus health sources for context.day.

        Args:
            context: SummaryContext with daily_data populated by FETCH.

        Returns:
            Dict of slot start → scored TimeSlot.
        """
        width = self.slot_width_ms or context.config.slot_width_ms
        batches: Dict[str, SourceBatch] = {}
        if context.daily_data is not None:
            batches.update(context.daily_data.source_batches())
        batches.update(self.collect_health_sources(context.day))

        slots = harmonize(batches, width_ms=width, now_ms=self._clock())
        logger.info(
            "FusionAgent: %s | %d sources → %d slots",
            context.day_str, len(batches), len(slots),
        )
        return slots

    def collect_health_sources(self, day: date) -> Dict[str, SourceBatch]:
        """Fetch every health source for one day, skipping failures.

        Returns:
            Mapping of source name → SourceBatch for sources that returned data.
        """
        batches: Dict[str, SourceBatch] = {}
        for source in self.health_sources:
            try:
                raw = source.fetch(day)
            except Exception as exc:
                logger.warning("FusionAgent: health source %s failed for %s: %s", source.name, day, exc)
                continue
            records = to_records(source.name, raw)
            if not records:
                logger.debug("FusionAgent: health source %s returned no data", source.name)
                continue
            batches[source.name] = SourceBatch(source=source.name, data=records, priority=source.priority)
        return batches

    def merge_health_data(
        self,
        day: date,
        expected_sources: Optional[Sequence[str]] = None,
        slot_width_ms: Optional[int] = None,
    ) -> Dict[int, TimeSlot]:
        """Fuse only the health sources for one day.

        Args:
            day: Calendar day.
            expected_sources: Sources a complete slot would contain (defaults
                to every configured health source).
            slot_width_ms: Slot width override.

        Returns:
            Dict of slot start → scored TimeSlot. Empty when no source had data.
        """
        batches = self.collect_health_sources(day)
        expected: List[str] = (
            list(expected_sources)
            if expected_sources is not None
            else [s.name for s in self.health_sources]
        )
        width = slot_width_ms or self.slot_width_ms
        kwargs: Dict[str, Any] = {"expected_sources": expected, "now_ms": self._clock()}
        if width:
            kwargs["width_ms"] = width
        slots = harmonize(batches, **kwargs)
        logger.info(
            "FusionAgent: health merge %s | %d/%d sources → %d slots",
            day, len(batches), len(self.health_sources), len(slots),
        )
        return slots
