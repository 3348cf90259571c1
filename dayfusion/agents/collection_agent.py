"""CollectionAgent — Fetch one day's records from every source collector.

Issues the five collector calls concurrently and waits for all of them.
A collector that raises is logged and treated as empty (or None for the
health context); only a day on which every collector raised is fatal.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

from dayfusion.agents.base import BaseAgent, DailyDataUnavailableError
from dayfusion.clients.base import SourceCollector
from dayfusion.models.pipeline import SummaryContext
from dayfusion.models.records import DailyData, to_records
from dayfusion.utils.date_utils import day_bounds_ms, format_date, now_ms

logger = logging.getLogger(__name__)

_HEALTH = "health_data"


class CollectionAgent(BaseAgent):
    """Fan out the day's collector calls and assemble a DailyData.

    Args:
        collector: SourceCollector supplying raw records.
        clock: Zero-argument callable returning epoch milliseconds.
    """

    name = "CollectionAgent"
    version = "1.0.0"

    def __init__(
        self,
        collector: SourceCollector,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.collector = collector
        self._clock = clock or now_ms

    def run(self, context: SummaryContext) -> DailyData:
        """Collect every source for context.day.

        Args:
            context: SummaryContext with config (timezone, worker count) and day.

        Returns:
            DailyData with normalized records and the list of failed sources.

        Raises:
            DailyDataUnavailableError: If every collector call raised.
        """
        return self.collect(context.day, context.config.timezone, context.config.collector_max_workers)

    def collect(self, day: date, timezone_name: str = "UTC", max_workers: int = 5) -> DailyData:
        """Collect one day outside a full summary run (see run())."""
        start_ms, end_ms = day_bounds_ms(day, timezone_name)
        tasks: Dict[str, Callable[[], Any]] = {
            "activities": lambda: self.collector.get_activities_for_date_range(start_ms, end_ms),
            "locations": lambda: self.collector.get_visited_places(start_ms, end_ms),
            "call_logs": self._fetch_call_logs(start_ms, end_ms),
            "app_usage": lambda: self.collector.get_app_usage_for_date(day),
            _HEALTH: lambda: self.collector.get_health_context_for_date(day),
        }

        results: Dict[str, Any] = {}
        failed: List[str] = []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_map = {executor.submit(fn): key for key, fn in tasks.items()}
            for future in as_completed(future_map):
                key = future_map[future]
                try:
                    results[key] = future.result()
                except Exception as exc:
                    logger.warning("CollectionAgent: %s collector failed for %s: %s", key, day, exc)
                    failed.append(key)
                    results[key] = None

        health = results.get(_HEALTH)
        if health is not None and not isinstance(health, Mapping):
            logger.warning(
                "CollectionAgent: health context for %s is %s, not a mapping — ignoring",
                day, type(health).__name__,
            )
            failed.append(_HEALTH)
            health = None

        if len(failed) == len(tasks):
            logger.error("CollectionAgent: every collector failed for %s", day)
            raise DailyDataUnavailableError(f"No data source could be read for {format_date(day)}")

        daily = DailyData(
            date=format_date(day),
            activities=to_records("activities", results.get("activities")),
            locations=to_records("locations", results.get("locations")),
            call_logs=to_records("call_logs", results.get("call_logs")),
            app_usage=to_records("app_usage", results.get("app_usage")),
            health_data=dict(health) if health else None,
            fetched_at=self._clock(),
            # Deterministic order regardless of completion order
            failed_sources=sorted(failed),
        )

        logger.info(
            "CollectionAgent: %s | activities=%d locations=%d calls=%d apps=%d health=%s | failed=%s",
            daily.date,
            len(daily.activities),
            len(daily.locations),
            len(daily.call_logs),
            len(daily.app_usage),
            "yes" if daily.health_data else "no",
            daily.failed_sources or "none",
        )
        return daily

    def _fetch_call_logs(self, start_ms: int, end_ms: int) -> Callable[[], Any]:
        def fetch() -> Any:
            if not self.collector.is_call_log_available():
                logger.debug("CollectionAgent: call log unavailable — treating as empty")
                return []
            result = self.collector.get_call_analytics(start_ms, end_ms)
            return result if isinstance(result, (list, tuple)) else []

        return fetch
