"""CorrelationAgent — Detect behavioral patterns and cross-source links in a day.

Runs the rule catalogue over the day's event stream, derives pattern and
data-quality insights, and computes the cross-source correlations used by
the summary sections.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from dayfusion.agents.base import BaseAgent
from dayfusion.analysis.correlation import (
    DEFAULT_RULES,
    build_default_rules,
    detect_patterns,
    extract_events_from_daily_data,
    generate_insights,
)
from dayfusion.analysis.cross_source import analyze_data_correlations
from dayfusion.models.correlation import CorrelationResult, CorrelationRule
from dayfusion.models.pipeline import SummaryContext
from dayfusion.models.records import DailyData
from dayfusion.utils.date_utils import now_ms

logger = logging.getLogger(__name__)


class CorrelationAgent(BaseAgent):
    """Correlate one collected day.

    Args:
        rules: Rule catalogue. Defaults to the built-in rules sized by the
            context's configured window tiers.
        clock: Zero-argument callable returning epoch milliseconds.
    """

    name = "CorrelationAgent"
    version = "1.0.0"

    def __init__(
        self,
        rules: Optional[Sequence[CorrelationRule]] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.rules = tuple(rules) if rules is not None else None
        self._clock = clock or now_ms

    def run(self, context: SummaryContext) -> CorrelationResult:
        """Correlate context.daily_data.

        Args:
            context: SummaryContext with daily_data populated by FETCH.

        Returns:
            CorrelationResult (empty when there is no daily data).
        """
        if context.daily_data is None:
            logger.info("CorrelationAgent: no daily data — returning empty result")
            return CorrelationResult()

        rules = self.rules
        if rules is None:
            rules = build_default_rules(context.config.correlation_windows)
        return self.correlate(context.daily_data, rules, context.config.timezone)

    def correlate(
        self,
        daily_data: DailyData,
        rules: Sequence[CorrelationRule] = DEFAULT_RULES,
        timezone_name: str = "UTC",
    ) -> CorrelationResult:
        """Correlate a day outside a full summary run (see run())."""
        events = extract_events_from_daily_data(daily_data)
        patterns = detect_patterns(events, rules=rules, detected_at=self._clock())
        insights = generate_insights(patterns, daily_data)
        cross_source = analyze_data_correlations(daily_data, timezone_name)

        logger.info(
            "CorrelationAgent: %s | events=%d patterns=%s insights=%d",
            daily_data.date,
            len(events),
            [p.rule for p in patterns] or "none",
            len(insights),
        )
        return CorrelationResult(
            patterns=patterns,
            insights=insights,
            cross_source=cross_source,
            event_count=len(events),
        )
