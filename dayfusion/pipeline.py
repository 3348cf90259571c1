"""DayFusion summary orchestrator.

Manages phase execution order, TTL caching, and the SummaryContext
lifecycle for daily, weekly, and monthly summaries.

Daily phase order (strict, never reordered):
  FETCH       — CollectionAgent (five collector calls, concurrent)
  FUSE        — FusionAgent (time-slot harmonization + scoring)
  CORRELATE   — CorrelationAgent (rule patterns + cross-source links)
  ASSEMBLE    — SummaryAgent (sections, insights, optional narrative)
  CACHE_STORE — cache write + optional SummaryStore persistence

Usage:
    from config.settings import EngineConfig
    from dayfusion.pipeline import SummaryOrchestrator

    orchestrator = SummaryOrchestrator(collector, config=EngineConfig())
    summary = orchestrator.generate_daily_summary("2024-03-14")
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from config.settings import EngineConfig
from dayfusion.agents.base import AgentStatus, DailyDataUnavailableError
from dayfusion.agents.collection_agent import CollectionAgent
from dayfusion.agents.correlation_agent import CorrelationAgent
from dayfusion.agents.fusion_agent import FusionAgent, HealthSource
from dayfusion.agents.summary_agent import ENGINE_VERSION, SummaryAgent
from dayfusion.analysis.correlation import build_default_rules, detect_patterns, generate_insights
from dayfusion.analysis.trends import (
    aggregate_period_stats,
    analyze_weekly_trends,
    calculate_average_activity,
    generate_weekly_insights,
)
from dayfusion.cache.ttl_cache import TTLCache
from dayfusion.clients.base import NarrativeGenerator, SourceCollector, SummaryStore
from dayfusion.models.correlation import CorrelationRule, DetectedPattern, EventChain, Insight
from dayfusion.models.fusion import TimeSlot
from dayfusion.models.pipeline import Phase, PhaseRecord, SummaryContext
from dayfusion.models.records import DailyData
from dayfusion.models.summary import (
    AnalysisResult,
    DailySummary,
    MonthlySummary,
    SummaryOptions,
    WeeklySummary,
)
from dayfusion.utils.date_utils import (
    DateLike,
    format_date,
    iter_days,
    month_bounds,
    now_ms,
    to_date,
)
from dayfusion.utils.logging_utils import get_day_logger

logger = logging.getLogger(__name__)

_MISSING = object()


def make_cache_key(operation: str, *parts: str, options: Optional[Dict[str, Any]] = None) -> str:
    """Deterministic cache key from an operation, its date parts and options.

    Args:
        operation: Operation name (e.g. "daily_summary").
        parts: Date strings or other positional key parts.
        options: Options that distinguish results; serialized as canonical JSON.

    Returns:
        ``"<operation>:<part>:...[:<json options>]"``.
    """
    key = ":".join((operation,) + tuple(parts))
    if options is not None:
        key = f"{key}:{json.dumps(options, sort_keys=True)}"
    return key


class SummaryOrchestrator:
    """Entry point for daily, weekly, and monthly day summaries.

    All state beyond a single call lives in the injected TTLCache.

    Args:
        collector: SourceCollector supplying the day's raw records.
        cache: Shared TTLCache (default: a new cache sized from config).
        config: EngineConfig (default: EngineConfig()).
        health_sources: Priority-ordered health sources for fusion.
        narrative_generator: Optional narrative collaborator.
        summary_store: Optional collaborator persisting daily summaries.
        rules: Correlation rule catalogue (default: built-in rules sized by
            config.correlation_windows).
        clock: Zero-argument callable returning epoch milliseconds.
    """

    def __init__(
        self,
        collector: SourceCollector,
        cache: Optional[TTLCache] = None,
        config: Optional[EngineConfig] = None,
        health_sources: Sequence[HealthSource] = (),
        narrative_generator: Optional[NarrativeGenerator] = None,
        summary_store: Optional[SummaryStore] = None,
        rules: Optional[Sequence[CorrelationRule]] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._clock = clock or now_ms
        self.cache = cache if cache is not None else TTLCache(
            max_size=self.config.cache_max_size,
            default_ttl_ms=self.config.cache_default_ttl_ms,
            clock=self._clock,
        )
        self.rules = tuple(rules) if rules is not None else build_default_rules(
            self.config.correlation_windows
        )
        self.summary_store = summary_store

        self.collection_agent = CollectionAgent(collector, clock=self._clock)
        self.fusion_agent = FusionAgent(
            health_sources, slot_width_ms=self.config.slot_width_ms, clock=self._clock
        )
        self.correlation_agent = CorrelationAgent(self.rules, clock=self._clock)
        self.summary_agent = SummaryAgent(narrative_generator, clock=self._clock)

    # ── Cache helpers ─────────────────────────────────────────────────────────

    def _cached(self, key: str, force_refresh: bool) -> Any:
        if force_refresh:
            logger.debug("Orchestrator: force_refresh — bypassing cache for %s", key)
            return _MISSING
        value = self.cache.get(key, _MISSING)
        logger.debug("Orchestrator: cache %s for %s", "miss" if value is _MISSING else "hit", key)
        return value

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> Dict[str, int]:
        return self.cache.get_stats()

    # ── Data access ───────────────────────────────────────────────────────────

    def get_daily_data(self, day: DateLike, force_refresh: bool = False) -> DailyData:
        """Collect (or return cached) raw data for one day.

        Raises:
            DailyDataUnavailableError: If every collector failed.
        """
        day = to_date(day)
        key = make_cache_key("daily_data", format_date(day))
        cached = self._cached(key, force_refresh)
        if cached is not _MISSING:
            return cached

        daily = self.collection_agent.collect(
            day, self.config.timezone, self.config.collector_max_workers
        )
        self.cache.set(key, daily, self.config.cache_ttls.daily)
        return daily

    def merge_health_data(self, day: DateLike, force_refresh: bool = False) -> Dict[int, TimeSlot]:
        """Fuse the priority-ordered health sources for one day (cached)."""
        day = to_date(day)
        key = make_cache_key("health_merge", format_date(day))
        cached = self._cached(key, force_refresh)
        if cached is not _MISSING:
            return cached

        slots = self.fusion_agent.merge_health_data(day, expected_sources=self.config.health_sources)
        self.cache.set(key, slots, self.config.cache_ttls.daily)
        return slots

    def detect_patterns(
        self,
        day: DateLike,
        time_window_ms: Optional[int] = None,
    ) -> List[DetectedPattern]:
        """Detect correlation patterns in one day's data.

        Patterns are re-derived on every call from (possibly cached) raw data.

        Args:
            day: Calendar day.
            time_window_ms: When set, overrides every rule's own window.
        """
        daily = self.get_daily_data(day)
        return detect_patterns(
            daily, rules=self.rules, time_window_ms=time_window_ms, detected_at=self._clock()
        )

    def find_event_chains(self, day: DateLike) -> List[EventChain]:
        """Flatten the day's detected patterns into narrative-ready chains."""
        date_str = format_date(day)
        return [
            EventChain(
                date=date_str,
                pattern=p.rule,
                confidence=p.confidence,
                events=p.matches,
                narrative=p.narrative_tag,
            )
            for p in self.detect_patterns(day)
        ]

    # ── Daily summary ─────────────────────────────────────────────────────────

    def generate_daily_summary(
        self,
        day: DateLike,
        options: Optional[SummaryOptions] = None,
    ) -> DailySummary:
        """Produce (or return cached) the summary for one day.

        Args:
            day: Calendar day (date, datetime, or parseable string).
            options: SummaryOptions (narrative, force refresh).

        Returns:
            DailySummary. Repeated calls with equal day and options return the
            cached object until the daily TTL expires.

        Raises:
            DailyDataUnavailableError: If every collector failed.
        """
        day = to_date(day)
        options = options or SummaryOptions()
        key = make_cache_key("daily_summary", format_date(day), options=options.cache_fields())
        cached = self._cached(key, options.force_refresh)
        if cached is not _MISSING:
            return cached

        context = SummaryContext(config=self.config, day=day, options=options)
        context.start_time = datetime.now(timezone.utc)
        day_logger = get_day_logger("pipeline", context.day_str)
        day_logger.info("Orchestrator: generating daily summary (narrative=%s)", options.include_narrative)

        self._run_phase(context, Phase.FETCH, self._fetch, "daily_data", fatal=True)
        self._run_phase(context, Phase.FUSE, self.fusion_agent._run_timed, "fused_slots")
        self._run_phase(context, Phase.CORRELATE, self.correlation_agent._run_timed, "correlation_result")
        self._run_phase(context, Phase.ASSEMBLE, self.summary_agent._run_timed, "summary", fatal=True)
        self._store(context, key)

        self._finalise(context)
        return context.summary

    def _fetch(self, context: SummaryContext) -> DailyData:
        return self.get_daily_data(context.day, force_refresh=context.options.force_refresh)

    def _run_phase(
        self,
        context: SummaryContext,
        phase_name: str,
        step: Callable[[SummaryContext], Any],
        result_attr: str,
        fatal: bool = False,
    ) -> bool:
        """Execute a single phase and record its timing.

        Args:
            context: Run context.
            phase_name: Phase label for logs and phase_log.
            step: Callable taking the context and returning the phase result.
            result_attr: SummaryContext field the result is written to.
            fatal: Re-raise failures instead of degrading gracefully.

        Returns:
            True if the phase completed, False if it failed non-fatally.
        """
        record: PhaseRecord = context.log_phase_start(phase_name)
        try:
            result = step(context)
        except Exception as exc:
            context.log_phase_end(record, status=AgentStatus.FAILED)
            context.add_error(f"{phase_name} failed: {exc}")
            if fatal:
                logger.error(
                    "Orchestrator: %s failed for %s — aborting",
                    phase_name, context.day_str, exc_info=True,
                )
                raise
            logger.exception("Orchestrator: %s failed for %s — continuing", phase_name, context.day_str)
            return False

        setattr(context, result_attr, result)
        context.log_phase_end(record, status=AgentStatus.OK)
        logger.info(
            "Orchestrator: %s complete for %s (%.3fs)",
            phase_name, context.day_str, record.elapsed_seconds,
        )
        return True

    def _store(self, context: SummaryContext, key: str) -> None:
        record = context.log_phase_start(Phase.CACHE_STORE)
        self.cache.set(key, context.summary, self.config.cache_ttls.daily)

        status = AgentStatus.OK
        if self.summary_store is not None:
            try:
                self.summary_store.add_daily_summary(context.day_str, context.summary)
            except Exception as exc:
                logger.warning("Orchestrator: summary store failed for %s: %s", context.day_str, exc)
                context.add_warning(f"Summary persistence failed: {exc}")
                status = AgentStatus.PARTIAL
        context.log_phase_end(record, status=status)

    def _finalise(self, context: SummaryContext) -> None:
        context.end_time = datetime.now(timezone.utc)
        elapsed = (context.end_time - context.start_time).total_seconds() if context.start_time else 0.0
        logger.info(
            "Orchestrator: %s done in %.3fs | phases=%s | warnings=%d | errors=%d",
            context.day_str,
            elapsed,
            ",".join(f"{p.phase_name}:{p.status}" for p in context.phase_log),
            len(context.warnings),
            len(context.errors),
        )

    # ── Period summaries ──────────────────────────────────────────────────────

    def _collect_period(self, start: DateLike, end: DateLike, force_refresh: bool) -> List[DailySummary]:
        """Daily summaries (narrative disabled) for every day in [start, end].

        Days whose data is entirely unavailable are skipped; if no day could be
        summarized the last such error is re-raised.
        """
        summaries: List[DailySummary] = []
        last_error: Optional[DailyDataUnavailableError] = None
        day_options = SummaryOptions(include_narrative=False, force_refresh=force_refresh)
        for day in iter_days(start, end):
            try:
                summaries.append(self.generate_daily_summary(day, day_options))
            except DailyDataUnavailableError as exc:
                logger.warning("Orchestrator: skipping %s in period — %s", day, exc)
                last_error = exc
        if not summaries and last_error is not None:
            raise last_error
        return summaries

    def _fold_fields(self, summaries: Sequence[DailySummary]) -> Dict[str, Any]:
        return {
            "days": len(summaries),
            "average_activity": calculate_average_activity(summaries),
            "total_stats": aggregate_period_stats(summaries),
            "trends": analyze_weekly_trends(summaries),
            "insights": generate_weekly_insights(summaries),
            "daily_dates": [s.date for s in summaries],
            "timezone": self.config.timezone,
        }

    def generate_weekly_summary(
        self,
        start: DateLike,
        end: DateLike,
        options: Optional[SummaryOptions] = None,
    ) -> WeeklySummary:
        """Fold the daily summaries of [start, end] inclusive (cached).

        Raises:
            ValueError: If end precedes start.
            DailyDataUnavailableError: If no day in the range had any data.
        """
        start_day, end_day = to_date(start), to_date(end)
        if end_day < start_day:
            raise ValueError(f"end {end_day} precedes start {start_day}")
        options = options or SummaryOptions()
        key = make_cache_key("weekly_summary", format_date(start_day), format_date(end_day))
        cached = self._cached(key, options.force_refresh)
        if cached is not _MISSING:
            return cached

        summaries = self._collect_period(start_day, end_day, options.force_refresh)
        weekly = WeeklySummary(
            start_date=format_date(start_day),
            end_date=format_date(end_day),
            **self._fold_fields(summaries),
        )
        self.cache.set(key, weekly, self.config.cache_ttls.weekly)
        logger.info(
            "Orchestrator: weekly %s..%s | days=%d trend=%s",
            weekly.start_date, weekly.end_date, weekly.days, weekly.trends.get("activity_trend"),
        )
        return weekly

    def generate_monthly_summary(
        self,
        year: int,
        month: int,
        options: Optional[SummaryOptions] = None,
    ) -> MonthlySummary:
        """Fold every daily summary of one calendar month (cached, weekly TTL)."""
        first, last = month_bounds(year, month)
        options = options or SummaryOptions()
        key = make_cache_key("monthly_summary", f"{year:04d}-{month:02d}")
        cached = self._cached(key, options.force_refresh)
        if cached is not _MISSING:
            return cached

        summaries = self._collect_period(first, last, options.force_refresh)
        monthly = MonthlySummary(
            start_date=format_date(first),
            end_date=format_date(last),
            period="month",
            year=year,
            month=month,
            **self._fold_fields(summaries),
        )
        self.cache.set(key, monthly, self.config.cache_ttls.weekly)
        return monthly

    # ── Derived views ─────────────────────────────────────────────────────────

    def generate_daily_insights(self, day: DateLike, force_refresh: bool = False) -> List[Insight]:
        """Insights-only view of one day (cached with the insights TTL)."""
        day = to_date(day)
        key = make_cache_key("daily_insights", format_date(day))
        cached = self._cached(key, force_refresh)
        if cached is not _MISSING:
            return cached

        summary = self.generate_daily_summary(day, SummaryOptions(force_refresh=force_refresh))
        insights = list(summary.insights)
        self.cache.set(key, insights, self.config.cache_ttls.insights)
        return insights

    def analyze_data(self, day: DateLike, options: Optional[SummaryOptions] = None) -> AnalysisResult:
        """Unified analysis: health fusion, patterns, summary and insights (cached).

        Args:
            day: Calendar day.
            options: SummaryOptions forwarded to the daily summary.

        Returns:
            AnalysisResult.
        """
        day = to_date(day)
        options = options or SummaryOptions()
        key = make_cache_key("unified_analysis", format_date(day), options=options.cache_fields())
        cached = self._cached(key, options.force_refresh)
        if cached is not _MISSING:
            return cached

        started = self._clock()
        slots = self.merge_health_data(day, force_refresh=options.force_refresh)
        summary = self.generate_daily_summary(day, options)
        daily = self.get_daily_data(day)
        patterns = list(summary.patterns)
        insights = generate_insights(patterns, daily)

        result = AnalysisResult(
            date=format_date(day),
            slots=slots,
            patterns=patterns,
            summary=summary,
            insights=insights,
            metadata={
                "processing_time_ms": self._clock() - started,
                "health_slot_count": len(slots),
                "timezone": self.config.timezone,
                "version": ENGINE_VERSION,
            },
        )
        self.cache.set(key, result, self.config.cache_ttls.daily)
        return result
