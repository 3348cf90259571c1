"""Unit tests for dayfusion.agents.summary_agent and dayfusion.agents.correlation_agent.

Covers:
- SummaryAgent.run: sections, merged insights, metadata
- Narrative: only when requested; failures and empty text leave it None
- CorrelationAgent.run: patterns, insights and cross-source bundle
"""

from __future__ import annotations

from datetime import date

import pytest

from dayfusion.agents.correlation_agent import CorrelationAgent
from dayfusion.agents.summary_agent import (
    ENGINE_VERSION,
    SummaryAgent,
    count_data_sources,
    iso_timestamp,
)
from dayfusion.models.correlation import CorrelationResult
from dayfusion.models.pipeline import SummaryContext
from dayfusion.models.summary import DailySummary, SummaryOptions

DAY = date(2024, 3, 14)


@pytest.fixture
def correlated_context(test_engine_config, sample_daily_data, clock):
    """Context after FETCH and CORRELATE with default options."""
    context = SummaryContext(config=test_engine_config, day=DAY)
    context.daily_data = sample_daily_data
    context.correlation_result = CorrelationAgent(clock=clock).run(context)
    return context


# ── CorrelationAgent ──────────────────────────────────────────────────────────────

class TestCorrelationAgent:
    def test_run_detects_fixture_patterns(self, correlated_context):
        result = correlated_context.correlation_result
        assert isinstance(result, CorrelationResult)
        assert "workout_location" in [p.rule for p in result.patterns]
        assert result.event_count > 0
        assert "activity_location" in result.cross_source

    def test_run_without_daily_data(self, test_engine_config):
        context = SummaryContext(config=test_engine_config, day=DAY)
        assert CorrelationAgent().run(context) == CorrelationResult()

    def test_detected_at_uses_clock(self, correlated_context, clock):
        assert all(p.detected_at == clock() for p in correlated_context.correlation_result.patterns)


# ── SummaryAgent.run ──────────────────────────────────────────────────────────────

class TestSummaryAgentRun:
    def test_builds_daily_summary(self, correlated_context, clock):
        summary = SummaryAgent(clock=clock).run(correlated_context)
        assert isinstance(summary, DailySummary)
        assert summary.date == "2024-03-14"
        assert summary.overview.total_steps == 12000
        assert summary.narrative is None
        assert summary.generated_at == iso_timestamp(clock())

    def test_insights_merge_daily_then_correlation(self, correlated_context):
        summary = SummaryAgent().run(correlated_context)
        types = [i.type for i in summary.insights]
        assert types[:3] == ["activity", "health", "correlation"]
        assert "fitness" in types and "sleep" in types

    def test_metadata(self, correlated_context):
        summary = SummaryAgent().run(correlated_context)
        meta = summary.metadata
        assert meta["data_sources"] == 5
        assert meta["correlations"] == len(summary.patterns)
        assert meta["version"] == ENGINE_VERSION
        assert meta["timezone"] == "UTC"
        assert meta["slot_count"] == 0

    def test_empty_context_still_assembles(self, test_engine_config):
        context = SummaryContext(config=test_engine_config, day=DAY)
        summary = SummaryAgent().run(context)
        assert summary.date == "2024-03-14"
        assert summary.overview.total_activities == 0


# ── Narrative ─────────────────────────────────────────────────────────────────────

class TestNarrative:
    def test_narrative_only_when_requested(self, correlated_context, mock_narrative):
        summary = SummaryAgent(mock_narrative).run(correlated_context)
        assert summary.narrative is None
        mock_narrative.generate_narrative_text.assert_not_called()

    def test_narrative_text_stripped(self, correlated_context, mock_narrative):
        correlated_context.options = SummaryOptions(include_narrative=True)
        summary = SummaryAgent(mock_narrative).run(correlated_context)
        assert summary.narrative == "A busy, active Thursday."
        prompt_context = mock_narrative.generate_narrative_text.call_args[0][0]
        assert prompt_context["date"] == "2024-03-14"

    def test_narrative_failure_is_non_fatal(self, correlated_context, mock_narrative):
        """A raising generator leaves narrative None and records a warning."""
        correlated_context.options = SummaryOptions(include_narrative=True)
        mock_narrative.generate_narrative_text.side_effect = RuntimeError("backend down")
        summary = SummaryAgent(mock_narrative).run(correlated_context)
        assert summary.narrative is None
        assert "Narrative unavailable" in correlated_context.warnings

    def test_blank_narrative_is_none(self, correlated_context, mock_narrative):
        correlated_context.options = SummaryOptions(include_narrative=True)
        mock_narrative.generate_narrative_text.return_value = "   "
        assert SummaryAgent(mock_narrative).run(correlated_context).narrative is None

    def test_requested_without_generator(self, correlated_context):
        correlated_context.options = SummaryOptions(include_narrative=True)
        assert SummaryAgent().run(correlated_context).narrative is None


class TestHelpers:
    def test_count_data_sources(self, sample_daily_data, empty_daily_data):
        assert count_data_sources(sample_daily_data) == 5
        assert count_data_sources(empty_daily_data) == 0

    def test_iso_timestamp_utc(self):
        assert iso_timestamp(0) == "1970-01-01T00:00:00+00:00"
