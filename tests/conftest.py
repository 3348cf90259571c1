"""Shared pytest fixtures for DayFusion tests.

Conventions:
- Fixture data lives in tests/fixtures/ as static JSON day files
- mock_collector is a MagicMock(spec=SourceCollector) loaded from fixture JSON
- Time is simulated with FakeClock; caches never start the eviction sweeper
- No real narrative backend is ever called
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"
DAYS_DIR = FIXTURES_DIR / "days"

# 2024-03-14T00:00:00Z
DAY_START_MS = 1710374400000
HOUR_MS = 60 * 60 * 1000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = DAY_START_MS + 36 * HOUR_MS) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


# ── Raw fixture data loaders ─────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def day_raw() -> Dict[str, Any]:
    """Raw 2024-03-14 day document: 3 activities, 4 places, 1 call, 2 app sessions."""
    with open(DAYS_DIR / "2024-03-14.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def days_dir() -> Path:
    return DAYS_DIR


# ── Model object fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def sample_daily_data(day_raw):
    """DailyData built from the fixture day (health present, nothing failed)."""
    from dayfusion.models.records import DailyData, to_records

    return DailyData(
        date="2024-03-14",
        activities=to_records("activities", day_raw["activities"]),
        locations=to_records("locations", day_raw["locations"]),
        call_logs=to_records("call_logs", day_raw["call_logs"]),
        app_usage=to_records("app_usage", day_raw["app_usage"]),
        health_data=dict(day_raw["health"]),
        fetched_at=DAY_START_MS + 36 * HOUR_MS,
    )


@pytest.fixture
def empty_daily_data():
    from dayfusion.models.records import DailyData

    return DailyData(date="2024-03-14")


# ── Clock and cache ──────────────────────────────────────────────────────────────

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock):
    """TTLCache on the fake clock with the eviction sweeper disabled."""
    from dayfusion.cache.ttl_cache import TTLCache

    return TTLCache(max_size=100, default_ttl_ms=60000, clock=clock, schedule_eviction=False)


# ── Mock collaborators ───────────────────────────────────────────────────────────

@pytest.fixture
def mock_collector(day_raw):
    """Mock SourceCollector returning the fixture day for any date range."""
    from dayfusion.clients.base import SourceCollector

    collector = MagicMock(spec=SourceCollector)
    collector.get_activities_for_date_range.return_value = list(day_raw["activities"])
    collector.get_visited_places.return_value = list(day_raw["locations"])
    collector.get_call_analytics.return_value = list(day_raw["call_logs"])
    collector.get_app_usage_for_date.return_value = list(day_raw["app_usage"])
    collector.get_health_context_for_date.return_value = dict(day_raw["health"])
    collector.is_call_log_available.return_value = True
    return collector


@pytest.fixture
def empty_collector():
    """Mock SourceCollector where every source succeeds with no data."""
    from dayfusion.clients.base import SourceCollector

    collector = MagicMock(spec=SourceCollector)
    collector.get_activities_for_date_range.return_value = []
    collector.get_visited_places.return_value = []
    collector.get_call_analytics.return_value = []
    collector.get_app_usage_for_date.return_value = []
    collector.get_health_context_for_date.return_value = None
    collector.is_call_log_available.return_value = True
    return collector


@pytest.fixture
def mock_narrative():
    """Mock NarrativeGenerator returning fixed prose."""
    from dayfusion.clients.base import NarrativeGenerator

    generator = MagicMock(spec=NarrativeGenerator)
    generator.generate_narrative_text.return_value = "  A busy, active Thursday.  "
    return generator


# ── Engine config fixture ────────────────────────────────────────────────────────

@pytest.fixture
def test_engine_config():
    """EngineConfig for testing — UTC, no narrative backend credentials."""
    from config.settings import EngineConfig

    return EngineConfig(
        timezone="UTC",
        llm_backend="ollama",
        anthropic_api_key=None,
        log_level="WARNING",
    )


@pytest.fixture
def orchestrator(mock_collector, cache, test_engine_config, clock):
    from dayfusion.pipeline import SummaryOrchestrator

    return SummaryOrchestrator(mock_collector, cache=cache, config=test_engine_config, clock=clock)
