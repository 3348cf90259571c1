"""Orchestration data models for DayFusion.

Defines SummaryContext (per-invocation state object) and PhaseRecord
(per-phase timing log).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from config.settings import EngineConfig
from dayfusion.models.summary import SummaryOptions

if TYPE_CHECKING:
    from dayfusion.models.correlation import CorrelationResult
    from dayfusion.models.fusion import TimeSlot
    from dayfusion.models.records import DailyData
    from dayfusion.models.summary import DailySummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Phase:
    """Phase names of one daily summary run, in execution order."""

    FETCH = "FETCH"
    FUSE = "FUSE"
    CORRELATE = "CORRELATE"
    ASSEMBLE = "ASSEMBLE"
    CACHE_STORE = "CACHE_STORE"

    ORDER = (FETCH, FUSE, CORRELATE, ASSEMBLE, CACHE_STORE)


@dataclass
class PhaseRecord:
    """Timing and status record for a single orchestrator phase."""

    phase_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = "OK"
    warnings: List[str] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        """Compute elapsed time in seconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class SummaryContext:
    """State threaded through the phases of one daily summary run.

    Each agent reads fields populated by earlier phases and the orchestrator
    writes each agent's result back here. Nothing here outlives the run
    except what the orchestrator stores in the cache.
    """

    config: EngineConfig
    day: date
    options: SummaryOptions = field(default_factory=SummaryOptions)

    # ── Phase results (populated progressively) ───────────────────────────────
    daily_data: Optional["DailyData"] = None
    fused_slots: Optional[Dict[int, "TimeSlot"]] = None
    correlation_result: Optional["CorrelationResult"] = None
    summary: Optional["DailySummary"] = None

    # ── Run metadata ───────────────────────────────────────────────────────────
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    phase_log: List[PhaseRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def day_str(self) -> str:
        return self.day.strftime("%Y-%m-%d")

    def log_phase_start(self, phase_name: str) -> PhaseRecord:
        """Record the start of a phase."""
        record = PhaseRecord(phase_name=phase_name, start_time=_utcnow())
        self.phase_log.append(record)
        return record

    def log_phase_end(self, record: PhaseRecord, status: str = "OK") -> None:
        """Record the end of a phase."""
        record.end_time = _utcnow()
        record.status = status

    def add_warning(self, warning: str) -> None:
        """Append a warning to the run warning list."""
        self.warnings.append(warning)

    def add_error(self, error: str) -> None:
        """Append an error to the run error list."""
        self.errors.append(error)
