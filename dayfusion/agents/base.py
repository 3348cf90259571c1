"""Phase agent base class, status codes, and the engine's fatal error.

Each daily phase (FETCH, FUSE, CORRELATE, ASSEMBLE) is carried out by one
agent. The orchestrator hands every agent the same SummaryContext and writes
the returned value back onto it.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dayfusion.models.pipeline import SummaryContext

logger = logging.getLogger(__name__)


class AgentStatus:
    """Phase outcomes recorded in SummaryContext.phase_log."""

    OK = "OK"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class DailyDataUnavailableError(RuntimeError):
    """Raised when every collector failed, leaving nothing to summarize."""


class BaseAgent(ABC):
    """A single phase of the daily summary.

    Agents keep their collaborators (collector, rule catalogue, narrative
    generator) and a clock, never per-day results.
    """

    name: str = "BaseAgent"
    version: str = "1.0.0"

    @abstractmethod
    def run(self, context: "SummaryContext") -> Any:
        """Compute this phase's result from the context's upstream fields."""

    def _run_timed(self, context: "SummaryContext") -> Any:
        """run() wrapped with a wall-clock timing log line.

        Failures are logged with the day and re-raised; whether they abort
        the summary is the orchestrator's decision.
        """
        started = time.monotonic()
        try:
            result = self.run(context)
        except Exception as exc:
            logger.error(
                "%s v%s failed for %s after %.3fs: %s",
                self.name, self.version, context.day_str, time.monotonic() - started, exc,
                exc_info=True,
            )
            raise
        logger.info(
            "%s v%s finished %s in %.3fs",
            self.name, self.version, context.day_str, time.monotonic() - started,
        )
        return result
