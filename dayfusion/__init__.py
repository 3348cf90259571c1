"""DayFusion — Multi-source personal day summary engine.

Public API surface:
    - EngineConfig: Runtime configuration
    - SummaryOrchestrator: Daily, weekly, and monthly summaries over a collector
    - TTLCache: Shared time-to-live memoization cache
    - SummaryOptions: Per-request summary options
"""

__version__ = "1.0.0"
__author__ = "DayFusion Contributors"

from config.settings import EngineConfig
from dayfusion.agents.base import DailyDataUnavailableError
from dayfusion.agents.fusion_agent import HealthSource
from dayfusion.cache.ttl_cache import TTLCache
from dayfusion.models.summary import SummaryOptions
from dayfusion.pipeline import SummaryOrchestrator

__all__ = [
    "__version__",
    "EngineConfig",
    "SummaryOrchestrator",
    "TTLCache",
    "SummaryOptions",
    "HealthSource",
    "DailyDataUnavailableError",
]
