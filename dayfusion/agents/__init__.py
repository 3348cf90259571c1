"""DayFusion agents package.

All agents inherit from BaseAgent and operate on SummaryContext.
Agents do not import from each other — all communication flows through context.
"""

from dayfusion.agents.base import AgentStatus, BaseAgent, DailyDataUnavailableError
from dayfusion.agents.collection_agent import CollectionAgent
from dayfusion.agents.correlation_agent import CorrelationAgent
from dayfusion.agents.fusion_agent import FusionAgent, HealthSource
from dayfusion.agents.summary_agent import SummaryAgent

__all__ = [
    "BaseAgent",
    "AgentStatus",
    "DailyDataUnavailableError",
    "CollectionAgent",
    "FusionAgent",
    "HealthSource",
    "CorrelationAgent",
    "SummaryAgent",
]
