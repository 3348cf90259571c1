"""DayFusion collaborator clients package."""

from dayfusion.clients.base import NarrativeGenerator, SourceCollector, SummaryStore
from dayfusion.clients.narrative_client import NarrativeClient

__all__ = [
    "SourceCollector",
    "NarrativeGenerator",
    "SummaryStore",
    "NarrativeClient",
]
