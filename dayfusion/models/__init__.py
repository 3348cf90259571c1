"""DayFusion data models package.

All engine input/output schemas are defined here as typed dataclasses.
Never return raw Dict from agent code — always use the typed models.
"""

from dayfusion.models.correlation import (
    CorrelationResult,
    CorrelationRule,
    DetectedPattern,
    Event,
    EventChain,
    Insight,
)
from dayfusion.models.fusion import (
    AggregatedSourceData,
    NumericAggregate,
    QualityAssessment,
    SlotLineage,
    TimeSlot,
)
from dayfusion.models.pipeline import Phase, PhaseRecord, SummaryContext
from dayfusion.models.records import (
    DEFAULT_SCHEMAS,
    DailyData,
    FieldKind,
    SourceBatch,
    SourceRecord,
    SourceSchema,
)
from dayfusion.models.summary import (
    AnalysisResult,
    DailyOverview,
    DailyStats,
    DailySummary,
    DetailedSummary,
    MonthlySummary,
    SummaryOptions,
    WeeklySummary,
)

__all__ = [
    # records
    "SourceRecord",
    "SourceSchema",
    "SourceBatch",
    "FieldKind",
    "DEFAULT_SCHEMAS",
    "DailyData",
    # fusion
    "NumericAggregate",
    "AggregatedSourceData",
    "SlotLineage",
    "QualityAssessment",
    "TimeSlot",
    # correlation
    "CorrelationRule",
    "Event",
    "DetectedPattern",
    "Insight",
    "EventChain",
    "CorrelationResult",
    # summary
    "SummaryOptions",
    "DailyOverview",
    "DetailedSummary",
    "DailyStats",
    "DailySummary",
    "WeeklySummary",
    "MonthlySummary",
    "AnalysisResult",
    # pipeline
    "SummaryContext",
    "PhaseRecord",
    "Phase",
]
