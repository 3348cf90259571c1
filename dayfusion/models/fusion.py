"""Fusion data models for DayFusion.

Defines the output schema of timestamp harmonization — per-slot, per-source
aggregates plus the confidence and quality scores attached to each slot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class NumericAggregate:
    """Running statistics for one numeric field. ``avg`` is always derived."""

    sum: float = 0.0
    count: int = 0
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def avg(self) -> float:
        return self.sum / self.count if self.count else 0.0

    def add(self, value: float) -> None:
        self.sum += value
        self.count += 1
        self.min = value if self.min is None else min(self.min, value)
        self.max = value if self.max is None else max(self.max, value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sum": self.sum,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "count": self.count,
        }


@dataclass
class AggregatedSourceData:
    """One source's contribution to one time slot."""

    source: str
    count: int = 0
    numeric: Dict[str, NumericAggregate] = field(default_factory=dict)
    categorical: Dict[str, List[Any]] = field(default_factory=dict)   # distinct values

    def to_dict(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {k: v.to_dict() for k, v in self.numeric.items()}
        values.update({k: list(v) for k, v in self.categorical.items()})
        return {"source": self.source, "count": self.count, "values": values}


@dataclass
class SlotLineage:
    """Provenance of one source inside a slot."""

    source: str
    count: int
    first_timestamp: int
    last_timestamp: int


@dataclass
class QualityAssessment:
    """Data characteristics of a slot, independent of its confidence."""

    completeness: float = 0.0
    consistency: float = 0.0
    timeliness: float = 0.0


@dataclass
class TimeSlot:
    """A fixed-width window [timestamp, end) with per-source aggregates."""

    timestamp: int
    end: int
    sources: Dict[str, AggregatedSourceData] = field(default_factory=dict)
    lineage: List[SlotLineage] = field(default_factory=list)
    confidence: float = 0.0
    quality: Optional[QualityAssessment] = None

    @property
    def start(self) -> int:
        return self.timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "end": self.end,
            "sources": {k: v.to_dict() for k, v in self.sources.items()},
            "lineage": [
                {
                    "source": item.source,
                    "count": item.count,
                    "first_timestamp": item.first_timestamp,
                    "last_timestamp": item.last_timestamp,
                }
                for item in self.lineage
            ],
            "confidence": self.confidence,
            "quality": (
                {
                    "completeness": self.quality.completeness,
                    "consistency": self.quality.consistency,
                    "timeliness": self.quality.timeliness,
                }
                if self.quality is not None
                else None
            ),
        }
