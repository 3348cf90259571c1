"""Raw source record models for DayFusion.

Defines the immutable SourceRecord produced by collectors, the per-source
schema registry used by fusion to classify fields, and DailyData — the
bundle of everything collected for one calendar day.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

_DEFAULT_TIMESTAMP_FIELDS: Tuple[str, ...] = ("timestamp",)


class FieldKind(str, Enum):
    """How fusion aggregates a field: numeric statistics or a distinct-value set."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


def classify_value(value: Any) -> FieldKind:
    """Classify a raw field value. Booleans are categorical, not numeric."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return FieldKind.NUMERIC
    return FieldKind.CATEGORICAL


@dataclass(frozen=True)
class SourceSchema:
    """Declared field kinds and timestamp field names for one named source.

    Fields not declared here are classified by the first value observed for
    them within an aggregation slot.
    """

    source: str
    timestamp_fields: Tuple[str, ...] = _DEFAULT_TIMESTAMP_FIELDS
    numeric_fields: Tuple[str, ...] = ()
    categorical_fields: Tuple[str, ...] = ()

    def kind_of(self, field_name: str) -> Optional[FieldKind]:
        """Return the declared kind of a field, or None if undeclared."""
        if field_name in self.numeric_fields:
            return FieldKind.NUMERIC
        if field_name in self.categorical_fields:
            return FieldKind.CATEGORICAL
        return None


DEFAULT_SCHEMAS: Dict[str, SourceSchema] = {
    schema.source: schema
    for schema in (
        SourceSchema(
            source="activities",
            timestamp_fields=("timestamp", "start_time"),
            numeric_fields=("duration", "steps", "calories", "distance"),
            categorical_fields=("type", "sport_type", "location"),
        ),
        SourceSchema(
            source="locations",
            timestamp_fields=("timestamp", "arrival_time"),
            numeric_fields=("latitude", "longitude", "duration"),
            categorical_fields=("name", "category"),
        ),
        SourceSchema(
            source="call_logs",
            timestamp_fields=("timestamp", "call_date"),
            numeric_fields=("duration",),
            categorical_fields=("contact_name", "call_type"),
        ),
        SourceSchema(
            source="app_usage",
            timestamp_fields=("timestamp", "start_time"),
            numeric_fields=("duration",),
            categorical_fields=("app_name", "category"),
        ),
        SourceSchema(
            source="health_connect",
            numeric_fields=("steps", "calories", "distance", "heart_rate", "active_minutes"),
        ),
        SourceSchema(
            source="strava",
            timestamp_fields=("timestamp", "start_time"),
            numeric_fields=("distance", "moving_time", "calories", "heart_rate"),
            categorical_fields=("sport_type", "name"),
        ),
        SourceSchema(
            source="manual",
            numeric_fields=("steps", "calories", "weight"),
            categorical_fields=("note",),
        ),
    )
}


def schema_for(source: str, schemas: Optional[Mapping[str, SourceSchema]] = None) -> SourceSchema:
    """Look up the schema for a source, defaulting to an empty schema."""
    registry = DEFAULT_SCHEMAS if schemas is None else schemas
    return registry.get(source) or SourceSchema(source=source)


def _coerce_timestamp(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(value)
    return None


@dataclass(frozen=True)
class SourceRecord:
    """One time-stamped data point from one named source.

    Immutable once produced. ``timestamp`` is epoch milliseconds, or None
    when the raw record carried no usable timestamp (fusion skips such
    records). ``fields`` excludes the timestamp itself.
    """

    source: str
    timestamp: Optional[int]
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_mapping(
        cls,
        source: str,
        raw: Mapping[str, Any],
        schemas: Optional[Mapping[str, SourceSchema]] = None,
    ) -> "SourceRecord":
        """Build a record from a raw mapping, locating the timestamp by schema.

        The first present numeric timestamp field is used. Only the
        ``timestamp`` key is dropped from ``fields``; alternates such as
        ``start_time`` or ``call_date`` remain readable.
        """
        schema = schema_for(source, schemas)
        timestamp: Optional[int] = None
        for key in schema.timestamp_fields:
            if key in raw:
                timestamp = _coerce_timestamp(raw[key])
                if timestamp is not None:
                    break
        fields = {k: v for k, v in raw.items() if k != "timestamp"}
        return cls(source=source, timestamp=timestamp, fields=fields)

    def get(self, key: str, default: Any = None) -> Any:
        if key == "timestamp":
            return self.timestamp if self.timestamp is not None else default
        return self.fields.get(key, default)

    def __getitem__(self, key: str) -> Any:
        if key == "timestamp":
            return self.timestamp
        return self.fields[key]

    def __contains__(self, key: object) -> bool:
        return key == "timestamp" or key in self.fields

    def items(self) -> Iterator[Tuple[str, Any]]:
        """Iterate over non-timestamp fields."""
        return iter(self.fields.items())

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.fields)
        data["timestamp"] = self.timestamp
        return data


def to_records(
    source: str,
    raw_items: Any,
    schemas: Optional[Mapping[str, SourceSchema]] = None,
) -> List[SourceRecord]:
    """Normalize a collector result into a list of SourceRecord.

    Accepts an iterable of SourceRecord instances or mappings, or None.
    Anything else, at either level, is dropped.
    """
    if not raw_items or isinstance(raw_items, (str, bytes, Mapping)) or not isinstance(raw_items, Iterable):
        return []
    records: List[SourceRecord] = []
    for item in raw_items:
        if isinstance(item, SourceRecord):
            records.append(item)
        elif isinstance(item, Mapping):
            records.append(SourceRecord.from_mapping(source, item, schemas))
    return records


@dataclass
class SourceBatch:
    """All records one source contributed to a harmonization run."""

    source: str
    data: List[SourceRecord] = field(default_factory=list)
    priority: int = 0


@dataclass
class DailyData:
    """Everything the collectors produced for one calendar day."""

    date: str
    activities: List[SourceRecord] = field(default_factory=list)
    locations: List[SourceRecord] = field(default_factory=list)
    call_logs: List[SourceRecord] = field(default_factory=list)
    app_usage: List[SourceRecord] = field(default_factory=list)
    health_data: Optional[Dict[str, Any]] = None
    fetched_at: int = 0
    failed_sources: List[str] = field(default_factory=list)

    def source_batches(self) -> Dict[str, SourceBatch]:
        """Expose the four record sources as harmonization input."""
        return {
            "activities": SourceBatch("activities", list(self.activities)),
            "locations": SourceBatch("locations", list(self.locations)),
            "call_logs": SourceBatch("call_logs", list(self.call_logs)),
            "app_usage": SourceBatch("app_usage", list(self.app_usage)),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "activities": [r.to_dict() for r in self.activities],
            "locations": [r.to_dict() for r in self.locations],
            "call_logs": [r.to_dict() for r in self.call_logs],
            "app_usage": [r.to_dict() for r in self.app_usage],
            "health_data": dict(self.health_data) if self.health_data is not None else None,
            "fetched_at": self.fetched_at,
            "failed_sources": list(self.failed_sources),
        }
