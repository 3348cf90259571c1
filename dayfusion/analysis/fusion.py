"""Multi-source timestamp harmonization for DayFusion.

Aligns records from independent sources onto a sparse grid of fixed-width
time slots, aggregates each source's fields per slot, and scores every slot
for confidence and quality. Pure functions — no I/O or external calls.

Slot boundaries depend only on the slot width and record timestamps, and
sources are always visited in sorted id order, so identical input always
yields identical slots regardless of mapping iteration order.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from config.defaults import (
    CONSISTENCY_PLACEHOLDER,
    MAX_SLOT_CONFIDENCE,
    SOURCE_BASE_CONFIDENCE,
    SOURCE_DENSE_BONUS,
    SOURCE_DENSE_MIN_COUNT,
    SOURCE_PRESENT_BONUS,
    TIME_SLOT_WIDTH_MS,
    TIMELINESS_FRESH_SCORE,
    TIMELINESS_HORIZON_MS,
    TIMELINESS_STALE_SCORE,
)
from dayfusion.models.fusion import (
    AggregatedSourceData,
    NumericAggregate,
    QualityAssessment,
    SlotLineage,
    TimeSlot,
)
from dayfusion.models.records import (
    FieldKind,
    SourceBatch,
    SourceRecord,
    SourceSchema,
    classify_value,
    schema_for,
    to_records,
)
from dayfusion.utils.date_utils import now_ms as _wall_clock_ms

logger = logging.getLogger(__name__)


def slot_start_for(timestamp: int, width_ms: int) -> int:
    """Start of the slot containing timestamp: floor(timestamp / width) * width."""
    return (timestamp // width_ms) * width_ms


def _records_of(source_id: str, value: Any, schemas: Optional[Mapping[str, SourceSchema]]) -> List[SourceRecord]:
    if isinstance(value, SourceBatch):
        items: Any = value.data
    elif isinstance(value, Mapping):
        items = value.get("data")
    else:
        items = value
    return to_records(source_id, items, schemas)


def _timestamped(records: Iterable[SourceRecord]) -> List[SourceRecord]:
    valid: List[SourceRecord] = []
    for record in records:
        if record.timestamp is None:
            logger.debug("Fusion: skipping %s record without timestamp", record.source)
            continue
        valid.append(record)
    return valid


def create_time_slots(
    sources: Mapping[str, Any],
    width_ms: int = TIME_SLOT_WIDTH_MS,
    schemas: Optional[Mapping[str, SourceSchema]] = None,
) -> List[int]:
    """Compute the sparse slot grid for a set of sources.

    Args:
        sources: Mapping of source id to SourceBatch (or record sequence).
        width_ms: Slot width in milliseconds.
        schemas: Optional schema registry override.

    Returns:
        Sorted list of distinct slot start timestamps. Slots with no records
        are never materialized.
    """
    if width_ms <= 0:
        raise ValueError(f"width_ms must be positive, got {width_ms}")
    starts = set()
    for source_id in sorted(sources):
        for record in _timestamped(_records_of(source_id, sources[source_id], schemas)):
            starts.add(slot_start_for(record.timestamp, width_ms))
    return sorted(starts)


def aggregate_source_data(
    source: str,
    records: Sequence[SourceRecord],
    schema: Optional[SourceSchema] = None,
) -> AggregatedSourceData:
    """Aggregate one source's records within one slot.

    Numeric fields accumulate sum/count/min/max (avg is derived); other
    fields collect their distinct values. A field's kind is taken from the
    schema when declared, otherwise from the first value observed in this
    slot. A numeric field skips later non-numeric values; a categorical field
    collects every non-None value.

    Args:
        source: Source id.
        records: The source's records falling inside the slot.
        schema: Schema declaring field kinds for this source.

    Returns:
        AggregatedSourceData for the slot.
    """
    schema = schema or SourceSchema(source=source)
    aggregated = AggregatedSourceData(source=source, count=len(records))
    kinds: Dict[str, FieldKind] = {}

    for record in records:
        for key, value in record.items():
            if key in schema.timestamp_fields or value is None:
                continue
            observed = classify_value(value)
            kind = kinds.get(key) or schema.kind_of(key) or observed
            kinds[key] = kind

            if kind is FieldKind.NUMERIC and observed is not FieldKind.NUMERIC:
                logger.debug(
                    "Fusion: %s.%s expected %s, got %r — skipping value",
                    source, key, kind.value, value,
                )
                continue

            if kind is FieldKind.NUMERIC:
                if isinstance(value, float) and not math.isfinite(value):
                    continue
                aggregated.numeric.setdefault(key, NumericAggregate()).add(value)
            else:
                distinct = aggregated.categorical.setdefault(key, [])
                if value not in distinct:
                    distinct.append(value)

    return aggregated


def aggregate_slot(
    slot_start: int,
    width_ms: int,
    records_by_source: Mapping[str, Sequence[SourceRecord]],
    schemas: Optional[Mapping[str, SourceSchema]] = None,
) -> TimeSlot:
    """Build an unscored TimeSlot from each source's in-slot records.

    Sources with no records in the slot are absent from the result.
    """
    slot = TimeSlot(timestamp=slot_start, end=slot_start + width_ms)
    for source_id in sorted(records_by_source):
        in_slot = [
            r for r in records_by_source[source_id]
            if slot_start <= r.timestamp < slot_start + width_ms
        ]
        if not in_slot:
            continue
        slot.sources[source_id] = aggregate_source_data(
            source_id, in_slot, schema_for(source_id, schemas)
        )
        stamps = [r.timestamp for r in in_slot]
        slot.lineage.append(
            SlotLineage(
                source=source_id,
                count=len(in_slot),
                first_timestamp=min(stamps),
                last_timestamp=max(stamps),
            )
        )
    return slot


def calculate_slot_confidence(slot: TimeSlot) -> float:
    """Score how much corroborating data backs a slot.

    0.3 per source present, +0.1 when it has any records, +0.1 more when it
    has more than five, capped at 0.95.
    """
    confidence = 0.0
    for data in slot.sources.values():
        confidence += SOURCE_BASE_CONFIDENCE
        if data.count > 0:
            confidence += SOURCE_PRESENT_BONUS
        if data.count > SOURCE_DENSE_MIN_COUNT:
            confidence += SOURCE_DENSE_BONUS
    return round(min(max(confidence, 0.0), MAX_SLOT_CONFIDENCE), 10)


def check_data_consistency(sources: Mapping[str, AggregatedSourceData]) -> float:
    """Cross-source conflict score. Placeholder: always CONSISTENCY_PLACEHOLDER."""
    return CONSISTENCY_PLACEHOLDER


def assess_data_quality(
    slot: TimeSlot,
    expected_sources: Sequence[str],
    now_ms: int,
) -> QualityAssessment:
    """Assess completeness, consistency, and timeliness of a slot.

    Args:
        slot: Slot to assess.
        expected_sources: Sources a complete slot would contain.
        now_ms: Current time in epoch milliseconds.

    Returns:
        QualityAssessment for the slot.
    """
    expected = set(expected_sources)
    present = expected.intersection(slot.sources)
    completeness = len(present) / len(expected) if expected else 0.0

    fresh = now_ms - slot.timestamp < TIMELINESS_HORIZON_MS
    return QualityAssessment(
        completeness=completeness,
        consistency=check_data_consistency(slot.sources),
        timeliness=TIMELINESS_FRESH_SCORE if fresh else TIMELINESS_STALE_SCORE,
    )


def apply_confidence_scoring(
    slots: Mapping[int, TimeSlot],
    expected_sources: Sequence[str],
    now_ms: Optional[int] = None,
) -> Dict[int, TimeSlot]:
    """Attach confidence and quality to every slot (in place) and return them.

    Scoring is a pure function of slot contents, so re-applying it is harmless.
    """
    current = _wall_clock_ms() if now_ms is None else now_ms
    for slot in slots.values():
        slot.confidence = calculate_slot_confidence(slot)
        slot.quality = assess_data_quality(slot, expected_sources, current)
    return dict(slots)


def harmonize(
    sources: Mapping[str, Any],
    width_ms: int = TIME_SLOT_WIDTH_MS,
    expected_sources: Optional[Sequence[str]] = None,
    now_ms: Optional[int] = None,
    schemas: Optional[Mapping[str, SourceSchema]] = None,
) -> Dict[int, TimeSlot]:
    """Harmonize records from multiple sources onto fixed-width time slots.

    Args:
        sources: Mapping of source id to SourceBatch (or a mapping with a
            ``data`` list, or a plain record sequence).
        width_ms: Slot width in milliseconds (default 5 minutes).
        expected_sources: Sources a complete slot would contain. Defaults to
            every source id in ``sources``.
        now_ms: Current epoch ms for timeliness (default: wall clock).
        schemas: Optional schema registry override.

    Returns:
        Dict of slot start → scored TimeSlot, ordered by slot start.
    """
    if width_ms <= 0:
        raise ValueError(f"width_ms must be positive, got {width_ms}")

    buckets: Dict[int, Dict[str, List[SourceRecord]]] = defaultdict(lambda: defaultdict(list))
    skipped = 0
    for source_id in sorted(sources):
        records = _records_of(source_id, sources[source_id], schemas)
        valid = _timestamped(records)
        skipped += len(records) - len(valid)
        for record in valid:
            buckets[slot_start_for(record.timestamp, width_ms)][source_id].append(record)

    slots: Dict[int, TimeSlot] = {}
    for slot_start in sorted(buckets):
        slots[slot_start] = aggregate_slot(slot_start, width_ms, buckets[slot_start], schemas)

    expected = list(expected_sources) if expected_sources is not None else sorted(sources)
    scored = apply_confidence_scoring(slots, expected, now_ms)

    logger.debug(
        "Fusion: %d sources → %d slots (width=%dms, skipped=%d)",
        len(sources), len(scored), width_ms, skipped,
    )
    return scored
