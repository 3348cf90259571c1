"""Unit tests for dayfusion.analysis.fusion.

Covers:
- Slot boundaries: floor alignment, half-open windows, timestamp 0
- Aggregation: numeric statistics, distinct categoricals, booleans, kind conflicts
- Declared kinds: categorical keeps numeric codes, numeric skips strings and NaN
- Confidence: per-source increments and the 0.95 cap
- Quality: completeness against expected sources, timeliness horizon
- harmonize: determinism, sparse grid, untimestamped or non-finite timestamps, input shapes
"""

from __future__ import annotations

import math

import pytest

from dayfusion.analysis.fusion import (
    aggregate_source_data,
    apply_confidence_scoring,
    assess_data_quality,
    calculate_slot_confidence,
    create_time_slots,
    harmonize,
    slot_start_for,
)
from dayfusion.models.fusion import AggregatedSourceData, TimeSlot
from dayfusion.models.records import SourceBatch, SourceRecord, SourceSchema

WIDTH = 300000
NOW = 1_710_000_000_000


def _rec(source, ts, **fields):
    return SourceRecord(source=source, timestamp=ts, fields=fields)


def _slot_with_counts(**counts):
    slot = TimeSlot(timestamp=0, end=WIDTH)
    for source, count in counts.items():
        slot.sources[source] = AggregatedSourceData(source=source, count=count)
    return slot


# ── Slot boundaries ───────────────────────────────────────────────────────────────

class TestSlotBoundaries:
    def test_slot_start_floors_to_width(self):
        assert slot_start_for(299999, WIDTH) == 0
        assert slot_start_for(300000, WIDTH) == 300000
        assert slot_start_for(612345, WIDTH) == 600000

    def test_timestamp_zero_is_valid(self):
        """Epoch 0 is a real timestamp, not a missing one."""
        slots = harmonize({"a": [_rec("a", 0, v=1)]}, now_ms=NOW)
        assert list(slots) == [0]

    def test_slot_end_is_exclusive(self):
        """A record exactly at the slot end belongs to the next slot."""
        slots = harmonize({"a": [_rec("a", 0), _rec("a", WIDTH)]}, now_ms=NOW)
        assert list(slots) == [0, WIDTH]
        assert slots[0].end == WIDTH

    def test_create_time_slots_sparse_and_sorted(self):
        """Only slots holding at least one record are materialized."""
        sources = {
            "b": [_rec("b", 10 * WIDTH + 5)],
            "a": [_rec("a", 2 * WIDTH), _rec("a", 2 * WIDTH + 1)],
        }
        assert create_time_slots(sources, WIDTH) == [2 * WIDTH, 10 * WIDTH]

    @pytest.mark.parametrize("width", [0, -5])
    def test_non_positive_width_rejected(self, width):
        with pytest.raises(ValueError):
            harmonize({"a": [_rec("a", 1)]}, width_ms=width)


# ── Aggregation ───────────────────────────────────────────────────────────────────

class TestAggregation:
    def test_numeric_statistics(self):
        """Numeric fields carry sum, count, min, max and a derived average."""
        records = [_rec("s", 1, steps=100), _rec("s", 2, steps=300), _rec("s", 3, steps=200)]
        agg = aggregate_source_data("s", records)
        steps = agg.numeric["steps"]
        assert steps.sum == 600
        assert steps.count == 3
        assert steps.min == 100
        assert steps.max == 300
        assert steps.avg == pytest.approx(200.0)
        assert agg.count == 3

    def test_categorical_values_are_distinct(self):
        records = [_rec("s", 1, app="Maps"), _rec("s", 2, app="Mail"), _rec("s", 3, app="Maps")]
        agg = aggregate_source_data("s", records)
        assert agg.categorical["app"] == ["Maps", "Mail"]

    def test_booleans_are_categorical(self):
        """True/False must never be summed as 1/0."""
        agg = aggregate_source_data("s", [_rec("s", 1, charging=True), _rec("s", 2, charging=False)])
        assert "charging" not in agg.numeric
        assert agg.categorical["charging"] == [True, False]

    def test_first_observed_kind_wins(self):
        """A field first seen as a number ignores later string values."""
        agg = aggregate_source_data("s", [_rec("s", 1, level=3), _rec("s", 2, level="high")])
        assert agg.numeric["level"].count == 1
        assert "level" not in agg.categorical

    def test_declared_schema_kind_takes_precedence(self):
        schema = SourceSchema(source="s", categorical_fields=("code",))
        agg = aggregate_source_data("s", [_rec("s", 1, code=42), _rec("s", 2, code=7)], schema)
        assert agg.categorical["code"] == [42, 7]
        assert "code" not in agg.numeric

    def test_declared_categorical_mixes_numbers_and_strings(self):
        """A categorical field keeps every value whatever type arrives first."""
        schema = SourceSchema(source="s", categorical_fields=("code",))
        agg = aggregate_source_data("s", [_rec("s", 1, code="missed"), _rec("s", 2, code=3)], schema)
        assert agg.categorical["code"] == ["missed", 3]

    def test_first_observed_categorical_keeps_later_numbers(self):
        agg = aggregate_source_data("s", [_rec("s", 1, tag="a"), _rec("s", 2, tag=5)])
        assert agg.categorical["tag"] == ["a", 5]
        assert "tag" not in agg.numeric

    def test_declared_numeric_skips_strings_and_infinities(self):
        schema = SourceSchema(source="s", numeric_fields=("steps",))
        records = [
            _rec("s", 1, steps="many"),
            _rec("s", 2, steps=float("inf")),
            _rec("s", 3, steps=100),
        ]
        agg = aggregate_source_data("s", records, schema)
        assert agg.numeric["steps"].count == 1
        assert agg.numeric["steps"].sum == 100
        assert "steps" not in agg.categorical

    def test_integer_call_type_codes_survive_harmonize(self):
        """call_type is declared categorical, so Android int codes are kept."""
        slots = harmonize(
            {"call_logs": {"data": [{"timestamp": 1000, "call_type": 1, "duration": 30}]}},
            now_ms=NOW,
        )
        call_logs = slots[0].sources["call_logs"]
        assert call_logs.categorical["call_type"] == [1]
        assert call_logs.numeric["duration"].sum == 30

    def test_nan_values_skipped(self):
        agg = aggregate_source_data("s", [_rec("s", 1, hr=float("nan")), _rec("s", 2, hr=60)])
        assert agg.numeric["hr"].count == 1
        assert not math.isnan(agg.numeric["hr"].avg)

    def test_none_values_skipped(self):
        agg = aggregate_source_data("s", [_rec("s", 1, note=None)])
        assert agg.categorical == {}
        assert agg.numeric == {}

    def test_to_dict_exposes_avg(self):
        agg = aggregate_source_data("s", [_rec("s", 1, steps=10), _rec("s", 2, steps=30)])
        values = agg.to_dict()["values"]
        assert values["steps"]["avg"] == pytest.approx(20.0)


# ── Confidence ────────────────────────────────────────────────────────────────────

class TestSlotConfidence:
    def test_single_source_with_records(self):
        """0.3 base + 0.1 for having records."""
        assert calculate_slot_confidence(_slot_with_counts(a=1)) == pytest.approx(0.4)

    def test_dense_source_bonus(self):
        """More than five records adds another 0.1."""
        assert calculate_slot_confidence(_slot_with_counts(a=6)) == pytest.approx(0.5)
        assert calculate_slot_confidence(_slot_with_counts(a=5)) == pytest.approx(0.4)

    def test_confidence_capped(self):
        slot = _slot_with_counts(a=10, b=10, c=10)
        assert calculate_slot_confidence(slot) == pytest.approx(0.95)

    def test_empty_slot_zero_confidence(self):
        assert calculate_slot_confidence(TimeSlot(timestamp=0, end=WIDTH)) == 0.0

    def test_confidence_bounded_for_many_sources(self):
        slot = _slot_with_counts(**{f"s{i}": i for i in range(1, 12)})
        assert 0.0 <= calculate_slot_confidence(slot) <= 0.95


# ── Quality ───────────────────────────────────────────────────────────────────────

class TestQuality:
    def test_completeness_one_of_three(self):
        """A slot with one of three expected sources is about one third complete."""
        slot = _slot_with_counts(health_connect=2)
        quality = assess_data_quality(slot, ["health_connect", "strava", "manual"], NOW)
        assert quality.completeness == pytest.approx(0.33, abs=0.01)

    def test_completeness_ignores_unexpected_sources(self):
        slot = _slot_with_counts(a=1, extra=1)
        assert assess_data_quality(slot, ["a", "b"], NOW).completeness == pytest.approx(0.5)

    def test_consistency_placeholder(self):
        assert assess_data_quality(_slot_with_counts(a=1), ["a"], NOW).consistency == pytest.approx(0.8)

    def test_timeliness_fresh_and_stale(self):
        fresh = TimeSlot(timestamp=NOW - 1000, end=NOW)
        stale = TimeSlot(timestamp=NOW - 25 * 60 * 60 * 1000, end=NOW)
        assert assess_data_quality(fresh, [], NOW).timeliness == 1.0
        assert assess_data_quality(stale, [], NOW).timeliness == 0.5

    def test_apply_confidence_scoring_is_idempotent(self):
        slots = harmonize({"a": [_rec("a", 1, v=1)], "b": [_rec("b", 2, v=2)]}, now_ms=NOW)
        before = {k: (s.confidence, s.quality) for k, s in slots.items()}
        apply_confidence_scoring(slots, ["a", "b"], NOW)
        after = {k: (s.confidence, s.quality) for k, s in slots.items()}
        assert before == after


# ── harmonize ─────────────────────────────────────────────────────────────────────

class TestHarmonize:
    def test_deterministic_across_source_order(self):
        """Identical input in different mapping order yields identical slots."""
        a = [_rec("a", 1000, steps=5), _rec("a", 400000, steps=7)]
        b = [_rec("b", 2000, app="Maps")]
        first = harmonize({"a": a, "b": b}, now_ms=NOW)
        second = harmonize({"b": b, "a": a}, now_ms=NOW)
        assert [s.to_dict() for s in first.values()] == [s.to_dict() for s in second.values()]

    def test_records_without_timestamp_skipped(self):
        records = [SourceRecord(source="a", timestamp=None, fields={"v": 1}), _rec("a", 10, v=2)]
        slots = harmonize({"a": records}, now_ms=NOW)
        assert slots[0].sources["a"].count == 1

    def test_non_finite_timestamps_skipped(self):
        """NaN and infinite timestamps are dropped like missing ones."""
        slots = harmonize(
            {"a": {"data": [{"timestamp": float("nan")}, {"timestamp": float("inf")}, {"timestamp": 1000}]}},
            now_ms=NOW,
        )
        assert list(slots) == [0]
        assert slots[0].sources["a"].count == 1

    def test_lineage_tracks_first_and_last(self):
        slots = harmonize({"a": [_rec("a", 50), _rec("a", 10), _rec("a", 30)]}, now_ms=NOW)
        lineage = slots[0].lineage[0]
        assert (lineage.source, lineage.count) == ("a", 3)
        assert (lineage.first_timestamp, lineage.last_timestamp) == (10, 50)

    def test_accepts_batches_mappings_and_raw_dicts(self):
        """SourceBatch, {"data": [...]} and raw dict lists are all accepted."""
        slots = harmonize(
            {
                "batch": SourceBatch("batch", [_rec("batch", 5)]),
                "mapping": {"data": [{"timestamp": 6, "v": 1}]},
                "raw": [{"timestamp": 7, "v": 2}],
            },
            now_ms=NOW,
        )
        assert set(slots[0].sources) == {"batch", "mapping", "raw"}

    def test_expected_sources_default_to_inputs(self):
        slots = harmonize({"a": [_rec("a", 1)], "b": [_rec("b", WIDTH * 3)]}, now_ms=NOW)
        assert slots[0].quality.completeness == pytest.approx(0.5)

    def test_every_slot_scored_within_bounds(self, sample_daily_data):
        slots = harmonize(sample_daily_data.source_batches(), now_ms=NOW)
        assert slots
        for slot in slots.values():
            assert 0.0 <= slot.confidence <= 0.95
            assert slot.quality is not None

    def test_empty_input_yields_no_slots(self):
        assert harmonize({}, now_ms=NOW) == {}
