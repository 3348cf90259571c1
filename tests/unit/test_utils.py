"""Unit tests for dayfusion.utils (date, geo and logging helpers)."""

from __future__ import annotations

import logging
from datetime import date, datetime

import pytest

from dayfusion.utils.date_utils import (
    day_bounds_ms,
    days_between,
    format_date,
    iter_days,
    local_hour,
    month_bounds,
    resolve_timezone,
    to_date,
)
from dayfusion.utils.geo_utils import coordinates_of, haversine_km, place_identifier
from dayfusion.utils.logging_utils import configure_logging, get_day_logger, get_logger


# ── Dates ─────────────────────────────────────────────────────────────────────────

class TestToDate:
    @pytest.mark.parametrize(
        "value",
        [date(2024, 3, 14), datetime(2024, 3, 14, 18, 30), "2024-03-14", " 2024-03-14T08:00:00Z "],
    )
    def test_accepted_inputs(self, value):
        assert to_date(value) == date(2024, 3, 14)

    def test_unparseable_string_raises(self):
        with pytest.raises(ValueError):
            to_date("not a date")

    def test_unsupported_type_raises(self):
        with pytest.raises(ValueError):
            to_date(20240314)

    def test_format_date(self):
        assert format_date(datetime(2024, 1, 5, 23, 59)) == "2024-01-05"


class TestDayBounds:
    def test_utc_day(self):
        start, end = day_bounds_ms("2024-03-14", "UTC")
        assert start == 1710374400000
        assert end == 1710374400000 + 24 * 60 * 60 * 1000 - 1

    def test_timezone_shifts_bounds(self):
        """Amsterdam midnight (UTC+1 in March before DST) is 23:00 UTC the day before."""
        start, _ = day_bounds_ms("2024-03-14", "Europe/Amsterdam")
        assert start == 1710374400000 - 60 * 60 * 1000

    def test_dst_day_is_23_hours(self):
        start, end = day_bounds_ms("2024-03-31", "Europe/Amsterdam")
        assert end - start + 1 == 23 * 60 * 60 * 1000

    def test_unknown_timezone_falls_back_to_utc(self):
        assert day_bounds_ms("2024-03-14", "Not/AZone") == day_bounds_ms("2024-03-14", "UTC")
        assert resolve_timezone("") is not None


class TestRanges:
    def test_iter_days_inclusive(self):
        days = list(iter_days("2024-02-27", "2024-03-01"))
        assert [format_date(d) for d in days] == ["2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01"]

    def test_iter_days_reversed_empty(self):
        assert list(iter_days("2024-03-02", "2024-03-01")) == []

    def test_month_bounds_leap_february(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_month_bounds_invalid_month(self):
        with pytest.raises(ValueError):
            month_bounds(2024, 13)

    def test_days_between(self):
        assert days_between("2024-03-11", "2024-03-17") == 7
        assert days_between("2024-03-17", "2024-03-11") == 0

    def test_local_hour(self):
        assert local_hour(1710374400000 + 7 * 60 * 60 * 1000, "UTC") == 7
        assert local_hour(1710374400000 + 7 * 60 * 60 * 1000, "Asia/Tokyo") == 16


# ── Geography ─────────────────────────────────────────────────────────────────────

class TestGeo:
    def test_haversine_known_distance(self):
        """Amsterdam to Paris is roughly 430 km."""
        assert haversine_km(52.3702, 4.8952, 48.8566, 2.3522) == pytest.approx(430, abs=10)

    def test_haversine_same_point(self):
        assert haversine_km(10.0, 10.0, 10.0, 10.0) == pytest.approx(0.0)

    def test_coordinates_missing(self):
        assert coordinates_of({"latitude": 1.0}) is None
        assert coordinates_of({"latitude": "x", "longitude": 2}) is None

    def test_place_identifier(self):
        assert place_identifier({"name": "Home", "latitude": 1, "longitude": 2}) == "Home"
        assert place_identifier({"latitude": 1.5, "longitude": 2.5}) == "1.5,2.5"
        assert place_identifier({}) is None


# ── Logging ───────────────────────────────────────────────────────────────────────

class TestLogging:
    def test_logger_namespaced(self):
        assert get_logger("pipeline").name == "dayfusion.pipeline"
        assert get_logger("dayfusion.cache").name == "dayfusion.cache"

    def test_day_logger_prefixes_messages(self):
        day_logger = get_day_logger("tests", "2024-03-14")
        msg, kwargs = day_logger.process("hello", {})
        assert msg == "[2024-03-14] hello"
        assert day_logger.logger.name == "dayfusion.tests"

    def test_configure_logging_applies_level_override(self, tmp_path):
        """log_level overrides every logger declared in the YAML file."""
        cfg = tmp_path / "logging.yaml"
        cfg.write_text(
            "version: 1\n"
            "disable_existing_loggers: false\n"
            "loggers:\n"
            "  dayfusion_yaml_test:\n"
            "    level: ERROR\n",
            encoding="utf-8",
        )
        configure_logging(cfg, log_level="debug")
        assert logging.getLogger("dayfusion_yaml_test").level == logging.DEBUG
