"""Date and epoch-millisecond utilities for DayFusion.

Collectors speak epoch milliseconds; summaries are keyed by local calendar
day. Always route caller-supplied dates through to_date() before use.
"""

from __future__ import annotations

import calendar
import time
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterator, Tuple, Union

from dateutil import parser as dateutil_parser
from dateutil import tz

DateLike = Union[date, datetime, str]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA timezone name, falling back to UTC when unknown.

    Args:
        name: IANA timezone name (e.g. "Europe/Amsterdam").

    Returns:
        tzinfo instance.
    """
    zone = tz.gettz(name) if name else None
    return zone if zone is not None else tz.UTC


def to_date(value: DateLike) -> date:
    """Normalize a date, datetime, or date string to a calendar date.

    Args:
        value: A date, datetime, or any string dateutil can parse.

    Returns:
        The calendar date.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return dateutil_parser.parse(value.strip()).date()
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"Unparseable date: {value!r}") from exc
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date(value: DateLike) -> str:
    """Format any DateLike as ISO YYYY-MM-DD."""
    return to_date(value).strftime("%Y-%m-%d")


def day_bounds_ms(value: DateLike, timezone_name: str = "UTC") -> Tuple[int, int]:
    """Compute the inclusive epoch-ms bounds of a local calendar day.

    Args:
        value: The day.
        timezone_name: IANA timezone whose midnight delimits the day.

    Returns:
        Tuple of (start_ms, end_ms) where end_ms is the last millisecond of the day.
    """
    day = to_date(value)
    zone = resolve_timezone(timezone_name)
    start = datetime(day.year, day.month, day.day, tzinfo=zone)
    next_day = day + timedelta(days=1)
    end = datetime(next_day.year, next_day.month, next_day.day, tzinfo=zone)
    start_ms = int(start.timestamp() * 1000)
    end_ms = int(end.timestamp() * 1000) - 1
    return start_ms, end_ms


def iter_days(start: DateLike, end: DateLike) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive.

    Yields nothing when end precedes start.
    """
    current = to_date(start)
    last = to_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Return the first and last calendar day of a month.

    Raises:
        ValueError: If month is outside 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be in 1-12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def local_hour(timestamp_ms: int, timezone_name: str = "UTC") -> int:
    """Hour of day (0-23) of an epoch-ms timestamp in the given timezone."""
    zone = resolve_timezone(timezone_name)
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=zone).hour


def days_between(start: DateLike, end: DateLike) -> int:
    """Number of calendar days in [start, end] inclusive (0 if end < start)."""
    delta = (to_date(end) - to_date(start)).days
    return max(0, delta + 1)
