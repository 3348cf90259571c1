"""DayFusion utilities package.

Stateless helpers for dates, geography, and logging setup.
"""

from dayfusion.utils.date_utils import day_bounds_ms, format_date, iter_days, to_date
from dayfusion.utils.geo_utils import haversine_km, place_identifier
from dayfusion.utils.logging_utils import configure_logging, get_day_logger, get_logger

__all__ = [
    "to_date",
    "format_date",
    "day_bounds_ms",
    "iter_days",
    "haversine_km",
    "place_identifier",
    "configure_logging",
    "get_logger",
    "get_day_logger",
]
