"""DayFusion configuration package."""

from config.defaults import (
    CACHE_MAX_SIZE,
    CACHE_TTL_DAILY_MS,
    CACHE_TTL_INSIGHTS_MS,
    CACHE_TTL_WEEKLY_MS,
    DEFAULT_TIMEZONE,
    HEALTH_SOURCE_PRIORITY,
    MAX_SLOT_CONFIDENCE,
    TIME_SLOT_WIDTH_MS,
)
from config.settings import CacheTTLs, CorrelationWindows, EngineConfig

__all__ = [
    "EngineConfig",
    "CorrelationWindows",
    "CacheTTLs",
    "TIME_SLOT_WIDTH_MS",
    "MAX_SLOT_CONFIDENCE",
    "CACHE_MAX_SIZE",
    "CACHE_TTL_DAILY_MS",
    "CACHE_TTL_WEEKLY_MS",
    "CACHE_TTL_INSIGHTS_MS",
    "HEALTH_SOURCE_PRIORITY",
    "DEFAULT_TIMEZONE",
]
