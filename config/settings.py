"""DayFusion — EngineConfig and environment-based configuration loading.

All runtime configuration flows through EngineConfig. No module-level globals,
no hard-coded values. Credentials come exclusively from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from config.defaults import (
    ANTHROPIC_MODEL,
    CACHE_DEFAULT_TTL_MS,
    CACHE_MAX_SIZE,
    CACHE_TTL_DAILY_MS,
    CACHE_TTL_INSIGHTS_MS,
    CACHE_TTL_WEEKLY_MS,
    COLLECTOR_MAX_WORKERS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TIMEZONE,
    HEALTH_SOURCE_PRIORITY,
    LLM_BACKEND,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_TEMPERATURE,
    OLLAMA_HOST,
    OLLAMA_MODEL,
    OUTPUT_ROOT,
    TIME_SLOT_WIDTH_MS,
    TIME_WINDOW_IMMEDIATE_MS,
    TIME_WINDOW_LONG_MS,
    TIME_WINDOW_MEDIUM_MS,
    TIME_WINDOW_SHORT_MS,
)

# Load .env file if present; silently skip if missing
load_dotenv()


@dataclass
class CorrelationWindows:
    """Correlation time-window tiers in milliseconds."""

    immediate: int = TIME_WINDOW_IMMEDIATE_MS
    short: int = TIME_WINDOW_SHORT_MS
    medium: int = TIME_WINDOW_MEDIUM_MS
    long: int = TIME_WINDOW_LONG_MS

    def __post_init__(self) -> None:
        tiers = (self.immediate, self.short, self.medium, self.long)
        if any(t <= 0 for t in tiers):
            raise ValueError(f"CorrelationWindows must be positive, got {tiers}")
        if list(tiers) != sorted(set(tiers)):
            raise ValueError(f"CorrelationWindows must be strictly ascending, got {tiers}")


@dataclass
class CacheTTLs:
    """Cache time-to-live values in milliseconds per summary view."""

    daily: int = CACHE_TTL_DAILY_MS
    weekly: int = CACHE_TTL_WEEKLY_MS
    insights: int = CACHE_TTL_INSIGHTS_MS

    def __post_init__(self) -> None:
        for name in ("daily", "weekly", "insights"):
            if getattr(self, name) <= 0:
                raise ValueError(f"CacheTTLs.{name} must be positive")


@dataclass
class EngineConfig:
    """Single configuration object threaded through every engine component.

    All tuneable thresholds, model names, and file paths live here.
    Never use module-level globals or hard-coded values in agent code.
    """

    # ── Fusion ─────────────────────────────────────────────────────────────────
    slot_width_ms: int = TIME_SLOT_WIDTH_MS
    health_sources: Tuple[str, ...] = HEALTH_SOURCE_PRIORITY

    # ── Correlation ────────────────────────────────────────────────────────────
    correlation_windows: CorrelationWindows = field(default_factory=CorrelationWindows)

    # ── Cache ──────────────────────────────────────────────────────────────────
    cache_max_size: int = CACHE_MAX_SIZE
    cache_default_ttl_ms: int = CACHE_DEFAULT_TTL_MS
    cache_ttls: CacheTTLs = field(default_factory=CacheTTLs)

    # ── Collection ─────────────────────────────────────────────────────────────
    collector_max_workers: int = COLLECTOR_MAX_WORKERS
    timezone: str = field(
        default_factory=lambda: os.getenv("DAYFUSION_TIMEZONE", DEFAULT_TIMEZONE)
    )

    # ── Narrative backend ──────────────────────────────────────────────────────
    llm_backend: str = field(default_factory=lambda: os.getenv("LLM_BACKEND", LLM_BACKEND))
    anthropic_model: str = field(
        default_factory=lambda: os.getenv("ANTHROPIC_MODEL", ANTHROPIC_MODEL)
    )
    ollama_model: str = field(default_factory=lambda: os.getenv("OLLAMA_MODEL", OLLAMA_MODEL))
    ollama_host: str = field(default_factory=lambda: os.getenv("OLLAMA_HOST", OLLAMA_HOST))
    anthropic_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY")
    )
    llm_temperature: float = LLM_TEMPERATURE
    llm_max_tokens: int = LLM_DEFAULT_MAX_TOKENS

    # ── Output and logging ─────────────────────────────────────────────────────
    output_root: str = field(
        default_factory=lambda: os.getenv("DAYFUSION_OUTPUT_ROOT", OUTPUT_ROOT)
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("DAYFUSION_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    )

    def __post_init__(self) -> None:
        if self.slot_width_ms <= 0:
            raise ValueError(f"slot_width_ms must be positive, got {self.slot_width_ms}")
        if self.cache_max_size <= 0:
            raise ValueError(f"cache_max_size must be positive, got {self.cache_max_size}")
        if self.collector_max_workers <= 0:
            raise ValueError("collector_max_workers must be positive")
        self.health_sources = tuple(self.health_sources)
