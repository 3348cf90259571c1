"""DayFusion — All default threshold values and configuration constants.

All tuneable values live here. Never hard-code magic numbers in source files.
Import constants from this module; override via EngineConfig at runtime.
"""

# ── Time-slot harmonization ────────────────────────────────────────────────────
# Width of one fusion slot in milliseconds (5 minutes)
TIME_SLOT_WIDTH_MS: int = 5 * 60 * 1000

# ── Correlation time-window tiers (milliseconds) ──────────────────────────────
TIME_WINDOW_IMMEDIATE_MS: int = 5 * 60 * 1000
TIME_WINDOW_SHORT_MS: int = 30 * 60 * 1000
TIME_WINDOW_MEDIUM_MS: int = 2 * 60 * 60 * 1000
TIME_WINDOW_LONG_MS: int = 4 * 60 * 60 * 1000

# ── Cache ──────────────────────────────────────────────────────────────────────
CACHE_MAX_SIZE: int = 1000
CACHE_DEFAULT_TTL_MS: int = 300000
CACHE_TTL_DAILY_MS: int = 3600000
CACHE_TTL_WEEKLY_MS: int = 7200000
CACHE_TTL_INSIGHTS_MS: int = 1800000

# ── Slot confidence scoring ────────────────────────────────────────────────────
SOURCE_BASE_CONFIDENCE: float = 0.3
SOURCE_PRESENT_BONUS: float = 0.1
SOURCE_DENSE_BONUS: float = 0.1
# Record count above which a source earns the dense bonus
SOURCE_DENSE_MIN_COUNT: int = 5
# Upper bound on slot confidence
MAX_SLOT_CONFIDENCE: float = 0.95

# ── Slot quality assessment ────────────────────────────────────────────────────
# Placeholder until cross-source conflict detection exists
CONSISTENCY_PLACEHOLDER: float = 0.8
TIMELINESS_HORIZON_MS: int = 24 * 60 * 60 * 1000
TIMELINESS_FRESH_SCORE: float = 1.0
TIMELINESS_STALE_SCORE: float = 0.5

# Expected health sources, highest priority first
HEALTH_SOURCE_PRIORITY: tuple = ("health_connect", "strava", "manual")

# ── Insights ───────────────────────────────────────────────────────────────────
# Coarse completeness proxy below which a data-quality warning is emitted
DATA_COMPLETENESS_THRESHOLD: float = 0.7
COMPLETENESS_WITH_ACTIVITIES: float = 0.8
COMPLETENESS_WITHOUT_ACTIVITIES: float = 0.3

DAILY_STEP_GOAL: int = 10000
GOOD_ACTIVITY_STEPS: int = 5000
HIGH_CALORIE_BURN: int = 2000
HIGH_ACTIVITY_COUNT: int = 5
STRONG_CORRELATION_COUNT: int = 3

# ── Cross-source correlation windows (milliseconds) ────────────────────────────
ACTIVITY_LOCATION_WINDOW_MS: int = 60 * 60 * 1000
SOCIAL_LOCATION_WINDOW_MS: int = 30 * 60 * 1000
# Activities longer than this count as sustained exercise
LONG_ACTIVITY_MS: int = 30 * 60 * 1000
# Calls longer than this (seconds) earn the social duration bonus
LONG_CALL_SECONDS: int = 300

# ── Weekly trend analysis ──────────────────────────────────────────────────────
TREND_INCREASE_RATIO: float = 1.1
TREND_DECREASE_RATIO: float = 0.9
TREND_MIN_DAYS: int = 3

# ── Movement pattern (km between consecutive places) ───────────────────────────
MOVEMENT_LOCAL_KM: float = 1.0
MOVEMENT_MODERATE_KM: float = 10.0

TOP_APPS_LIMIT: int = 5

# ── Source collection ──────────────────────────────────────────────────────────
# One worker per daily collector call
COLLECTOR_MAX_WORKERS: int = 5

# ── Localisation ───────────────────────────────────────────────────────────────
DEFAULT_TIMEZONE: str = "UTC"

# ── Narrative LLM backends ─────────────────────────────────────────────────────
LLM_BACKEND: str = "ollama"
ANTHROPIC_MODEL: str = "claude-sonnet-4-6"
OLLAMA_MODEL: str = "gemma3:27b"
OLLAMA_HOST: str = "http://localhost:11434"
LLM_TEMPERATURE: float = 0.7
LLM_DEFAULT_MAX_TOKENS: int = 1024
LLM_MIN_MAX_TOKENS: int = 256

# ── Output paths ──────────────────────────────────────────────────────────────
OUTPUT_ROOT: str = "outputs/summaries"

# ── Logging ────────────────────────────────────────────────────────────────────
DEFAULT_LOG_LEVEL: str = "INFO"
