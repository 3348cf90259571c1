#!/usr/bin/env python3
"""DayFusion CLI — summarize one day, a date range, or a calendar month.

Usage:
    python scripts/run_summary.py --data-dir ./days --date 2024-01-15
    python scripts/run_summary.py --data-dir ./days --start 2024-01-08 --end 2024-01-14
    python scripts/run_summary.py --data-dir ./days --month 2024-01 --timezone Europe/Berlin
    python scripts/run_summary.py --data-dir ./days --date 2024-01-15 --include-narrative
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import (  # noqa: E402
    ANTHROPIC_MODEL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_TIMEZONE,
    OLLAMA_MODEL,
    OUTPUT_ROOT,
    TIME_SLOT_WIDTH_MS,
)
from config.settings import EngineConfig  # noqa: E402
from dayfusion.agents.base import DailyDataUnavailableError  # noqa: E402
from dayfusion.clients.narrative_client import NARRATIVE_STYLES, NarrativeClient  # noqa: E402
from dayfusion.io.persistence import (  # noqa: E402
    JsonDirectoryCollector,
    JsonSummaryStore,
    to_json,
)
from dayfusion.models.summary import SummaryOptions  # noqa: E402
from dayfusion.pipeline import SummaryOrchestrator  # noqa: E402
from dayfusion.utils.logging_utils import configure_logging  # noqa: E402


def _year_month(value: str) -> tuple:
    """argparse type for YYYY-MM."""
    try:
        year_str, month_str = value.split("-", 1)
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"month out of range in {value!r}")
    return year, month


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argparse argument parser for the summary CLI."""
    parser = argparse.ArgumentParser(
        prog="run_summary",
        description="DayFusion — fuse personal data sources into day summaries",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Input ───────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--data-dir",
        type=str,
        required=True,
        help="Directory of <YYYY-MM-DD>.json day files",
    )

    # ── Period (exactly one) ────────────────────────────────────────────────────
    period = parser.add_mutually_exclusive_group(required=True)
    period.add_argument("--date", type=str, help="Summarize a single day (YYYY-MM-DD)")
    period.add_argument("--start", type=str, help="First day of a range (requires --end)")
    period.add_argument(
        "--month", type=_year_month, help="Summarize a calendar month (YYYY-MM)"
    )
    parser.add_argument("--end", type=str, help="Last day of a range (inclusive)")

    # ── Analysis ────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--timezone",
        type=str,
        default=DEFAULT_TIMEZONE,
        help="IANA timezone used for day boundaries and hour-of-day analysis",
    )
    parser.add_argument(
        "--slot-width-ms",
        type=int,
        default=TIME_SLOT_WIDTH_MS,
        help="Fusion time-slot width in milliseconds",
    )
    parser.add_argument(
        "--analyze",
        action="store_true",
        help="For --date, emit the unified analysis (slots, patterns, insights)",
    )

    # ── Narrative backend ───────────────────────────────────────────────────────
    parser.add_argument(
        "--include-narrative",
        action="store_true",
        help="Generate a prose narrative for each day via the LLM backend",
    )
    parser.add_argument(
        "--narrative-style",
        type=str,
        default="journal",
        choices=sorted(NARRATIVE_STYLES),
        help="Narrative tone",
    )
    parser.add_argument(
        "--llm-backend",
        type=str,
        default="ollama",
        choices=["anthropic", "ollama"],
        help="LLM backend to use for narrative generation",
    )
    parser.add_argument(
        "--anthropic-model", type=str, default=ANTHROPIC_MODEL, help="Anthropic model ID"
    )
    parser.add_argument(
        "--ollama-model", type=str, default=OLLAMA_MODEL, help="Ollama model name"
    )

    # ── Output ──────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--output-root",
        type=str,
        default=OUTPUT_ROOT,
        help="Root directory where daily summaries are persisted",
    )
    parser.add_argument(
        "--no-store",
        action="store_true",
        help="Do not persist daily summaries to --output-root",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )

    return parser


def args_to_config(args: argparse.Namespace) -> EngineConfig:
    """Convert parsed CLI arguments into an EngineConfig instance.

    Args:
        args: Parsed argparse Namespace.

    Returns:
        Fully populated EngineConfig.
    """
    return EngineConfig(
        slot_width_ms=args.slot_width_ms,
        timezone=args.timezone,
        llm_backend=args.llm_backend,
        anthropic_model=args.anthropic_model,
        ollama_model=args.ollama_model,
        output_root=args.output_root,
        log_level=args.log_level,
    )


def main() -> None:
    """CLI entrypoint — parse arguments, build config, print the summary as JSON."""
    parser = build_arg_parser()
    args = parser.parse_args()
    if args.start and not args.end:
        parser.error("--start requires --end")

    configure_logging(log_level=args.log_level)
    logger = logging.getLogger("run_summary")

    config = args_to_config(args)
    logger.info(
        "DayFusion starting — data: %s | tz: %s | narrative: %s",
        args.data_dir,
        config.timezone,
        args.include_narrative,
    )

    narrative = (
        NarrativeClient.from_config(config, style=args.narrative_style)
        if args.include_narrative
        else None
    )
    collector = JsonDirectoryCollector(args.data_dir, timezone_name=config.timezone)
    orchestrator = SummaryOrchestrator(
        collector,
        config=config,
        health_sources=collector.health_sources(config.health_sources),
        narrative_generator=narrative,
        summary_store=None if args.no_store else JsonSummaryStore(config.output_root),
    )
    options = SummaryOptions(include_narrative=args.include_narrative)

    try:
        if args.month:
            year, month = args.month
            result = orchestrator.generate_monthly_summary(year, month, options)
        elif args.start:
            result = orchestrator.generate_weekly_summary(args.start, args.end, options)
        elif args.analyze:
            result = orchestrator.analyze_data(args.date, options)
        else:
            result = orchestrator.generate_daily_summary(args.date, options)
    except DailyDataUnavailableError as exc:
        logger.error("No data available: %s", exc)
        sys.exit(2)
    except ValueError as exc:
        logger.error("Invalid request: %s", exc)
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except Exception as exc:
        logger.exception("Summary failed with unhandled exception: %s", exc)
        sys.exit(1)

    print(to_json(result))


if __name__ == "__main__":
    main()
