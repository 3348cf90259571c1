"""Logging setup and day-scoped loggers for DayFusion.

Handlers and levels come from config/logging.yaml (a logging.config
dictConfig document). Every engine logger lives under the 'dayfusion'
namespace.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Union

import yaml

DEFAULT_LOGGING_YAML = Path(__file__).resolve().parents[2] / "config" / "logging.yaml"


def _override(cfg: Dict[str, Any], log_level: Optional[str], log_file: Optional[str]) -> Dict[str, Any]:
    if log_level:
        level = log_level.upper()
        for section in cfg.get("loggers", {}).values():
            section["level"] = level
        cfg.setdefault("root", {})["level"] = level
    if log_file:
        for handler in cfg.get("handlers", {}).values():
            if "filename" in handler:
                handler["filename"] = log_file
    return cfg


def configure_logging(
    config_path: Optional[Union[str, Path]] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """Apply the YAML logging configuration.

    Args:
        config_path: dictConfig YAML file (default: config/logging.yaml).
        log_level: Level forced onto every configured logger and the root.
        log_file: Replacement filename for file handlers.

    Without a readable YAML file, a single stderr handler is installed via
    basicConfig.
    """
    path = Path(config_path) if config_path else DEFAULT_LOGGING_YAML
    if not path.is_file():
        logging.basicConfig(
            level=(log_level or "INFO").upper(),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logging.getLogger(__name__).debug("No logging config at %s; using basicConfig", path)
        return

    cfg = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    logging.config.dictConfig(_override(cfg, log_level, log_file))


def get_logger(name: str) -> logging.Logger:
    """Get a namespaced logger under 'dayfusion'.

    Args:
        name: Module or component name (e.g., "agents.collection_agent").

    Returns:
        Logger instance with full 'dayfusion.<name>' namespace.
    """
    if name.startswith("dayfusion"):
        return logging.getLogger(name)
    return logging.getLogger(f"dayfusion.{name}")


class DayContextAdapter(logging.LoggerAdapter):
    """Logger adapter that prefixes every record with the day being processed.

    Usage:
        logger = get_day_logger("pipeline", day="2024-03-14")
        logger.info("Fetching sources")
        # Output: [INFO] dayfusion.pipeline: [2024-03-14] Fetching sources
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        day = self.extra.get("day", "unknown")
        return f"[{day}] {msg}", kwargs


def get_day_logger(name: str, day: str) -> DayContextAdapter:
    """Get a day-context-aware logger adapter.

    Args:
        name: Module or component name.
        day: ISO date (YYYY-MM-DD) of the summary being produced.

    Returns:
        LoggerAdapter that prefixes all messages with [day].
    """
    return DayContextAdapter(get_logger(name), {"day": day})
