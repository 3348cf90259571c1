"""JSON persistence and file-backed collaborators for DayFusion.

Day files are read with load_json; summaries are written with save_json,
which stages the document in a sibling temp file and renames it into place.
"""

from __future__ import annotations

import dataclasses
import functools
import json
import logging
import os
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from dayfusion.agents.fusion_agent import HealthSource
from dayfusion.clients.base import SourceCollector, SummaryStore
from dayfusion.models.records import SourceRecord
from dayfusion.utils.date_utils import format_date, iter_days, resolve_timezone

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _encode(obj: Any) -> Any:
    """json ``default`` hook for engine types."""
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return obj.as_posix()
    raise TypeError(f"{type(obj).__name__} is not JSON serializable")


def to_json(data: Any, indent: Optional[int] = 2) -> str:
    """Serialize engine results (records, summaries, dates) to a JSON string."""
    return json.dumps(data, indent=indent, ensure_ascii=False, default=_encode)


def save_json(data: Any, path: PathLike, indent: int = 2) -> None:
    """Write ``data`` as JSON to ``path`` without ever leaving a partial file.

    Parent directories are created on demand. Serialization errors are
    raised before anything touches the disk.

    Args:
        data: JSON-compatible data, or engine objects understood by to_json.
        path: Destination file.
        indent: JSON indentation.
    """
    target = Path(path)
    payload = to_json(data, indent=indent)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, staging = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".part", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(staging, target)
    except OSError:
        logger.error("Could not write %s", target, exc_info=True)
        if os.path.exists(staging):
            os.remove(staging)
        raise
    logger.debug("Wrote %s (%d chars)", target, len(payload))


def load_json(path: PathLike) -> Optional[Any]:
    """Parsed contents of a JSON file, or None when absent or unreadable."""
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Cannot read %s: %s", source, exc)
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed JSON in %s: %s", source, exc)
        return None


class JsonDirectoryCollector(SourceCollector):
    """SourceCollector over a directory of ``<YYYY-MM-DD>.json`` day files.

    Each day file is an object with optional keys ``activities``,
    ``locations``, ``call_logs``, ``app_usage`` (lists of records with an
    epoch-ms timestamp field), ``health`` (object of daily totals),
    ``health_sources`` (object mapping a health source name such as
    ``health_connect`` or ``strava`` to its list of records) and
    ``call_log_available`` (bool, default true).

    Args:
        root: Directory holding the day files.
        timezone_name: Timezone used to map range bounds to day files.
    """

    def __init__(self, root: PathLike, timezone_name: str = "UTC") -> None:
        self.root = Path(root)
        self.timezone_name = timezone_name

    def _day_document(self, day: date) -> Dict[str, Any]:
        doc = load_json(self.root / f"{format_date(day)}.json")
        return doc if isinstance(doc, dict) else {}

    def _ms_to_date(self, epoch_ms: int) -> date:
        zone = resolve_timezone(self.timezone_name)
        return datetime.fromtimestamp(epoch_ms / 1000, tz=zone).date()

    def _records_in_range(self, key: str, start_ms: int, end_ms: int) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for day in iter_days(self._ms_to_date(start_ms), self._ms_to_date(end_ms)):
            for raw in self._day_document(day).get(key) or []:
                if not isinstance(raw, Mapping):
                    continue
                ts = SourceRecord.from_mapping(key, raw).timestamp
                if ts is None or start_ms <= ts <= end_ms:
                    records.append(dict(raw))
        return records

    def get_activities_for_date_range(self, start_ms: int, end_ms: int) -> List[Dict[str, Any]]:
        return self._records_in_range("activities", start_ms, end_ms)

    def get_visited_places(self, start_ms: int, end_ms: int) -> List[Dict[str, Any]]:
        return self._records_in_range("locations", start_ms, end_ms)

    def get_call_analytics(self, start_ms: int, end_ms: int) -> List[Dict[str, Any]]:
        return self._records_in_range("call_logs", start_ms, end_ms)

    def get_app_usage_for_date(self, day: date) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._day_document(day).get("app_usage") or [] if isinstance(r, Mapping)]

    def get_health_context_for_date(self, day: date) -> Optional[Dict[str, Any]]:
        health = self._day_document(day).get("health")
        return dict(health) if isinstance(health, Mapping) else None

    def health_source_records(self, source: str, day: date) -> List[Dict[str, Any]]:
        """Records one health source reported for ``day`` (empty if none)."""
        by_source = self._day_document(day).get("health_sources")
        if not isinstance(by_source, Mapping):
            return []
        return [dict(r) for r in by_source.get(source) or [] if isinstance(r, Mapping)]

    def health_sources(self, names: Sequence[str]) -> List[HealthSource]:
        """HealthSource fetchers for ``names``, prioritised in the given order."""
        return [
            HealthSource(name=name, priority=rank, fetch=functools.partial(self.health_source_records, name))
            for rank, name in enumerate(names)
        ]

    def is_call_log_available(self) -> bool:
        # Unavailable only when every day file present says so
        flags = [
            doc.get("call_log_available", True)
            for doc in (load_json(p) for p in sorted(self.root.glob("*.json")))
            if isinstance(doc, dict)
        ]
        return not flags or any(flags)


class JsonSummaryStore(SummaryStore):
    """SummaryStore writing ``<root>/daily/<YYYY-MM-DD>.json`` atomically."""

    def __init__(self, root: PathLike) -> None:
        self.root = Path(root)

    def path_for(self, day: str) -> Path:
        return self.root / "daily" / f"{day}.json"

    def add_daily_summary(self, day: str, summary: Any) -> None:
        save_json(summary, self.path_for(day))
        logger.info("JsonSummaryStore: saved %s → %s", day, self.path_for(day))

    def load_daily_summary(self, day: str) -> Optional[Dict[str, Any]]:
        return load_json(self.path_for(day))
